"""
Central pytest configuration for the PetCare appointment service tests.

Sets the test environment before any application module is imported and
exposes the shared fixtures, markers and helpers.
"""

import os

# Test database configuration (set early so import-time engines use it)
os.environ["DATABASE_URL"] = "sqlite:///:memory:"
os.environ["TESTING"] = "true"
os.environ["RATE_LIMIT_ENABLED"] = "0"  # Disable rate limiting in tests
os.environ["LOG_TO_FILE"] = "0"
os.environ.setdefault("JWT_SECRET_KEY", "petcare-test-jwt-secret-0123456789abcdef")

from tests.config.markers import *  # noqa: E402,F401,F403
from tests.fixtures.auth_fixtures import *  # noqa: E402,F401,F403
from tests.fixtures.database_fixtures import *  # noqa: E402,F401,F403
from tests.fixtures.service_fixtures import *  # noqa: E402,F401,F403
