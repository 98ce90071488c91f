"""
Database and application fixtures.

Every test that touches the database starts from freshly created tables in
the shared in-memory SQLite database.
"""

import pytest

from petcare.db.base import Pet, User
from petcare.db.session import SessionLocal, create_tables, drop_tables
from tests.factories.domain_factories import FIXED_NOW


@pytest.fixture
def clean_database():
    """Drop and recreate every table around the test."""
    drop_tables()
    create_tables()
    yield
    drop_tables()


@pytest.fixture
def db_session(clean_database):
    """Database session for direct repository access."""
    session = SessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()


@pytest.fixture
def app(clean_database):
    """Flask application with a fixed clock."""
    from petcare.main import create_app

    flask_app = create_app()
    flask_app.config.update(TESTING=True, PETCARE_CLOCK=lambda: FIXED_NOW)
    yield flask_app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def seed_directory(db_session):
    """Insert directory users and pets; returns a callable for extra rows."""

    def _seed(users=(), pets=()):
        for user_id, full_name, role in users:
            db_session.add(User(id=user_id, full_name=full_name, role=role))
        for pet_id, name, owner_user_id in pets:
            db_session.add(Pet(id=pet_id, name=name, owner_user_id=owner_user_id))
        db_session.commit()

    _seed(
        users=[
            ("owner-1", "Olivia Owner", "OWNER"),
            ("owner-2", "Oscar Other", "OWNER"),
            ("vet-1", "Dr. Vera Vet", "VET"),
            ("vet-2", "Dr. Victor Vet", "VET"),
            ("admin-1", "Adam Admin", "ADMIN"),
        ],
        pets=[
            ("pet-1", "Rex", "owner-1"),
            ("pet-2", "Mittens", "owner-2"),
        ],
    )
    return _seed
