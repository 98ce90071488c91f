"""
Unit tests for bearer token handling.
"""

from datetime import timedelta
from types import SimpleNamespace

import jwt
import pytest

from petcare.core.auth_decorators import extract_bearer_token
from petcare.core.security import (
    JWT_ALGORITHM,
    create_user_token,
    get_identity_from_token,
    get_jwt_secret_key,
)
from petcare.domain.entities import Actor, Role


@pytest.mark.unit
@pytest.mark.security
class TestTokens:
    def test_round_trip_identity(self):
        token = create_user_token("owner-1", "OWNER", name="Olivia")
        assert get_identity_from_token(token) == {
            "user_id": "owner-1",
            "role": "OWNER",
            "name": "Olivia",
        }

    def test_expired_token_is_rejected(self):
        token = create_user_token("owner-1", "OWNER", expires_delta=timedelta(seconds=-1))
        assert get_identity_from_token(token) is None

    def test_wrong_signature_is_rejected(self):
        token = jwt.encode({"sub": "owner-1", "role": "OWNER"}, "x" * 40, algorithm=JWT_ALGORITHM)
        assert get_identity_from_token(token) is None

    def test_missing_role_claim_is_rejected(self):
        token = jwt.encode({"sub": "owner-1"}, get_jwt_secret_key(), algorithm=JWT_ALGORITHM)
        assert get_identity_from_token(token) is None

    def test_garbage_token(self):
        assert get_identity_from_token("not-a-jwt") is None

    def test_production_rejects_weak_secret(self, monkeypatch):
        monkeypatch.setenv("FLASK_ENV", "production")
        monkeypatch.setenv("JWT_SECRET_KEY", "secret123")
        with pytest.raises(ValueError):
            get_jwt_secret_key()


@pytest.mark.unit
@pytest.mark.security
class TestBearerHeader:
    @pytest.mark.parametrize(
        "header, expected",
        [
            ("Bearer abc.def", "abc.def"),
            ("bearer   abc.def ", "abc.def"),
            ("Basic abc", None),
            ("Bearer", None),
            ("", None),
            (None, None),
        ],
    )
    def test_extract(self, header, expected):
        assert extract_bearer_token(header) == expected

    def test_loader_builds_actor(self, app):
        from petcare.core.auth_decorators import load_actor_from_request

        token = create_user_token("vet-1", "vet")
        request = SimpleNamespace(headers={"Authorization": f"Bearer {token}"})
        with app.test_request_context():
            actor = load_actor_from_request(request)

        assert actor.user_id == "vet-1"
        assert actor.role == Role.VET


@pytest.mark.unit
class TestRoleClaims:
    def test_role_parsing_ignores_case(self):
        assert Actor.from_claims("u", "admin").role == Role.ADMIN

    def test_unknown_role(self):
        assert Actor.from_claims("u", "groomer").role is None
