"""
Bearer token handling.

The service does not issue credentials to end users; it only verifies tokens
signed with the shared ``JWT_SECRET_KEY``. ``create_user_token`` exists for
the management CLI and the test-suite.
"""

import os
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt


def get_jwt_secret_key() -> str:
    """Get JWT secret key with production validation.

    In production (FLASK_ENV=production) the secret must be set, must not be
    one of the development defaults and must be at least 32 characters.

    Raises:
        ValueError: If production deployment uses weak or missing JWT secret
    """
    secret = os.getenv("JWT_SECRET_KEY", "dev-jwt-secret-change-me")
    is_production = os.getenv("FLASK_ENV") == "production"

    if is_production:
        weak_secrets = ["dev-jwt-secret-change-me", "dev-secret-change-me", "secret123"]
        if secret in weak_secrets or len(secret) < 32:
            raise ValueError(
                "Production deployment requires strong JWT_SECRET_KEY (min 32 chars). "
                "Set JWT_SECRET_KEY environment variable."
            )

    return secret


JWT_ALGORITHM = "HS256"
JWT_EXPIRATION_HOURS = 24


def create_access_token(
    data: Dict[str, Any], expires_delta: Optional[timedelta] = None
) -> str:
    """Create a signed JWT access token.

    Args:
        data: Payload data to encode in the token
        expires_delta: Optional custom expiration time

    Returns:
        Encoded JWT token string
    """
    to_encode = data.copy()

    if expires_delta:
        expire = datetime.now(timezone.utc) + expires_delta
    else:
        expire = datetime.now(timezone.utc) + timedelta(hours=JWT_EXPIRATION_HOURS)

    to_encode.update({"exp": expire})

    return jwt.encode(to_encode, get_jwt_secret_key(), algorithm=JWT_ALGORITHM)


def decode_access_token(token: str) -> Optional[Dict[str, Any]]:
    """Decode and validate a JWT access token.

    Returns:
        Decoded payload if valid, None if invalid or expired
    """
    try:
        return jwt.decode(token, get_jwt_secret_key(), algorithms=[JWT_ALGORITHM])
    except jwt.PyJWTError:
        return None


def create_user_token(
    user_id: str,
    role: str,
    name: Optional[str] = None,
    expires_delta: Optional[timedelta] = None,
) -> str:
    """Create a bearer token for a user id and role claim."""
    token_data = {"sub": str(user_id), "role": role, "type": "access"}
    if name:
        token_data["name"] = name
    return create_access_token(token_data, expires_delta)


def get_identity_from_token(token: str) -> Optional[Dict[str, Any]]:
    """Extract the identity claims from a JWT token.

    Returns:
        ``{"user_id": str, "role": str, "name": Optional[str]}`` if the token
        is valid and carries both claims, None otherwise
    """
    payload = decode_access_token(token)
    if payload is None:
        return None

    user_id = payload.get("sub")
    role = payload.get("role")

    if not user_id or not role:
        return None

    return {"user_id": str(user_id), "role": str(role), "name": payload.get("name")}
