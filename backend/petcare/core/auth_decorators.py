"""
Authentication helpers for this application.

Requests authenticate with an ``Authorization: Bearer <token>`` header. The
token is verified by ``petcare.core.security`` and turned into an ``Actor``
by Flask-Login's request loader (registered in ``create_app``). Routes use
``flask_login.login_required``; role checks live in the access policy, not
here.

Examples:
    @appointments_bp.route("/my", methods=["GET"])
    @login_required
    def my_appointments():
        actor = get_current_actor()
        ...
"""

from typing import Optional

from flask import g
from flask_login import current_user

from petcare.core.security import get_identity_from_token
from petcare.domain.entities import Actor


def extract_bearer_token(auth_header: Optional[str]) -> Optional[str]:
    if not auth_header:
        return None
    parts = auth_header.split(None, 1)
    if len(parts) != 2 or parts[0].lower() != "bearer" or not parts[1].strip():
        return None
    return parts[1].strip()


def load_actor_from_request(request) -> Optional[Actor]:
    """Flask-Login request loader: build the Actor from the bearer token."""
    token = extract_bearer_token(request.headers.get("Authorization"))
    if token is None:
        return None

    identity = get_identity_from_token(token)
    if identity is None:
        return None

    actor = Actor.from_claims(identity["user_id"], identity["role"], identity.get("name"))
    g.current_actor = actor
    return actor


def get_current_actor() -> Optional[Actor]:
    """Return the authenticated Actor for this request, if any."""
    if hasattr(g, "current_actor") and g.current_actor:
        return g.current_actor

    if current_user and getattr(current_user, "is_authenticated", False):
        return current_user._get_current_object()

    return None
