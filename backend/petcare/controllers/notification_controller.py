"""
Notification controller - the authenticated user's in-app notifications.
"""

from flask import Blueprint, current_app
from flask_login import login_required

from petcare.core.api_utils import api_response
from petcare.core.auth_decorators import get_current_actor
from petcare.core.limiter_config import limiter
from petcare.db.session import SessionLocal
from petcare.repositories.directory_repo import PetDirectory
from petcare.repositories.notification_repo import NotificationRepository
from petcare.schemas.dtos import NotificationResponse
from petcare.services.notification_service import NotificationService

notifications_bp = Blueprint("notifications", __name__, url_prefix="/api/notifications")


def _service(db) -> NotificationService:
    return NotificationService(
        NotificationRepository(db),
        PetDirectory(db),
        clock=current_app.config.get("PETCARE_CLOCK"),
    )


@notifications_bp.route("", methods=["GET"])
@limiter.limit("100 per minute")
@login_required
def list_notifications():
    db = SessionLocal()
    try:
        service = _service(db)
        now = service.clock()
        notifications = service.get_for_user(get_current_actor())
        data = [NotificationResponse.from_domain(n, now).to_dict() for n in notifications]
        return api_response(True, "Notifications retrieved", data)
    finally:
        db.close()


@notifications_bp.route("/unread-count", methods=["GET"])
@limiter.limit("100 per minute")
@login_required
def unread_count():
    db = SessionLocal()
    try:
        count = _service(db).get_unread_count(get_current_actor())
        return api_response(True, "Unread count retrieved", {"count": count})
    finally:
        db.close()


@notifications_bp.route("/<notification_id>/read", methods=["PUT"])
@limiter.limit("60 per minute")
@login_required
def mark_as_read(notification_id):
    db = SessionLocal()
    try:
        service = _service(db)
        notification = service.mark_as_read(notification_id, get_current_actor())
        return api_response(
            True,
            "Notification marked as read",
            NotificationResponse.from_domain(notification, service.clock()).to_dict(),
        )
    finally:
        db.close()


@notifications_bp.route("/mark-all-read", methods=["PUT"])
@limiter.limit("30 per minute")
@login_required
def mark_all_as_read():
    db = SessionLocal()
    try:
        count = _service(db).mark_all_as_read(get_current_actor())
        return api_response(True, "All notifications marked as read", {"updated": count})
    finally:
        db.close()
