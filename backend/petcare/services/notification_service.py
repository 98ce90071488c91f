"""
In-app notifications.

Implements the notification port used by the appointment workflow by storing
one ``Notification`` row per recipient, and serves the recipient-facing
read / mark-as-read operations.
"""

import json
import logging
from datetime import datetime, timedelta
from typing import Any, Callable, Dict, List, Optional

from petcare.core.exceptions import ForbiddenError, NotFoundError
from petcare.domain.entities import Actor, Appointment, Notification, NotificationType
from petcare.domain.interfaces import INotificationPort, INotificationRepository, IPetDirectory
from petcare.utils.datetime_utils import format_slot, now_local, to_iso

logger = logging.getLogger(__name__)

APPROVED_TITLE = "Appointment Approved ✅"
CANCELLED_TITLE = "Appointment Cancelled ❌"
ASSIGNED_TITLE = "New Appointment Assigned"
FALLBACK_PET_NAME = "a pet"


class NotificationService(INotificationPort):
    def __init__(
        self,
        notification_repo: INotificationRepository,
        pet_directory: Optional[IPetDirectory] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.notification_repo = notification_repo
        self.pet_directory = pet_directory
        self.clock = clock or now_local

    # ------------------------------------------------------------------
    # Port implementation
    # ------------------------------------------------------------------

    def notify_appointment_approved(
        self, appointment: Appointment, vet_name: Optional[str] = None
    ) -> None:
        pet_name = self._pet_name(appointment)
        message = (
            f"Your appointment request for {pet_name} on "
            f"{format_slot(appointment.requested_date_time)} has been approved."
        )
        if vet_name:
            message += f" Assigned veterinarian: {vet_name}"

        self._create(
            user_id=appointment.owner_user_id,
            type_=NotificationType.APPOINTMENT_APPROVED,
            title=APPROVED_TITLE,
            message=message,
            data={
                **self._appointment_payload(appointment, pet_name),
                "vetUserId": appointment.vet_user_id,
                "vetName": vet_name,
            },
        )

    def notify_appointment_cancelled(self, appointment: Appointment, reason: str) -> None:
        pet_name = self._pet_name(appointment)
        message = (
            f"Your appointment request for {pet_name} on "
            f"{format_slot(appointment.requested_date_time)} has been cancelled."
        )
        if reason:
            message += f" Reason: {reason}"

        self._create(
            user_id=appointment.owner_user_id,
            type_=NotificationType.APPOINTMENT_CANCELLED,
            title=CANCELLED_TITLE,
            message=message,
            data={**self._appointment_payload(appointment, pet_name), "reason": reason},
        )

    def notify_vet_assigned(self, appointment: Appointment, vet_user_id: str) -> None:
        pet_name = self._pet_name(appointment)
        self._create(
            user_id=vet_user_id,
            type_=NotificationType.APPOINTMENT_ASSIGNED,
            title=ASSIGNED_TITLE,
            message=(
                f"You have been assigned to an appointment for {pet_name} on "
                f"{format_slot(appointment.requested_date_time)}."
            ),
            data={
                **self._appointment_payload(appointment, pet_name),
                "reasonForVisit": appointment.reason_for_visit,
            },
        )

    def create_notification(
        self,
        user_id: str,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        """General-purpose notification."""
        return self._create(user_id, NotificationType.GENERAL, title, message, data)

    # ------------------------------------------------------------------
    # Recipient operations
    # ------------------------------------------------------------------

    def get_for_user(self, actor: Actor) -> List[Notification]:
        return self.notification_repo.get_by_user(actor.user_id)

    def get_unread_count(self, actor: Actor) -> int:
        return self.notification_repo.get_unread_count(actor.user_id)

    def mark_as_read(self, notification_id: str, actor: Actor) -> Notification:
        notification = self.notification_repo.get_by_id(notification_id)
        if notification is None:
            raise NotFoundError(message="Notification not found.")
        if notification.user_id != actor.user_id:
            raise ForbiddenError(message="You can only update your own notifications.")
        if notification.is_read:
            return notification

        notification.mark_as_read(self.clock())
        return self.notification_repo.update(notification)

    def mark_all_as_read(self, actor: Actor) -> int:
        count = self.notification_repo.mark_all_as_read(actor.user_id, self.clock())
        logger.info(
            "Notifications marked as read",
            extra={"context": {"user_id": actor.user_id, "count": count}},
        )
        return count

    def delete_old(self, days: int = 30) -> int:
        """Purge notifications older than ``days``. Used by the management CLI."""
        return self.notification_repo.delete_older_than(self.clock() - timedelta(days=days))

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _create(
        self,
        user_id: str,
        type_: NotificationType,
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
    ) -> Notification:
        notification = Notification(
            user_id=str(user_id),
            type=type_,
            title=title,
            message=message,
            data=json.dumps(data, default=str) if data is not None else None,
            created_at=self.clock(),
        )
        created = self.notification_repo.create(notification)
        logger.info(
            "Notification created",
            extra={
                "context": {
                    "notification_id": created.id,
                    "user_id": created.user_id,
                    "type": created.type.value,
                }
            },
        )
        return created

    def _pet_name(self, appointment: Appointment) -> str:
        if self.pet_directory is None:
            return FALLBACK_PET_NAME
        names = self.pet_directory.find_pet_names([appointment.pet_id])
        return names.get(appointment.pet_id) or FALLBACK_PET_NAME

    @staticmethod
    def _appointment_payload(appointment: Appointment, pet_name: str) -> Dict[str, Any]:
        return {
            "appointmentId": appointment.id,
            "petId": appointment.pet_id,
            "petName": pet_name,
            "requestedDateTime": to_iso(appointment.requested_date_time),
        }
