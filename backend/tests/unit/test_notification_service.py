"""
Unit tests for NotificationService.
"""

import json
from datetime import datetime, timedelta

import pytest

from petcare.core.exceptions import ForbiddenError, NotFoundError
from petcare.domain.entities import AppointmentStatus, Notification, NotificationType
from petcare.services.notification_service import NotificationService
from tests.factories.domain_factories import (
    FIXED_NOW,
    OTHER_OWNER_ID,
    OWNER_ID,
    VET_ID,
    make_appointment,
    owner,
)
from tests.factories.repository_factories import NotificationFactory

SLOT = datetime(2030, 1, 1, 10, 0)


@pytest.fixture
def approved():
    return make_appointment(
        status=AppointmentStatus.APPROVED, requested=SLOT, vet_user_id=VET_ID
    )


def created(repo) -> Notification:
    return repo.create.call_args[0][0]


@pytest.mark.unit
@pytest.mark.notifications
class TestNotificationPort:
    def test_approved_message_names_vet(
        self, notification_service, mock_notification_repo, approved
    ):
        notification_service.notify_appointment_approved(approved, "Dr. Vera Vet")

        notification = created(mock_notification_repo)
        assert notification.user_id == OWNER_ID
        assert notification.type == NotificationType.APPOINTMENT_APPROVED
        assert notification.title == "Appointment Approved ✅"
        assert notification.message == (
            "Your appointment request for Rex on Jan 01, 2030 at 10:00 AM has been "
            "approved. Assigned veterinarian: Dr. Vera Vet"
        )
        assert notification.created_at == FIXED_NOW

        payload = json.loads(notification.data)
        assert payload["appointmentId"] == approved.id
        assert payload["vetUserId"] == VET_ID
        assert payload["requestedDateTime"] == "2030-01-01T10:00:00"

    def test_approved_without_vet_name(
        self, notification_service, mock_notification_repo, approved
    ):
        notification_service.notify_appointment_approved(approved, None)
        assert "Assigned veterinarian" not in created(mock_notification_repo).message

    def test_cancelled_message_includes_reason(
        self, notification_service, mock_notification_repo
    ):
        appointment = make_appointment(status=AppointmentStatus.CANCELLED, requested=SLOT)

        notification_service.notify_appointment_cancelled(appointment, "Clinic closed")

        notification = created(mock_notification_repo)
        assert notification.type == NotificationType.APPOINTMENT_CANCELLED
        assert notification.message.endswith("has been cancelled. Reason: Clinic closed")
        assert json.loads(notification.data)["reason"] == "Clinic closed"

    def test_vet_assignment_goes_to_vet(
        self, notification_service, mock_notification_repo, approved
    ):
        notification_service.notify_vet_assigned(approved, VET_ID)

        notification = created(mock_notification_repo)
        assert notification.user_id == VET_ID
        assert notification.type == NotificationType.APPOINTMENT_ASSIGNED
        assert notification.message == (
            "You have been assigned to an appointment for Rex on Jan 01, 2030 at 10:00 AM."
        )

    def test_unknown_pet_falls_back(self, mock_notification_repo):
        service = NotificationService(mock_notification_repo, clock=lambda: FIXED_NOW)
        appointment = make_appointment(requested=SLOT, pet_id="pet-9")

        service.notify_appointment_cancelled(appointment, "x")

        assert "for a pet on" in created(mock_notification_repo).message

    def test_general_notification(self, notification_service):
        result = notification_service.create_notification(OWNER_ID, "Hello", "World")
        assert result.type == NotificationType.GENERAL
        assert result.data is None


@pytest.mark.unit
@pytest.mark.notifications
class TestRecipientOperations:
    def _service_with(self, *notifications):
        repo = NotificationFactory.create_mock_repository(notifications)
        return NotificationService(repo, clock=lambda: FIXED_NOW), repo

    def test_mark_as_read(self):
        notification = Notification(user_id=OWNER_ID, title="t", message="m")
        service, repo = self._service_with(notification)

        result = service.mark_as_read(notification.id, owner())

        assert result.is_read is True
        assert result.read_at == FIXED_NOW
        repo.update.assert_called_once()

    def test_already_read_is_left_alone(self):
        notification = Notification(user_id=OWNER_ID, title="t", message="m")
        notification.mark_as_read(FIXED_NOW - timedelta(days=1))
        service, repo = self._service_with(notification)

        result = service.mark_as_read(notification.id, owner())

        assert result.read_at == FIXED_NOW - timedelta(days=1)
        repo.update.assert_not_called()

    def test_cannot_mark_someone_elses_notification(self):
        notification = Notification(user_id=OTHER_OWNER_ID, title="t", message="m")
        service, repo = self._service_with(notification)

        with pytest.raises(ForbiddenError):
            service.mark_as_read(notification.id, owner())
        repo.update.assert_not_called()

    def test_missing_notification(self):
        service, _ = self._service_with()
        with pytest.raises(NotFoundError) as exc_info:
            service.mark_as_read("missing", owner())
        assert exc_info.value.message == "Notification not found."

    def test_mark_all_and_purge_use_clock(self):
        service, repo = self._service_with()
        repo.mark_all_as_read.return_value = 3

        assert service.mark_all_as_read(owner()) == 3
        repo.mark_all_as_read.assert_called_once_with(OWNER_ID, FIXED_NOW)

        service.delete_old(days=30)
        repo.delete_older_than.assert_called_once_with(FIXED_NOW - timedelta(days=30))

    def test_is_recent_window(self):
        fresh = Notification(
            user_id=OWNER_ID, title="t", message="m", created_at=FIXED_NOW - timedelta(days=6)
        )
        stale = Notification(
            user_id=OWNER_ID, title="t", message="m", created_at=FIXED_NOW - timedelta(days=8)
        )
        assert fresh.is_recent(FIXED_NOW) is True
        assert stale.is_recent(FIXED_NOW) is False
