"""
Abstract interfaces for repositories and external collaborators.

These interfaces define contracts without implementation details,
enabling dependency injection and easier testing.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime
from typing import Dict, Iterable, List, Optional

from .entities import Appointment, AppointmentStatus, Notification, UserProfile


class IAppointmentReader(ABC):
    """Interface for appointment read operations."""

    @abstractmethod
    def get_by_id(self, appointment_id: str) -> Optional[Appointment]:
        """Get appointment by ID."""
        pass

    @abstractmethod
    def get_by_owner(self, owner_user_id: str) -> List[Appointment]:
        """Get all appointments requested by an owner, newest first."""
        pass

    @abstractmethod
    def get_by_owner_and_status(
        self, owner_user_id: str, status: AppointmentStatus
    ) -> List[Appointment]:
        """Get an owner's appointments in one status, newest first."""
        pass

    @abstractmethod
    def get_by_vet(self, vet_user_id: str) -> List[Appointment]:
        """Get appointments assigned to a vet, earliest slot first."""
        pass

    @abstractmethod
    def get_by_status(self, status: AppointmentStatus) -> List[Appointment]:
        """Get appointments in one status, earliest slot first."""
        pass

    @abstractmethod
    def get_pending(self) -> List[Appointment]:
        """Get appointments awaiting an admin decision."""
        pass

    @abstractmethod
    def get_all(self) -> List[Appointment]:
        """Get every appointment, newest first."""
        pass

    @abstractmethod
    def find_approved_in_window(
        self,
        start: datetime,
        end: datetime,
        vet_user_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Appointment]:
        """Approved appointments whose confirmed slot lies in [start, end]."""
        pass

    @abstractmethod
    def count_by_status(self, status: AppointmentStatus) -> int:
        pass

    @abstractmethod
    def count_for_day(self, day: date) -> int:
        """Count appointments requested for a calendar day."""
        pass


class IAppointmentWriter(ABC):
    """Interface for appointment write operations."""

    @abstractmethod
    def create(self, appointment: Appointment) -> Appointment:
        """Persist a new appointment."""
        pass

    @abstractmethod
    def update(self, appointment: Appointment) -> Appointment:
        """Persist changes to an existing appointment.

        The write succeeds only if the stored version still equals
        ``appointment.version``; otherwise ``ConflictError`` is raised.
        The returned entity carries the incremented version.
        """
        pass

    @abstractmethod
    def delete(self, appointment_id: str) -> bool:
        """Hard-delete an appointment. Not used by the workflow."""
        pass


class IAppointmentRepository(IAppointmentReader, IAppointmentWriter):
    """Complete appointment repository interface."""

    pass


class IIdentityDirectory(ABC):
    """Read-only lookup of user display names."""

    @abstractmethod
    def find_by_id(self, user_id: str) -> Optional[UserProfile]:
        pass

    @abstractmethod
    def find_many(self, user_ids: Iterable[str]) -> Dict[str, UserProfile]:
        """Resolve a set of ids in one query. Unknown ids are absent."""
        pass


class IPetDirectory(ABC):
    """Read-only lookup of pet names."""

    @abstractmethod
    def find_pet_names(self, pet_ids: Iterable[str]) -> Dict[str, str]:
        pass


class INotificationPort(ABC):
    """Outbound notifications triggered by appointment transitions.

    Callers treat every method as fire-and-forget.
    """

    @abstractmethod
    def notify_vet_assigned(self, appointment: Appointment, vet_user_id: str) -> None:
        pass

    @abstractmethod
    def notify_appointment_approved(
        self, appointment: Appointment, vet_name: Optional[str] = None
    ) -> None:
        pass

    @abstractmethod
    def notify_appointment_cancelled(self, appointment: Appointment, reason: str) -> None:
        pass


class INotificationReader(ABC):
    @abstractmethod
    def get_by_id(self, notification_id: str) -> Optional[Notification]:
        pass

    @abstractmethod
    def get_by_user(self, user_id: str) -> List[Notification]:
        """Get a user's notifications, newest first."""
        pass

    @abstractmethod
    def get_unread_count(self, user_id: str) -> int:
        pass


class INotificationWriter(ABC):
    @abstractmethod
    def create(self, notification: Notification) -> Notification:
        pass

    @abstractmethod
    def update(self, notification: Notification) -> Notification:
        pass

    @abstractmethod
    def mark_all_as_read(self, user_id: str, when: datetime) -> int:
        """Mark every unread notification of a user as read; return how many."""
        pass

    @abstractmethod
    def delete_older_than(self, cutoff: datetime) -> int:
        pass


class INotificationRepository(INotificationReader, INotificationWriter):
    """Complete notification repository interface."""

    pass
