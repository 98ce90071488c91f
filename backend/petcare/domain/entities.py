"""
Domain entities - Pure business logic, no framework dependencies.

The appointment is the only entity with a lifecycle. Users and pets are
owned elsewhere; the service only reads their display names.
"""

import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Optional


class AppointmentStatus(str, Enum):
    """Appointment states.

    Pending (initial) -> Approved / Cancelled (admin decision).
    Completed and NoShow are terminal states with no workflow trigger.
    """

    PENDING = "Pending"
    APPROVED = "Approved"
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"
    NO_SHOW = "NoShow"

    @classmethod
    def parse(cls, value) -> "AppointmentStatus":
        """Parse a status name case-insensitively ("approved", "NoShow", ...)."""
        if isinstance(value, cls):
            return value
        # Numeric codes follow declaration order (Pending = 0 ... NoShow = 4)
        if isinstance(value, int) and not isinstance(value, bool):
            members = list(cls)
            if 0 <= value < len(members):
                return members[value]
        if isinstance(value, str):
            normalized = value.strip().replace("_", "").replace("-", "").lower()
            for status in cls:
                if status.value.lower() == normalized:
                    return status
        raise ValueError(f"Unknown appointment status: {value!r}")


class Role(str, Enum):
    OWNER = "OWNER"
    VET = "VET"
    ADMIN = "ADMIN"

    @classmethod
    def parse(cls, value) -> Optional["Role"]:
        """Return the role for a claim value, ignoring case; None if unknown."""
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        try:
            return cls(value.strip().upper())
        except ValueError:
            return None


class NotificationType(str, Enum):
    GENERAL = "General"
    APPOINTMENT_APPROVED = "AppointmentApproved"
    APPOINTMENT_CANCELLED = "AppointmentCancelled"
    APPOINTMENT_ASSIGNED = "AppointmentAssigned"
    APPOINTMENT_REMINDER = "AppointmentReminder"
    SYSTEM_MESSAGE = "SystemMessage"


@dataclass
class Actor:
    """The authenticated identity performing an operation.

    ``role`` is None when the token carried a role this service does not
    know; such an actor is denied every operation.
    """

    user_id: str
    role: Optional[Role]
    name: Optional[str] = None

    # Flask-Login protocol
    is_authenticated: bool = True
    is_active: bool = True
    is_anonymous: bool = False

    def get_id(self) -> str:
        return self.user_id

    @classmethod
    def from_claims(
        cls, user_id: str, role: Optional[str], name: Optional[str] = None
    ) -> "Actor":
        return cls(user_id=str(user_id), role=Role.parse(role), name=name)


@dataclass
class UserProfile:
    """Directory entry used only for display names."""

    id: str
    display_name: str
    role: Optional[str] = None
    email: Optional[str] = None


@dataclass
class Appointment:
    """Domain entity for an appointment request and its lifecycle."""

    pet_id: str
    owner_user_id: str
    requested_date_time: datetime
    reason_for_visit: str
    notes: Optional[str] = None
    admin_notes: Optional[str] = None
    vet_user_id: Optional[str] = None
    actual_date_time: Optional[datetime] = None
    status: AppointmentStatus = AppointmentStatus.PENDING
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    updated_by_user_id: Optional[str] = None
    version: int = 1

    def __post_init__(self):
        """Validate business rules."""
        if not self.owner_user_id:
            raise ValueError("Owner is required")
        if not self.pet_id:
            raise ValueError("Pet is required")
        if not self.reason_for_visit or not self.reason_for_visit.strip():
            raise ValueError("Reason for visit is required")
        self.status = AppointmentStatus.parse(self.status)

    @property
    def status_display_name(self) -> str:
        return self.status.value

    @property
    def can_be_cancelled(self) -> bool:
        return self.status in (AppointmentStatus.PENDING, AppointmentStatus.APPROVED)

    @property
    def requires_action(self) -> bool:
        return self.status == AppointmentStatus.PENDING

    @property
    def is_pending(self) -> bool:
        return self.status == AppointmentStatus.PENDING


@dataclass
class Notification:
    """In-app notification addressed to one user."""

    user_id: str
    title: str
    message: str
    type: NotificationType = NotificationType.GENERAL
    data: Optional[str] = None
    is_read: bool = False
    read_at: Optional[datetime] = None
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    created_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.user_id:
            raise ValueError("Notification recipient is required")
        if not self.title.strip():
            raise ValueError("Notification title cannot be empty")

    def mark_as_read(self, when: datetime) -> None:
        self.is_read = True
        self.read_at = when

    def is_recent(self, now: datetime) -> bool:
        """True if created within the last 7 days."""
        if self.created_at is None:
            return False
        return self.created_at > now - timedelta(days=7)
