"""
Data Transfer Objects (DTOs) and validation schemas.

Request DTOs parse the camelCase JSON bodies of the HTTP surface and raise
``ValidationError`` with a machine-readable code. Response DTOs render
domain entities back to camelCase dictionaries.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional

from petcare.core.exceptions import ValidationError
from petcare.domain.entities import Appointment, AppointmentStatus, Notification
from petcare.utils.datetime_utils import parse_iso_datetime, to_iso

REASON_MAX_LENGTH = 200
NOTES_MAX_LENGTH = 1000
ADMIN_NOTES_MAX_LENGTH = 1000

TARGET_STATUSES = (AppointmentStatus.APPROVED, AppointmentStatus.CANCELLED)

UNKNOWN_OWNER = "Unknown Owner"
UNKNOWN_PET = "Unknown Pet"


def _optional_text(payload: Dict[str, Any], key: str) -> Optional[str]:
    value = payload.get(key)
    if value is None:
        return None
    if not isinstance(value, str):
        raise ValidationError("invalid_field", f"{key} must be a string.")
    return value


def _optional_id(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


@dataclass
class AppointmentCreateRequest:
    """DTO for appointment creation requests."""

    pet_id: str
    requested_date_time: datetime
    reason_for_visit: str
    notes: Optional[str] = None
    owner_user_id: Optional[str] = None  # Admin booking on behalf of an owner

    @classmethod
    def from_json(cls, payload: Optional[Dict[str, Any]]) -> "AppointmentCreateRequest":
        if not isinstance(payload, dict):
            raise ValidationError("invalid_body", "Request body must be a JSON object.")

        raw_when = payload.get("requestedDateTime")
        if raw_when in (None, ""):
            raise ValidationError(
                "requested_date_time_required", "Requested date and time is required."
            )
        try:
            requested = parse_iso_datetime(raw_when)
        except (TypeError, ValueError):
            raise ValidationError(
                "invalid_date_time",
                "Requested date and time must be an ISO-8601 timestamp.",
            )

        request = cls(
            pet_id=_optional_id(payload.get("petId")) or "",
            requested_date_time=requested,
            reason_for_visit=_optional_text(payload, "reasonForVisit") or "",
            notes=_optional_text(payload, "notes"),
            owner_user_id=_optional_id(payload.get("ownerUserId")),
        )
        request.validate()
        return request

    def validate(self) -> None:
        """Validate the request data."""
        if not self.pet_id:
            raise ValidationError("pet_required", "Pet is required.")
        if not self.reason_for_visit or not self.reason_for_visit.strip():
            raise ValidationError("reason_required", "Reason for visit is required.")
        if len(self.reason_for_visit) > REASON_MAX_LENGTH:
            raise ValidationError(
                "reason_too_long",
                f"Reason for visit must be at most {REASON_MAX_LENGTH} characters.",
            )
        if self.notes is not None and len(self.notes) > NOTES_MAX_LENGTH:
            raise ValidationError(
                "notes_too_long", f"Notes must be at most {NOTES_MAX_LENGTH} characters."
            )


@dataclass
class StatusUpdateRequest:
    """DTO for the admin approve / cancel decision."""

    status: AppointmentStatus
    admin_notes: Optional[str] = None
    vet_user_id: Optional[str] = None

    @classmethod
    def from_json(cls, payload: Optional[Dict[str, Any]]) -> "StatusUpdateRequest":
        if not isinstance(payload, dict):
            raise ValidationError("invalid_body", "Request body must be a JSON object.")

        raw_status = payload.get("status")
        if raw_status in (None, ""):
            raise ValidationError("status_required", "Status is required.")
        try:
            status = AppointmentStatus.parse(raw_status)
        except ValueError:
            raise ValidationError(
                "invalid_target_status", "Status must be Approved or Cancelled."
            )

        vet = payload.get("vetUserId")
        if vet is None:
            vet = payload.get("vetId")

        request = cls(
            status=status,
            admin_notes=_optional_text(payload, "adminNotes"),
            vet_user_id=_optional_id(vet),
        )
        request.validate()
        return request

    def validate(self) -> None:
        if self.status not in TARGET_STATUSES:
            raise ValidationError(
                "invalid_target_status", "Status must be Approved or Cancelled."
            )
        if self.admin_notes is not None and len(self.admin_notes) > ADMIN_NOTES_MAX_LENGTH:
            raise ValidationError(
                "admin_notes_too_long",
                f"Admin notes must be at most {ADMIN_NOTES_MAX_LENGTH} characters.",
            )


@dataclass
class AppointmentResponse:
    """DTO for appointment API responses."""

    id: str
    pet_id: str
    pet_name: str
    owner_user_id: str
    owner_name: str
    vet_user_id: Optional[str]
    vet_name: Optional[str]
    requested_date_time: datetime
    actual_date_time: Optional[datetime]
    reason_for_visit: str
    notes: Optional[str]
    admin_notes: Optional[str]
    status: AppointmentStatus
    created_at: Optional[datetime]
    updated_at: Optional[datetime]
    can_be_cancelled: bool
    requires_action: bool
    version: int = 1

    @classmethod
    def from_domain(
        cls,
        appointment: Appointment,
        owner_name: Optional[str] = None,
        pet_name: Optional[str] = None,
        vet_name: Optional[str] = None,
    ) -> "AppointmentResponse":
        """Create response from domain entity."""
        return cls(
            id=appointment.id,
            pet_id=appointment.pet_id,
            pet_name=pet_name or UNKNOWN_PET,
            owner_user_id=appointment.owner_user_id,
            owner_name=owner_name or UNKNOWN_OWNER,
            vet_user_id=appointment.vet_user_id,
            vet_name=vet_name if appointment.vet_user_id else None,
            requested_date_time=appointment.requested_date_time,
            actual_date_time=appointment.actual_date_time,
            reason_for_visit=appointment.reason_for_visit,
            notes=appointment.notes,
            admin_notes=appointment.admin_notes,
            status=appointment.status,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
            can_be_cancelled=appointment.can_be_cancelled,
            requires_action=appointment.requires_action,
            version=appointment.version,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "petId": self.pet_id,
            "petName": self.pet_name,
            "ownerUserId": self.owner_user_id,
            "ownerName": self.owner_name,
            "vetUserId": self.vet_user_id,
            "vetName": self.vet_name,
            "requestedDateTime": to_iso(self.requested_date_time),
            "actualDateTime": to_iso(self.actual_date_time),
            "reasonForVisit": self.reason_for_visit,
            "notes": self.notes,
            "adminNotes": self.admin_notes,
            "status": self.status.value,
            "statusDisplayName": self.status.value,
            "createdAt": to_iso(self.created_at),
            "updatedAt": to_iso(self.updated_at),
            "canBeCancelled": self.can_be_cancelled,
            "requiresAction": self.requires_action,
            "version": self.version,
        }


@dataclass
class SummaryReportResponse:
    """DTO for the admin appointment summary report."""

    generated_at: datetime
    report_period: str
    upcoming_appointments_count: int
    pending_appointments_count: int
    past_appointments_count: int
    total_appointments_count: int
    completed_appointments_count: int
    cancelled_appointments_count: int
    no_show_appointments_count: int
    average_appointments_per_day: float
    busiest_day_of_week: str
    peak_appointment_hour: int
    upcoming_appointments: List[AppointmentResponse] = field(default_factory=list)
    pending_appointments: List[AppointmentResponse] = field(default_factory=list)
    past_appointments: List[AppointmentResponse] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "generatedAt": to_iso(self.generated_at),
            "reportPeriod": self.report_period,
            "upcomingAppointmentsCount": self.upcoming_appointments_count,
            "upcomingAppointments": [a.to_dict() for a in self.upcoming_appointments],
            "pendingAppointmentsCount": self.pending_appointments_count,
            "pendingAppointments": [a.to_dict() for a in self.pending_appointments],
            "pastAppointmentsCount": self.past_appointments_count,
            "pastAppointments": [a.to_dict() for a in self.past_appointments],
            "totalAppointmentsCount": self.total_appointments_count,
            "completedAppointmentsCount": self.completed_appointments_count,
            "cancelledAppointmentsCount": self.cancelled_appointments_count,
            "noShowAppointmentsCount": self.no_show_appointments_count,
            "averageAppointmentsPerDay": self.average_appointments_per_day,
            "busiestDayOfWeek": self.busiest_day_of_week,
            "peakAppointmentHour": self.peak_appointment_hour,
        }


@dataclass
class NotificationResponse:
    id: str
    type: str
    title: str
    message: str
    data: Optional[str]
    is_read: bool
    read_at: Optional[datetime]
    created_at: Optional[datetime]
    is_recent: bool

    @classmethod
    def from_domain(cls, notification: Notification, now: datetime) -> "NotificationResponse":
        return cls(
            id=notification.id,
            type=notification.type.value,
            title=notification.title,
            message=notification.message,
            data=notification.data,
            is_read=notification.is_read,
            read_at=notification.read_at,
            created_at=notification.created_at,
            is_recent=notification.is_recent(now),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type,
            "title": self.title,
            "message": self.message,
            "data": self.data,
            "isRead": self.is_read,
            "readAt": to_iso(self.read_at),
            "createdAt": to_iso(self.created_at),
            "isRecent": self.is_recent,
        }
