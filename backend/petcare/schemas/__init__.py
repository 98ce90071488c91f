"""Request and response DTOs for the HTTP surface."""

from .dtos import (
    AppointmentCreateRequest,
    AppointmentResponse,
    NotificationResponse,
    StatusUpdateRequest,
    SummaryReportResponse,
)

__all__ = [
    "AppointmentCreateRequest",
    "AppointmentResponse",
    "NotificationResponse",
    "StatusUpdateRequest",
    "SummaryReportResponse",
]
