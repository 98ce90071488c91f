"""
Domain package - Pure business logic layer.

This package contains:
- entities.py: Appointment, Notification and the identity value types
- interfaces.py: Store, directory and notification contracts
- access_policy.py: Role decision table for appointment operations
"""

from .access_policy import AccessPolicy, Operation
from .entities import (
    Actor,
    Appointment,
    AppointmentStatus,
    Notification,
    NotificationType,
    Role,
    UserProfile,
)
from .interfaces import (
    IAppointmentReader,
    IAppointmentRepository,
    IAppointmentWriter,
    IIdentityDirectory,
    INotificationPort,
    INotificationRepository,
    IPetDirectory,
)

__all__ = [
    # Domain entities
    "Actor",
    "Appointment",
    "AppointmentStatus",
    "Notification",
    "NotificationType",
    "Role",
    "UserProfile",
    # Policy
    "AccessPolicy",
    "Operation",
    # Repository interfaces
    "IAppointmentRepository",
    "INotificationRepository",
    # Segregated interfaces
    "IAppointmentReader",
    "IAppointmentWriter",
    # Collaborators
    "IIdentityDirectory",
    "IPetDirectory",
    "INotificationPort",
]
