"""
Custom exceptions for the application.

Every expected outcome of the appointment workflow that is not a success is
one of these types. The Flask error handler registered in ``create_app``
turns them into ``{"success": false, "error": code, "message": message}``.
"""

from typing import Optional


class AppointmentError(Exception):
    """Base class for typed workflow failures."""

    status_code = 400
    default_code = "appointment_error"
    default_message = "The request could not be completed."

    def __init__(self, code: Optional[str] = None, message: Optional[str] = None):
        self.code = code or self.default_code
        self.message = message or self.default_message
        super().__init__(self.message)

    def to_dict(self) -> dict:
        return {"success": False, "error": self.code, "message": self.message}


class ValidationError(AppointmentError):
    """Malformed or out-of-range input, e.g. a slot in the past."""

    status_code = 400
    default_code = "validation_error"
    default_message = "The request data is invalid."


class NotFoundError(AppointmentError):
    status_code = 404
    default_code = "not_found"
    default_message = "Appointment not found."


class ForbiddenError(AppointmentError):
    """The actor may not perform this operation on this resource."""

    status_code = 403
    default_code = "forbidden"
    default_message = "You do not have permission to perform this action."


class InvalidTransitionError(AppointmentError):
    """The appointment has already been decided."""

    status_code = 400
    default_code = "not_pending"
    default_message = "Only pending appointments can be approved or cancelled."


class ConflictError(AppointmentError):
    """A concurrent write won, or the slot collides with another booking."""

    status_code = 409
    default_code = "conflict"
    default_message = "The appointment was modified by another request. Please retry."
