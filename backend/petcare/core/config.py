"""
Centralized configuration module for application-wide settings.

Every setting is read from the environment once at import time and exposed
both as a module constant and through a ``get_*`` function so tests can
re-evaluate it after patching the environment.
"""

import logging
import os
from zoneinfo import ZoneInfo

logger = logging.getLogger(__name__)

_TRUTHY = ("true", "1", "yes")


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in _TRUTHY


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        logger.warning(
            f"Invalid integer '{raw}' for {name}, using default {default}",
            extra={"context": {"variable": name, "default": default}},
        )
        return default
    if value <= 0:
        logger.warning(
            f"Non-positive value '{raw}' for {name}, using default {default}",
            extra={"context": {"variable": name, "default": default}},
        )
        return default
    return value


# ===========================
# Timezone Configuration
# ===========================


def get_app_timezone() -> ZoneInfo:
    """
    Get the application timezone from environment variable.

    Returns:
        ZoneInfo: Application timezone (defaults to UTC if not configured)

    Environment Variables:
        TZ: Timezone identifier (e.g., 'Australia/Sydney', 'UTC')
            Default: 'UTC'
    """
    tz_name = os.getenv("TZ", "UTC")

    try:
        return ZoneInfo(tz_name)
    except Exception as e:
        logger.warning(
            f"Invalid timezone '{tz_name}' specified in TZ environment variable. "
            f"Falling back to UTC. Error: {e}"
        )
        return ZoneInfo("UTC")


APP_TZ = get_app_timezone()


def log_timezone_config():
    """Log the active timezone configuration."""
    logger.info(
        "Timezone configuration initialized",
        extra={
            "context": {
                "timezone": str(APP_TZ),
                "tz_env_var": os.getenv("TZ", "UTC"),
            }
        },
    )


# ===========================
# Scheduling Configuration
# ===========================


def get_conflict_window_minutes() -> int:
    """
    Half-width of the window used to detect double-booked veterinarians.

    Environment Variables:
        CONFLICT_WINDOW_MINUTES: Minutes on each side of a candidate slot
            Default: 30
    """
    return _env_int("CONFLICT_WINDOW_MINUTES", 30)


def get_enforce_vet_conflict_on_approval() -> bool:
    """
    Whether approving an appointment checks the assigned vet for conflicts.

    Off by default: approval does not consult the conflict detector, so an
    admin can double-book a vet. Turning it on makes such approvals fail.

    Environment Variables:
        ENFORCE_VET_CONFLICT_ON_APPROVAL: "true" / "false"
            Default: 'false'
    """
    enabled = _env_flag("ENFORCE_VET_CONFLICT_ON_APPROVAL", "false")
    if not enabled:
        logger.debug(
            "Vet conflict check on approval is disabled",
            extra={"context": {"component": "scheduling"}},
        )
    return enabled


CONFLICT_WINDOW_MINUTES = get_conflict_window_minutes()
ENFORCE_VET_CONFLICT_ON_APPROVAL = get_enforce_vet_conflict_on_approval()


# ===========================
# Authorization Configuration
# ===========================


def get_hide_forbidden_appointments() -> bool:
    """
    Whether unauthorized single-appointment reads are reported as not found.

    Environment Variables:
        HIDE_FORBIDDEN_APPOINTMENTS: "true" / "false"
            Default: 'false' (a probing owner receives 403)
    """
    return _env_flag("HIDE_FORBIDDEN_APPOINTMENTS", "false")


HIDE_FORBIDDEN_APPOINTMENTS = get_hide_forbidden_appointments()


# ===========================
# Report Configuration
# ===========================


def get_report_sample_size() -> int:
    """Number of appointments listed per summary-report bucket."""
    return _env_int("REPORT_SAMPLE_SIZE", 10)


def get_report_lookback_days() -> int:
    """Days covered by the "past" bucket listing and the per-day average."""
    return _env_int("REPORT_LOOKBACK_DAYS", 30)


REPORT_SAMPLE_SIZE = get_report_sample_size()
REPORT_LOOKBACK_DAYS = get_report_lookback_days()


# ===========================
# Notification Configuration
# ===========================


def get_notifications_enabled() -> bool:
    """
    Whether status transitions create in-app notifications.

    Environment Variables:
        NOTIFICATIONS_ENABLED: "true" / "false"
            Default: 'true'
    """
    enabled = _env_flag("NOTIFICATIONS_ENABLED", "true")
    if not enabled:
        logger.warning(
            "Notifications are DISABLED - status changes will not notify users",
            extra={"context": {"environment": os.getenv("FLASK_ENV", "unknown")}},
        )
    return enabled


NOTIFICATIONS_ENABLED = get_notifications_enabled()


def log_workflow_config():
    """
    Log the active workflow configuration.

    Should be called during application startup to provide visibility
    into the scheduling and authorization switches.
    """
    logger.info(
        "Appointment workflow configuration initialized",
        extra={
            "context": {
                "conflict_window_minutes": CONFLICT_WINDOW_MINUTES,
                "enforce_vet_conflict_on_approval": ENFORCE_VET_CONFLICT_ON_APPROVAL,
                "hide_forbidden_appointments": HIDE_FORBIDDEN_APPOINTMENTS,
                "report_sample_size": REPORT_SAMPLE_SIZE,
                "report_lookback_days": REPORT_LOOKBACK_DAYS,
                "notifications_enabled": NOTIFICATIONS_ENABLED,
            }
        },
    )
