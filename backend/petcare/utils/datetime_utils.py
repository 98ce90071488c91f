"""
Date/time helpers.

All datetimes handled by the service are naive wall-clock values in the
application timezone (``APP_TZ``). Timezone-aware input is converted to
``APP_TZ`` and stripped of its tzinfo before it is compared or stored.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from petcare.core.config import APP_TZ

logger = logging.getLogger(__name__)

SLOT_FORMAT = "%b %d, %Y at %I:%M %p"
REPORT_DATE_FORMAT = "%B %d, %Y"


def now_local() -> datetime:
    """Current wall-clock time in the application timezone (naive)."""
    return datetime.now(APP_TZ).replace(tzinfo=None)


def to_app_naive(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value
    return value.astimezone(APP_TZ).replace(tzinfo=None)


def parse_iso_datetime(value: Union[str, datetime]) -> datetime:
    """Parse an ISO-8601 timestamp into a naive APP_TZ datetime.

    Accepts a trailing ``Z`` for UTC.

    Raises:
        ValueError: If the value is not a valid ISO-8601 timestamp
    """
    if isinstance(value, datetime):
        return to_app_naive(value)
    if not isinstance(value, str) or not value.strip():
        raise ValueError("Timestamp must be a non-empty ISO-8601 string")

    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    return to_app_naive(datetime.fromisoformat(text))


def to_iso(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def format_slot(value: Optional[datetime]) -> str:
    """Format a slot for notification text, e.g. "Jan 01, 2030 at 10:00 AM"."""
    if not value:
        return ""
    try:
        return value.strftime(SLOT_FORMAT)
    except (AttributeError, ValueError) as e:
        logger.warning(f"Invalid slot value: {value}, error: {e}")
        return ""
