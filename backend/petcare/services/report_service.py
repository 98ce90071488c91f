"""
Summary report over the full appointment set.

The report buckets appointments relative to "now":

- upcoming: slot after now, status Approved or Pending
- pending: status Pending, any date
- past: slot at or before now, status Completed/Cancelled/NoShow, limited to
  the lookback window for both the listing and the count

Average per day counts requested slots in the lookback window up to now;
bookings after now are left out. Other workload metrics cover all
appointments. Busiest day and peak hour break ties deterministically: the
earliest weekday (Monday first) and the lowest hour win.
"""

import logging
import time
from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Callable, Iterable, List, Optional

from petcare.core import config
from petcare.core.logging_config import log_performance
from petcare.domain.entities import Appointment, AppointmentStatus
from petcare.domain.interfaces import IAppointmentReader
from petcare.utils.datetime_utils import REPORT_DATE_FORMAT, now_local

logger = logging.getLogger(__name__)

DAY_NAMES = ("Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday")
NOT_AVAILABLE = "N/A"

_UPCOMING_STATUSES = (AppointmentStatus.APPROVED, AppointmentStatus.PENDING)
_PAST_STATUSES = (
    AppointmentStatus.COMPLETED,
    AppointmentStatus.CANCELLED,
    AppointmentStatus.NO_SHOW,
)


@dataclass
class SummaryReport:
    generated_at: datetime
    report_period: str
    upcoming_count: int
    pending_count: int
    past_count: int
    total_count: int
    completed_count: int
    cancelled_count: int
    no_show_count: int
    average_per_day: float
    busiest_day_of_week: str
    peak_hour: int
    upcoming: List[Appointment] = field(default_factory=list)
    pending: List[Appointment] = field(default_factory=list)
    past: List[Appointment] = field(default_factory=list)


def busiest_day_of_week(appointments: Iterable[Appointment]) -> str:
    counts = Counter(a.requested_date_time.weekday() for a in appointments)
    if not counts:
        return NOT_AVAILABLE
    weekday = min(counts, key=lambda day: (-counts[day], day))
    return DAY_NAMES[weekday]


def peak_hour(appointments: Iterable[Appointment]) -> int:
    """Hour of day (0-23) with most requested slots; 0 when there are none."""
    counts = Counter(a.requested_date_time.hour for a in appointments)
    if not counts:
        return 0
    return min(counts, key=lambda hour: (-counts[hour], hour))


class ReportService:
    """Read-only analytics for the admin summary report."""

    def __init__(
        self,
        appointment_repo: IAppointmentReader,
        sample_size: Optional[int] = None,
        lookback_days: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        self.appointment_repo = appointment_repo
        self.sample_size = (
            sample_size if sample_size is not None else config.REPORT_SAMPLE_SIZE
        )
        self.lookback_days = (
            lookback_days if lookback_days is not None else config.REPORT_LOOKBACK_DAYS
        )
        self.clock = clock or now_local

    def summary(self, now: Optional[datetime] = None) -> SummaryReport:
        started = time.perf_counter()
        now = now or self.clock()
        cutoff = now - timedelta(days=self.lookback_days)

        appointments = self.appointment_repo.get_all()

        upcoming = [
            a
            for a in appointments
            if a.requested_date_time > now and a.status in _UPCOMING_STATUSES
        ]
        pending = [a for a in appointments if a.status == AppointmentStatus.PENDING]
        recent_past = [
            a
            for a in appointments
            if cutoff <= a.requested_date_time <= now and a.status in _PAST_STATUSES
        ]
        recent = [a for a in appointments if cutoff <= a.requested_date_time <= now]

        status_counts = Counter(a.status for a in appointments)
        average_per_day = len(recent) / float(self.lookback_days) if self.lookback_days else 0.0

        report = SummaryReport(
            generated_at=now,
            report_period=f"As of {now.strftime(REPORT_DATE_FORMAT)}",
            upcoming_count=len(upcoming),
            pending_count=len(pending),
            past_count=len(recent_past),
            total_count=len(appointments),
            completed_count=status_counts[AppointmentStatus.COMPLETED],
            cancelled_count=status_counts[AppointmentStatus.CANCELLED],
            no_show_count=status_counts[AppointmentStatus.NO_SHOW],
            average_per_day=average_per_day,
            busiest_day_of_week=busiest_day_of_week(appointments),
            peak_hour=peak_hour(appointments),
            upcoming=upcoming[: self.sample_size],
            pending=pending[: self.sample_size],
            past=recent_past[: self.sample_size],
        )

        log_performance(
            "summary_report",
            (time.perf_counter() - started) * 1000,
            appointment_count=report.total_count,
        )
        return report
