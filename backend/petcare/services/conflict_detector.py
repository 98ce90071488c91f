"""
Double-booking detection for veterinarians.

A candidate slot conflicts with an approved appointment whose confirmed slot
(``actual_date_time``) lies within ``window_minutes`` on either side of it,
boundaries included.
"""

import logging
from datetime import datetime, timedelta
from typing import List, Optional

from petcare.core import config
from petcare.domain.entities import Appointment, AppointmentStatus
from petcare.domain.interfaces import IAppointmentReader
from petcare.utils.datetime_utils import to_app_naive

logger = logging.getLogger(__name__)


class ConflictDetector:
    def __init__(
        self,
        appointment_repo: IAppointmentReader,
        window_minutes: Optional[int] = None,
    ):
        self.appointment_repo = appointment_repo
        self.window = timedelta(
            minutes=window_minutes
            if window_minutes is not None
            else config.CONFLICT_WINDOW_MINUTES
        )

    def find_conflicts(
        self,
        candidate: datetime,
        vet_user_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[Appointment]:
        """Return the approved appointments that collide with ``candidate``.

        With ``vet_user_id`` only that vet's bookings count; without it the
        check is clinic-wide.
        """
        candidate = to_app_naive(candidate)
        start = candidate - self.window
        end = candidate + self.window
        matches = self.appointment_repo.find_approved_in_window(
            start, end, vet_user_id=vet_user_id, exclude_appointment_id=exclude_appointment_id
        )
        # Stores may over-match; keep exact hits only
        return [
            appointment
            for appointment in matches
            if appointment.status == AppointmentStatus.APPROVED
            and appointment.actual_date_time is not None
            and start <= appointment.actual_date_time <= end
            and (not vet_user_id or appointment.vet_user_id == vet_user_id)
            and (not exclude_appointment_id or appointment.id != exclude_appointment_id)
        ]

    def has_conflict(
        self,
        candidate: datetime,
        vet_user_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> bool:
        conflicts = self.find_conflicts(candidate, vet_user_id, exclude_appointment_id)
        if conflicts:
            logger.debug(
                "Conflicting approved appointments found",
                extra={
                    "context": {
                        "candidate": candidate,
                        "vet_user_id": vet_user_id,
                        "conflict_ids": [a.id for a in conflicts],
                    }
                },
            )
        return bool(conflicts)
