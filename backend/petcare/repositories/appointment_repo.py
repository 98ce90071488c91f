"""
Appointment repository backed by SQLAlchemy.

Lists by owner and the full list are newest-created first; lists by status
and by vet are ordered by requested slot. Updates are a compare-and-swap on
``(id, version)``.
"""

import logging
from datetime import date, datetime, time, timedelta
from typing import List, Optional

from sqlalchemy import func, update

from petcare.core.exceptions import ConflictError, NotFoundError
from petcare.db.base import Appointment as DbAppointment
from petcare.domain.entities import Appointment as DomainAppointment
from petcare.domain.entities import AppointmentStatus
from petcare.domain.interfaces import IAppointmentRepository

logger = logging.getLogger(__name__)


class AppointmentRepository(IAppointmentRepository):
    """Repository for Appointment persistence operations."""

    def __init__(self, db_session) -> None:
        self.db = db_session

    def get_by_id(self, appointment_id: str) -> Optional[DomainAppointment]:
        """Get appointment by ID."""
        db_appointment = self.db.get(DbAppointment, str(appointment_id))
        return self._to_domain(db_appointment) if db_appointment else None

    def get_by_owner(self, owner_user_id: str) -> List[DomainAppointment]:
        rows = (
            self.db.query(DbAppointment)
            .filter_by(owner_user_id=str(owner_user_id))
            .order_by(DbAppointment.created_at.desc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def get_by_owner_and_status(
        self, owner_user_id: str, status: AppointmentStatus
    ) -> List[DomainAppointment]:
        rows = (
            self.db.query(DbAppointment)
            .filter_by(owner_user_id=str(owner_user_id), status=status.value)
            .order_by(DbAppointment.created_at.desc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def get_by_vet(self, vet_user_id: str) -> List[DomainAppointment]:
        rows = (
            self.db.query(DbAppointment)
            .filter_by(vet_user_id=str(vet_user_id))
            .order_by(DbAppointment.requested_date_time.asc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def get_by_status(self, status: AppointmentStatus) -> List[DomainAppointment]:
        rows = (
            self.db.query(DbAppointment)
            .filter_by(status=status.value)
            .order_by(DbAppointment.requested_date_time.asc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def get_pending(self) -> List[DomainAppointment]:
        return self.get_by_status(AppointmentStatus.PENDING)

    def get_all(self) -> List[DomainAppointment]:
        rows = (
            self.db.query(DbAppointment)
            .order_by(DbAppointment.created_at.desc())
            .all()
        )
        return [self._to_domain(row) for row in rows]

    def find_approved_in_window(
        self,
        start: datetime,
        end: datetime,
        vet_user_id: Optional[str] = None,
        exclude_appointment_id: Optional[str] = None,
    ) -> List[DomainAppointment]:
        """Approved appointments with ``start <= actual_date_time <= end``."""
        query = self.db.query(DbAppointment).filter(
            DbAppointment.status == AppointmentStatus.APPROVED.value,
            DbAppointment.actual_date_time.isnot(None),
            DbAppointment.actual_date_time >= start,
            DbAppointment.actual_date_time <= end,
        )
        if vet_user_id:
            query = query.filter(DbAppointment.vet_user_id == str(vet_user_id))
        if exclude_appointment_id:
            query = query.filter(DbAppointment.id != str(exclude_appointment_id))

        rows = query.order_by(DbAppointment.actual_date_time.asc()).all()
        return [self._to_domain(row) for row in rows]

    def count_by_status(self, status: AppointmentStatus) -> int:
        return (
            self.db.query(func.count(DbAppointment.id))
            .filter(DbAppointment.status == status.value)
            .scalar()
            or 0
        )

    def count_for_day(self, day: date) -> int:
        start = datetime.combine(day, time.min)
        end = start + timedelta(days=1)
        return (
            self.db.query(func.count(DbAppointment.id))
            .filter(
                DbAppointment.requested_date_time >= start,
                DbAppointment.requested_date_time < end,
            )
            .scalar()
            or 0
        )

    def create(self, appointment: DomainAppointment) -> DomainAppointment:
        """Create a new appointment."""
        db_appointment = DbAppointment(
            id=appointment.id,
            pet_id=str(appointment.pet_id),
            owner_user_id=str(appointment.owner_user_id),
            vet_user_id=appointment.vet_user_id,
            requested_date_time=appointment.requested_date_time,
            actual_date_time=appointment.actual_date_time,
            reason_for_visit=appointment.reason_for_visit,
            notes=appointment.notes,
            admin_notes=appointment.admin_notes,
            status=appointment.status.value,
            created_at=appointment.created_at,
            updated_at=appointment.updated_at,
            updated_by_user_id=appointment.updated_by_user_id,
            version=appointment.version,
        )
        self.db.add(db_appointment)
        self.db.commit()
        self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def update(self, appointment: DomainAppointment) -> DomainAppointment:
        """Write all mutable fields if the stored version is unchanged."""
        expected_version = appointment.version
        stmt = (
            update(DbAppointment)
            .where(
                DbAppointment.id == str(appointment.id),
                DbAppointment.version == expected_version,
            )
            .values(
                vet_user_id=appointment.vet_user_id,
                actual_date_time=appointment.actual_date_time,
                notes=appointment.notes,
                admin_notes=appointment.admin_notes,
                status=appointment.status.value,
                updated_at=appointment.updated_at,
                updated_by_user_id=appointment.updated_by_user_id,
                version=expected_version + 1,
            )
            .execution_options(synchronize_session=False)
        )
        result = self.db.execute(stmt)

        if result.rowcount != 1:
            self.db.rollback()
            if self.db.get(DbAppointment, str(appointment.id)) is None:
                raise NotFoundError()
            logger.warning(
                "Optimistic concurrency conflict on appointment update",
                extra={
                    "context": {
                        "appointment_id": appointment.id,
                        "expected_version": expected_version,
                    }
                },
            )
            raise ConflictError("concurrent_update")

        self.db.commit()
        db_appointment = self.db.get(DbAppointment, str(appointment.id))
        self.db.refresh(db_appointment)
        return self._to_domain(db_appointment)

    def delete(self, appointment_id: str) -> bool:
        db_appointment = self.db.get(DbAppointment, str(appointment_id))
        if not db_appointment:
            return False
        self.db.delete(db_appointment)
        self.db.commit()
        return True

    def _to_domain(self, db_appointment: DbAppointment) -> DomainAppointment:
        """Convert database model to domain entity."""
        return DomainAppointment(
            id=db_appointment.id,
            pet_id=db_appointment.pet_id,
            owner_user_id=db_appointment.owner_user_id,
            vet_user_id=db_appointment.vet_user_id,
            requested_date_time=db_appointment.requested_date_time,
            actual_date_time=db_appointment.actual_date_time,
            reason_for_visit=db_appointment.reason_for_visit,
            notes=db_appointment.notes,
            admin_notes=db_appointment.admin_notes,
            status=AppointmentStatus.parse(db_appointment.status),
            created_at=db_appointment.created_at,
            updated_at=db_appointment.updated_at,
            updated_by_user_id=db_appointment.updated_by_user_id,
            version=db_appointment.version,
        )
