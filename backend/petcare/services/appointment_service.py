"""
Appointment workflow service.

Owners request appointments, admins approve or cancel them exactly once, and
vets see the bookings assigned to them. Every operation takes the acting
``Actor`` and is gated by the ``AccessPolicy`` before touching data.
"""

import logging
from datetime import datetime
from typing import Callable, List, Optional

from petcare.core import config
from petcare.core.exceptions import (
    ConflictError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from petcare.domain.access_policy import AccessPolicy, Operation
from petcare.domain.entities import Actor, Appointment, AppointmentStatus
from petcare.domain.interfaces import (
    IAppointmentRepository,
    IIdentityDirectory,
    INotificationPort,
)
from petcare.services.conflict_detector import ConflictDetector
from petcare.utils.datetime_utils import now_local, to_app_naive

logger = logging.getLogger(__name__)

DEFAULT_CANCELLATION_REASON = "No reason provided"
FUTURE_DATE_MESSAGE = "Appointment must be scheduled for a future date and time."

_TARGET_STATUSES = (AppointmentStatus.APPROVED, AppointmentStatus.CANCELLED)


class AppointmentService:
    """Application service for the appointment lifecycle.

    Collaborators:
    - appointment_repo: persistence (required)
    - notifier: best-effort notifications on transitions (optional)
    - identity_directory: vet display name for the approval notification
    - conflict_detector: only consulted on approval when vet conflict
      enforcement is switched on
    """

    def __init__(
        self,
        appointment_repo: IAppointmentRepository,
        notifier: Optional[INotificationPort] = None,
        identity_directory: Optional[IIdentityDirectory] = None,
        conflict_detector: Optional[ConflictDetector] = None,
        policy: Optional[AccessPolicy] = None,
        clock: Optional[Callable[[], datetime]] = None,
        enforce_vet_conflict: Optional[bool] = None,
        hide_forbidden: Optional[bool] = None,
    ):
        self.appointment_repo = appointment_repo
        self.notifier = notifier
        self.identity_directory = identity_directory
        self.conflict_detector = conflict_detector or ConflictDetector(appointment_repo)
        self.policy = policy or AccessPolicy()
        self.clock = clock or now_local
        self.enforce_vet_conflict = (
            config.ENFORCE_VET_CONFLICT_ON_APPROVAL
            if enforce_vet_conflict is None
            else enforce_vet_conflict
        )
        self.hide_forbidden = (
            config.HIDE_FORBIDDEN_APPOINTMENTS if hide_forbidden is None else hide_forbidden
        )

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def request_appointment(
        self,
        actor: Actor,
        pet_id: str,
        requested_date_time: datetime,
        reason_for_visit: str,
        notes: Optional[str] = None,
        owner_user_id: Optional[str] = None,
    ) -> Appointment:
        """Create a Pending appointment.

        Business Rules:
        - Owners book for themselves; admins may book for any owner
        - The requested slot must be strictly after "now"
        - No conflict check at request time
        """
        owner_id = str(owner_user_id) if owner_user_id else actor.user_id
        self.policy.ensure(actor, Operation.CREATE, owner_user_id=owner_id)

        now = self.clock()
        requested = to_app_naive(requested_date_time)
        if requested <= now:
            raise ValidationError("future_date_required", FUTURE_DATE_MESSAGE)

        try:
            appointment = Appointment(
                pet_id=str(pet_id) if pet_id is not None else "",
                owner_user_id=owner_id,
                requested_date_time=requested,
                reason_for_visit=reason_for_visit,
                notes=notes,
                status=AppointmentStatus.PENDING,
                created_at=now,
                updated_at=now,
                updated_by_user_id=actor.user_id,
            )
        except ValueError as e:
            raise ValidationError(message=str(e))

        created = self.appointment_repo.create(appointment)
        logger.info(
            "Appointment requested",
            extra={
                "context": {
                    "appointment_id": created.id,
                    "owner_user_id": created.owner_user_id,
                    "requested_by": actor.user_id,
                    "requested_date_time": created.requested_date_time,
                }
            },
        )
        return created

    def transition_status(
        self,
        appointment_id: str,
        actor: Actor,
        new_status: AppointmentStatus,
        admin_notes: Optional[str] = None,
        vet_user_id: Optional[str] = None,
    ) -> Appointment:
        """Move a Pending appointment to Approved or Cancelled.

        Raises NotFoundError, ForbiddenError, ValidationError for a target
        other than Approved/Cancelled, InvalidTransitionError when the
        appointment is no longer Pending, and ConflictError when another
        writer got there first.
        """
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError()

        self.policy.ensure(actor, Operation.TRANSITION_STATUS)

        try:
            target = AppointmentStatus.parse(new_status)
        except ValueError:
            target = None
        if target not in _TARGET_STATUSES:
            raise ValidationError(
                "invalid_target_status", "Status must be Approved or Cancelled."
            )

        if appointment.status != AppointmentStatus.PENDING:
            raise InvalidTransitionError()

        previous_status = appointment.status
        appointment.status = target
        appointment.admin_notes = admin_notes
        appointment.updated_by_user_id = actor.user_id
        appointment.updated_at = self.clock()

        if target == AppointmentStatus.APPROVED:
            appointment.vet_user_id = str(vet_user_id) if vet_user_id else None
            appointment.actual_date_time = appointment.requested_date_time
            if self.enforce_vet_conflict and appointment.vet_user_id:
                self._ensure_vet_available(appointment)

        updated = self.appointment_repo.update(appointment)

        logger.info(
            "Appointment status changed",
            extra={
                "context": {
                    "appointment_id": updated.id,
                    "from_status": previous_status.value,
                    "to_status": updated.status.value,
                    "vet_user_id": updated.vet_user_id,
                    "updated_by": actor.user_id,
                    "version": updated.version,
                }
            },
        )

        self._dispatch_notifications(updated)
        return updated

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def get_by_id(self, appointment_id: str, actor: Actor) -> Appointment:
        appointment = self.appointment_repo.get_by_id(appointment_id)
        if appointment is None:
            raise NotFoundError()
        self.policy.ensure(
            actor,
            Operation.VIEW,
            owner_user_id=appointment.owner_user_id,
            hide_as_not_found=self.hide_forbidden,
        )
        return appointment

    def get_my_appointments(self, actor: Actor) -> List[Appointment]:
        self.policy.ensure(actor, Operation.LIST_MY)
        return self.appointment_repo.get_by_owner(actor.user_id)

    def get_all_appointments(self, actor: Actor) -> List[Appointment]:
        self.policy.ensure(actor, Operation.LIST_ALL)
        return self.appointment_repo.get_all()

    def get_pending_appointments(self, actor: Actor) -> List[Appointment]:
        self.policy.ensure(actor, Operation.LIST_PENDING)
        return self.appointment_repo.get_pending()

    def get_approved_appointments(self, actor: Actor) -> List[Appointment]:
        self.policy.ensure(actor, Operation.LIST_APPROVED)
        return self.appointment_repo.get_by_status(AppointmentStatus.APPROVED)

    def get_assigned_appointments(self, actor: Actor) -> List[Appointment]:
        """Appointments whose assigned vet is the actor."""
        self.policy.ensure(actor, Operation.LIST_ASSIGNED)
        return self.appointment_repo.get_by_vet(actor.user_id)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _ensure_vet_available(self, appointment: Appointment) -> None:
        if self.conflict_detector.has_conflict(
            appointment.requested_date_time,
            vet_user_id=appointment.vet_user_id,
            exclude_appointment_id=appointment.id,
        ):
            logger.warning(
                "Approval rejected: vet already booked in window",
                extra={
                    "context": {
                        "appointment_id": appointment.id,
                        "vet_user_id": appointment.vet_user_id,
                    }
                },
            )
            raise ConflictError(
                "vet_double_booked",
                "The assigned veterinarian already has an approved appointment "
                "close to this time.",
            )

    def _dispatch_notifications(self, appointment: Appointment) -> None:
        """Notify after persistence. Each send is independent and best-effort."""
        if self.notifier is None:
            return

        notifier = self.notifier
        if appointment.status == AppointmentStatus.APPROVED:
            if appointment.vet_user_id:
                self._notify(
                    "vet_assigned",
                    appointment,
                    lambda: notifier.notify_vet_assigned(appointment, appointment.vet_user_id),
                )
            self._notify(
                "appointment_approved",
                appointment,
                lambda: notifier.notify_appointment_approved(
                    appointment, self._vet_display_name(appointment.vet_user_id)
                ),
            )
        elif appointment.status == AppointmentStatus.CANCELLED:
            reason = appointment.admin_notes or DEFAULT_CANCELLATION_REASON
            self._notify(
                "appointment_cancelled",
                appointment,
                lambda: notifier.notify_appointment_cancelled(appointment, reason),
            )

    def _notify(
        self, kind: str, appointment: Appointment, send: Callable[[], None]
    ) -> None:
        context = {"appointment_id": appointment.id, "notification": kind}
        try:
            send()
        except Exception as e:
            logger.warning(
                f"Notification dispatch failed: {e}",
                extra={"context": context},
                exc_info=True,
            )
            return
        logger.info("Notification dispatched", extra={"context": context})

    def _vet_display_name(self, vet_user_id: Optional[str]) -> Optional[str]:
        if not vet_user_id or self.identity_directory is None:
            return None
        profile = self.identity_directory.find_by_id(vet_user_id)
        return profile.display_name if profile else None
