"""
Appointment controller - HTTP surface of the appointment workflow.

Handles request parsing and response rendering only. Authorization, state
checks and persistence are delegated to ``AppointmentService``; its typed
errors are rendered by the application's error handler.
"""

import logging

from flask import Blueprint, current_app
from flask_login import login_required

from petcare.core import config
from petcare.core.api_utils import api_response, get_json_body
from petcare.core.auth_decorators import get_current_actor
from petcare.core.limiter_config import limiter
from petcare.db.session import SessionLocal
from petcare.domain.access_policy import Operation
from petcare.repositories.appointment_repo import AppointmentRepository
from petcare.repositories.directory_repo import PetDirectory, UserDirectory
from petcare.repositories.notification_repo import NotificationRepository
from petcare.schemas.dtos import (
    AppointmentCreateRequest,
    StatusUpdateRequest,
    SummaryReportResponse,
)
from petcare.services.appointment_presenter import AppointmentPresenter
from petcare.services.appointment_service import AppointmentService
from petcare.services.notification_service import NotificationService
from petcare.services.report_service import ReportService

logger = logging.getLogger(__name__)

appointments_bp = Blueprint("appointments", __name__, url_prefix="/api/appointments")


def _build(db):
    """Wire the workflow, presenter and report service onto one session."""
    clock = current_app.config.get("PETCARE_CLOCK")
    repository = AppointmentRepository(db)
    users = UserDirectory(db)
    pets = PetDirectory(db)

    notifier = None
    if config.NOTIFICATIONS_ENABLED:
        notifier = NotificationService(NotificationRepository(db), pets, clock=clock)

    service = AppointmentService(
        repository,
        notifier=notifier,
        identity_directory=users,
        clock=clock,
    )
    presenter = AppointmentPresenter(users, pets)
    reports = ReportService(repository, clock=clock)
    return service, presenter, reports


@appointments_bp.route("", methods=["POST"])
@limiter.limit("30 per minute")
@login_required
def create_appointment():
    """Request a new appointment (Owner, or Admin booking for an owner)."""
    request_dto = AppointmentCreateRequest.from_json(get_json_body())
    db = SessionLocal()
    try:
        service, presenter, _ = _build(db)
        appointment = service.request_appointment(
            get_current_actor(),
            pet_id=request_dto.pet_id,
            requested_date_time=request_dto.requested_date_time,
            reason_for_visit=request_dto.reason_for_visit,
            notes=request_dto.notes,
            owner_user_id=request_dto.owner_user_id,
        )
        return api_response(
            True,
            "Appointment requested",
            presenter.present(appointment).to_dict(),
            201,
        )
    finally:
        db.close()


@appointments_bp.route("/<appointment_id>", methods=["GET"])
@limiter.limit("100 per minute")
@login_required
def get_appointment(appointment_id):
    db = SessionLocal()
    try:
        service, presenter, _ = _build(db)
        appointment = service.get_by_id(appointment_id, get_current_actor())
        return api_response(True, "Appointment found", presenter.present(appointment).to_dict())
    finally:
        db.close()


def _list(operation: Operation, message: str):
    db = SessionLocal()
    try:
        service, presenter, _ = _build(db)
        actor = get_current_actor()
        readers = {
            Operation.LIST_MY: service.get_my_appointments,
            Operation.LIST_ALL: service.get_all_appointments,
            Operation.LIST_PENDING: service.get_pending_appointments,
            Operation.LIST_APPROVED: service.get_approved_appointments,
            Operation.LIST_ASSIGNED: service.get_assigned_appointments,
        }
        appointments = readers[operation](actor)
        data = [response.to_dict() for response in presenter.present_many(appointments)]
        return api_response(True, message, data)
    finally:
        db.close()


@appointments_bp.route("", methods=["GET"])
@limiter.limit("100 per minute")
@login_required
def list_appointments():
    """All appointments (Admin)."""
    return _list(Operation.LIST_ALL, "Appointments retrieved")


@appointments_bp.route("/my", methods=["GET"])
@limiter.limit("100 per minute")
@login_required
def my_appointments():
    return _list(Operation.LIST_MY, "Appointments retrieved")


@appointments_bp.route("/pending", methods=["GET"])
@limiter.limit("100 per minute")
@login_required
def pending_appointments():
    return _list(Operation.LIST_PENDING, "Pending appointments retrieved")


@appointments_bp.route("/approved", methods=["GET"])
@limiter.limit("100 per minute")
@login_required
def approved_appointments():
    """Approved appointments for the vet/admin dashboard."""
    return _list(Operation.LIST_APPROVED, "Approved appointments retrieved")


@appointments_bp.route("/assigned", methods=["GET"])
@limiter.limit("100 per minute")
@login_required
def assigned_appointments():
    return _list(Operation.LIST_ASSIGNED, "Assigned appointments retrieved")


@appointments_bp.route("/<appointment_id>/status", methods=["PUT"])
@limiter.limit("30 per minute")
@login_required
def update_status(appointment_id):
    """Approve or cancel a pending appointment (Admin).

    Body: ``{"status": "Approved" | "Cancelled", "adminNotes": str,
    "vetUserId": str}`` (``vetId`` is accepted as an alias).
    """
    db = SessionLocal()
    try:
        service, presenter, _ = _build(db)
        actor = get_current_actor()
        # Existence and role are checked before the body is parsed
        service.get_by_id(appointment_id, actor)
        service.policy.ensure(actor, Operation.TRANSITION_STATUS)

        request_dto = StatusUpdateRequest.from_json(get_json_body())
        appointment = service.transition_status(
            appointment_id,
            actor,
            request_dto.status,
            admin_notes=request_dto.admin_notes,
            vet_user_id=request_dto.vet_user_id,
        )
        return api_response(
            True,
            f"Appointment {appointment.status.value.lower()}",
            presenter.present(appointment).to_dict(),
        )
    finally:
        db.close()


@appointments_bp.route("/summary-report", methods=["GET"])
@limiter.limit("20 per minute")
@login_required
def summary_report():
    """Workload summary for admins."""
    db = SessionLocal()
    try:
        service, presenter, reports = _build(db)
        service.policy.ensure(get_current_actor(), Operation.SUMMARY_REPORT)

        report = reports.summary()
        upcoming, pending, past = presenter.present_groups(
            report.upcoming, report.pending, report.past
        )
        response = SummaryReportResponse(
            generated_at=report.generated_at,
            report_period=report.report_period,
            upcoming_appointments_count=report.upcoming_count,
            pending_appointments_count=report.pending_count,
            past_appointments_count=report.past_count,
            total_appointments_count=report.total_count,
            completed_appointments_count=report.completed_count,
            cancelled_appointments_count=report.cancelled_count,
            no_show_appointments_count=report.no_show_count,
            average_appointments_per_day=report.average_per_day,
            busiest_day_of_week=report.busiest_day_of_week,
            peak_appointment_hour=report.peak_hour,
            upcoming_appointments=upcoming,
            pending_appointments=pending,
            past_appointments=past,
        )
        return api_response(True, "Summary report generated", response.to_dict())
    finally:
        db.close()
