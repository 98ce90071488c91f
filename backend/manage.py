"""Management commands for the PetCare appointment service."""

from __future__ import annotations

import logging
from typing import Optional

import click

from petcare.core.security import create_user_token
from petcare.db.session import SessionLocal, create_tables
from petcare.domain.entities import AppointmentStatus, Role
from petcare.main import create_app
from petcare.repositories.appointment_repo import AppointmentRepository
from petcare.repositories.directory_repo import UserDirectory
from petcare.repositories.notification_repo import NotificationRepository
from petcare.services.notification_service import NotificationService
from petcare.utils.datetime_utils import now_local

logging.basicConfig(level=logging.INFO, format="[%(levelname)s] %(message)s")

# Create the Flask application once so commands can share configuration.
app = create_app()

SYSTEM_USER_ID = "system"


@click.group()
def cli() -> None:
    """Entry point for management commands."""


@cli.command("init-db")
def init_db() -> None:
    """Create all database tables."""
    with app.app_context():
        create_tables()
    click.echo("Database tables created.")


@cli.command("issue-token")
@click.argument("user_id")
@click.argument("role")
@click.option("--name", default=None, help="Display name claim to embed in the token.")
def issue_token(user_id: str, role: str, name: Optional[str]) -> None:
    """Mint a bearer token for local development."""
    parsed = Role.parse(role)
    if parsed is None:
        raise click.BadParameter(
            f"Unknown role '{role}'. Use one of: {', '.join(r.value for r in Role)}.",
            param_hint="ROLE",
        )
    click.echo(create_user_token(user_id, parsed.value, name=name))


@cli.command("set-status")
@click.argument("appointment_id")
@click.argument("status")
def set_status(appointment_id: str, status: str) -> None:
    """Write any status directly, bypassing the workflow.

    This is the only path to Completed and NoShow. No notifications are sent.
    """
    try:
        target = AppointmentStatus.parse(status)
    except ValueError as e:
        raise click.BadParameter(str(e), param_hint="STATUS")

    with app.app_context():
        session = SessionLocal()
        try:
            repository = AppointmentRepository(session)
            appointment = repository.get_by_id(appointment_id)
            if appointment is None:
                raise click.ClickException(f"Appointment '{appointment_id}' not found.")

            previous = appointment.status
            appointment.status = target
            appointment.updated_at = now_local()
            appointment.updated_by_user_id = SYSTEM_USER_ID
            updated = repository.update(appointment)
            logging.info(
                "Appointment %s status %s -> %s (version %s)",
                updated.id,
                previous.value,
                updated.status.value,
                updated.version,
            )
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


@cli.command("ensure-user")
@click.argument("user_id")
@click.argument("role")
@click.argument("name")
@click.option("--email", default=None, help="Email address for the directory entry.")
def ensure_user(user_id: str, role: str, name: str, email: Optional[str]) -> None:
    """Create or update a directory user used for display names."""
    parsed = Role.parse(role)
    if parsed is None:
        raise click.BadParameter(f"Unknown role '{role}'.", param_hint="ROLE")

    with app.app_context():
        session = SessionLocal()
        try:
            profile = UserDirectory(session).upsert(user_id, name, parsed.value, email)
            logging.info("User %s (%s) saved as %s.", profile.id, profile.display_name, profile.role)
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


@cli.command("purge-notifications")
@click.option("--days", default=30, show_default=True, type=click.IntRange(min=1))
def purge_notifications(days: int) -> None:
    """Delete notifications older than DAYS."""
    with app.app_context():
        session = SessionLocal()
        try:
            deleted = NotificationService(NotificationRepository(session)).delete_old(days)
            logging.info("Deleted %s notifications older than %s days.", deleted, days)
        finally:
            session.close()


if __name__ == "__main__":
    cli()
