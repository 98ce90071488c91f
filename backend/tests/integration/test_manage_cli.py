"""
Integration tests for the management CLI.
"""

from datetime import timedelta

import pytest
from click.testing import CliRunner

from petcare.core.security import get_identity_from_token
from petcare.domain.entities import AppointmentStatus, Notification
from petcare.repositories.appointment_repo import AppointmentRepository
from petcare.repositories.directory_repo import UserDirectory
from petcare.repositories.notification_repo import NotificationRepository
from petcare.utils.datetime_utils import now_local
from tests.factories.domain_factories import make_appointment


@pytest.fixture
def cli():
    import manage

    return manage.cli


@pytest.fixture
def runner():
    return CliRunner()


@pytest.mark.integration
class TestManageCli:
    def test_issue_token(self, cli, runner):
        result = runner.invoke(cli, ["issue-token", "vet-7", "vet", "--name", "Dr. Seven"])

        assert result.exit_code == 0, result.output
        identity = get_identity_from_token(result.output.strip())
        assert identity == {"user_id": "vet-7", "role": "VET", "name": "Dr. Seven"}

    def test_issue_token_rejects_unknown_role(self, cli, runner):
        result = runner.invoke(cli, ["issue-token", "x", "janitor"])
        assert result.exit_code != 0
        assert "Unknown role" in result.output

    def test_set_status_reaches_terminal_states(self, cli, runner, db_session):
        repo = AppointmentRepository(db_session)
        appointment = repo.create(make_appointment(status=AppointmentStatus.APPROVED))

        result = runner.invoke(cli, ["set-status", appointment.id, "NoShow"])

        assert result.exit_code == 0, result.output
        db_session.expire_all()
        stored = repo.get_by_id(appointment.id)
        assert stored.status == AppointmentStatus.NO_SHOW
        assert stored.updated_by_user_id == "system"
        assert stored.version == 2

    def test_set_status_unknown_appointment(self, cli, runner, clean_database):
        result = runner.invoke(cli, ["set-status", "missing", "Completed"])
        assert result.exit_code != 0
        assert "not found" in result.output

    def test_set_status_rejects_unknown_status(self, cli, runner, clean_database):
        result = runner.invoke(cli, ["set-status", "any", "Rescheduled"])
        assert result.exit_code != 0

    def test_ensure_user(self, cli, runner, db_session):
        result = runner.invoke(
            cli, ["ensure-user", "vet-5", "vet", "Dr. Five", "--email", "five@example.com"]
        )

        assert result.exit_code == 0, result.output
        db_session.expire_all()
        profile = UserDirectory(db_session).find_by_id("vet-5")
        assert profile.display_name == "Dr. Five"
        assert profile.role == "VET"

    def test_purge_notifications(self, cli, runner, db_session):
        repo = NotificationRepository(db_session)
        repo.create(
            Notification(
                user_id="owner-1",
                title="old",
                message="m",
                created_at=now_local() - timedelta(days=45),
            )
        )
        repo.create(Notification(user_id="owner-1", title="new", message="m", created_at=now_local()))

        result = runner.invoke(cli, ["purge-notifications", "--days", "30"])

        assert result.exit_code == 0, result.output
        db_session.expire_all()
        assert [n.title for n in repo.get_by_user("owner-1")] == ["new"]
