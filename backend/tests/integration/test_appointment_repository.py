"""
Integration tests for the SQLAlchemy repositories against SQLite.
"""

from datetime import date, datetime, timedelta

import pytest

from petcare.core.config import APP_TZ
from petcare.core.exceptions import ConflictError, NotFoundError
from petcare.domain.entities import AppointmentStatus, Notification
from petcare.repositories.appointment_repo import AppointmentRepository
from petcare.repositories.directory_repo import PetDirectory, UserDirectory
from petcare.repositories.notification_repo import NotificationRepository
from petcare.services.conflict_detector import ConflictDetector
from tests.factories.domain_factories import FIXED_NOW, OWNER_ID, VET_ID, make_appointment

SLOT = datetime(2030, 1, 1, 10, 0)


@pytest.fixture
def repo(db_session):
    return AppointmentRepository(db_session)


@pytest.mark.integration
@pytest.mark.repositories
class TestAppointmentRepository:
    def test_create_and_get(self, repo):
        appointment = repo.create(make_appointment(requested=SLOT, notes="n"))

        loaded = repo.get_by_id(appointment.id)
        assert loaded.requested_date_time == SLOT
        assert loaded.status == AppointmentStatus.PENDING
        assert loaded.notes == "n"
        assert loaded.version == 1

    def test_get_missing_returns_none(self, repo):
        assert repo.get_by_id("missing") is None

    def test_owner_listing_newest_first(self, repo):
        older = repo.create(make_appointment(created_at=FIXED_NOW - timedelta(days=2)))
        newer = repo.create(make_appointment(created_at=FIXED_NOW - timedelta(hours=1)))
        repo.create(make_appointment(owner_user_id="someone-else"))

        assert [a.id for a in repo.get_by_owner(OWNER_ID)] == [newer.id, older.id]

    def test_status_listing_soonest_first(self, repo):
        later = repo.create(make_appointment(requested=SLOT + timedelta(days=2)))
        sooner = repo.create(make_appointment(requested=SLOT))
        repo.create(make_appointment(status=AppointmentStatus.CANCELLED, requested=SLOT))

        assert [a.id for a in repo.get_pending()] == [sooner.id, later.id]

    def test_update_bumps_version(self, repo):
        appointment = repo.create(make_appointment(requested=SLOT))
        appointment.status = AppointmentStatus.APPROVED
        appointment.vet_user_id = VET_ID
        appointment.actual_date_time = SLOT

        updated = repo.update(appointment)

        assert updated.version == 2
        assert repo.get_by_id(appointment.id).status == AppointmentStatus.APPROVED
        assert [a.id for a in repo.get_by_vet(VET_ID)] == [appointment.id]

    def test_stale_update_is_a_conflict(self, repo):
        appointment = repo.create(make_appointment(requested=SLOT))
        first = repo.get_by_id(appointment.id)
        second = repo.get_by_id(appointment.id)

        first.status = AppointmentStatus.APPROVED
        repo.update(first)

        second.status = AppointmentStatus.CANCELLED
        with pytest.raises(ConflictError) as exc_info:
            repo.update(second)

        assert exc_info.value.code == "concurrent_update"
        assert repo.get_by_id(appointment.id).status == AppointmentStatus.APPROVED

    def test_update_missing_row(self, repo):
        with pytest.raises(NotFoundError):
            repo.update(make_appointment())

    def test_approved_window_is_inclusive(self, repo):
        start, end = SLOT - timedelta(minutes=30), SLOT + timedelta(minutes=30)
        edge = repo.create(
            make_appointment(status=AppointmentStatus.APPROVED, requested=end, vet_user_id=VET_ID)
        )
        repo.create(
            make_appointment(
                status=AppointmentStatus.APPROVED,
                requested=end + timedelta(minutes=1),
                vet_user_id=VET_ID,
            )
        )
        repo.create(make_appointment(requested=SLOT))

        found = repo.find_approved_in_window(start, end, vet_user_id=VET_ID)
        assert [a.id for a in found] == [edge.id]
        assert repo.find_approved_in_window(start, end, exclude_appointment_id=edge.id) == []

    def test_conflict_check_with_aware_candidate(self, repo):
        repo.create(
            make_appointment(
                status=AppointmentStatus.APPROVED,
                requested=datetime(2030, 1, 1, 9, 0),
                vet_user_id=VET_ID,
            )
        )
        detector = ConflictDetector(repo, window_minutes=30)
        candidate = datetime(2030, 1, 1, 9, 20)

        assert detector.has_conflict(candidate, VET_ID) is True
        assert detector.has_conflict(candidate.replace(tzinfo=APP_TZ), VET_ID) is True

    def test_counts(self, repo):
        repo.create(make_appointment(requested=datetime(2030, 1, 1, 0, 0)))
        repo.create(make_appointment(requested=datetime(2030, 1, 1, 23, 59)))
        repo.create(make_appointment(requested=datetime(2030, 1, 2, 0, 0)))
        repo.create(make_appointment(status=AppointmentStatus.CANCELLED))

        assert repo.count_for_day(date(2030, 1, 1)) == 2
        assert repo.count_by_status(AppointmentStatus.PENDING) == 3
        assert repo.count_by_status(AppointmentStatus.CANCELLED) == 1

    def test_delete(self, repo):
        appointment = repo.create(make_appointment())
        assert repo.delete(appointment.id) is True
        assert repo.delete(appointment.id) is False


@pytest.mark.integration
@pytest.mark.repositories
class TestDirectories:
    def test_batch_lookups(self, db_session, seed_directory):
        users = UserDirectory(db_session).find_many(["owner-1", "vet-1", "ghost", None])
        pets = PetDirectory(db_session).find_pet_names(["pet-1", "pet-404"])

        assert set(users) == {"owner-1", "vet-1"}
        assert users["vet-1"].display_name == "Dr. Vera Vet"
        assert pets == {"pet-1": "Rex"}

    def test_upsert(self, db_session):
        directory = UserDirectory(db_session)
        directory.upsert("vet-9", "Dr. New", "vet")
        profile = directory.upsert("vet-9", "Dr. Renamed", "VET", "new@example.com")

        assert profile.display_name == "Dr. Renamed"
        assert profile.role == "VET"
        assert directory.find_by_id("vet-9").email == "new@example.com"


@pytest.mark.integration
@pytest.mark.repositories
@pytest.mark.notifications
class TestNotificationRepository:
    def test_unread_and_mark_all(self, db_session):
        repo = NotificationRepository(db_session)
        for i in range(3):
            repo.create(
                Notification(
                    user_id=OWNER_ID,
                    title=f"t{i}",
                    message="m",
                    created_at=FIXED_NOW - timedelta(days=i),
                )
            )
        repo.create(Notification(user_id="owner-2", title="x", message="m", created_at=FIXED_NOW))

        assert repo.get_unread_count(OWNER_ID) == 3
        assert [n.title for n in repo.get_by_user(OWNER_ID)] == ["t0", "t1", "t2"]
        assert repo.mark_all_as_read(OWNER_ID, FIXED_NOW) == 3
        assert repo.get_unread_count(OWNER_ID) == 0
        assert repo.get_unread_count("owner-2") == 1

    def test_delete_older_than(self, db_session):
        repo = NotificationRepository(db_session)
        repo.create(
            Notification(
                user_id=OWNER_ID, title="old", message="m", created_at=FIXED_NOW - timedelta(days=40)
            )
        )
        repo.create(Notification(user_id=OWNER_ID, title="new", message="m", created_at=FIXED_NOW))

        assert repo.delete_older_than(FIXED_NOW - timedelta(days=30)) == 1
        assert [n.title for n in repo.get_by_user(OWNER_ID)] == ["new"]
