"""
Unit tests for ConflictDetector.
"""

from datetime import datetime, timedelta, timezone

import pytest

from petcare.core.config import APP_TZ
from petcare.domain.entities import AppointmentStatus
from petcare.services.conflict_detector import ConflictDetector
from petcare.utils.datetime_utils import to_app_naive
from tests.factories.domain_factories import OTHER_VET_ID, VET_ID, make_appointment
from tests.factories.repository_factories import AppointmentRepositoryFactory

CANDIDATE = datetime(2030, 1, 1, 10, 0)


def approved_at(when, vet_user_id=VET_ID):
    return make_appointment(
        status=AppointmentStatus.APPROVED,
        requested=when,
        actual=when,
        vet_user_id=vet_user_id,
    )


@pytest.fixture
def reader():
    return AppointmentRepositoryFactory.create_mock_reader()


@pytest.fixture
def detector(reader):
    return ConflictDetector(reader, window_minutes=30)


@pytest.mark.unit
@pytest.mark.services
class TestConflictWindow:
    def test_queries_window_around_candidate(self, detector, reader):
        detector.find_conflicts(CANDIDATE, vet_user_id=VET_ID)

        reader.find_approved_in_window.assert_called_once_with(
            CANDIDATE - timedelta(minutes=30),
            CANDIDATE + timedelta(minutes=30),
            vet_user_id=VET_ID,
            exclude_appointment_id=None,
        )

    @pytest.mark.parametrize("offset", [-30, -15, 0, 15, 30])
    def test_boundaries_are_inclusive(self, detector, reader, offset):
        reader.find_approved_in_window.return_value = [
            approved_at(CANDIDATE + timedelta(minutes=offset))
        ]
        assert detector.has_conflict(CANDIDATE) is True

    @pytest.mark.parametrize("offset", [-31, 31, 120])
    def test_outside_window_is_ignored(self, detector, reader, offset):
        reader.find_approved_in_window.return_value = [
            approved_at(CANDIDATE + timedelta(minutes=offset))
        ]
        assert detector.has_conflict(CANDIDATE) is False

    def test_no_bookings_no_conflict(self, detector):
        assert detector.find_conflicts(CANDIDATE) == []

    def test_window_from_configuration(self, reader):
        detector = ConflictDetector(reader, window_minutes=60)
        reader.find_approved_in_window.return_value = [
            approved_at(CANDIDATE + timedelta(minutes=45))
        ]
        assert detector.has_conflict(CANDIDATE) is True


@pytest.mark.unit
@pytest.mark.services
class TestConflictFiltering:
    def test_other_vet_is_not_a_conflict(self, detector, reader):
        reader.find_approved_in_window.return_value = [approved_at(CANDIDATE, OTHER_VET_ID)]
        assert detector.has_conflict(CANDIDATE, vet_user_id=VET_ID) is False

    def test_clinic_wide_check_counts_every_vet(self, detector, reader):
        reader.find_approved_in_window.return_value = [approved_at(CANDIDATE, OTHER_VET_ID)]
        assert detector.has_conflict(CANDIDATE) is True

    def test_excluded_appointment_is_skipped(self, detector, reader):
        existing = approved_at(CANDIDATE)
        reader.find_approved_in_window.return_value = [existing]
        assert detector.has_conflict(CANDIDATE, exclude_appointment_id=existing.id) is False

    def test_only_approved_bookings_count(self, detector, reader):
        pending = make_appointment(requested=CANDIDATE, vet_user_id=VET_ID)
        reader.find_approved_in_window.return_value = [pending]
        assert detector.has_conflict(CANDIDATE) is False

    def test_unconfirmed_slot_is_ignored(self, detector, reader):
        approved = approved_at(CANDIDATE)
        approved.actual_date_time = None
        reader.find_approved_in_window.return_value = [approved]
        assert detector.has_conflict(CANDIDATE) is False

    def test_two_nearby_bookings(self, detector, reader):
        nine = approved_at(datetime(2030, 1, 1, 9, 0))
        nine_forty_five = approved_at(datetime(2030, 1, 1, 9, 45))

        reader.find_approved_in_window.return_value = [nine, nine_forty_five]
        assert detector.has_conflict(datetime(2030, 1, 1, 9, 20), vet_user_id=VET_ID) is True

        assert detector.has_conflict(datetime(2030, 1, 1, 10, 30), vet_user_id=VET_ID) is False


@pytest.mark.unit
@pytest.mark.services
class TestAwareCandidates:
    def test_aware_candidate_is_compared_in_app_timezone(self, detector, reader):
        reader.find_approved_in_window.return_value = [
            approved_at(CANDIDATE + timedelta(minutes=20))
        ]

        assert detector.has_conflict(CANDIDATE.replace(tzinfo=APP_TZ), vet_user_id=VET_ID) is True

    def test_window_is_queried_with_naive_bounds(self, detector, reader):
        detector.find_conflicts(CANDIDATE.replace(tzinfo=APP_TZ))

        start, end = reader.find_approved_in_window.call_args.args
        assert start == CANDIDATE - timedelta(minutes=30)
        assert end == CANDIDATE + timedelta(minutes=30)
        assert start.tzinfo is None and end.tzinfo is None

    def test_utc_candidate_is_converted(self, detector, reader):
        utc_candidate = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)
        local = to_app_naive(utc_candidate)
        reader.find_approved_in_window.return_value = [approved_at(local)]

        assert detector.has_conflict(utc_candidate) is True
        assert detector.has_conflict(utc_candidate + timedelta(hours=2)) is False
