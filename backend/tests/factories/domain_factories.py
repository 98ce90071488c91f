"""Builders for domain entities used across the test-suite."""

from datetime import datetime, timedelta

from petcare.domain.entities import Actor, Appointment, AppointmentStatus, Role

# Fixed "now" shared by the unit tests and the test application clock
FIXED_NOW = datetime(2029, 12, 30, 9, 0)

OWNER_ID = "owner-1"
OTHER_OWNER_ID = "owner-2"
VET_ID = "vet-1"
OTHER_VET_ID = "vet-2"
ADMIN_ID = "admin-1"


def owner(user_id: str = OWNER_ID) -> Actor:
    return Actor(user_id=user_id, role=Role.OWNER, name="Olivia Owner")


def vet(user_id: str = VET_ID) -> Actor:
    return Actor(user_id=user_id, role=Role.VET, name="Dr. Vera Vet")


def admin(user_id: str = ADMIN_ID) -> Actor:
    return Actor(user_id=user_id, role=Role.ADMIN, name="Adam Admin")


def make_appointment(
    status: AppointmentStatus = AppointmentStatus.PENDING,
    requested: datetime = None,
    owner_user_id: str = OWNER_ID,
    pet_id: str = "pet-1",
    vet_user_id: str = None,
    actual: datetime = None,
    **kwargs,
) -> Appointment:
    requested = requested or FIXED_NOW + timedelta(days=1)
    if status == AppointmentStatus.APPROVED and actual is None:
        actual = requested
    return Appointment(
        pet_id=pet_id,
        owner_user_id=owner_user_id,
        requested_date_time=requested,
        reason_for_visit=kwargs.pop("reason_for_visit", "Annual checkup"),
        status=status,
        vet_user_id=vet_user_id,
        actual_date_time=actual,
        created_at=kwargs.pop("created_at", FIXED_NOW - timedelta(days=1)),
        **kwargs,
    )
