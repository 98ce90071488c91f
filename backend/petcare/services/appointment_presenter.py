"""
Builds enriched appointment responses.

Owner, vet and pet names are resolved once per response for the whole set
of appointments, then looked up by id.
"""

import logging
from typing import Dict, List, Optional, Sequence, Tuple

from petcare.domain.entities import Appointment, UserProfile
from petcare.domain.interfaces import IIdentityDirectory, IPetDirectory
from petcare.schemas.dtos import AppointmentResponse

logger = logging.getLogger(__name__)


class AppointmentPresenter:
    def __init__(
        self,
        identity_directory: Optional[IIdentityDirectory] = None,
        pet_directory: Optional[IPetDirectory] = None,
    ):
        self.identity_directory = identity_directory
        self.pet_directory = pet_directory

    def present(self, appointment: Appointment) -> AppointmentResponse:
        return self.present_many([appointment])[0]

    def present_many(self, appointments: Sequence[Appointment]) -> List[AppointmentResponse]:
        return self.present_groups(appointments)[0]

    def present_groups(
        self, *groups: Sequence[Appointment]
    ) -> Tuple[List[AppointmentResponse], ...]:
        """Present several lists with a single directory round-trip."""
        everything = [appointment for group in groups for appointment in group]
        users, pets = self._resolve(everything)
        return tuple(
            [self._build(appointment, users, pets) for appointment in group]
            for group in groups
        )

    def _resolve(
        self, appointments: Sequence[Appointment]
    ) -> Tuple[Dict[str, UserProfile], Dict[str, str]]:
        if not appointments:
            return {}, {}

        users: Dict[str, UserProfile] = {}
        pets: Dict[str, str] = {}
        if self.identity_directory is not None:
            user_ids = {a.owner_user_id for a in appointments}
            user_ids.update(a.vet_user_id for a in appointments if a.vet_user_id)
            users = self.identity_directory.find_many(user_ids)
        if self.pet_directory is not None:
            pets = self.pet_directory.find_pet_names({a.pet_id for a in appointments})

        logger.debug(
            "Resolved display names",
            extra={
                "context": {
                    "appointments": len(appointments),
                    "users": len(users),
                    "pets": len(pets),
                }
            },
        )
        return users, pets

    @staticmethod
    def _build(
        appointment: Appointment,
        users: Dict[str, UserProfile],
        pets: Dict[str, str],
    ) -> AppointmentResponse:
        owner = users.get(appointment.owner_user_id)
        vet = users.get(appointment.vet_user_id) if appointment.vet_user_id else None
        return AppointmentResponse.from_domain(
            appointment,
            owner_name=owner.display_name if owner else None,
            pet_name=pets.get(appointment.pet_id),
            vet_name=vet.display_name if vet else None,
        )
