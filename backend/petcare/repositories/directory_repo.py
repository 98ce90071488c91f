"""
Read-only directory lookups for display names.

Both lookups resolve a whole set of ids in one query so list responses do
not issue a query per appointment.
"""

from typing import Dict, Iterable, List, Optional

from petcare.db.base import Pet as DbPet
from petcare.db.base import User as DbUser
from petcare.domain.entities import UserProfile
from petcare.domain.interfaces import IIdentityDirectory, IPetDirectory


def _distinct_ids(ids: Iterable[Optional[str]]) -> List[str]:
    return sorted({str(i) for i in ids if i})


class UserDirectory(IIdentityDirectory):
    def __init__(self, db_session) -> None:
        self.db = db_session

    def find_by_id(self, user_id: str) -> Optional[UserProfile]:
        if not user_id:
            return None
        db_user = self.db.get(DbUser, str(user_id))
        return self._to_profile(db_user) if db_user else None

    def find_many(self, user_ids: Iterable[str]) -> Dict[str, UserProfile]:
        ids = _distinct_ids(user_ids)
        if not ids:
            return {}
        rows = self.db.query(DbUser).filter(DbUser.id.in_(ids)).all()
        return {row.id: self._to_profile(row) for row in rows}

    def upsert(self, user_id: str, full_name: str, role: str, email: Optional[str] = None):
        """Create or update a directory user. Used by the management CLI."""
        db_user = self.db.get(DbUser, str(user_id))
        if db_user is None:
            db_user = DbUser(id=str(user_id))
            self.db.add(db_user)
        db_user.full_name = full_name
        db_user.role = role.upper()
        db_user.email = email or db_user.email
        self.db.commit()
        self.db.refresh(db_user)
        return self._to_profile(db_user)

    def _to_profile(self, db_user: DbUser) -> UserProfile:
        return UserProfile(
            id=db_user.id,
            display_name=db_user.full_name,
            role=db_user.role,
            email=db_user.email,
        )


class PetDirectory(IPetDirectory):
    def __init__(self, db_session) -> None:
        self.db = db_session

    def find_pet_names(self, pet_ids: Iterable[str]) -> Dict[str, str]:
        ids = _distinct_ids(pet_ids)
        if not ids:
            return {}
        rows = self.db.query(DbPet.id, DbPet.name).filter(DbPet.id.in_(ids)).all()
        return {pet_id: name for pet_id, name in rows}
