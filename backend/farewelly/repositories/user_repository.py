from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ..models.user import UserProfile
from .base_repository import BaseRepository


class UserProfileRepository(BaseRepository[UserProfile]):
    def __init__(self, db: Session):
        super().__init__(db, UserProfile)

    def get_by_email(self, email: str) -> Optional[UserProfile]:
        return self.find_one_by(email=email)

    def get_many(self, ids: Iterable[str]) -> dict[str, UserProfile]:
        id_list = [pid for pid in set(ids) if pid]
        if not id_list:
            return {}
        rows = self._execute_query(self._build_query().filter(UserProfile.id.in_(id_list)))
        return {row.id: row for row in rows}
