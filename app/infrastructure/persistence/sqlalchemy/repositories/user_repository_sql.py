from typing import Dict, List, Optional
import logging

from sqlalchemy.exc import OperationalError
from sqlmodel import Session, select

from .....db.models import User
from .....exceptions import DependencyUnavailable
from .....application.ports.user_repo import UserRepository, UserDto

logger = logging.getLogger(__name__)

class SqlUserRepository(UserRepository):
    def __init__(self, session: Session):
        self.session = session

    def _to_dto(self, user: User) -> UserDto:
        return UserDto(
            id=user.id,
            name=user.name,
            email=user.email,
            role=user.role,
            is_active=bool(getattr(user, 'is_active', True)),
            specialization=getattr(user, 'specialization', None),
            phone=getattr(user, 'phone', None),
            created_at=user.created_at,
        )

    def get_by_id(self, user_id: str) -> Optional[UserDto]:
        try:
            user = self.session.exec(select(User).where(User.id == user_id)).first()
        except OperationalError as e:
            self.session.rollback()
            logger.error(f"Error retrieving user {user_id}: {e}")
            raise DependencyUnavailable()
        return self._to_dto(user) if user else None

    def get_many(self, user_ids: List[str]) -> Dict[str, UserDto]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        try:
            users = self.session.exec(select(User).where(User.id.in_(ids))).all()
        except OperationalError as e:
            self.session.rollback()
            logger.error(f"Error retrieving {len(ids)} users: {e}")
            raise DependencyUnavailable()
        return {u.id: self._to_dto(u) for u in users}
