"""Persistence of principals."""
import logging
from typing import List, Optional, Tuple

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from tasktracker.core.errors import DuplicatePrincipal
from tasktracker.core.timeutils import utcnow
from tasktracker.models.user import User, UserRole

logger = logging.getLogger("tasktracker.stores.credentials")


class CredentialStore:
    def __init__(self, db: Session):
        self.db = db

    def get(self, user_id: Optional[int]) -> Optional[User]:
        if user_id is None:
            return None
        return self.db.get(User, user_id)

    def get_by_identifier(self, identifier: str) -> Optional[User]:
        """Look a principal up by email (case-insensitive) or username (exact)."""
        identifier = identifier.strip()
        return (
            self.db.query(User)
            .filter(or_(User.email == identifier.lower(), User.username == identifier))
            .first()
        )

    def username_taken(self, username: str) -> bool:
        return self.db.query(User.id).filter(User.username == username).first() is not None

    def email_taken(self, email: str) -> bool:
        return self.db.query(User.id).filter(User.email == email.lower()).first() is not None

    def count(self) -> int:
        return self.db.query(User).count()

    def count_by_role(self, role: UserRole) -> int:
        return self.db.query(User).filter(User.role == role).count()

    def create(
        self,
        username: str,
        email: str,
        password_hash: str,
        role: UserRole = UserRole.USER,
        email_confirmed: bool = False,
    ) -> User:
        user = User(
            username=username,
            email=email.lower(),
            password_hash=password_hash,
            role=role,
            email_confirmed=email_confirmed,
        )
        self.db.add(user)
        try:
            self.db.commit()
        except IntegrityError as exc:
            # Lost a race with a concurrent registration of the same name
            self.db.rollback()
            logger.info("Duplicate principal rejected at commit: %s", username)
            raise DuplicatePrincipal() from exc
        self.db.refresh(user)
        return user

    def save(self, user: User) -> User:
        user.updated_at = utcnow()
        self.db.commit()
        self.db.refresh(user)
        return user

    def delete(self, user: User) -> None:
        self.db.delete(user)
        self.db.commit()

    def list(
        self, role: Optional[UserRole] = None, page: int = 1, limit: int = 10
    ) -> Tuple[List[User], int]:
        query = self.db.query(User)
        if role is not None:
            query = query.filter(User.role == role)
        total = query.count()
        users = (
            query.order_by(User.created_at.desc(), User.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return users, total

    def list_by_role(self, role: UserRole) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.role == role)
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )

    def list_team(self, manager_id: int) -> List[User]:
        return (
            self.db.query(User)
            .filter(User.manager_id == manager_id)
            .order_by(User.created_at.desc(), User.id.desc())
            .all()
        )


def team_ids_subquery(manager_id: int):
    """SELECT of the ids whose ``manager_id`` is ``manager_id``."""
    return select(User.id).where(User.manager_id == manager_id)
