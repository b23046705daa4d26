import logging
from typing import List, Optional, Tuple

from sqlalchemy.orm import Session

from tasktracker.core.authorization import Action, Actor, PrincipalRef, enforce
from tasktracker.core.errors import (
    AlreadySeeded,
    DuplicatePrincipal,
    InvalidRoleTransition,
    NotFound,
)
from tasktracker.core.security import get_password_hash
from tasktracker.models.user import User, UserRole
from tasktracker.schemas.user import RegisterRequest, UserCreate
from tasktracker.services.notifications import NotificationKind, Notifier
from tasktracker.stores.credentials import CredentialStore

logger = logging.getLogger("tasktracker.services.users")

SEED_ADMIN_USERNAME = "admin"
SEED_ADMIN_EMAIL = "admin@taskmanagement.com"
SEED_ADMIN_PASSWORD = "Admin@1234"


class UserService:
    def __init__(self, db: Session, notifier: Optional[Notifier] = None):
        self.db = db
        self.users = CredentialStore(db)
        self.notifier = notifier

    def _get_or_404(self, user_id: int, message: str = "User not found") -> User:
        user = self.users.get(user_id)
        if user is None:
            raise NotFound(message)
        return user

    def register(self, data: RegisterRequest) -> User:
        """Self-registration always yields a USER with an unconfirmed email."""
        if self.users.username_taken(data.username) or self.users.email_taken(data.email):
            raise DuplicatePrincipal()

        user = self.users.create(
            username=data.username,
            email=data.email,
            password_hash=get_password_hash(data.password),
            role=UserRole.USER,
            email_confirmed=False,
        )
        logger.info("Registered user %s (%s)", user.id, user.username)

        if self.notifier is not None:
            self.notifier.send(
                NotificationKind.WELCOME,
                {"email": user.email, "username": user.username},
            )
        return user

    def create_user(self, current_user: User, data: UserCreate) -> User:
        enforce(Actor.from_user(current_user), Action.CREATE_USER)

        if self.users.username_taken(data.username):
            raise DuplicatePrincipal("Username already exists")
        if self.users.email_taken(data.email):
            raise DuplicatePrincipal("Email already exists")

        user = self.users.create(
            username=data.username,
            email=data.email,
            password_hash=get_password_hash(data.password),
            role=data.role,
            email_confirmed=True,
        )
        logger.info("Admin %s created %s %s", current_user.id, user.role.value, user.id)
        return user

    def seed_admin(self) -> User:
        if self.users.count() > 0:
            raise AlreadySeeded()
        user = self.users.create(
            username=SEED_ADMIN_USERNAME,
            email=SEED_ADMIN_EMAIL,
            password_hash=get_password_hash(SEED_ADMIN_PASSWORD),
            role=UserRole.ADMIN,
            email_confirmed=True,
        )
        logger.warning("Seeded default administrator %s; change its password", user.id)
        return user

    def change_role(self, current_user: User, user_id: int, role: UserRole) -> User:
        user = self._get_or_404(user_id)
        enforce(Actor.from_user(current_user), Action.UPDATE_USER_ROLE, PrincipalRef.from_user(user))

        previous = user.role
        user.role = role
        # Only plain users belong to a team; other principals' links to this
        # user are left alone
        if role != UserRole.USER:
            user.manager_id = None
        user = self.users.save(user)
        logger.info(
            "Admin %s changed role of user %s from %s to %s",
            current_user.id, user.id, previous.value, role.value,
        )
        return user

    def assign_to_manager(
        self, current_user: User, user_id: int, manager_id: int
    ) -> Tuple[User, User]:
        enforce(Actor.from_user(current_user), Action.ASSIGN_USER_TO_MANAGER)

        if self.users.count_by_role(UserRole.MANAGER) == 0:
            raise InvalidRoleTransition(
                "No managers found in system. Please create a manager first "
                "using POST /users/create with role: manager"
            )

        manager = self._get_or_404(manager_id, "Manager not found")
        if manager.role != UserRole.MANAGER:
            raise InvalidRoleTransition("The specified user is not a manager")

        user = self._get_or_404(user_id)
        if user.role != UserRole.USER:
            raise InvalidRoleTransition("Only regular users can be assigned to managers")
        if user.manager_id is not None:
            raise InvalidRoleTransition(
                "This user is already assigned to another manager. Please unassign first.",
                current_manager={"id": user.manager_id},
            )

        user.manager_id = manager.id
        user = self.users.save(user)
        logger.info("User %s assigned to manager %s", user.id, manager.id)
        return user, manager

    def unassign_from_manager(self, current_user: User, user_id: int) -> User:
        enforce(Actor.from_user(current_user), Action.UNASSIGN_USER_FROM_MANAGER)
        user = self._get_or_404(user_id)
        if user.manager_id is None:
            raise InvalidRoleTransition("This user is not assigned to a manager")

        previous = user.manager_id
        user.manager_id = None
        user = self.users.save(user)
        logger.info("User %s unassigned from manager %s", user.id, previous)
        return user

    def delete_user(self, current_user: User, user_id: int) -> None:
        user = self._get_or_404(user_id)
        enforce(Actor.from_user(current_user), Action.DELETE_USER, PrincipalRef.from_user(user))

        # Tasks and team links referencing this id are left dangling
        self.users.delete(user)
        logger.info("Admin %s deleted user %s", current_user.id, user_id)

    def list_users(
        self, current_user: User, role: Optional[UserRole], page: int, limit: int
    ) -> Tuple[List[User], int]:
        enforce(Actor.from_user(current_user), Action.LIST_ALL_USERS)
        return self.users.list(role=role, page=page, limit=limit)

    def list_managers(self, current_user: User) -> List[User]:
        enforce(Actor.from_user(current_user), Action.LIST_MANAGERS)
        managers = self.users.list_by_role(UserRole.MANAGER)
        if not managers:
            raise NotFound(
                "No managers found. Create a manager using POST /users/create with role: manager"
            )
        return managers

    def list_team(self, current_user: User) -> List[User]:
        enforce(Actor.from_user(current_user), Action.LIST_TEAM)
        return self.users.list_team(current_user.id)

    def get_profile(self, current_user: User, user_id: int) -> User:
        user = self._get_or_404(user_id)
        enforce(Actor.from_user(current_user), Action.GET_PROFILE, PrincipalRef.from_user(user))
        return user
