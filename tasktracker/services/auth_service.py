import logging
from typing import Tuple

from sqlalchemy.orm import Session

from tasktracker.core.errors import InvalidCredentials
from tasktracker.core.security import get_password_hash, password_needs_rehash, verify_password
from tasktracker.core.tokens import TokenVault
from tasktracker.models.user import User
from tasktracker.stores.credentials import CredentialStore

logger = logging.getLogger("tasktracker.services.auth")


class AuthService:
    def __init__(self, db: Session, vault: TokenVault):
        self.db = db
        self.users = CredentialStore(db)
        self.vault = vault

    def login(self, identifier: str, password: str) -> Tuple[str, User]:
        """Exchange an email-or-username and password for a session token.

        Unknown identifiers and wrong passwords fail identically.
        """
        user = self.users.get_by_identifier(identifier)
        if user is None or not verify_password(password, user.password_hash):
            logger.info("Failed login attempt for %r", identifier)
            raise InvalidCredentials()

        if password_needs_rehash(user.password_hash):
            user.password_hash = get_password_hash(password)
            self.users.save(user)

        token = self.vault.issue(user.id, user.role)
        logger.info("User %s logged in", user.id)
        return token, user

    def logout(self, user: User, token: str) -> None:
        self.vault.revoke(token)
        logger.info("User %s logged out", user.id)
