"""Deny-list of revoked session tokens, bounded by each token's expiry."""
import abc
import logging
import math
from datetime import datetime

import redis
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from tasktracker.core.timeutils import utcnow
from tasktracker.models.revoked_token import RevokedToken

logger = logging.getLogger("tasktracker.stores.revocations")


class RevocationStore(abc.ABC):
    """Keyed set of ``(token, expires_at)`` entries.

    An entry whose expiry has passed never counts as revoked, whether or not
    it has been purged yet.
    """

    @abc.abstractmethod
    def add(self, token: str, expires_at: datetime) -> None:
        """Insert ``token``; re-adding an existing token is a no-op."""

    @abc.abstractmethod
    def is_revoked(self, token: str) -> bool:
        pass

    @abc.abstractmethod
    def purge_expired(self) -> int:
        """Remove entries whose expiry has passed and return how many went."""


class SqlRevocationStore(RevocationStore):
    def __init__(self, session_factory: sessionmaker):
        self.session_factory = session_factory

    def add(self, token: str, expires_at: datetime) -> None:
        if expires_at <= utcnow():
            return
        with self.session_factory() as session:
            if session.query(RevokedToken.id).filter(RevokedToken.token == token).first():
                return
            session.add(RevokedToken(token=token, expires_at=expires_at))
            try:
                session.commit()
            except IntegrityError:
                # A concurrent logout of the same token got there first
                session.rollback()
                logger.debug("Token already present in revocation set")

    def is_revoked(self, token: str) -> bool:
        with self.session_factory() as session:
            entry = (
                session.query(RevokedToken.id)
                .filter(RevokedToken.token == token, RevokedToken.expires_at > utcnow())
                .first()
            )
            return entry is not None

    def purge_expired(self) -> int:
        with self.session_factory() as session:
            try:
                removed = (
                    session.query(RevokedToken)
                    .filter(RevokedToken.expires_at <= utcnow())
                    .delete(synchronize_session=False)
                )
                session.commit()
            except SQLAlchemyError:
                session.rollback()
                raise
        return removed


class RedisRevocationStore(RevocationStore):
    """Stores each token under a key whose TTL is the token's remaining life."""

    key_prefix = "revoked:"

    def __init__(self, client: redis.Redis):
        self.client = client

    def _key(self, token: str) -> str:
        return f"{self.key_prefix}{token}"

    def add(self, token: str, expires_at: datetime) -> None:
        ttl = math.ceil((expires_at - utcnow()).total_seconds())
        if ttl <= 0:
            return
        # NX keeps the original expiry when the token is revoked twice
        self.client.set(self._key(token), "1", ex=ttl, nx=True)

    def is_revoked(self, token: str) -> bool:
        return bool(self.client.exists(self._key(token)))

    def purge_expired(self) -> int:
        # Redis evicts expired keys itself
        return 0
