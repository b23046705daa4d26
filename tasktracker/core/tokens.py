"""Session token issue, validation and revocation."""
import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta

from jose import ExpiredSignatureError, JWTError

from tasktracker.core.errors import ExpiredToken, MalformedToken, RevokedToken
from tasktracker.core.security import decode_token, encode_token, read_unverified_claims
from tasktracker.core.timeutils import from_timestamp, utcnow
from tasktracker.models.user import UserRole
from tasktracker.stores.revocations import RevocationStore

logger = logging.getLogger("tasktracker.tokens")


@dataclass(frozen=True)
class TokenClaims:
    principal_id: int
    role: UserRole
    issued_at: datetime
    expires_at: datetime


class TokenVault:
    """Signs session tokens and keeps the revocation set that blocks them.

    Validation order is signature, then expiry, then revocation: the
    revocation set is only consulted for tokens this server signed.
    """

    def __init__(
        self,
        secret: str,
        ttl: timedelta,
        revocations: RevocationStore,
        algorithm: str = "HS256",
    ):
        if not secret:
            raise ValueError("JWT secret must be configured")
        self.secret = secret
        self.ttl = ttl
        self.algorithm = algorithm
        self.revocations = revocations

    def issue(self, principal_id: int, role: UserRole) -> str:
        claims = {
            "sub": str(principal_id),
            "role": role.value,
            "jti": uuid.uuid4().hex,
        }
        return encode_token(claims, self.secret, self.algorithm, utcnow(), self.ttl)

    def validate(self, token: str) -> TokenClaims:
        try:
            payload = decode_token(token, self.secret, self.algorithm)
        except ExpiredSignatureError:
            raise ExpiredToken()
        except JWTError:
            raise MalformedToken()

        try:
            claims = TokenClaims(
                principal_id=int(payload["sub"]),
                role=UserRole(payload["role"]),
                issued_at=from_timestamp(payload["iat"]),
                expires_at=from_timestamp(payload["exp"]),
            )
        except (KeyError, TypeError, ValueError):
            raise MalformedToken()

        if self.revocations.is_revoked(token):
            raise RevokedToken()
        return claims

    def revoke(self, token: str) -> None:
        """Add ``token`` to the revocation set until it expires.

        The signature is not re-checked; revoking twice is a no-op.
        """
        claims = read_unverified_claims(token)
        if not claims or "exp" not in claims:
            logger.info("Ignoring revocation of a token without an expiry")
            return
        try:
            expires_at = from_timestamp(claims["exp"])
        except (TypeError, ValueError):
            logger.info("Ignoring revocation of a token with an unreadable expiry")
            return
        self.revocations.add(token, expires_at)
        logger.info("Revoked token expiring at %s", expires_at.isoformat())

    def purge_expired(self) -> int:
        return self.revocations.purge_expired()
