from datetime import datetime, timedelta
from typing import Any, Dict, Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError
from jose import JWTError, jwt

# Argon2 for password hashing, no 72-byte limit like bcrypt
ph = PasswordHasher(
    time_cost=2,        # Number of iterations
    memory_cost=65536,  # Memory usage in KiB (64 MB)
    parallelism=4,      # Number of parallel threads
    hash_len=32,        # Length of hash in bytes
    salt_len=16         # Length of salt in bytes
)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a plain password against a hashed password"""
    try:
        return ph.verify(hashed_password, plain_password)
    except (VerificationError, InvalidHashError):
        return False


def password_needs_rehash(hashed_password: str) -> bool:
    return ph.check_needs_rehash(hashed_password)


def get_password_hash(password: str) -> str:
    """Hash a password for storing"""
    return ph.hash(password)


def encode_token(
    claims: Dict[str, Any],
    secret: str,
    algorithm: str,
    issued_at: datetime,
    expires_delta: timedelta,
) -> str:
    """Sign a JWT carrying ``claims`` plus ``iat``/``exp``."""
    to_encode = claims.copy()
    to_encode.update({"iat": issued_at, "exp": issued_at + expires_delta})
    return jwt.encode(to_encode, secret, algorithm=algorithm)


def decode_token(token: str, secret: str, algorithm: str) -> Dict[str, Any]:
    """Verify signature and expiry; raises jose errors on failure."""
    return jwt.decode(token, secret, algorithms=[algorithm])


def read_unverified_claims(token: str) -> Optional[Dict[str, Any]]:
    try:
        return jwt.get_unverified_claims(token)
    except JWTError:
        return None
