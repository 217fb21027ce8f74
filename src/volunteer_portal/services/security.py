"""Password hashing, access tokens and password-reset tokens."""

from __future__ import annotations

import hashlib
import secrets
from datetime import UTC, datetime, timedelta

import bcrypt
from jose import JWTError, jwt

from volunteer_portal.config import settings


def hash_password(password: str) -> str:
    # bcrypt only considers the first 72 bytes
    pwd_bytes = password.encode("utf-8")[:72]
    return bcrypt.hashpw(pwd_bytes, bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(password.encode("utf-8")[:72], password_hash.encode("utf-8"))


def create_access_token(volunteer_id: int) -> str:
    now = datetime.now(UTC)
    payload = {
        "sub": str(volunteer_id),
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(minutes=settings.jwt_expire_minutes)).timestamp()),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> int | None:
    """Return the volunteer id carried by *token*, or ``None`` if it is invalid."""
    try:
        payload = jwt.decode(
            token, settings.jwt_secret, algorithms=[settings.jwt_algorithm]
        )
    except JWTError:
        return None
    sub = payload.get("sub")
    if not sub or not str(sub).isdigit():
        return None
    return int(sub)


def hash_reset_token(token: str) -> str:
    return hashlib.sha256(token.encode("utf-8")).hexdigest()


def generate_reset_token() -> tuple[str, str, datetime]:
    """Create a password-reset token.

    Returns ``(token, token_hash, expires_at)``; only the hash is persisted,
    the raw token goes into the emailed link.
    """
    token = secrets.token_hex(20)
    expires_at = datetime.now(UTC) + timedelta(
        minutes=settings.reset_password_expire_minutes
    )
    return token, hash_reset_token(token), expires_at
