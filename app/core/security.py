from datetime import datetime, timedelta, timezone
from uuid import UUID

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import VerifyMismatchError

from app.core.config import settings

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

_ph = PasswordHasher()


class InvalidTokenError(Exception):
    """Token is malformed, expired, of the wrong type or carries no user id."""


def hash_password(password: str) -> str:
    return _ph.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return _ph.verify(password_hash, password)
    except VerifyMismatchError:
        return False


def _encode(user_id: UUID, token_type: str, lifetime: timedelta) -> str:
    now = datetime.now(timezone.utc)
    payload = {"sub": str(user_id), "type": token_type, "iat": now, "exp": now + lifetime}
    return jwt.encode(payload, settings.jwt_secret_key, algorithm=settings.jwt_algorithm)


def create_access_token(user_id: UUID) -> str:
    return _encode(user_id, ACCESS_TOKEN, timedelta(minutes=settings.jwt_access_token_expire_minutes))


def create_refresh_token(user_id: UUID) -> str:
    return _encode(user_id, REFRESH_TOKEN, timedelta(days=settings.jwt_refresh_token_expire_days))


def decode_token(token: str, expected_type: str) -> UUID:
    """Validate a token of ``expected_type`` and return the user id it names.

    Raises InvalidTokenError on a bad signature, expiry, wrong type or a
    subject that is not a UUID.
    """
    try:
        payload = jwt.decode(token, settings.jwt_secret_key, algorithms=[settings.jwt_algorithm])
    except jwt.PyJWTError as exc:
        raise InvalidTokenError("Invalid or expired token") from exc

    if payload.get("type") != expected_type:
        raise InvalidTokenError("Invalid token type")

    try:
        return UUID(str(payload.get("sub") or ""))
    except ValueError as exc:
        raise InvalidTokenError("Invalid token payload") from exc
