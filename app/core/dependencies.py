from fastapi import Depends, Header
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.analysis.types import UserIdentity
from app.core.exceptions import UnauthorizedError
from app.core.security import ACCESS_TOKEN, InvalidTokenError, decode_token
from app.db.postgres import get_db
from app.models.user import User


async def _user_from_authorization(db: AsyncSession, authorization: str) -> User:
    if not authorization.startswith("Bearer "):
        raise UnauthorizedError("Invalid authorization header")

    try:
        user_uuid = decode_token(authorization[7:], ACCESS_TOKEN)
    except InvalidTokenError as exc:
        raise UnauthorizedError(str(exc))

    result = await db.execute(select(User).where(User.id == user_uuid, User.is_active == True))  # noqa: E712
    user = result.scalar_one_or_none()
    if not user:
        raise UnauthorizedError("User not found or inactive")

    return user


async def get_current_user(
    db: AsyncSession = Depends(get_db),
    authorization: str = Header(..., description="Bearer <token>"),
) -> User:
    return await _user_from_authorization(db, authorization)


async def get_optional_user(
    db: AsyncSession = Depends(get_db),
    authorization: str | None = Header(None, description="Bearer <token>"),
) -> User | None:
    """Like get_current_user, but an absent or invalid token yields None.

    Used where the endpoint itself decides what an anonymous caller gets.
    """
    if not authorization:
        return None
    try:
        return await _user_from_authorization(db, authorization)
    except UnauthorizedError:
        return None


class RequestIdentity:
    """Identity provider bound to the user resolved for one request."""

    def __init__(self, user: User | None):
        self._user = user

    def current_user(self) -> UserIdentity | None:
        if self._user is None:
            return None
        return UserIdentity(user_id=str(self._user.id), email=self._user.email)
