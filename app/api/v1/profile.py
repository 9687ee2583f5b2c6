"""Profile API: the signed-in user's details, stats and photo."""

import logging

from fastapi import APIRouter, Depends, File, UploadFile
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import settings
from app.core.dependencies import get_current_user
from app.core.exceptions import PayloadTooLargeError, UnprocessableError, UnsupportedMediaTypeError
from app.db.postgres import get_db
from app.models.user import User
from app.schemas.profile import PhotoResponse, ProfileResponse, ProfileStats, ProfileUpdate
from app.services.stats_service import get_profile_stats
from app.storage.object_store import ObjectStore, get_object_store

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/profile", tags=["profile"])

PHOTO_TYPES = {
    "image/jpeg": "jpg",
    "image/png": "png",
}


async def _profile_response(db: AsyncSession, user: User) -> ProfileResponse:
    stats = await get_profile_stats(db, user.id)
    return ProfileResponse(
        id=user.id,
        email=user.email,
        full_name=user.full_name,
        role=user.role,
        photo_url=user.photo_url,
        created_at=user.created_at,
        stats=ProfileStats(**stats),
    )


@router.get("", response_model=ProfileResponse)
async def get_profile(user: User = Depends(get_current_user), db: AsyncSession = Depends(get_db)):
    return await _profile_response(db, user)


@router.patch("", response_model=ProfileResponse)
async def update_profile(
    body: ProfileUpdate,
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    if body.full_name is not None:
        user.full_name = body.full_name
    if body.role is not None:
        user.role = body.role
    await db.flush()
    await db.refresh(user)
    return await _profile_response(db, user)


@router.post("/photo", response_model=PhotoResponse)
async def upload_photo(
    file: UploadFile = File(...),
    user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    store: ObjectStore = Depends(get_object_store),
):
    ext = PHOTO_TYPES.get(file.content_type or "")
    if ext is None:
        raise UnsupportedMediaTypeError("Profile photo must be a JPEG or PNG image")

    data = await file.read()
    if not data:
        raise UnprocessableError("Uploaded photo is empty")
    if len(data) > settings.max_photo_bytes:
        raise PayloadTooLargeError(f"Profile photo exceeds {settings.max_photo_bytes} bytes")

    url = await store.put(f"profilePhotos/{user.id}/profile.{ext}", data)
    user.photo_url = url
    await db.flush()
    logger.info("Profile photo updated for user %s (%d bytes)", user.id, len(data))
    return PhotoResponse(photo_url=url)
