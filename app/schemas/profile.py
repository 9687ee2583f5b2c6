"""Profile screen schemas."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field


class ProfileStats(BaseModel):
    documents_analyzed: int = 0
    biases_detected: int = 0
    last_analysis_at: datetime | None = None


class ProfileResponse(BaseModel):
    id: UUID
    email: str
    full_name: str
    role: str
    photo_url: str | None = None
    created_at: datetime
    stats: ProfileStats


class ProfileUpdate(BaseModel):
    full_name: str | None = Field(default=None, min_length=1, max_length=255)
    role: str | None = Field(default=None, max_length=100)


class PhotoResponse(BaseModel):
    photo_url: str
