"""Pydantic models for the ``tags`` table."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class TagCreate(BaseModel):
    """``POST /api/tags`` body. Validation of the name happens in the service."""
    name: str | None = None


class Tag(BaseModel):
    """Full tag record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    created_at: datetime | None = None


class TagListResponse(BaseModel):
    tags: list[Tag]


class TagResponse(BaseModel):
    tag: Tag
