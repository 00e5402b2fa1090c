"""Pydantic models for the ``candidates`` table and its HTTP payloads.

``CandidateIntake`` accepts the camelCase JSON posted by the form
automation; ``Candidate`` is the snake_case database row.
"""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.enums import CandidateStatus, SalesStage
from app.models.scheduled_email import ScheduledEmail


class CandidateIntake(BaseModel):
    """Form submission payload (``POST /api/candidates``)."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    email: str
    first_name: str = Field(default="", alias="firstName")
    last_name: str = Field(default="", alias="lastName")
    phone: str | None = None
    birth_date: str | None = Field(default=None, alias="birthDate")
    height: str | int | None = None
    instagram: str | None = None
    tiktok: str | None = None
    city: str | None = None
    category: str | None = None
    photo_urls: list[str] = Field(default_factory=list, alias="photoUrls")
    submitted_at: str | None = Field(default=None, alias="submittedAt")
    time: str | None = None

    @field_validator("first_name", "last_name", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return value or ""

    @field_validator("photo_urls", mode="before")
    @classmethod
    def _none_to_list(cls, value: Any) -> Any:
        return value or []


class CandidateCreate(BaseModel):
    """Row inserted for a new submission. Status defaults to PENDING in SQL."""
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None
    birth_date: str | None = None
    height_cm: int | None = None
    instagram: str | None = None
    tiktok: str | None = None
    city: str | None = None
    category: str | None = None
    photo_urls: list[str] = Field(default_factory=list)
    submitted_at: datetime


class Candidate(BaseModel):
    """Full candidate record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    email: str
    first_name: str = ""
    last_name: str = ""
    phone: str | None = None
    birth_date: str | None = None
    height_cm: int | None = None
    instagram: str | None = None
    tiktok: str | None = None
    city: str | None = None
    category: str | None = None
    photo_urls: list[str] = Field(default_factory=list)
    submitted_at: datetime | None = None

    status: CandidateStatus = CandidateStatus.PENDING
    reviewed_at: datetime | None = None
    reviewed_by: str | None = None

    brevo_contact_id: str | None = None
    email_sequence_started_at: datetime | None = None

    telegram_message_id: str | None = None
    telegram_chat_id: str | None = None

    sales_stage: SalesStage | None = None
    sales_notes: str | None = None
    tags: list[str] = Field(default_factory=list)

    created_at: datetime | None = None
    updated_at: datetime | None = None

    @field_validator("photo_urls", "tags", mode="before")
    @classmethod
    def _null_array(cls, value: Any) -> Any:
        return value or []

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"

    @property
    def has_bound_message(self) -> bool:
        return bool(self.telegram_message_id and self.telegram_chat_id)


class CandidateWithEmails(Candidate):
    """Candidate aggregate as returned by the API."""
    scheduled_emails: list[ScheduledEmail] = Field(default_factory=list)


class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_pages: int


class CandidateFilters(BaseModel):
    cities: list[str] = Field(default_factory=list)


class CandidateListResponse(BaseModel):
    """``GET /api/candidates`` response."""
    candidates: list[CandidateWithEmails]
    pagination: Pagination
    filters: CandidateFilters
