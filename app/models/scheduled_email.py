"""Pydantic models for the ``scheduled_emails`` table.

Rows are bookkeeping for the Brevo automation: they record what will be sent
and when, one row per (candidate_id, email_number).
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from app.models.enums import EmailStatus


class ScheduledEmailDraft(BaseModel):
    """One planned email, before it is bound to a candidate."""
    model_config = ConfigDict(frozen=True)

    email_number: int
    template_id: int
    subject: str
    scheduled_for: datetime


class ScheduledEmailCreate(ScheduledEmailDraft):
    """Row inserted when a candidate is approved."""
    candidate_id: UUID


class ScheduledEmail(BaseModel):
    """Full scheduled_emails record returned from the database."""
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    candidate_id: UUID
    email_number: int
    template_id: int
    subject: str
    scheduled_for: datetime
    status: EmailStatus = EmailStatus.SCHEDULED
    sent_at: datetime | None = None
    created_at: datetime | None = None
