"""Review request and outcome models.

``ReviewRequest`` is the body of ``PATCH /api/candidates/{id}``.  Every field
is optional; only fields present in the body are applied, so an explicit
``"salesStage": null`` clears the stage while an absent key leaves it alone.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

from app.models.candidate import Candidate
from app.models.enums import CandidateStatus, SalesStage
from app.models.integrations import DeliveryResult, SyncResult
from app.models.scheduled_email import ScheduledEmail


class ReviewRequest(BaseModel):
    """Partial update of a candidate's review and sales fields."""
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: CandidateStatus | None = None
    sales_stage: SalesStage | None = Field(default=None, alias="salesStage")
    sales_notes: str | None = Field(default=None, alias="salesNotes")
    tags: list[str] | None = None
    reviewed_by: str | None = Field(default=None, alias="reviewedBy")

    @field_validator("status")
    @classmethod
    def _terminal_only(cls, value: CandidateStatus | None) -> CandidateStatus | None:
        if value is not None and not value.is_terminal:
            raise ValueError("status must be APPROVED or REJECTED")
        return value

    @field_validator("tags")
    @classmethod
    def _dedupe_tags(cls, value: list[str] | None) -> list[str] | None:
        if value is None:
            return None
        seen: list[str] = []
        for tag in value:
            tag = tag.strip()
            if tag and tag not in seen:
                seen.append(tag)
        return seen

    def field_updates(self) -> dict[str, Any]:
        """Columns to write besides the review fields, keyed by column name."""
        updates: dict[str, Any] = {}
        if "sales_stage" in self.model_fields_set:
            updates["sales_stage"] = self.sales_stage.value if self.sales_stage else None
        if "sales_notes" in self.model_fields_set:
            updates["sales_notes"] = self.sales_notes
        if "tags" in self.model_fields_set:
            updates["tags"] = self.tags or []
        return updates


class ReviewOutcome(BaseModel):
    """Result of one run of the approval workflow.

    ``transitioned`` is True only for the request that moved the candidate
    out of PENDING.  ``contact_sync`` / ``notification`` are None when the
    step did not run.
    """
    candidate: Candidate
    scheduled_emails: list[ScheduledEmail] = Field(default_factory=list)
    transitioned: bool = False
    contact_sync: SyncResult | None = None
    notification: DeliveryResult | None = None
