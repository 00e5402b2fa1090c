"""Enum types mirroring the PostgreSQL enums in ``sql/schema.sql``."""

from enum import Enum


class CandidateStatus(str, Enum):
    """Review state of a candidate. APPROVED and REJECTED are terminal."""
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REJECTED = "REJECTED"

    @property
    def is_terminal(self) -> bool:
        return self is not CandidateStatus.PENDING


class EmailStatus(str, Enum):
    """Delivery bookkeeping for a scheduled email (sent by Brevo, not us)."""
    SCHEDULED = "SCHEDULED"
    SENT = "SENT"
    FAILED = "FAILED"


class SalesStage(str, Enum):
    """Sales funnel position, independent of review status."""
    contacted = "contacted"
    presentation_scheduled = "presentation_scheduled"
    presentation_done = "presentation_done"
    contract_sent = "contract_sent"
    signed = "signed"


class CallbackAction(str, Enum):
    """Verb carried in Telegram inline-button callback data."""
    approve = "approve"
    reject = "reject"

    @property
    def target_status(self) -> CandidateStatus:
        if self is CallbackAction.approve:
            return CandidateStatus.APPROVED
        return CandidateStatus.REJECTED


class BannerStyle(str, Enum):
    """Layout of the status banner written over the review message."""
    terse = "terse"  # dashboard path: verdict + name + email
    full = "full"    # chat path: verdict by reviewer + contact lines
