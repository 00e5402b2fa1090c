"""Approval workflow.

``review_candidate`` is the single entry point for the dashboard path; the
Telegram callback handler shares ``apply_decision``.  Flow for a decision:

1. Conditional PENDING -> APPROVED/REJECTED update, together with any other
   requested field changes (one statement).
2. On approval: Brevo contact sync, then ``email_sequence_started_at`` and
   the planned scheduled-email rows (duplicates skipped).
3. Dashboard path only: edit the bound Telegram message into a banner.

Steps 2 and 3 are best-effort.  Their outcome is recorded on the returned
``ReviewOutcome`` and logged; a failure never undoes step 1.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from app.core.constants import DEFAULT_REVIEWER
from app.core.exceptions import CandidateNotFoundError, InvalidReviewError
from app.models.candidate import Candidate
from app.models.enums import BannerStyle, CandidateStatus
from app.models.integrations import DeliveryResult, SyncResult
from app.models.review import ReviewOutcome, ReviewRequest
from app.services import candidates as store
from app.services.brevo import BrevoClient, get_brevo_client
from app.services.sequence import plan_email_sequence
from app.services.telegram import (
    TelegramClient,
    format_status_banner,
    get_telegram_client,
)

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ---------------------------------------------------------------------------
# Enrollment (Brevo + scheduled emails)
# ---------------------------------------------------------------------------

def materialize_sequence(candidate_id: str, sequence_started_at: datetime) -> int:
    """Insert the planned emails for *candidate_id*; returns rows inserted.

    Storage errors are logged and reported as 0 rows.
    """
    drafts = plan_email_sequence(sequence_started_at)
    try:
        inserted = store.insert_scheduled_emails(candidate_id, drafts)
    except Exception as exc:
        logger.error(
            "scheduled_emails_insert_failed",
            extra={"candidate_id": str(candidate_id), "error_message": str(exc)},
        )
        return 0

    logger.info(
        "scheduled_emails_materialized",
        extra={
            "candidate_id": str(candidate_id),
            "planned": len(drafts),
            "inserted": inserted,
        },
    )
    return inserted


async def enroll_candidate(
    candidate: Candidate,
    sequence_started_at: datetime,
    brevo: BrevoClient | None = None,
) -> tuple[Candidate, SyncResult]:
    """Sync *candidate* to Brevo and, on success, start its email sequence.

    Returns the (possibly updated) candidate and the sync outcome.  On sync
    failure nothing is written: the candidate stays un-enrolled so a later
    approval can retry.
    """
    brevo = brevo or get_brevo_client()
    sync = await brevo.sync_candidate(candidate)
    if not sync.ok:
        logger.error(
            "brevo_sync_failed",
            extra={"candidate_id": str(candidate.id), "error_message": sync.error},
        )
        return candidate, sync

    try:
        updated = store.record_enrollment(
            str(candidate.id), sync.contact_id, sequence_started_at
        )
    except Exception as exc:
        logger.error(
            "enrollment_record_failed",
            extra={"candidate_id": str(candidate.id), "error_message": str(exc)},
        )
        return candidate, sync

    if updated is None:
        # A concurrent approval recorded its start first; build from that one
        current = store.get_candidate(str(candidate.id))
        if current is None or current.email_sequence_started_at is None:
            return candidate, sync
        logger.info(
            "enrollment_already_recorded",
            extra={"candidate_id": str(candidate.id)},
        )
        materialize_sequence(str(candidate.id), current.email_sequence_started_at)
        return current, sync

    materialize_sequence(str(candidate.id), sequence_started_at)
    return updated, sync


async def ensure_enrollment(
    candidate: Candidate,
    now: datetime,
    brevo: BrevoClient | None = None,
) -> tuple[Candidate, SyncResult | None]:
    """Re-approval of an APPROVED candidate: finish enrollment if needed.

    An enrolled candidate (sequence start recorded) only gets missing email
    rows re-inserted from the stored start; Brevo is not called again.
    """
    if candidate.email_sequence_started_at is None:
        return await enroll_candidate(candidate, now, brevo)
    materialize_sequence(str(candidate.id), candidate.email_sequence_started_at)
    return candidate, None


# ---------------------------------------------------------------------------
# Decision
# ---------------------------------------------------------------------------

async def apply_decision(
    candidate: Candidate,
    status: CandidateStatus,
    reviewer: str,
    extra_fields: dict | None = None,
    now: datetime | None = None,
    brevo: BrevoClient | None = None,
) -> ReviewOutcome:
    """Transition *candidate* to *status* and run enrollment on approval.

    If the candidate already left PENDING, review fields are not touched;
    *extra_fields* are still written, and an APPROVED -> APPROVED request
    completes any unfinished enrollment.
    """
    if not status.is_terminal:
        raise InvalidReviewError(f"Invalid status: {status.value}")

    now = now or _utcnow()
    candidate_id = str(candidate.id)

    transitioned = store.transition_status(
        candidate_id, status, now, reviewer, extra_fields
    )

    if transitioned is None:
        current = store.get_candidate(candidate_id)
        if current is None:
            raise CandidateNotFoundError(candidate_id)
        if extra_fields:
            current = store.update_candidate(candidate_id, extra_fields) or current

        sync: SyncResult | None = None
        if current.status is CandidateStatus.APPROVED and status is CandidateStatus.APPROVED:
            current, sync = await ensure_enrollment(current, now, brevo)

        return ReviewOutcome(candidate=current, transitioned=False, contact_sync=sync)

    logger.info(
        "candidate_reviewed",
        extra={
            "candidate_id": candidate_id,
            "status": status.value,
            "reviewed_by": reviewer,
        },
    )

    sync = None
    if status is CandidateStatus.APPROVED:
        # Sequence start shares the review timestamp
        transitioned, sync = await enroll_candidate(transitioned, now, brevo)

    return ReviewOutcome(candidate=transitioned, transitioned=True, contact_sync=sync)


async def notify_bound_message(
    candidate: Candidate,
    status: CandidateStatus,
    style: BannerStyle = BannerStyle.terse,
    reviewer: str | None = None,
    telegram: TelegramClient | None = None,
) -> DeliveryResult | None:
    """Edit the candidate's intake message into a status banner.

    Returns None when no message is bound to the candidate.
    """
    if not candidate.has_bound_message:
        return None
    telegram = telegram or get_telegram_client()
    result = await telegram.edit_message(
        message_id=str(candidate.telegram_message_id),
        text=format_status_banner(candidate, status, style, reviewer),
        chat_id=str(candidate.telegram_chat_id),
    )
    if not result.ok:
        logger.error(
            "telegram_banner_update_failed",
            extra={"candidate_id": str(candidate.id), "error_message": result.error},
        )
    return result


# ---------------------------------------------------------------------------
# Dashboard entry point
# ---------------------------------------------------------------------------

async def review_candidate(
    candidate_id: str,
    changes: ReviewRequest,
    reviewer: str | None = None,
    banner_style: BannerStyle = BannerStyle.terse,
    brevo: BrevoClient | None = None,
    telegram: TelegramClient | None = None,
) -> ReviewOutcome:
    """Apply a review request to a candidate.

    Raises ``CandidateNotFoundError`` for an unknown id.  Without a status
    only the sales fields are written and no external call is made.
    """
    candidate = store.get_candidate(candidate_id)
    if candidate is None:
        raise CandidateNotFoundError(candidate_id)

    field_updates = changes.field_updates()

    if changes.status is None:
        if field_updates:
            candidate = store.update_candidate(candidate_id, field_updates) or candidate
        outcome = ReviewOutcome(candidate=candidate)
    else:
        reviewer = reviewer or changes.reviewed_by or DEFAULT_REVIEWER
        outcome = await apply_decision(
            candidate, changes.status, reviewer, field_updates, brevo=brevo
        )
        if outcome.transitioned:
            outcome.notification = await notify_bound_message(
                outcome.candidate, changes.status, banner_style, reviewer, telegram
            )

    outcome.scheduled_emails = store.list_scheduled_emails(candidate_id)
    return outcome
