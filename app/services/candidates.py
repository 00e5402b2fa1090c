"""Candidate store: Supabase access for ``candidates`` and ``scheduled_emails``.

All review-state writes go through ``transition_status``, a conditional
update that only matches rows still in PENDING, so two reviewers racing on
the same candidate cannot both move it.  Scheduled emails are inserted with
``ON CONFLICT (candidate_id, email_number) DO NOTHING``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from datetime import date, datetime
from typing import Any
from uuid import UUID

from app.db.supabase import (
    CANDIDATES_TABLE,
    SCHEDULED_EMAILS_TABLE,
    get_supabase,
)
from app.models.candidate import Candidate, CandidateCreate, CandidateWithEmails
from app.models.enums import CandidateStatus
from app.models.scheduled_email import (
    ScheduledEmail,
    ScheduledEmailCreate,
    ScheduledEmailDraft,
)

logger = logging.getLogger(__name__)


def _is_uuid(value: str) -> bool:
    try:
        UUID(str(value))
    except ValueError:
        return False
    return True


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------

def get_candidate(candidate_id: str) -> Candidate | None:
    """Return the candidate with *candidate_id*, or None (also for non-UUID ids)."""
    if not _is_uuid(candidate_id):
        return None
    client = get_supabase()
    result = (
        client.table(CANDIDATES_TABLE)
        .select("*")
        .eq("id", str(candidate_id))
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return Candidate(**result.data[0])


def get_candidate_by_email(email: str) -> Candidate | None:
    client = get_supabase()
    result = (
        client.table(CANDIDATES_TABLE)
        .select("*")
        .eq("email", email)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return Candidate(**result.data[0])


def list_scheduled_emails(candidate_id: str) -> list[ScheduledEmail]:
    """Return the candidate's scheduled emails ordered by ``email_number``."""
    client = get_supabase()
    result = (
        client.table(SCHEDULED_EMAILS_TABLE)
        .select("*")
        .eq("candidate_id", str(candidate_id))
        .order("email_number")
        .execute()
    )
    return [ScheduledEmail(**row) for row in result.data or []]


def _birth_date_bounds(
    min_age: int | None, max_age: int | None, today: date
) -> tuple[str | None, str | None]:
    """Translate an age range into ISO birth-date bounds (earliest, latest)."""
    earliest: str | None = None
    latest: str | None = None
    if max_age is not None:
        earliest = _years_before(today, max_age + 1).isoformat()
    if min_age is not None:
        latest = _years_before(today, min_age).isoformat()
    return earliest, latest


def _years_before(today: date, years: int) -> date:
    try:
        return today.replace(year=today.year - years)
    except ValueError:
        # Feb 29 -> Feb 28
        return today.replace(year=today.year - years, day=28)


def list_candidates(
    status: CandidateStatus | None = None,
    city: str | None = None,
    min_age: int | None = None,
    max_age: int | None = None,
    search: str | None = None,
    page: int = 1,
    limit: int = 50,
    today: date | None = None,
) -> tuple[list[CandidateWithEmails], int]:
    """Return one page of candidates (newest submission first) and the total.

    Each candidate embeds its scheduled emails.
    """
    client = get_supabase()
    query = client.table(CANDIDATES_TABLE).select(
        f"*, {SCHEDULED_EMAILS_TABLE}(*)", count="exact"
    )

    if status is not None:
        query = query.eq("status", status.value)
    if city:
        query = query.ilike("city", f"%{city}%")

    earliest, latest = _birth_date_bounds(min_age, max_age, today or date.today())
    if earliest:
        query = query.gte("birth_date", earliest)
    if latest:
        query = query.lte("birth_date", latest)

    if search:
        pattern = f"%{search}%"
        query = query.or_(
            ",".join(
                f"{column}.ilike.{pattern}"
                for column in ("first_name", "last_name", "email", "phone")
            )
        )

    offset = (page - 1) * limit
    result = (
        query.order("submitted_at", desc=True)
        .range(offset, offset + limit - 1)
        .execute()
    )

    candidates: list[CandidateWithEmails] = []
    for row in result.data or []:
        emails = sorted(
            (ScheduledEmail(**e) for e in row.pop(SCHEDULED_EMAILS_TABLE, None) or []),
            key=lambda e: e.email_number,
        )
        candidates.append(CandidateWithEmails(**row, scheduled_emails=emails))

    total = result.count if result.count is not None else len(candidates)
    return candidates, total


def list_cities() -> list[str]:
    """Distinct non-empty cities, sorted, for the dashboard filter."""
    client = get_supabase()
    result = (
        client.table(CANDIDATES_TABLE)
        .select("city")
        .not_.is_("city", "null")
        .execute()
    )
    return sorted({row["city"] for row in result.data or [] if row.get("city")})


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------

def create_candidate(data: CandidateCreate) -> Candidate:
    """Insert a new PENDING candidate.

    A duplicate email surfaces as the driver's unique-violation error; intake
    checks for an existing email first.
    """
    client = get_supabase()
    result = (
        client.table(CANDIDATES_TABLE)
        .insert(data.model_dump(mode="json"))
        .execute()
    )
    return Candidate(**result.data[0])


def update_candidate(candidate_id: str, fields: dict[str, Any]) -> Candidate | None:
    """Write *fields* unconditionally; returns the updated row or None."""
    client = get_supabase()
    result = (
        client.table(CANDIDATES_TABLE)
        .update(fields)
        .eq("id", str(candidate_id))
        .execute()
    )
    if not result.data:
        return None
    return Candidate(**result.data[0])


def transition_status(
    candidate_id: str,
    status: CandidateStatus,
    reviewed_at: datetime,
    reviewed_by: str,
    extra_fields: dict[str, Any] | None = None,
) -> Candidate | None:
    """Move a PENDING candidate to *status* in one conditional update.

    *extra_fields* are written in the same statement.  Returns the updated
    row, or None when the candidate is missing or no longer PENDING.
    """
    fields: dict[str, Any] = dict(extra_fields or {})
    fields.update(
        {
            "status": status.value,
            "reviewed_at": reviewed_at.isoformat(),
            "reviewed_by": reviewed_by,
        }
    )
    client = get_supabase()
    result = (
        client.table(CANDIDATES_TABLE)
        .update(fields)
        .eq("id", str(candidate_id))
        .eq("status", CandidateStatus.PENDING.value)
        .execute()
    )
    if not result.data:
        logger.info(
            "candidate_transition_skipped",
            extra={"candidate_id": str(candidate_id), "requested_status": status.value},
        )
        return None
    return Candidate(**result.data[0])


def record_enrollment(
    candidate_id: str, contact_id: str | None, sequence_started_at: datetime
) -> Candidate | None:
    """Store the Brevo contact id and the sequence start instant.

    Only writes while no start is recorded; returns None when another
    request enrolled the candidate first.
    """
    client = get_supabase()
    result = (
        client.table(CANDIDATES_TABLE)
        .update(
            {
                "brevo_contact_id": contact_id,
                "email_sequence_started_at": sequence_started_at.isoformat(),
            }
        )
        .eq("id", str(candidate_id))
        .is_("email_sequence_started_at", "null")
        .execute()
    )
    if not result.data:
        return None
    return Candidate(**result.data[0])


def bind_telegram_message(
    candidate_id: str, message_id: str, chat_id: str
) -> Candidate | None:
    """Remember which chat message to edit once the candidate is reviewed."""
    return update_candidate(
        candidate_id,
        {"telegram_message_id": message_id, "telegram_chat_id": chat_id},
    )


def insert_scheduled_emails(
    candidate_id: str, drafts: Sequence[ScheduledEmailDraft]
) -> int:
    """Insert *drafts* for the candidate, skipping existing email numbers.

    Returns the number of rows actually inserted.
    """
    if not drafts:
        return 0
    rows = [
        ScheduledEmailCreate(candidate_id=UUID(str(candidate_id)), **draft.model_dump()).model_dump(mode="json")
        for draft in drafts
    ]
    client = get_supabase()
    result = (
        client.table(SCHEDULED_EMAILS_TABLE)
        .upsert(
            rows,
            on_conflict="candidate_id,email_number",
            ignore_duplicates=True,
        )
        .execute()
    )
    return len(result.data or [])
