"""Candidate intake from the form automation.

Submissions are idempotent by email: a second submission returns the
existing candidate id instead of creating a row.  Unless ``silent`` is set,
a reviewable Telegram message is sent and its coordinates are stored on the
candidate so the review can later edit it in place.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from postgrest.exceptions import APIError
from pydantic import BaseModel

from app.models.candidate import Candidate, CandidateCreate, CandidateIntake
from app.models.integrations import DeliveryResult
from app.services import candidates as store
from app.services.telegram import (
    TelegramClient,
    format_candidate_message,
    get_telegram_client,
    inline_keyboard,
)

logger = logging.getLogger(__name__)

_UNIQUE_VIOLATION = "23505"

# Spreadsheet exports use either ISO or a day-first European layout
_SUBMITTED_AT_FORMATS: tuple[str, ...] = (
    "%d.%m.%Y %H:%M:%S",
    "%d.%m.%Y %H:%M",
    "%d.%m.%Y",
    "%d/%m/%Y %H:%M:%S",
    "%d/%m/%Y",
)


class IntakeResult(BaseModel):
    """``created`` is False when the email was already on file."""
    candidate_id: str
    created: bool
    silent: bool = False
    notification: DeliveryResult | None = None


def parse_submitted_at(
    submitted_at: str | None, time: str | None = None, now: datetime | None = None
) -> datetime:
    """Combine the sheet's date and optional time; fall back to *now*.

    Naive values are taken as UTC.
    """
    now = now or datetime.now(timezone.utc)
    if not submitted_at:
        return now

    raw = f"{submitted_at} {time}".strip() if time else submitted_at.strip()
    parsed: datetime | None = None
    try:
        parsed = datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        for fmt in _SUBMITTED_AT_FORMATS:
            try:
                parsed = datetime.strptime(raw, fmt)
                break
            except ValueError:
                continue

    if parsed is None:
        logger.warning("submitted_at_unparseable", extra={"submitted_at": raw})
        return now
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_height(height: str | int | None) -> int | None:
    if height is None or height == "":
        return None
    try:
        return int(str(height).strip().split()[0])
    except (ValueError, IndexError):
        return None


def build_candidate(payload: CandidateIntake, now: datetime | None = None) -> CandidateCreate:
    """Map the camelCase form payload to a ``candidates`` row."""
    return CandidateCreate(
        email=payload.email.strip(),
        first_name=payload.first_name,
        last_name=payload.last_name,
        phone=payload.phone or None,
        birth_date=payload.birth_date or None,
        height_cm=_parse_height(payload.height),
        instagram=payload.instagram or None,
        tiktok=payload.tiktok or None,
        city=payload.city or None,
        category=payload.category or None,
        photo_urls=payload.photo_urls,
        submitted_at=parse_submitted_at(payload.submitted_at, payload.time, now),
    )


async def notify_reviewers(
    candidate: Candidate, telegram: TelegramClient | None = None
) -> DeliveryResult:
    """Send the approve/reject message to the admin chat and bind it."""
    telegram = telegram or get_telegram_client()
    result = await telegram.send_message(
        format_candidate_message(candidate),
        reply_markup=inline_keyboard(str(candidate.id)),
    )
    if result.ok and result.message_id and result.chat_id:
        store.bind_telegram_message(str(candidate.id), result.message_id, result.chat_id)
    else:
        logger.error(
            "intake_notification_failed",
            extra={"candidate_id": str(candidate.id), "error_message": result.error},
        )
    return result


async def submit_candidate(
    payload: CandidateIntake,
    silent: bool = False,
    telegram: TelegramClient | None = None,
) -> IntakeResult:
    """Create a PENDING candidate, or report the existing one for this email."""
    data = build_candidate(payload)

    existing = store.get_candidate_by_email(data.email)
    if existing is not None:
        logger.info(
            "intake_duplicate",
            extra={"candidate_id": str(existing.id), "email": data.email},
        )
        return IntakeResult(candidate_id=str(existing.id), created=False, silent=silent)

    try:
        candidate = store.create_candidate(data)
    except APIError as exc:
        if exc.code != _UNIQUE_VIOLATION:
            raise
        # Concurrent submission of the same email won the insert
        existing = store.get_candidate_by_email(data.email)
        if existing is None:
            raise
        return IntakeResult(candidate_id=str(existing.id), created=False, silent=silent)

    logger.info(
        "intake_created",
        extra={"candidate_id": str(candidate.id), "silent": silent},
    )

    notification: DeliveryResult | None = None
    if not silent:
        notification = await notify_reviewers(candidate, telegram)

    return IntakeResult(
        candidate_id=str(candidate.id),
        created=True,
        silent=silent,
        notification=notification,
    )
