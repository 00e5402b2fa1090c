"""Approval email sequence planner.

Turns the fixed ``EMAIL_SEQUENCE`` definition and the instant the sequence
started into concrete fire times.  Pure: no clock, no I/O.  Offsets are plain
wall-clock hours.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime, timedelta
from typing import Any

from app.core.constants import EMAIL_SEQUENCE
from app.models.scheduled_email import ScheduledEmailDraft


def plan_email_sequence(
    sequence_started_at: datetime,
    definition: Iterable[Mapping[str, Any]] = EMAIL_SEQUENCE,
) -> list[ScheduledEmailDraft]:
    """Return one draft per definition entry, in definition order.

    ``scheduled_for = sequence_started_at + delay_hours``.  Raises
    ``ValueError`` for a naive *sequence_started_at* or a negative delay.
    """
    if sequence_started_at.tzinfo is None:
        raise ValueError("sequence_started_at must be timezone-aware")

    drafts: list[ScheduledEmailDraft] = []
    for entry in definition:
        delay_hours = entry["delay_hours"]
        if delay_hours < 0:
            raise ValueError(
                f"Negative delay for email {entry['email_number']}: {delay_hours}"
            )
        drafts.append(
            ScheduledEmailDraft(
                email_number=int(entry["email_number"]),
                template_id=int(entry["template_id"]),
                subject=str(entry["subject"]),
                scheduled_for=sequence_started_at + timedelta(hours=delay_hours),
            )
        )
    return drafts
