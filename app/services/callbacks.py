"""Telegram inline-button callback handling.

Telegram re-delivers an update until it gets a 2xx, so a button press may
arrive more than once.  Only the first delivery for a PENDING candidate
moves it; later ones hit the "already reviewed" reply.  ``handle_update``
never raises.
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import ValidationError

from app.core.constants import (
    DEFAULT_REVIEWER,
    DEFAULT_TELEGRAM_REVIEWER,
    STATUS_VERDICTS,
    TELEGRAM_ALREADY_REVIEWED_TEXT,
    TELEGRAM_CALLBACK_ANSWERS,
    TELEGRAM_NOT_FOUND_TEXT,
)
from app.models.enums import BannerStyle, CallbackAction, CandidateStatus
from app.models.telegram import CallbackQuery, TelegramUpdate
from app.services import candidates as store
from app.services.brevo import BrevoClient
from app.services.review import apply_decision
from app.services.telegram import (
    TelegramClient,
    format_status_banner,
    get_telegram_client,
)

logger = logging.getLogger(__name__)


def parse_callback_data(data: str | None) -> tuple[CallbackAction, str] | None:
    """Split ``"approve:<id>"`` into its action and candidate id.

    Returns None when either part is missing or the verb is unknown.
    """
    if not data:
        return None
    action_raw, _, candidate_id = data.partition(":")
    candidate_id = candidate_id.strip()
    if not candidate_id:
        return None
    try:
        action = CallbackAction(action_raw.strip())
    except ValueError:
        return None
    return action, candidate_id


def reviewer_name(query: CallbackQuery, default: str = DEFAULT_TELEGRAM_REVIEWER) -> str:
    """Telegram username, else first name, else *default*."""
    return query.from_user.username or query.from_user.first_name or default


async def handle_callback_query(
    query: CallbackQuery,
    telegram: TelegramClient | None = None,
    brevo: BrevoClient | None = None,
) -> None:
    """Resolve one approve/reject button press."""
    parsed = parse_callback_data(query.data)
    if parsed is None or query.message is None:
        logger.info("telegram_callback_ignored", extra={"callback_data": query.data})
        return

    action, candidate_id = parsed
    telegram = telegram or get_telegram_client()
    chat_id = str(query.message.chat.id)
    message_id = str(query.message.message_id)

    candidate = store.get_candidate(candidate_id)
    if candidate is None:
        await telegram.send_message(TELEGRAM_NOT_FOUND_TEXT, chat_id=chat_id)
        await telegram.answer_callback_query(query.id)
        return

    if candidate.status.is_terminal:
        await _reply_already_reviewed(telegram, query, chat_id, candidate.status)
        return

    status = action.target_status
    reviewer = reviewer_name(query)
    outcome = await apply_decision(candidate, status, reviewer, brevo=brevo)

    if not outcome.transitioned:
        # Lost the race against another reviewer between read and write
        await _reply_already_reviewed(telegram, query, chat_id, outcome.candidate.status)
        return

    logger.info(
        "telegram_callback_applied",
        extra={"candidate_id": candidate_id, "status": status.value, "reviewed_by": reviewer},
    )

    edit = await telegram.edit_message(
        message_id=message_id,
        text=format_status_banner(
            outcome.candidate,
            status,
            BannerStyle.full,
            reviewer_name(query, default=DEFAULT_REVIEWER),
        ),
        chat_id=chat_id,
    )
    if not edit.ok:
        logger.error(
            "telegram_banner_update_failed",
            extra={"candidate_id": candidate_id, "error_message": edit.error},
        )

    await telegram.answer_callback_query(query.id, TELEGRAM_CALLBACK_ANSWERS[status])


async def _reply_already_reviewed(
    telegram: TelegramClient, query: CallbackQuery, chat_id: str, status: CandidateStatus
) -> None:
    await telegram.send_message(
        TELEGRAM_ALREADY_REVIEWED_TEXT.format(verdict=STATUS_VERDICTS[status]),
        chat_id=chat_id,
    )
    await telegram.answer_callback_query(query.id)


async def handle_update(
    payload: dict[str, Any],
    telegram: TelegramClient | None = None,
    brevo: BrevoClient | None = None,
) -> None:
    """Process a raw webhook update. Errors are logged, never raised."""
    try:
        update = TelegramUpdate.model_validate(payload)
    except ValidationError as exc:
        logger.warning("telegram_update_unparseable", extra={"error_message": str(exc)})
        return

    if update.callback_query is None:
        return

    try:
        await handle_callback_query(update.callback_query, telegram, brevo)
    except Exception as exc:
        logger.error(
            "telegram_webhook_error",
            extra={
                "update_id": update.update_id,
                "callback_data": update.callback_query.data,
                "error_type": type(exc).__name__,
                "error_message": str(exc),
            },
            exc_info=True,
        )
