"""Telegram Bot API client and message formatting.

The client sends the reviewable intake message, edits it into a status
banner after review, and answers inline-button callbacks.  The admin chat id
is injected as ``default_chat_id``; callers targeting a specific chat pass
``chat_id`` explicitly.  Calls never raise on HTTP or transport errors:
they return a ``DeliveryResult``.

Message texts are HTML (``parse_mode=HTML``) and must stay byte-for-byte
stable because reviewers read them in an existing chat.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Any

import httpx

from app.core.config import settings
from app.core.constants import (
    STATUS_BANNERS,
    TELEGRAM_APPROVE_BUTTON,
    TELEGRAM_REJECT_BUTTON,
)
from app.models.candidate import Candidate
from app.models.enums import BannerStyle, CallbackAction, CandidateStatus
from app.models.integrations import DeliveryResult

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class TelegramClient:
    """Async Bot API client bound to one bot token."""

    def __init__(
        self,
        bot_token: str,
        default_chat_id: str,
        base_url: str = "https://api.telegram.org",
        timeout: float = 10.0,
    ) -> None:
        self.bot_token = bot_token
        self.default_chat_id = default_chat_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    def _method_url(self, method: str) -> str:
        return f"{self.base_url}/bot{self.bot_token}/{method}"

    async def _call(self, method: str, payload: dict[str, Any]) -> DeliveryResult:
        """POST *payload* to a Bot API *method* and normalize the reply."""
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(self._method_url(method), json=payload)
            body: dict[str, Any] = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            logger.error(
                "telegram_request_failed",
                extra={"method": method, "error_type": type(exc).__name__, "error_message": str(exc)},
            )
            return DeliveryResult(ok=False, error=f"{type(exc).__name__}: {exc}")

        if not body.get("ok"):
            description = body.get("description") or f"HTTP {response.status_code}"
            logger.error(
                "telegram_api_error",
                extra={"method": method, "status_code": response.status_code, "description": description},
            )
            return DeliveryResult(ok=False, error=description, raw=body)

        result = body.get("result")
        message_id: str | None = None
        chat_id: str | None = None
        if isinstance(result, dict):
            if result.get("message_id") is not None:
                message_id = str(result["message_id"])
            chat = result.get("chat") or {}
            if chat.get("id") is not None:
                chat_id = str(chat["id"])

        return DeliveryResult(ok=True, message_id=message_id, chat_id=chat_id, raw=body)

    async def send_message(
        self,
        text: str,
        chat_id: str | None = None,
        reply_markup: dict[str, Any] | None = None,
        parse_mode: str = "HTML",
    ) -> DeliveryResult:
        """Send *text* to *chat_id*, or to the admin chat when omitted."""
        payload: dict[str, Any] = {
            "chat_id": chat_id or self.default_chat_id,
            "text": text,
            "parse_mode": parse_mode,
        }
        if reply_markup is not None:
            payload["reply_markup"] = reply_markup
        return await self._call("sendMessage", payload)

    async def edit_message(
        self,
        message_id: str,
        text: str,
        chat_id: str | None = None,
    ) -> DeliveryResult:
        """Replace the text of an existing message (drops its inline keyboard)."""
        return await self._call(
            "editMessageText",
            {
                "chat_id": chat_id or self.default_chat_id,
                "message_id": message_id,
                "text": text,
                "parse_mode": "HTML",
            },
        )

    async def answer_callback_query(
        self, callback_query_id: str, text: str | None = None
    ) -> DeliveryResult:
        """Acknowledge a button press so the client stops showing a spinner."""
        payload: dict[str, Any] = {"callback_query_id": callback_query_id}
        if text:
            payload["text"] = text
        return await self._call("answerCallbackQuery", payload)


_client: TelegramClient | None = None


def get_telegram_client() -> TelegramClient:
    """Return the singleton Telegram client configured from ``settings``."""
    global _client
    if _client is None:
        _client = TelegramClient(
            bot_token=settings.TELEGRAM_BOT_TOKEN,
            default_chat_id=settings.TELEGRAM_ADMIN_CHAT_ID,
            base_url=settings.TELEGRAM_API_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    return _client


# ---------------------------------------------------------------------------
# Formatting
# ---------------------------------------------------------------------------

def calculate_age(birth_date: str | None, today: date | None = None) -> int | None:
    """Full years between an ISO *birth_date* and *today*; None if unparsable."""
    if not birth_date:
        return None
    try:
        birth = date.fromisoformat(birth_date[:10])
    except ValueError:
        return None
    today = today or date.today()
    age = today.year - birth.year
    if (today.month, today.day) < (birth.month, birth.day):
        age -= 1
    return age


def _line(value: Any, template: str) -> str:
    return template.format(value) if value else ""


def format_candidate_message(candidate: Candidate, today: date | None = None) -> str:
    """Intake notification shown to the reviewer above the approve/reject buttons."""
    age = calculate_age(candidate.birth_date, today)
    age_text = f" ({age} години)" if age else ""
    birth_line = f"🎂 {candidate.birth_date}{age_text}" if candidate.birth_date else ""

    lines = [
        "📸 <b>Нова кандидатура за модел</b>",
        "",
        f"👤 <b>{candidate.full_name}</b>",
        f"📧 {candidate.email}",
        _line(candidate.phone, "📱 {}"),
        birth_line,
        _line(candidate.height_cm, "📏 {} см"),
        _line(candidate.city, "📍 {}"),
        "",
        _line(candidate.category, "📂 Категории: {}"),
        "",
        _line(candidate.instagram, '🔗 <a href="{}">Instagram</a>'),
        _line(candidate.tiktok, '🔗 <a href="{}">TikTok</a>'),
    ]
    return "\n".join(lines).strip()


def inline_keyboard(candidate_id: str) -> dict[str, Any]:
    """Approve / reject buttons whose callback data is ``"<action>:<id>"``."""
    return {
        "inline_keyboard": [
            [
                {
                    "text": TELEGRAM_APPROVE_BUTTON,
                    "callback_data": f"{CallbackAction.approve.value}:{candidate_id}",
                },
                {
                    "text": TELEGRAM_REJECT_BUTTON,
                    "callback_data": f"{CallbackAction.reject.value}:{candidate_id}",
                },
            ]
        ]
    }


def format_status_banner(
    candidate: Candidate,
    status: CandidateStatus,
    style: BannerStyle = BannerStyle.terse,
    reviewer: str | None = None,
) -> str:
    """Text that replaces the intake message once the candidate is reviewed.

    The full style keeps one line each for phone, city and category, empty
    when the value is missing.
    """
    emoji, label = STATUS_BANNERS[status]
    identity = f"👤 {candidate.full_name}\n📧 {candidate.email}"

    if style is BannerStyle.terse:
        return f"{emoji} <b>{label}</b>\n\n{identity}"

    header = f"{emoji} <b>{label}</b> от {reviewer or ''}"
    return "\n".join(
        [
            header,
            "",
            identity,
            _line(candidate.phone, "📱 {}"),
            _line(candidate.city, "📍 {}"),
            _line(candidate.category, "📂 {}"),
        ]
    )
