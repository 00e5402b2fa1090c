"""Outcome values returned by the Brevo and Telegram clients.

External calls are best-effort: the clients never raise on HTTP or transport
failure, they return one of these with ``ok=False`` and an ``error`` string.
"""

from typing import Any

from pydantic import BaseModel


class SyncResult(BaseModel):
    """Outcome of a Brevo contact upsert."""
    ok: bool
    contact_id: str | None = None
    status_code: int | None = None
    error: str | None = None


class DeliveryResult(BaseModel):
    """Outcome of a Telegram Bot API call."""
    ok: bool
    message_id: str | None = None
    chat_id: str | None = None
    error: str | None = None
    raw: dict[str, Any] | None = None
