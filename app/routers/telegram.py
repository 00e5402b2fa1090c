"""Telegram webhook.

Telegram retries any non-2xx answer indefinitely, so the POST handler
answers ``{"ok": true}`` whatever happens inside.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, Request

from app.services.callbacks import handle_update

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/webhook")
async def telegram_webhook(request: Request) -> dict[str, Any]:
    """Handle inline-button callbacks."""
    try:
        payload = await request.json()
        if isinstance(payload, dict):
            await handle_update(payload)
    except Exception as exc:
        logger.error(
            "telegram_webhook_error",
            extra={"error_type": type(exc).__name__, "error_message": str(exc)},
        )
    return {"ok": True}


@router.get("/webhook")
async def telegram_webhook_status() -> dict[str, str]:
    """Liveness probe used when registering the webhook."""
    return {"status": "Telegram webhook endpoint active"}
