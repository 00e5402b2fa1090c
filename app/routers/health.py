"""Health check endpoint.

Reports database connectivity and whether the Brevo / Telegram integrations
are configured.  Returns 503 when Supabase cannot be reached.
"""

import logging
from typing import Any

from fastapi import APIRouter
from starlette.responses import JSONResponse

from app.core.config import settings
from app.db.supabase import CANDIDATES_TABLE, get_supabase

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("/health")
async def health_check() -> Any:
    """Return 200 with ``status=ok`` when Supabase answers, else 503."""
    db_status = "disconnected"

    try:
        client = get_supabase()
        result = client.table(CANDIDATES_TABLE).select("id").limit(1).execute()
        if result is not None:
            db_status = "connected"
    except Exception:
        logger.warning("Health check: Supabase connection failed", exc_info=True)

    payload: dict[str, str] = {
        "status": "ok" if db_status == "connected" else "degraded",
        "database": db_status,
        "brevo": "configured" if settings.BREVO_API_KEY and settings.BREVO_LIST_ID else "missing",
        "telegram": "configured" if settings.TELEGRAM_BOT_TOKEN else "missing",
    }

    if db_status != "connected":
        return JSONResponse(status_code=503, content=payload)

    return payload
