"""Candidate endpoints.

POST  ""      -- intake from the form automation (bearer API key).
GET   ""      -- dashboard list with filters and pagination.
GET   /{id}   -- single candidate with its scheduled emails.
PATCH /{id}   -- review (status) and sales-field updates.
"""

from __future__ import annotations

import logging
import math
import secrets
from typing import Any

from fastapi import APIRouter, Depends, Header, HTTPException, Query
from starlette.responses import JSONResponse

from app.core.config import settings
from app.core.exceptions import CandidateNotFoundError, InvalidReviewError
from app.models.candidate import (
    CandidateFilters,
    CandidateIntake,
    CandidateListResponse,
    CandidateWithEmails,
    Pagination,
)
from app.models.enums import CandidateStatus
from app.models.review import ReviewRequest
from app.services import candidates as store
from app.services.intake import submit_candidate
from app.services.review import review_candidate

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------

def verify_api_key(authorization: str | None = Header(default=None)) -> None:
    """Require ``Authorization: Bearer <API_KEY>``."""
    if not authorization or not settings.API_KEY:
        raise HTTPException(status_code=401, detail="Unauthorized")
    token = authorization.removeprefix("Bearer ").strip()
    if not secrets.compare_digest(token, settings.API_KEY):
        raise HTTPException(status_code=401, detail="Unauthorized")


# ---------------------------------------------------------------------------
# Intake
# ---------------------------------------------------------------------------

@router.post("", status_code=201, dependencies=[Depends(verify_api_key)])
async def create_candidate(
    payload: CandidateIntake,
    silent: bool = Query(default=False, description="Skip the Telegram notification (bulk import)"),
) -> Any:
    """Create a candidate; 409 with the existing id for a known email."""
    try:
        result = await submit_candidate(payload, silent=silent)
    except Exception as exc:
        logger.error(
            "create_candidate_failed",
            extra={"email": payload.email, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to create candidate") from exc

    if not result.created:
        return JSONResponse(
            status_code=409,
            content={"error": "Candidate already exists", "id": result.candidate_id},
        )

    return {"success": True, "id": result.candidate_id, "silent": result.silent}


# ---------------------------------------------------------------------------
# Dashboard reads
# ---------------------------------------------------------------------------

@router.get("", response_model=CandidateListResponse)
async def list_candidates(
    status: CandidateStatus | None = Query(default=None),
    city: str | None = Query(default=None),
    min_age: int | None = Query(default=None, alias="minAge", ge=0),
    max_age: int | None = Query(default=None, alias="maxAge", ge=0),
    search: str | None = Query(default=None),
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
) -> CandidateListResponse:
    """List candidates, newest submission first."""
    try:
        candidates, total = store.list_candidates(
            status=status,
            city=city,
            min_age=min_age,
            max_age=max_age,
            search=search,
            page=page,
            limit=limit,
        )
        cities = store.list_cities()
    except Exception as exc:
        logger.error("list_candidates_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Failed to list candidates") from exc

    return CandidateListResponse(
        candidates=candidates,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_pages=math.ceil(total / limit),
        ),
        filters=CandidateFilters(cities=cities),
    )


@router.get("/{candidate_id}", response_model=CandidateWithEmails)
async def get_candidate(candidate_id: str) -> CandidateWithEmails:
    candidate = store.get_candidate(candidate_id)
    if candidate is None:
        raise HTTPException(status_code=404, detail="Candidate not found")
    return CandidateWithEmails(
        **candidate.model_dump(),
        scheduled_emails=store.list_scheduled_emails(candidate_id),
    )


# ---------------------------------------------------------------------------
# Review
# ---------------------------------------------------------------------------

@router.patch("/{candidate_id}", response_model=CandidateWithEmails)
async def update_candidate(candidate_id: str, changes: ReviewRequest) -> CandidateWithEmails:
    """Approve/reject and/or update sales stage, notes and tags.

    Unknown status or sales-stage values are rejected by validation before
    anything is written.
    """
    try:
        outcome = await review_candidate(candidate_id, changes)
    except CandidateNotFoundError as exc:
        raise HTTPException(status_code=404, detail="Candidate not found") from exc
    except InvalidReviewError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error(
            "update_candidate_failed",
            extra={"candidate_id": candidate_id, "error_message": str(exc)},
        )
        raise HTTPException(status_code=500, detail="Failed to update candidate") from exc

    return CandidateWithEmails(
        **outcome.candidate.model_dump(),
        scheduled_emails=outcome.scheduled_emails,
    )
