"""Tag endpoints for the dashboard tag picker."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter, HTTPException
from starlette.responses import JSONResponse

from app.models.tag import TagCreate, TagListResponse, TagResponse
from app.services.tags import create_tag, list_tags

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=TagListResponse)
async def get_tags() -> TagListResponse:
    try:
        tags = list_tags()
    except Exception as exc:
        logger.error("list_tags_failed", extra={"error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Failed to fetch tags") from exc
    return TagListResponse(tags=tags)


@router.post("", status_code=201, response_model=TagResponse)
async def post_tag(body: TagCreate) -> Any:
    """Create a tag; 409 with the existing tag when the name is taken."""
    try:
        tag, created = create_tag(body.name)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc)) from exc
    except Exception as exc:
        logger.error("create_tag_failed", extra={"name": body.name, "error_message": str(exc)})
        raise HTTPException(status_code=500, detail="Failed to create tag") from exc

    if not created:
        return JSONResponse(
            status_code=409,
            content={"error": "Tag already exists", "tag": tag.model_dump(mode="json")},
        )
    return TagResponse(tag=tag)
