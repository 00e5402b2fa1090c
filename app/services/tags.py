"""Tag labels offered in the dashboard's tag picker.

The table is seeded with ``DEFAULT_TAGS`` the first time it is read empty.
"""

from __future__ import annotations

import logging

from app.core.constants import DEFAULT_TAGS
from app.db.supabase import TAGS_TABLE, get_supabase
from app.models.tag import Tag

logger = logging.getLogger(__name__)


def _fetch_tags() -> list[Tag]:
    client = get_supabase()
    result = client.table(TAGS_TABLE).select("*").order("name").execute()
    return [Tag(**row) for row in result.data or []]


def list_tags() -> list[Tag]:
    """Return all tags ordered by name, seeding defaults into an empty table."""
    tags = _fetch_tags()
    if tags:
        return tags

    client = get_supabase()
    client.table(TAGS_TABLE).upsert(
        [{"name": name} for name in DEFAULT_TAGS],
        on_conflict="name",
        ignore_duplicates=True,
    ).execute()
    logger.info("tags_seeded", extra={"count": len(DEFAULT_TAGS)})
    return _fetch_tags()


def get_tag_by_name(name: str) -> Tag | None:
    client = get_supabase()
    result = (
        client.table(TAGS_TABLE)
        .select("*")
        .eq("name", name)
        .limit(1)
        .execute()
    )
    if not result.data:
        return None
    return Tag(**result.data[0])


def create_tag(name: str | None) -> tuple[Tag, bool]:
    """Create a tag named *name* (trimmed).

    Returns ``(tag, created)``; ``created`` is False when the name already
    exists.  Raises ``ValueError`` for a missing or blank name.
    """
    if not isinstance(name, str) or not name.strip():
        raise ValueError("Tag name is required")
    trimmed = name.strip()

    existing = get_tag_by_name(trimmed)
    if existing is not None:
        return existing, False

    client = get_supabase()
    result = client.table(TAGS_TABLE).insert({"name": trimmed}).execute()
    return Tag(**result.data[0]), True
