"""Supabase client singleton and table names.

``get_supabase()`` returns a lazily-initialized, process-wide client built
from ``settings``.  Table names live here so services and tests agree on them.
"""

from supabase import Client, create_client

from app.core.config import settings

CANDIDATES_TABLE = "candidates"
SCHEDULED_EMAILS_TABLE = "scheduled_emails"
TAGS_TABLE = "tags"

_client: Client | None = None


def get_supabase() -> Client:
    """Return the singleton Supabase client, creating it on first call."""
    global _client
    if _client is None:
        _client = create_client(settings.SUPABASE_URL, settings.SUPABASE_KEY)
    return _client
