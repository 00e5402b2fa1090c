"""Shared test fixtures.

Provides a FastAPI ``test_client``, mock Supabase clients for the health
router, an in-memory candidate store that stands in for the Supabase-backed
``app.services.candidates`` functions, and async mocks for the Brevo and
Telegram clients.
"""

import os

os.environ.setdefault("SUPABASE_URL", "https://test.supabase.co")
os.environ.setdefault("SUPABASE_KEY", "test-key")
os.environ.setdefault("API_KEY", "test-api-key")

from collections.abc import Generator
from datetime import datetime, timezone
from typing import Any
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from app.models.candidate import Candidate, CandidateCreate
from app.models.enums import CandidateStatus
from app.models.integrations import DeliveryResult, SyncResult
from app.models.scheduled_email import ScheduledEmail, ScheduledEmailDraft


# ---------------------------------------------------------------------------
# In-memory store
# ---------------------------------------------------------------------------

class InMemoryStore:
    """Dict-backed replacement for ``app.services.candidates``.

    Mirrors the storage guarantees the workflow relies on: the conditional
    PENDING update, the write-once sequence start and the unique
    (candidate_id, email_number) key on scheduled emails.
    """

    def __init__(self) -> None:
        self.candidates: dict[str, dict[str, Any]] = {}
        self.emails: dict[tuple[str, int], dict[str, Any]] = {}

    def add(self, **fields: Any) -> Candidate:
        row: dict[str, Any] = {
            "id": str(uuid4()),
            "email": f"{uuid4().hex[:8]}@example.com",
            "first_name": "Ivan",
            "last_name": "Petrov",
            "status": CandidateStatus.PENDING.value,
            "submitted_at": datetime(2025, 1, 10, 9, 0, tzinfo=timezone.utc),
        }
        row.update(fields)
        self.candidates[str(row["id"])] = row
        return Candidate(**row)

    # -- reads --------------------------------------------------------------

    def get_candidate(self, candidate_id: str) -> Candidate | None:
        row = self.candidates.get(str(candidate_id))
        return Candidate(**row) if row else None

    def get_candidate_by_email(self, email: str) -> Candidate | None:
        for row in self.candidates.values():
            if row["email"] == email:
                return Candidate(**row)
        return None

    def list_scheduled_emails(self, candidate_id: str) -> list[ScheduledEmail]:
        rows = [r for (cid, _), r in self.emails.items() if cid == str(candidate_id)]
        return [ScheduledEmail(**r) for r in sorted(rows, key=lambda r: r["email_number"])]

    # -- writes -------------------------------------------------------------

    def create_candidate(self, data: CandidateCreate) -> Candidate:
        return self.add(**data.model_dump())

    def update_candidate(self, candidate_id: str, fields: dict[str, Any]) -> Candidate | None:
        row = self.candidates.get(str(candidate_id))
        if row is None:
            return None
        row.update(fields)
        return Candidate(**row)

    def transition_status(
        self,
        candidate_id: str,
        status: CandidateStatus,
        reviewed_at: datetime,
        reviewed_by: str,
        extra_fields: dict[str, Any] | None = None,
    ) -> Candidate | None:
        row = self.candidates.get(str(candidate_id))
        if row is None or row["status"] != CandidateStatus.PENDING.value:
            return None
        row.update(extra_fields or {})
        row.update(
            {
                "status": status.value,
                "reviewed_at": reviewed_at,
                "reviewed_by": reviewed_by,
            }
        )
        return Candidate(**row)

    def record_enrollment(
        self, candidate_id: str, contact_id: str | None, sequence_started_at: datetime
    ) -> Candidate | None:
        row = self.candidates.get(str(candidate_id))
        if row is None or row.get("email_sequence_started_at") is not None:
            return None
        return self.update_candidate(
            candidate_id,
            {"brevo_contact_id": contact_id, "email_sequence_started_at": sequence_started_at},
        )

    def bind_telegram_message(self, candidate_id: str, message_id: str, chat_id: str) -> Candidate | None:
        return self.update_candidate(
            candidate_id, {"telegram_message_id": message_id, "telegram_chat_id": chat_id}
        )

    def insert_scheduled_emails(self, candidate_id: str, drafts: list[ScheduledEmailDraft]) -> int:
        inserted = 0
        for draft in drafts:
            key = (str(candidate_id), draft.email_number)
            if key in self.emails:
                continue
            self.emails[key] = {
                "id": str(uuid4()),
                "candidate_id": str(candidate_id),
                **draft.model_dump(),
            }
            inserted += 1
        return inserted


_STORE_FUNCTIONS = (
    "get_candidate",
    "get_candidate_by_email",
    "list_scheduled_emails",
    "create_candidate",
    "update_candidate",
    "transition_status",
    "record_enrollment",
    "bind_telegram_message",
    "insert_scheduled_emails",
)


@pytest.fixture()
def memory_store(monkeypatch: pytest.MonkeyPatch) -> InMemoryStore:
    """Patch every store function used by the services with an in-memory copy."""
    import app.services.candidates as candidates_module

    store = InMemoryStore()
    for name in _STORE_FUNCTIONS:
        monkeypatch.setattr(candidates_module, name, getattr(store, name))
    return store


# ---------------------------------------------------------------------------
# External clients
# ---------------------------------------------------------------------------

@pytest.fixture()
def mock_brevo() -> AsyncMock:
    """Brevo client whose sync succeeds with contact id 42."""
    client = AsyncMock()
    client.sync_candidate.return_value = SyncResult(ok=True, contact_id="42", status_code=201)
    return client


@pytest.fixture()
def mock_telegram() -> AsyncMock:
    """Telegram client whose calls all succeed."""
    client = AsyncMock()
    client.send_message.return_value = DeliveryResult(ok=True, message_id="555", chat_id="-100200")
    client.edit_message.return_value = DeliveryResult(ok=True, message_id="555", chat_id="-100200")
    client.answer_callback_query.return_value = DeliveryResult(ok=True)
    return client


# ---------------------------------------------------------------------------
# Supabase / HTTP
# ---------------------------------------------------------------------------

@pytest.fixture()
def mock_supabase_module() -> Generator[MagicMock, None, None]:
    """Patch the Supabase client at module level in the health router."""
    mock_client = MagicMock()
    mock_table = MagicMock()
    mock_select = MagicMock()
    mock_limit = MagicMock()

    mock_client.table.return_value = mock_table
    mock_table.select.return_value = mock_select
    mock_select.limit.return_value = mock_limit
    mock_limit.execute.return_value = MagicMock()  # non-None result

    with patch("app.routers.health.get_supabase", return_value=mock_client):
        yield mock_client


@pytest.fixture()
def mock_supabase_disconnected() -> Generator[MagicMock, None, None]:
    """Patch ``get_supabase`` to simulate a disconnected database."""
    with patch(
        "app.routers.health.get_supabase",
        side_effect=Exception("Connection refused"),
    ):
        yield MagicMock()


@pytest.fixture()
def test_client() -> Generator[TestClient, None, None]:
    """Provide a FastAPI TestClient."""
    from app.main import app

    with TestClient(app) as client:
        yield client
