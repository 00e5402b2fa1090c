"""Tests for the approval workflow (in-memory store, mocked Brevo/Telegram)."""

from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock

import pytest
from pydantic import ValidationError

from app.core.exceptions import CandidateNotFoundError
from app.models.enums import BannerStyle, CandidateStatus, SalesStage
from app.models.integrations import DeliveryResult, SyncResult
from app.models.review import ReviewRequest
from app.services.review import apply_decision, review_candidate

from tests.conftest import InMemoryStore


class TestReviewRequest:

    def test_unknown_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReviewRequest.model_validate({"status": "MAYBE"})

    def test_pending_status_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReviewRequest.model_validate({"status": "PENDING"})

    def test_unknown_sales_stage_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ReviewRequest.model_validate({"salesStage": "closed_won"})

    def test_tags_must_be_strings(self) -> None:
        with pytest.raises(ValidationError):
            ReviewRequest.model_validate({"tags": "VIP"})
        with pytest.raises(ValidationError):
            ReviewRequest.model_validate({"tags": [1, 2]})

    def test_field_updates_only_for_present_keys(self) -> None:
        request = ReviewRequest.model_validate({"salesStage": None, "tags": ["VIP", " VIP ", "Urgent"]})

        assert request.field_updates() == {"sales_stage": None, "tags": ["VIP", "Urgent"]}

    def test_field_updates_empty_when_only_status(self) -> None:
        assert ReviewRequest.model_validate({"status": "APPROVED"}).field_updates() == {}


class TestApproval:

    @pytest.mark.asyncio
    async def test_approve_pending_candidate(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add(email="ivan@example.com")

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest(status=CandidateStatus.APPROVED),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        updated = outcome.candidate
        assert outcome.transitioned is True
        assert updated.status is CandidateStatus.APPROVED
        assert updated.reviewed_by == "Admin"
        assert updated.reviewed_at is not None
        assert updated.brevo_contact_id == "42"
        assert updated.email_sequence_started_at == updated.reviewed_at

        start = updated.email_sequence_started_at
        assert [e.email_number for e in outcome.scheduled_emails] == [1, 2, 3]
        assert [e.scheduled_for for e in outcome.scheduled_emails] == [
            start,
            start + timedelta(hours=24),
            start + timedelta(hours=72),
        ]
        mock_brevo.sync_candidate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reapproval_does_not_duplicate_rows(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add()
        request = ReviewRequest(status=CandidateStatus.APPROVED)

        first = await review_candidate(str(candidate.id), request, brevo=mock_brevo, telegram=mock_telegram)
        second = await review_candidate(str(candidate.id), request, brevo=mock_brevo, telegram=mock_telegram)

        assert second.transitioned is False
        assert [e.id for e in second.scheduled_emails] == [e.id for e in first.scheduled_emails]
        assert len(memory_store.emails) == 3
        assert second.candidate.reviewed_at == first.candidate.reviewed_at
        # Already enrolled: Brevo is not called again
        mock_brevo.sync_candidate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_reapproval_retries_failed_enrollment(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add()
        request = ReviewRequest(status=CandidateStatus.APPROVED)
        mock_brevo.sync_candidate.side_effect = [
            SyncResult(ok=False, status_code=500, error="boom"),
            SyncResult(ok=True, contact_id="77"),
        ]

        first = await review_candidate(str(candidate.id), request, brevo=mock_brevo, telegram=mock_telegram)
        assert first.candidate.status is CandidateStatus.APPROVED
        assert first.candidate.brevo_contact_id is None
        assert first.scheduled_emails == []

        second = await review_candidate(str(candidate.id), request, brevo=mock_brevo, telegram=mock_telegram)
        assert second.candidate.brevo_contact_id == "77"
        assert len(second.scheduled_emails) == 3

    @pytest.mark.asyncio
    async def test_brevo_failure_keeps_approval(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add(telegram_message_id="555", telegram_chat_id="-100200")
        mock_brevo.sync_candidate.return_value = SyncResult(ok=False, error="ConnectTimeout: x")

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest(status=CandidateStatus.APPROVED),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        assert outcome.candidate.status is CandidateStatus.APPROVED
        assert outcome.contact_sync is not None and outcome.contact_sync.ok is False
        assert outcome.candidate.email_sequence_started_at is None
        assert outcome.scheduled_emails == []
        mock_telegram.edit_message.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_row_insert_failure_keeps_approval(
        self,
        memory_store: InMemoryStore,
        mock_brevo: AsyncMock,
        mock_telegram: AsyncMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        import app.services.candidates as candidates_module

        def _fail(*args: object, **kwargs: object) -> int:
            raise RuntimeError("connection reset")

        monkeypatch.setattr(candidates_module, "insert_scheduled_emails", _fail)
        candidate = memory_store.add()

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest(status=CandidateStatus.APPROVED),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        assert outcome.candidate.status is CandidateStatus.APPROVED
        assert outcome.scheduled_emails == []

    @pytest.mark.asyncio
    async def test_concurrent_approvals_share_one_sequence_start(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add()
        request = ReviewRequest(status=CandidateStatus.APPROVED)

        async def _slow_sync(*args: object, **kwargs: object) -> SyncResult:
            await asyncio.sleep(0.05)
            return SyncResult(ok=True, contact_id="42")

        mock_brevo.sync_candidate.side_effect = _slow_sync

        first, second = await asyncio.gather(
            review_candidate(str(candidate.id), request, brevo=mock_brevo, telegram=mock_telegram),
            review_candidate(str(candidate.id), request, brevo=mock_brevo, telegram=mock_telegram),
        )

        stored = memory_store.get_candidate(str(candidate.id))
        assert stored is not None
        start = stored.email_sequence_started_at
        assert start is not None
        emails = memory_store.list_scheduled_emails(str(candidate.id))
        assert [e.scheduled_for for e in emails] == [
            start,
            start + timedelta(hours=24),
            start + timedelta(hours=72),
        ]
        assert first.candidate.email_sequence_started_at == start
        assert second.candidate.email_sequence_started_at == start
        assert {first.transitioned, second.transitioned} == {True, False}


class TestRejection:

    @pytest.mark.asyncio
    async def test_reject_skips_enrollment(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add()

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest(status=CandidateStatus.REJECTED, reviewed_by="maria"),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        assert outcome.candidate.status is CandidateStatus.REJECTED
        assert outcome.candidate.reviewed_by == "maria"
        assert outcome.scheduled_emails == []
        mock_brevo.sync_candidate.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_second_decision_is_noop(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        reviewed_at = datetime(2025, 1, 1, tzinfo=timezone.utc)
        candidate = memory_store.add(status="REJECTED", reviewed_at=reviewed_at, reviewed_by="maria")

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest(status=CandidateStatus.APPROVED),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        assert outcome.transitioned is False
        assert outcome.candidate.status is CandidateStatus.REJECTED
        assert outcome.candidate.reviewed_at == reviewed_at
        assert outcome.candidate.reviewed_by == "maria"
        assert outcome.scheduled_emails == []
        mock_brevo.sync_candidate.assert_not_awaited()
        mock_telegram.edit_message.assert_not_awaited()


class TestBannerUpdate:

    @pytest.mark.asyncio
    async def test_bound_message_gets_terse_banner(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add(
            email="ivan@example.com", telegram_message_id="555", telegram_chat_id="-100200"
        )

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest(status=CandidateStatus.REJECTED),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        assert outcome.notification is not None and outcome.notification.ok
        mock_telegram.edit_message.assert_awaited_once_with(
            message_id="555",
            text="❌ <b>ОТХВЪРЛЕН</b>\n\n👤 Ivan Petrov\n📧 ivan@example.com",
            chat_id="-100200",
        )

    @pytest.mark.asyncio
    async def test_full_banner_style(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add(telegram_message_id="555", telegram_chat_id="-100200")

        await review_candidate(
            str(candidate.id),
            ReviewRequest(status=CandidateStatus.REJECTED),
            reviewer="maria",
            banner_style=BannerStyle.full,
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        text = mock_telegram.edit_message.call_args.kwargs["text"]
        assert text.startswith("❌ <b>ОТХВЪРЛЕН</b> от maria\n\n")

    @pytest.mark.asyncio
    async def test_unbound_candidate_is_not_edited(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add(telegram_message_id="555", telegram_chat_id=None)

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest(status=CandidateStatus.APPROVED),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        assert outcome.notification is None
        mock_telegram.edit_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_edit_failure_keeps_status(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add(telegram_message_id="555", telegram_chat_id="-100200")
        mock_telegram.edit_message.return_value = DeliveryResult(ok=False, error="message to edit not found")

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest(status=CandidateStatus.APPROVED),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        assert outcome.candidate.status is CandidateStatus.APPROVED
        assert outcome.notification is not None and outcome.notification.ok is False
        assert len(outcome.scheduled_emails) == 3


class TestFieldOnlyUpdates:

    @pytest.mark.asyncio
    async def test_sales_fields_without_status(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add(telegram_message_id="555", telegram_chat_id="-100200")

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest.model_validate(
                {"salesStage": "contacted", "salesNotes": "call back", "tags": ["VIP"]}
            ),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        updated = outcome.candidate
        assert updated.status is CandidateStatus.PENDING
        assert updated.reviewed_at is None
        assert updated.sales_stage is SalesStage.contacted
        assert updated.sales_notes == "call back"
        assert updated.tags == ["VIP"]
        mock_brevo.sync_candidate.assert_not_awaited()
        mock_telegram.edit_message.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_fields_written_with_status(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add()

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest.model_validate({"status": "REJECTED", "tags": ["Question"]}),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        assert outcome.candidate.status is CandidateStatus.REJECTED
        assert outcome.candidate.tags == ["Question"]

    @pytest.mark.asyncio
    async def test_fields_applied_even_when_already_reviewed(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        candidate = memory_store.add(status="APPROVED", email_sequence_started_at=datetime.now(timezone.utc))

        outcome = await review_candidate(
            str(candidate.id),
            ReviewRequest.model_validate({"status": "REJECTED", "salesStage": "signed"}),
            brevo=mock_brevo,
            telegram=mock_telegram,
        )

        assert outcome.candidate.status is CandidateStatus.APPROVED
        assert outcome.candidate.sales_stage is SalesStage.signed


class TestNotFound:

    @pytest.mark.asyncio
    async def test_unknown_candidate(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock, mock_telegram: AsyncMock
    ) -> None:
        with pytest.raises(CandidateNotFoundError):
            await review_candidate(
                "00000000-0000-0000-0000-000000000000",
                ReviewRequest(status=CandidateStatus.APPROVED),
                brevo=mock_brevo,
                telegram=mock_telegram,
            )
        mock_brevo.sync_candidate.assert_not_awaited()


class TestApplyDecision:

    @pytest.mark.asyncio
    async def test_uses_given_timestamp_for_review_and_sequence(
        self, memory_store: InMemoryStore, mock_brevo: AsyncMock
    ) -> None:
        candidate = memory_store.add()
        now = datetime(2025, 5, 1, 8, 0, tzinfo=timezone.utc)

        outcome = await apply_decision(
            candidate, CandidateStatus.APPROVED, "maria", now=now, brevo=mock_brevo
        )

        assert outcome.candidate.reviewed_at == now
        assert outcome.candidate.email_sequence_started_at == now
        emails = memory_store.list_scheduled_emails(str(candidate.id))
        assert emails[2].scheduled_for == now + timedelta(hours=72)
