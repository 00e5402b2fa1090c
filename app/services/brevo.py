"""Brevo contact sync client.

Upserts an approved candidate into the configured Brevo list; the Brevo
automation attached to that list sends the email sequence.  Calls never
raise on HTTP or transport errors: they return a ``SyncResult``.
"""

from __future__ import annotations

import logging
from typing import Any
from urllib.parse import quote

import httpx

from app.core.config import settings
from app.models.candidate import Candidate
from app.models.integrations import SyncResult

logger = logging.getLogger(__name__)


class BrevoClient:
    """Thin async wrapper around the Brevo v3 contacts API."""

    def __init__(
        self,
        api_key: str,
        list_id: int,
        base_url: str = "https://api.brevo.com/v3",
        timeout: float = 10.0,
    ) -> None:
        self.api_key = api_key
        self.list_id = list_id
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout

    @property
    def _headers(self) -> dict[str, str]:
        return {
            "Content-Type": "application/json",
            "api-key": self.api_key,
        }

    async def upsert_contact(
        self,
        email: str,
        first_name: str,
        last_name: str,
        phone: str | None = None,
        attributes: dict[str, str | int] | None = None,
    ) -> SyncResult:
        """Create or update the contact keyed by *email* and add it to the list.

        Brevo answers 201 with ``{"id": ...}`` on create and 204 with no body
        when ``updateEnabled`` updated an existing contact.
        """
        contact_attributes: dict[str, Any] = {
            "FIRSTNAME": first_name,
            "LASTNAME": last_name,
        }
        if phone:
            contact_attributes["SMS"] = phone
        contact_attributes.update(attributes or {})

        payload = {
            "email": email,
            "attributes": contact_attributes,
            "listIds": [self.list_id],
            "updateEnabled": True,
        }

        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.post(
                    f"{self.base_url}/contacts",
                    headers=self._headers,
                    json=payload,
                )
        except httpx.HTTPError as exc:
            logger.error(
                "brevo_request_failed",
                extra={"email": email, "error_type": type(exc).__name__, "error_message": str(exc)},
            )
            return SyncResult(ok=False, error=f"{type(exc).__name__}: {exc}")

        if response.is_error:
            logger.error(
                "brevo_api_error",
                extra={"email": email, "status_code": response.status_code, "body": response.text},
            )
            return SyncResult(
                ok=False,
                status_code=response.status_code,
                error=f"Brevo API error {response.status_code}: {response.text}",
            )

        contact_id: str | None = None
        if response.content:
            try:
                body = response.json()
            except ValueError:
                body = None
            raw_id = body.get("id") if isinstance(body, dict) else None
            if raw_id is not None:
                contact_id = str(raw_id)

        logger.info(
            "brevo_contact_upserted",
            extra={"email": email, "contact_id": contact_id, "list_id": self.list_id},
        )
        return SyncResult(ok=True, contact_id=contact_id, status_code=response.status_code)

    async def sync_candidate(self, candidate: Candidate) -> SyncResult:
        """Upsert *candidate* with its CITY / CATEGORY attributes."""
        return await self.upsert_contact(
            email=candidate.email,
            first_name=candidate.first_name,
            last_name=candidate.last_name,
            phone=candidate.phone,
            attributes={
                "CITY": candidate.city or "",
                "CATEGORY": candidate.category or "",
            },
        )

    async def get_contact(self, email: str) -> dict[str, Any] | None:
        """Fetch a contact by email. Returns None when Brevo answers 404.

        Other HTTP errors raise ``httpx.HTTPStatusError``.
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            response = await client.get(
                f"{self.base_url}/contacts/{quote(email, safe='')}",
                headers=self._headers,
            )
        if response.status_code == 404:
            return None
        response.raise_for_status()
        return response.json()


_client: BrevoClient | None = None


def get_brevo_client() -> BrevoClient:
    """Return the singleton Brevo client configured from ``settings``."""
    global _client
    if _client is None:
        _client = BrevoClient(
            api_key=settings.BREVO_API_KEY,
            list_id=settings.BREVO_LIST_ID,
            base_url=settings.BREVO_API_URL,
            timeout=settings.HTTP_TIMEOUT_SECONDS,
        )
    return _client
