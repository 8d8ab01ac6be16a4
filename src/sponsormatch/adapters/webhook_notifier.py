"""Webhook notification adapter.

Posts formatted notifications as JSON to a configured webhook (a mail relay,
chat bot or automation endpoint).
"""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from sponsormatch.adapters.notification_formatting import (
    format_decision_notification,
    format_interest_notification,
)
from sponsormatch.core.models import Listing, Match, Profile

LOGGER = logging.getLogger(__name__)


class WebhookNotifier:
    """Notifier adapter that delivers messages to an HTTP webhook."""

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        mode: str = "html",
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._url = url
        self._token = token
        self._mode = mode
        self._timeout = timeout
        self._transport = transport

    async def _post(self, event: str, match: Match, text: str, recipient: Optional[str]) -> None:
        payload = {
            "event": event,
            "match_id": match.id,
            "status": match.status,
            "recipient": recipient,
            "text": text,
            "parse_mode": self._mode,
        }
        headers = {"Authorization": f"Bearer {self._token}"} if self._token else {}
        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                response = await client.post(self._url, json=payload, headers=headers)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            raise RuntimeError(f"Webhook error {exc.response.status_code}: {exc.response.text}") from exc
        except httpx.HTTPError as exc:
            raise RuntimeError(f"Webhook delivery failed: {exc}") from exc
        LOGGER.info("Webhook notification sent (%s, match %s)", event, match.id)

    async def send_interest(self, match: Match, listing: Listing, brand: Optional[Profile]) -> None:
        text = format_interest_notification(match, listing, brand, self._mode)
        await self._post("interest", match, text, recipient=listing.creator_id)

    async def send_decision(self, match: Match, listing: Optional[Listing]) -> None:
        text = format_decision_notification(match, listing, self._mode)
        recipient = match.brand.email if match.brand and match.brand.email else match.brand_id
        await self._post("decision", match, text, recipient=recipient)
