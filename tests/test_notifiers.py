from __future__ import annotations

import asyncio
import json
import logging

import httpx
import pytest

from fakes import make_opportunity
from sponsormatch.adapters.log_notifier import LogNotifier
from sponsormatch.adapters.webhook_notifier import WebhookNotifier
from sponsormatch.core.models import Match, Profile


def _match(**overrides) -> Match:
    values = {"id": "m1", "brand_id": "brand-1", "opportunity_id": "opp-1"}
    values.update(overrides)
    return Match(**values)


def test_webhook_posts_interest_to_listing_owner() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(204)

    notifier = WebhookNotifier(
        "https://hooks.example.com/sponsor",
        token="secret",
        transport=httpx.MockTransport(handler),
    )
    brand = Profile(id="brand-1", company_name="Acme")

    asyncio.run(notifier.send_interest(_match(), make_opportunity(creator_id="creator-9"), brand))

    (request,) = requests
    payload = json.loads(request.content)
    assert request.headers["Authorization"] == "Bearer secret"
    assert payload["event"] == "interest"
    assert payload["recipient"] == "creator-9"
    assert payload["parse_mode"] == "html"
    assert "<b>Brand:</b> Acme" in payload["text"]


def test_webhook_decision_goes_to_brand_email() -> None:
    requests: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        requests.append(request)
        return httpx.Response(200, json={"ok": True})

    notifier = WebhookNotifier("https://hooks.example.com/sponsor", transport=httpx.MockTransport(handler))
    match = _match(status="accepted", brand=Profile(id="brand-1", email="deals@acme.test"))

    asyncio.run(notifier.send_decision(match, make_opportunity()))

    payload = json.loads(requests[0].content)
    assert "Authorization" not in requests[0].headers
    assert payload["recipient"] == "deals@acme.test"
    assert payload["status"] == "accepted"


def test_webhook_error_status_raises() -> None:
    notifier = WebhookNotifier(
        "https://hooks.example.com/sponsor",
        transport=httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway")),
    )

    with pytest.raises(RuntimeError, match="Webhook error 502: bad gateway"):
        asyncio.run(notifier.send_decision(_match(status="accepted"), make_opportunity()))


def test_webhook_transport_failure_raises() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("refused", request=request)

    notifier = WebhookNotifier("https://hooks.example.com/sponsor", transport=httpx.MockTransport(handler))

    with pytest.raises(RuntimeError, match="Webhook delivery failed"):
        asyncio.run(notifier.send_interest(_match(), make_opportunity(), None))


def test_log_notifier_writes_formatted_message(caplog: pytest.LogCaptureFixture) -> None:
    notifier = LogNotifier()

    with caplog.at_level(logging.INFO, logger="sponsormatch.adapters.log_notifier"):
        asyncio.run(notifier.send_interest(_match(), make_opportunity(title="Derby boards"), None))

    assert "**New sponsorship interest**" in caplog.text
    assert "Derby boards" in caplog.text
