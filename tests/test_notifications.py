"""Tests for the notification webhook client (mocked httpx)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "api"))

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch

import httpx
import pytest

from config import settings
from services.notifications import notify_reconciliation_errors, send_event

WEBHOOK = "https://automation.example.com/hooks/subscriptions"


def _mock_client(response=None, error=None):
    client = AsyncMock()
    if error is not None:
        client.post.side_effect = error
    else:
        client.post.return_value = response
    factory = MagicMock()
    factory.return_value.__aenter__.return_value = client
    return factory, client


@pytest.mark.asyncio
async def test_send_event_without_webhook_is_noop():
    with patch.object(settings, "NOTIFY_WEBHOOK_URL", None), \
         patch("services.notifications.httpx.AsyncClient") as factory:
        assert await send_event("admin_pause.created", {}) is False
        factory.assert_not_called()


@pytest.mark.asyncio
async def test_send_event_posts_serialisable_payload():
    factory, client = _mock_client(MagicMock(status_code=200, text="ok"))
    pause_id = uuid.uuid4()
    when = datetime(2025, 6, 16, 10, 0, tzinfo=timezone.utc)

    with patch.object(settings, "NOTIFY_WEBHOOK_URL", WEBHOOK), \
         patch("services.notifications.httpx.AsyncClient", factory):
        ok = await send_event("admin_pause.created", {"admin_pause_id": pause_id, "start_date": when})

    assert ok is True
    url = client.post.call_args.args[0]
    payload = client.post.call_args.kwargs["json"]
    assert url == WEBHOOK
    assert payload == {
        "event": "admin_pause.created",
        "data": {"admin_pause_id": str(pause_id), "start_date": "2025-06-16T10:00:00+00:00"},
    }


@pytest.mark.asyncio
async def test_send_event_rejected_by_webhook():
    factory, _ = _mock_client(MagicMock(status_code=502, text="bad gateway"))
    with patch.object(settings, "NOTIFY_WEBHOOK_URL", WEBHOOK), \
         patch("services.notifications.httpx.AsyncClient", factory):
        assert await send_event("admin_pause.created", {}) is False


@pytest.mark.asyncio
async def test_send_event_network_error_never_raises():
    factory, _ = _mock_client(error=httpx.ConnectError("connection refused"))
    with patch.object(settings, "NOTIFY_WEBHOOK_URL", WEBHOOK), \
         patch("services.notifications.httpx.AsyncClient", factory):
        assert await send_event("admin_pause.created", {}) is False


@pytest.mark.asyncio
async def test_clean_reconciliation_run_sends_nothing():
    report = SimpleNamespace(processed_count=3, total_subscriptions=3, errors=[], timestamp=datetime.now())
    with patch("services.notifications.send_event", new_callable=AsyncMock) as send:
        assert await notify_reconciliation_errors(report) is False
        send.assert_not_called()
