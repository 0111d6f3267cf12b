"""
Notification Service — posts subscription events to the messaging automation.

The webhook behind NOTIFY_WEBHOOK_URL turns events into customer emails and
operator alerts. Failures are logged but NEVER raise exceptions — fire-and-forget.
"""

import logging
import uuid
from datetime import datetime
from typing import Any

import httpx

from config import settings

logger = logging.getLogger(__name__)


def _jsonable(value: Any) -> Any:
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, dict):
        return {k: _jsonable(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_jsonable(v) for v in value]
    if isinstance(value, uuid.UUID):
        return str(value)
    return value


async def send_event(event: str, data: dict[str, Any]) -> bool:
    """
    POST one event to the notification webhook.

    Args:
        event: Event name, e.g. "admin_pause.created".
        data: Event payload (datetimes and UUIDs are stringified).

    Returns:
        True if the webhook accepted the event, False otherwise.
    """
    url = settings.NOTIFY_WEBHOOK_URL
    if not url:
        logger.debug("NOTIFY_WEBHOOK_URL not configured — skipping %s", event)
        return False

    payload = {"event": event, "data": _jsonable(data)}
    try:
        async with httpx.AsyncClient(timeout=10.0) as client:
            resp = await client.post(url, json=payload)
            if resp.status_code < 300:
                logger.info("Notification sent: event=%s", event)
                return True
            logger.warning(
                "Notification failed: event=%s, status=%s, body=%s",
                event,
                resp.status_code,
                resp.text[:200],
            )
            return False
    except httpx.HTTPError as e:
        logger.error("Notification error: event=%s, error=%s", event, str(e))
        return False


# ── Event helpers ──────────────────────────────────────────

async def notify_admin_pause(result) -> bool:
    return await send_event("admin_pause.created", {
        "admin_pause_id": result.admin_pause_id,
        "pause_type": result.pause_type.value,
        "start_date": result.start_date,
        "end_date": result.end_date,
        "processed_count": result.processed_count,
        "total_subscriptions": result.total_subscriptions,
    })


async def notify_reactivation(result) -> bool:
    return await send_event("admin_pause.reactivated", {
        "processed_count": result.processed_count,
        "total_subscriptions": result.total_subscriptions,
        "next_delivery_date": result.next_delivery_date,
        "reactivated_pause_ids": result.reactivated_pause_ids,
    })


async def notify_reconciliation_errors(report) -> bool:
    """Alert operators only when a run recorded per-subscription failures."""
    if not report.errors:
        return False
    return await send_event("delivery_scheduler.errors", {
        "processed_count": report.processed_count,
        "total_subscriptions": report.total_subscriptions,
        "errors": report.errors[:50],
        "timestamp": report.timestamp,
    })
