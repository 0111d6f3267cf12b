"""Cron-triggered delivery scheduler."""

import hmac
import logging

from fastapi import APIRouter, BackgroundTasks, Depends, Header

from config import settings
from dependencies import get_now, get_reconciliation_engine
from schemas import DeliverySchedulerResponse
from services.errors import AuthorizationError
from services.notifications import notify_reconciliation_errors

router = APIRouter()
logger = logging.getLogger(__name__)


def _check_cron_secret(authorization: str | None) -> None:
    secret = settings.CRON_SECRET
    if not secret or not authorization:
        raise AuthorizationError("Unauthorized")
    if not hmac.compare_digest(authorization, f"Bearer {secret}"):
        logger.warning("Delivery scheduler called with a bad cron secret")
        raise AuthorizationError("Unauthorized")


@router.post("/delivery-scheduler", response_model=DeliverySchedulerResponse)
async def run_delivery_scheduler(
    background_tasks: BackgroundTasks,
    authorization: str | None = Header(None),
    engine=Depends(get_reconciliation_engine),
    now=Depends(get_now),
):
    """
    Advance due subscriptions and record their deliveries.
    Called by the platform scheduler with `Authorization: Bearer <CRON_SECRET>`.
    """
    _check_cron_secret(authorization)

    report = await engine.run(now)
    if report.errors:
        background_tasks.add_task(notify_reconciliation_errors, report)

    return DeliverySchedulerResponse(
        message=f"Processed {report.processed_count} subscriptions",
        processed_count=report.processed_count,
        total_subscriptions=report.total_subscriptions,
        expired_pauses=report.expired_pauses,
        duplicates_removed=report.duplicates_removed,
        errors=report.errors,
        timestamp=report.timestamp,
    )


@router.get("/delivery-scheduler")
async def delivery_scheduler_status(now=Depends(get_now)):
    """Readiness probe for the scheduler endpoint."""
    return {
        "status": "ready",
        "message": "Delivery scheduler endpoint is active",
        "timestamp": now.isoformat(),
    }
