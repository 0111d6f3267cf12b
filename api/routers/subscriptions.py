"""Subscription API endpoints — checkout creation, self-service and the pause gate."""

import logging
import uuid

from fastapi import APIRouter, Depends

from dependencies import get_now, get_pause_gate, get_subscription_service
from schemas import (
    ActionResult, DeliveryScheduleResponse, PauseStatusResponse, SubscriptionActionRequest,
    SubscriptionCreate, SubscriptionCreated, SubscriptionPauseRequest, SubscriptionPauseResult,
    SubscriptionResponse, SubscriptionResumeResult,
)
from services.subscriptions import CreateSubscriptionRequest

router = APIRouter()
logger = logging.getLogger(__name__)


def _notice(gate_result) -> PauseStatusResponse:
    return PauseStatusResponse.model_validate(gate_result)


@router.get("/pause-status/{user_id}", response_model=PauseStatusResponse)
async def pause_status(user_id: uuid.UUID, gate=Depends(get_pause_gate), now=Depends(get_now)):
    """Is this user covered by a store hold, and when would a new order be delivered?"""
    return _notice(await gate.check(user_id, now))


@router.post("", response_model=SubscriptionCreated, status_code=201)
async def create_subscription(
    data: SubscriptionCreate,
    service=Depends(get_subscription_service),
    now=Depends(get_now),
):
    """Create a subscription after the payment has been confirmed."""
    created = await service.create(
        CreateSubscriptionRequest(
            user_id=data.user_id,
            plan_id=data.plan_id,
            delivery_frequency=data.delivery_frequency,
            duration_months=data.duration_months,
            selected_items=[item.model_dump(mode="json") for item in data.selected_items],
            delivery_address=data.delivery_address,
            pricing=data.pricing,
        ),
        now,
    )
    return SubscriptionCreated(
        subscription=SubscriptionResponse.model_validate(created.subscription),
        first_delivery_date=created.first_delivery_date,
        is_after_cutoff=created.is_after_cutoff,
        pause_notice=_notice(created.pause_notice),
    )


@router.get("/user/{user_id}", response_model=list[SubscriptionResponse])
async def list_user_subscriptions(user_id: uuid.UUID, service=Depends(get_subscription_service)):
    return await service.list_for_user(user_id)


@router.get("/{subscription_id}/schedule", response_model=DeliveryScheduleResponse)
async def subscription_schedule(subscription_id: uuid.UUID, service=Depends(get_subscription_service)):
    """Every delivery day of the subscription term."""
    series = await service.schedule(subscription_id)
    return DeliveryScheduleResponse(
        subscription_id=subscription_id,
        start_date=series.start_date,
        end_date=series.end_date,
        total_deliveries=series.total_deliveries,
        delivery_dates=list(series.delivery_dates),
    )


@router.post("/{subscription_id}/pause", response_model=SubscriptionPauseResult)
async def pause_subscription(
    subscription_id: uuid.UUID,
    data: SubscriptionPauseRequest,
    service=Depends(get_subscription_service),
    now=Depends(get_now),
):
    deadline = await service.pause(subscription_id, data.user_id, now, data.reason)
    return SubscriptionPauseResult(
        message=f"Subscription paused. You can resume it until {deadline:%d %B %Y}.",
        subscription_id=subscription_id,
        reactivation_deadline=deadline,
    )


@router.post("/{subscription_id}/resume", response_model=SubscriptionResumeResult)
async def resume_subscription(
    subscription_id: uuid.UUID,
    data: SubscriptionActionRequest,
    service=Depends(get_subscription_service),
    now=Depends(get_now),
):
    result = await service.resume(subscription_id, data.user_id, now)
    return SubscriptionResumeResult(
        message="Subscription reactivated successfully.",
        subscription_id=result.subscription_id,
        next_delivery_date=result.next_delivery_date,
        extended_end_date=result.extended_end_date,
        pause_duration_days=result.pause_duration_days,
        pause_notice=_notice(result.pause_notice),
    )


@router.post("/{subscription_id}/cancel", response_model=ActionResult)
async def cancel_subscription(
    subscription_id: uuid.UUID,
    data: SubscriptionActionRequest,
    service=Depends(get_subscription_service),
    now=Depends(get_now),
):
    await service.cancel(subscription_id, data.user_id, now)
    return ActionResult(message="Subscription cancelled.")
