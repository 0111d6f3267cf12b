"""Admin API — store-wide delivery holds and delivery schedule tuning."""

import logging
import uuid

from fastapi import APIRouter, BackgroundTasks, Depends, Query

from config import settings
from dependencies import (
    get_audit_store, get_now, get_pause_controller, get_pause_store,
    get_schedule_settings, get_subscription_repo, get_user_repo, require_admin,
)
from schemas import (
    AdminOverviewResponse, AdminPauseCreate, AdminPauseResponse, AdminPauseResult,
    AdminReactivateRequest, AdminReactivateResult, AuditLogResponse, OverviewSummary,
    SchedulePreviewResponse, ScheduleSettingResponse, ScheduleSettingUpdate,
)
from schemas.enums import AdminPauseStatus, AuditAction, SubscriptionStatus, SubscriptionType
from services.admin_pause import PauseRequest, ReactivationRequest
from services.delivery_schedule import (
    compute_first_delivery, describe_schedule, pin_delivery_time, preview_schedule,
)
from services.errors import ValidationError
from services.notifications import notify_admin_pause, notify_reactivation

router = APIRouter()
logger = logging.getLogger(__name__)


# ── Admin Pause ────────────────────────────────────────────

@router.post("/subscriptions/pause", response_model=AdminPauseResult, response_model_exclude_none=True)
async def pause_subscriptions(
    data: AdminPauseCreate,
    background_tasks: BackgroundTasks,
    controller=Depends(get_pause_controller),
    now=Depends(get_now),
):
    """Put every active subscription (or those of selected users) on hold."""
    result = await controller.pause(
        PauseRequest(
            admin_user_id=data.admin_user_id,
            pause_type=data.pause_type,
            start_date=data.start_date,
            end_date=data.end_date,
            reason=data.reason.strip(),
            user_ids=data.user_ids,
        ),
        now,
    )
    background_tasks.add_task(notify_admin_pause, result)

    return AdminPauseResult(
        message=f"Successfully paused {result.processed_count} subscriptions",
        admin_pause_id=result.admin_pause_id,
        pause_type=result.pause_type,
        start_date=result.start_date,
        end_date=result.end_date,
        processed_count=result.processed_count,
        total_subscriptions=result.total_subscriptions,
        errors=result.errors or None,
    )


@router.post("/subscriptions/reactivate", response_model=AdminReactivateResult, response_model_exclude_none=True)
async def reactivate_subscriptions(
    data: AdminReactivateRequest,
    background_tasks: BackgroundTasks,
    controller=Depends(get_pause_controller),
    now=Depends(get_now),
):
    """Lift a hold: by admin pause id, by subscription ids, or everything."""
    result = await controller.reactivate(
        ReactivationRequest(
            admin_user_id=data.admin_user_id,
            reactivation_type=data.reactivation_type,
            subscription_ids=data.subscription_ids,
            admin_pause_id=data.admin_pause_id,
        ),
        now,
    )
    if result.processed_count:
        background_tasks.add_task(notify_reactivation, result)

    return AdminReactivateResult(
        message=f"Successfully reactivated {result.processed_count} subscriptions",
        processed_count=result.processed_count,
        total_subscriptions=result.total_subscriptions,
        next_delivery_date=result.next_delivery_date,
        reactivated_pause_ids=result.reactivated_pause_ids,
        errors=result.errors or None,
    )


@router.get("/subscriptions/overview", response_model=AdminOverviewResponse)
async def subscriptions_overview(
    admin_user_id: uuid.UUID | None = Query(None, alias="adminUserId"),
    subscriptions=Depends(get_subscription_repo),
    pauses=Depends(get_pause_store),
    audit=Depends(get_audit_store),
    users=Depends(get_user_repo),
):
    """Pause history, subscription counts and recent admin actions."""
    await require_admin(admin_user_id, users)

    stats = await subscriptions.count_by_status()
    pause_rows = await pauses.list_all(limit=100)
    actions = await audit.list_recent(
        [AuditAction.ADMIN_PAUSE_SUBSCRIPTIONS.value, AuditAction.ADMIN_REACTIVATE_SUBSCRIPTIONS.value],
        limit=50,
    )

    return AdminOverviewResponse(
        stats=stats,
        pauses=[AdminPauseResponse.model_validate(p) for p in pause_rows],
        recent_actions=[AuditLogResponse.model_validate(a) for a in actions],
        summary=OverviewSummary(
            total_subscriptions=sum(stats.values()),
            active_subscriptions=stats.get(SubscriptionStatus.ACTIVE.value, 0),
            admin_paused_subscriptions=stats.get(SubscriptionStatus.ADMIN_PAUSED.value, 0),
            user_paused_subscriptions=stats.get(SubscriptionStatus.PAUSED.value, 0),
            active_pauses=sum(1 for p in pause_rows if p.status is AdminPauseStatus.ACTIVE),
        ),
    )


# ── Delivery Schedule Settings ─────────────────────────────

@router.get("/delivery-schedule/settings", response_model=list[ScheduleSettingResponse])
async def list_schedule_settings(service=Depends(get_schedule_settings)):
    return await service.list_settings()


@router.put("/delivery-schedule/settings", response_model=ScheduleSettingResponse)
async def update_schedule_setting(
    data: ScheduleSettingUpdate,
    service=Depends(get_schedule_settings),
    users=Depends(get_user_repo),
):
    """Change the gap for one subscription type (audited, cache dropped)."""
    await require_admin(data.admin_user_id, users)
    await service.update_setting(
        data.subscription_type,
        data.delivery_gap_days,
        data.is_daily,
        data.admin_user_id,
        data.description,
    )
    current = {s["subscription_type"]: s for s in await service.list_settings()}
    return current[data.subscription_type]


@router.get("/delivery-schedule/preview", response_model=SchedulePreviewResponse)
async def preview_delivery_schedule(
    subscription_type: str = Query(..., alias="subscriptionType"),
    count: int = Query(14, ge=1, le=60),
    service=Depends(get_schedule_settings),
    now=Depends(get_now),
):
    """Upcoming delivery days for an order placed now."""
    if subscription_type not in {t.value for t in SubscriptionType}:
        raise ValidationError("Invalid subscription type. Must be juices, fruit_bowls, or customized")

    gaps = await service.load_gaps()
    start = compute_first_delivery(now, settings.ORDER_CUTOFF_HOUR).first_delivery_date
    dates = preview_schedule(subscription_type, start, count, gaps)

    return SchedulePreviewResponse(
        subscription_type=subscription_type,
        description=describe_schedule(gaps.get(subscription_type)),
        start_date=pin_delivery_time(start, settings.DELIVERY_HOUR),
        delivery_dates=[pin_delivery_time(d, settings.DELIVERY_HOUR) for d in dates],
    )
