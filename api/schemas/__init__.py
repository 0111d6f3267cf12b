"""Pydantic schemas for API request/response models.

Field names are snake_case in Python and camelCase on the wire; requests
accept either spelling.
"""

from __future__ import annotations
import uuid
from datetime import datetime
from zoneinfo import ZoneInfo

from pydantic import BaseModel, Field, field_validator
from pydantic.alias_generators import to_camel

from config import settings
from schemas.enums import (
    AdminPauseStatus, DeliveryFrequency, ItemType, PauseType,
    ReactivationType, SubscriptionStatus, SubscriptionType,
)

__all__ = [
    "AdminPauseStatus", "DeliveryFrequency", "ItemType", "PauseType",
    "ReactivationType", "SubscriptionStatus", "SubscriptionType",
]


def _localize(value: datetime | None) -> datetime | None:
    """Treat offset-less timestamps as store-local time."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=ZoneInfo(settings.TIMEZONE))
    return value


class CamelModel(BaseModel):
    class Config:
        alias_generator = to_camel
        populate_by_name = True
        from_attributes = True


# ── Cron ───────────────────────────────────────────────────

class DeliverySchedulerResponse(CamelModel):
    success: bool = True
    message: str
    processed_count: int
    total_subscriptions: int
    expired_pauses: int = 0
    duplicates_removed: int = 0
    errors: list[str] = []
    timestamp: datetime


# ── Admin Pause ────────────────────────────────────────────

class AdminPauseCreate(CamelModel):
    pause_type: PauseType
    user_ids: list[uuid.UUID] = []
    start_date: datetime
    end_date: datetime | None = None
    reason: str = Field(..., min_length=1)
    admin_user_id: uuid.UUID

    @field_validator("start_date", "end_date")
    @classmethod
    def localize_dates(cls, value: datetime | None) -> datetime | None:
        return _localize(value)


class AdminPauseResult(CamelModel):
    success: bool = True
    message: str
    admin_pause_id: uuid.UUID
    pause_type: PauseType
    start_date: datetime
    end_date: datetime | None
    processed_count: int
    total_subscriptions: int
    errors: list[str] | None = None


class AdminReactivateRequest(CamelModel):
    reactivation_type: ReactivationType = ReactivationType.SELECTED
    subscription_ids: list[uuid.UUID] = []
    admin_pause_id: uuid.UUID | None = None
    admin_user_id: uuid.UUID


class AdminReactivateResult(CamelModel):
    success: bool = True
    message: str
    processed_count: int
    total_subscriptions: int
    next_delivery_date: datetime | None
    reactivated_pause_ids: list[uuid.UUID] = []
    errors: list[str] | None = None


class AdminPauseResponse(CamelModel):
    id: uuid.UUID
    pause_type: PauseType
    affected_user_ids: list[str] | None
    start_date: datetime
    end_date: datetime | None
    reason: str
    admin_user_id: uuid.UUID
    status: AdminPauseStatus
    affected_subscription_count: int
    reactivated_at: datetime | None = None
    reactivated_by: uuid.UUID | None = None
    created_at: datetime | None = None


class AuditLogResponse(CamelModel):
    id: uuid.UUID
    admin_user_id: uuid.UUID | None
    action: str
    details: dict
    created_at: datetime | None = None


class OverviewSummary(CamelModel):
    total_subscriptions: int
    active_subscriptions: int
    admin_paused_subscriptions: int
    user_paused_subscriptions: int
    active_pauses: int


class AdminOverviewResponse(CamelModel):
    success: bool = True
    stats: dict[str, int]
    pauses: list[AdminPauseResponse]
    recent_actions: list[AuditLogResponse]
    summary: OverviewSummary


# ── Delivery Schedule Settings ─────────────────────────────

class ScheduleSettingResponse(CamelModel):
    subscription_type: str
    delivery_gap_days: int
    is_daily: bool
    description: str | None
    is_active: bool
    is_default: bool
    updated_at: datetime | None = None


class ScheduleSettingUpdate(CamelModel):
    subscription_type: str
    delivery_gap_days: int
    is_daily: bool = False
    description: str | None = None
    admin_user_id: uuid.UUID


class SchedulePreviewResponse(CamelModel):
    subscription_type: str
    description: str
    start_date: datetime
    delivery_dates: list[datetime]


# ── Subscriptions ──────────────────────────────────────────

class PauseStatusResponse(CamelModel):
    is_affected: bool
    admin_pause_id: uuid.UUID | None = None
    pause_type: PauseType | None = None
    reason: str | None = None
    pause_end: datetime | None = None
    adjusted_first_delivery: datetime | None = None
    message: str | None = None


class SelectedItem(CamelModel):
    item_type: ItemType
    id: str
    name: str
    quantity: int = Field(1, ge=1)


class SubscriptionCreate(CamelModel):
    user_id: uuid.UUID
    plan_id: str = Field(..., min_length=1)
    delivery_frequency: DeliveryFrequency
    duration_months: int = Field(..., ge=1, le=12)
    selected_items: list[SelectedItem] = Field(..., min_length=1)
    delivery_address: dict | None = None
    pricing: dict | None = None


class SubscriptionResponse(CamelModel):
    id: uuid.UUID
    user_id: uuid.UUID
    plan_id: str
    delivery_frequency: DeliveryFrequency
    status: SubscriptionStatus
    next_delivery_date: datetime | None
    subscription_start_date: datetime
    subscription_end_date: datetime
    subscription_duration: int
    pause_date: datetime | None = None
    pause_reason: str | None = None
    reactivation_deadline: datetime | None = None
    admin_pause_id: uuid.UUID | None = None
    admin_pause_start: datetime | None = None
    admin_pause_end: datetime | None = None
    selected_items: list[dict] = []
    delivery_address: dict | None = None
    created_at: datetime | None = None


class SubscriptionCreated(CamelModel):
    success: bool = True
    subscription: SubscriptionResponse
    first_delivery_date: datetime
    is_after_cutoff: bool
    pause_notice: PauseStatusResponse


class SubscriptionPauseRequest(CamelModel):
    user_id: uuid.UUID
    reason: str | None = None


class SubscriptionActionRequest(CamelModel):
    user_id: uuid.UUID


class SubscriptionPauseResult(CamelModel):
    success: bool = True
    message: str
    subscription_id: uuid.UUID
    reactivation_deadline: datetime


class SubscriptionResumeResult(CamelModel):
    success: bool = True
    message: str
    subscription_id: uuid.UUID
    next_delivery_date: datetime
    extended_end_date: datetime
    pause_duration_days: int
    pause_notice: PauseStatusResponse


class DeliveryScheduleResponse(CamelModel):
    subscription_id: uuid.UUID
    start_date: datetime
    end_date: datetime
    total_deliveries: int
    delivery_dates: list[datetime]


class ActionResult(CamelModel):
    success: bool = True
    message: str
