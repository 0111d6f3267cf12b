"""FastAPI dependency providers — one session per request, services built on top."""

import uuid
from datetime import datetime
from zoneinfo import ZoneInfo

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from config import settings
from db.database import get_db
from repositories import (
    AdminPauseStore, AuditLogStore, DeliveryRepository,
    ScheduleSettingsRepository, SubscriptionRepository, UserRepository,
)
from services.admin_pause import AdminPauseController
from services.errors import AuthorizationError
from services.pause_gate import PauseStatusGate
from services.reconciliation import ReconciliationEngine
from services.schedule_settings import ScheduleSettingsService, get_redis
from services.subscriptions import SubscriptionService


def get_now() -> datetime:
    """Current store-local time. Overridden in tests to pin the clock."""
    return datetime.now(ZoneInfo(settings.TIMEZONE))


async def get_cache():
    return await get_redis()


# ── Repositories ───────────────────────────────────────────

def get_subscription_repo(db: AsyncSession = Depends(get_db)):
    return SubscriptionRepository(db)


def get_delivery_repo(db: AsyncSession = Depends(get_db)):
    return DeliveryRepository(db)


def get_pause_store(db: AsyncSession = Depends(get_db)):
    return AdminPauseStore(db)


def get_audit_store(db: AsyncSession = Depends(get_db)):
    return AuditLogStore(db)


def get_settings_repo(db: AsyncSession = Depends(get_db)):
    return ScheduleSettingsRepository(db)


def get_user_repo(db: AsyncSession = Depends(get_db)):
    return UserRepository(db)


# ── Services ───────────────────────────────────────────────

def get_pause_controller(
    subscriptions=Depends(get_subscription_repo),
    deliveries=Depends(get_delivery_repo),
    pauses=Depends(get_pause_store),
    audit=Depends(get_audit_store),
    users=Depends(get_user_repo),
) -> AdminPauseController:
    return AdminPauseController(subscriptions, deliveries, pauses, audit, users)


def get_pause_gate(pauses=Depends(get_pause_store)) -> PauseStatusGate:
    return PauseStatusGate(pauses)


def get_schedule_settings(
    repo=Depends(get_settings_repo),
    audit=Depends(get_audit_store),
    cache=Depends(get_cache),
) -> ScheduleSettingsService:
    return ScheduleSettingsService(repo, audit, cache)


def get_reconciliation_engine(
    subscriptions=Depends(get_subscription_repo),
    deliveries=Depends(get_delivery_repo),
    controller=Depends(get_pause_controller),
    schedule_settings=Depends(get_schedule_settings),
    gate=Depends(get_pause_gate),
) -> ReconciliationEngine:
    return ReconciliationEngine(subscriptions, deliveries, controller, schedule_settings, gate)


def get_subscription_service(
    subscriptions=Depends(get_subscription_repo),
    deliveries=Depends(get_delivery_repo),
    gate=Depends(get_pause_gate),
) -> SubscriptionService:
    return SubscriptionService(subscriptions, deliveries, gate)


async def require_admin(admin_user_id: uuid.UUID | None, users) -> uuid.UUID:
    if admin_user_id is None or not await users.is_admin(admin_user_id):
        raise AuthorizationError("Unauthorized: admin access required")
    return admin_user_id
