"""
Delivery Schedule Settings — operator-tunable gap per subscription type.

Caching:
  - Active gap table cached in Redis for SCHEDULE_SETTINGS_CACHE_SECONDS
  - Cache is dropped whenever a setting is updated
  - Redis down  -> read from the database
  - Database down -> built-in defaults
"""

import json
import logging
import uuid

import redis.asyncio as aioredis
from redis.exceptions import RedisError

from config import settings
from schemas.enums import AuditAction, SubscriptionType
from services.delivery_schedule import DEFAULT_DELIVERY_GAPS, DeliveryGap, describe_schedule
from services.errors import DependencyError, PersistenceError, ValidationError

logger = logging.getLogger(__name__)

CACHE_KEY = "delivery_schedule:gaps"
MIN_GAP_DAYS = 1
MAX_GAP_DAYS = 30

_redis: aioredis.Redis | None = None


async def get_redis() -> aioredis.Redis:
    """Singleton Redis connection."""
    global _redis
    if _redis is None:
        _redis = aioredis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


def _encode(gaps: dict[str, DeliveryGap]) -> str:
    return json.dumps({
        name: {"gap_days": gap.gap_days, "is_daily": gap.is_daily}
        for name, gap in gaps.items()
    })


def _decode(raw: str) -> dict[str, DeliveryGap]:
    data = json.loads(raw)
    return {
        name: DeliveryGap(gap_days=int(value["gap_days"]), is_daily=bool(value["is_daily"]))
        for name, value in data.items()
    }


class ScheduleSettingsService:

    def __init__(self, repo, audit, cache: aioredis.Redis | None = None):
        self.repo = repo
        self.audit = audit
        self.cache = cache

    async def load_gaps(self) -> dict[str, DeliveryGap]:
        """Active gap table: defaults overlaid with the operator's rows."""
        cached = await self._cache_get()
        if cached is not None:
            return cached

        gaps = dict(DEFAULT_DELIVERY_GAPS)
        try:
            rows = await self.repo.list_active()
        except PersistenceError:
            logger.warning("Schedule settings unavailable, using built-in defaults")
            return gaps

        for row in rows:
            gaps[row.subscription_type] = DeliveryGap(gap_days=row.delivery_gap_days, is_daily=row.is_daily)

        await self._cache_set(gaps)
        return gaps

    async def list_settings(self) -> list[dict]:
        """Every subscription type with its effective gap, for the admin screen."""
        rows = {row.subscription_type: row for row in await self.repo.list_all()}
        result = []
        for subscription_type in SubscriptionType:
            row = rows.get(subscription_type.value)
            if row is not None:
                gap = DeliveryGap(gap_days=row.delivery_gap_days, is_daily=row.is_daily)
            else:
                gap = DEFAULT_DELIVERY_GAPS[subscription_type.value]
            result.append({
                "subscription_type": subscription_type.value,
                "delivery_gap_days": gap.gap_days,
                "is_daily": gap.is_daily,
                "description": row.description if row is not None and row.description else describe_schedule(gap),
                "is_active": row.is_active if row is not None else True,
                "is_default": row is None,
                "updated_at": row.updated_at if row is not None else None,
            })
        return result

    async def update_setting(
        self,
        subscription_type: str,
        delivery_gap_days: int,
        is_daily: bool,
        admin_user_id: uuid.UUID | None,
        description: str | None = None,
    ) -> DeliveryGap:
        if subscription_type not in {t.value for t in SubscriptionType}:
            raise ValidationError("Invalid subscription type. Must be juices, fruit_bowls, or customized")
        if not MIN_GAP_DAYS <= delivery_gap_days <= MAX_GAP_DAYS:
            raise ValidationError(f"Delivery gap must be between {MIN_GAP_DAYS} and {MAX_GAP_DAYS} days")

        gap = DeliveryGap(gap_days=delivery_gap_days, is_daily=is_daily)
        await self.repo.upsert(
            subscription_type,
            delivery_gap_days=delivery_gap_days,
            is_daily=is_daily,
            description=description or describe_schedule(gap),
            updated_by=admin_user_id,
        )
        await self.invalidate()

        try:
            await self.audit.insert(
                admin_user_id,
                AuditAction.DELIVERY_SCHEDULE_SETTING_UPDATED.value,
                {
                    "subscription_type": subscription_type,
                    "delivery_gap_days": delivery_gap_days,
                    "is_daily": is_daily,
                },
            )
        except DependencyError:
            logger.warning("Audit entry for schedule update on %s not written", subscription_type)

        logger.info("Delivery schedule for %s set to %s", subscription_type, describe_schedule(gap))
        return gap

    async def invalidate(self) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.delete(CACHE_KEY)
        except RedisError as e:
            logger.warning("Schedule settings cache invalidation failed: %s", e)

    async def _cache_get(self) -> dict[str, DeliveryGap] | None:
        if self.cache is None:
            return None
        try:
            raw = await self.cache.get(CACHE_KEY)
        except RedisError as e:
            logger.warning("Schedule settings cache read failed: %s", e)
            return None
        if not raw:
            return None
        try:
            return _decode(raw)
        except (ValueError, KeyError, TypeError):
            logger.warning("Discarding malformed schedule settings cache entry")
            return None

    async def _cache_set(self, gaps: dict[str, DeliveryGap]) -> None:
        if self.cache is None:
            return
        try:
            await self.cache.set(CACHE_KEY, _encode(gaps), ex=settings.SCHEDULE_SETTINGS_CACHE_SECONDS)
        except RedisError as e:
            logger.warning("Schedule settings cache write failed: %s", e)
