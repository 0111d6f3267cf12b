"""
Admin Pause Controller — operator holds on subscription deliveries.

Flow:
  pause        active subscriptions -> admin_paused, future scheduled
               deliveries -> admin_paused, one AdminPause row, audit entry
  reactivate   admin_paused subscriptions -> active with a fresh first
               delivery, held deliveries from that date -> scheduled
  expire       dated pauses whose end has passed are reactivated by the
               system during the cron run

Each subscription is updated on its own; one failure lands in `errors` and
the batch carries on. Delivery flips and audit entries are best-effort.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from config import settings
from schemas.enums import (
    AdminPauseStatus, AuditAction, DeliveryStatus, PauseType,
    ReactivationType, SubscriptionStatus,
)
from services.delivery_schedule import add_months, compute_first_delivery, pin_delivery_time
from services.errors import (
    AuthorizationError, DependencyError, NotFoundError, PersistenceError, ServiceError, ValidationError,
)
from services.lifecycle import ensure_transition

logger = logging.getLogger(__name__)


@dataclass
class PauseRequest:
    admin_user_id: uuid.UUID
    pause_type: PauseType
    start_date: datetime
    reason: str
    end_date: datetime | None = None
    user_ids: list[uuid.UUID] = field(default_factory=list)


@dataclass
class PauseResult:
    admin_pause_id: uuid.UUID
    pause_type: PauseType
    start_date: datetime
    end_date: datetime | None
    processed_count: int
    total_subscriptions: int
    errors: list[str] = field(default_factory=list)


@dataclass
class ReactivationRequest:
    admin_user_id: uuid.UUID | None
    reactivation_type: ReactivationType = ReactivationType.SELECTED
    subscription_ids: list[uuid.UUID] = field(default_factory=list)
    admin_pause_id: uuid.UUID | None = None


@dataclass
class ReactivationResult:
    processed_count: int
    total_subscriptions: int
    next_delivery_date: datetime | None
    reactivated_pause_ids: list[uuid.UUID] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class AdminPauseController:

    def __init__(self, subscriptions, deliveries, pauses, audit, users):
        self.subscriptions = subscriptions
        self.deliveries = deliveries
        self.pauses = pauses
        self.audit = audit
        self.users = users

    # ── Pause ───────────────────────────────────────────────

    async def pause(self, request: PauseRequest, now: datetime) -> PauseResult:
        self._validate_pause(request, now)
        await self._ensure_admin(request.admin_user_id)

        user_ids = request.user_ids if request.pause_type is PauseType.SELECTED else None
        targets = await self.subscriptions.list_by_status(SubscriptionStatus.ACTIVE, user_ids=user_ids)
        if not targets:
            raise NotFoundError("No active subscriptions found")

        pause = await self.pauses.insert({
            "pause_type": request.pause_type,
            "affected_user_ids": [str(u) for u in request.user_ids] if user_ids is not None else None,
            "start_date": request.start_date,
            "end_date": request.end_date,
            "reason": request.reason,
            "admin_user_id": request.admin_user_id,
            "status": AdminPauseStatus.ACTIVE,
            "affected_subscription_count": len(targets),
        })

        if request.end_date is not None:
            deadline = add_months(request.end_date, settings.PAUSE_REACTIVATION_GRACE_MONTHS)
        else:
            deadline = add_months(request.start_date, settings.INDEFINITE_PAUSE_CEILING_MONTHS)

        processed = 0
        errors: list[str] = []
        for subscription in targets:
            subscription_id, status = subscription.id, subscription.status
            try:
                ensure_transition(status, SubscriptionStatus.ADMIN_PAUSED)
                # next_delivery_date stays as it was; reactivation recomputes it
                await self.subscriptions.update(subscription_id, {
                    "status": SubscriptionStatus.ADMIN_PAUSED,
                    "admin_pause_id": pause.id,
                    "admin_pause_start": request.start_date,
                    "admin_pause_end": request.end_date,
                    "pause_reason": request.reason,
                    "reactivation_deadline": deadline,
                })
            except ServiceError as e:
                logger.error("Failed to pause subscription %s: %s", subscription_id, e.message)
                errors.append(f"Failed to pause subscription {subscription_id}: {e.message}")
                continue
            except Exception as e:
                logger.exception("Unexpected error pausing subscription %s", subscription_id)
                errors.append(f"Failed to pause subscription {subscription_id}: {e}")
                continue

            processed += 1
            try:
                await self.deliveries.bulk_update_status(
                    subscription_id,
                    DeliveryStatus.SCHEDULED,
                    DeliveryStatus.ADMIN_PAUSED,
                    request.start_date,
                    {"admin_pause_id": pause.id},
                )
            except DependencyError as e:
                logger.warning("Deliveries for subscription %s not held: %s", subscription_id, e.message)

        await self._record(request.admin_user_id, AuditAction.ADMIN_PAUSE_SUBSCRIPTIONS, {
            "admin_pause_id": str(pause.id),
            "pause_type": request.pause_type.value,
            "affected_user_ids": [str(u) for u in request.user_ids] if user_ids is not None else None,
            "start_date": request.start_date.isoformat(),
            "end_date": request.end_date.isoformat() if request.end_date else None,
            "reason": request.reason,
            "processed_count": processed,
            "total_subscriptions": len(targets),
        })

        logger.info(
            "Admin pause %s: %d/%d subscriptions paused (%s)",
            pause.id, processed, len(targets), request.pause_type.value,
        )
        return PauseResult(
            admin_pause_id=pause.id,
            pause_type=request.pause_type,
            start_date=request.start_date,
            end_date=request.end_date,
            processed_count=processed,
            total_subscriptions=len(targets),
            errors=errors,
        )

    @staticmethod
    def _validate_pause(request: PauseRequest, now: datetime) -> None:
        if request.pause_type is PauseType.SELECTED and not request.user_ids:
            raise ValidationError("User IDs required for selected pause")
        if not request.reason or not request.reason.strip():
            raise ValidationError("Start date, reason, and admin user ID are required")
        if request.start_date < now:
            raise ValidationError("Start date cannot be in the past")
        if request.end_date is not None and request.end_date <= request.start_date:
            raise ValidationError("End date must be after start date")

    # ── Reactivate ──────────────────────────────────────────

    async def reactivate(self, request: ReactivationRequest, now: datetime) -> ReactivationResult:
        if (
            request.reactivation_type is ReactivationType.SELECTED
            and not request.subscription_ids
            and request.admin_pause_id is None
        ):
            raise ValidationError("Subscription IDs or an admin pause ID are required")
        await self._ensure_admin(request.admin_user_id)

        pause = None
        if request.admin_pause_id is not None:
            pause = await self.pauses.get(request.admin_pause_id)
            if pause is None:
                raise NotFoundError("Admin pause not found")

        return await self._reactivate(request, now, pause)

    async def _reactivate(self, request: ReactivationRequest, now: datetime, pause) -> ReactivationResult:
        if request.reactivation_type is ReactivationType.ALL:
            targets = await self.subscriptions.list_by_status(SubscriptionStatus.ADMIN_PAUSED)
        elif request.subscription_ids:
            targets = await self.subscriptions.list_by_status(
                SubscriptionStatus.ADMIN_PAUSED,
                ids=request.subscription_ids,
                admin_pause_id=pause.id if pause is not None else None,
            )
        else:
            targets = await self.subscriptions.list_by_status(
                SubscriptionStatus.ADMIN_PAUSED, admin_pause_id=pause.id,
            )

        if not targets:
            if pause is not None and pause.status is AdminPauseStatus.ACTIVE:
                await self.pauses.update(pause.id, {
                    "status": AdminPauseStatus.REACTIVATED,
                    "reactivated_at": now,
                    "reactivated_by": request.admin_user_id,
                })
                return ReactivationResult(0, 0, None, reactivated_pause_ids=[pause.id])
            raise NotFoundError("No admin-paused subscriptions found to reactivate")

        first = compute_first_delivery(now, settings.ORDER_CUTOFF_HOUR)
        next_delivery = pin_delivery_time(first.first_delivery_date, settings.DELIVERY_HOUR)

        processed = 0
        errors: list[str] = []
        touched_pauses: set[uuid.UUID] = set()
        target_ids = [s.id for s in targets]
        for subscription in targets:
            subscription_id, status, held_by = subscription.id, subscription.status, subscription.admin_pause_id
            try:
                ensure_transition(status, SubscriptionStatus.ACTIVE)
                await self.subscriptions.update(subscription_id, {
                    "status": SubscriptionStatus.ACTIVE,
                    "next_delivery_date": next_delivery,
                    "admin_pause_id": None,
                    "reactivation_deadline": None,
                    "admin_reactivated_at": now,
                    "admin_reactivated_by": request.admin_user_id,
                })
            except ServiceError as e:
                logger.error("Failed to reactivate subscription %s: %s", subscription_id, e.message)
                errors.append(f"Failed to reactivate subscription {subscription_id}: {e.message}")
                continue
            except Exception as e:
                logger.exception("Unexpected error reactivating subscription %s", subscription_id)
                errors.append(f"Failed to reactivate subscription {subscription_id}: {e}")
                continue

            processed += 1
            if held_by is not None:
                touched_pauses.add(held_by)
            try:
                await self.deliveries.bulk_update_status(
                    subscription_id,
                    DeliveryStatus.ADMIN_PAUSED,
                    DeliveryStatus.SCHEDULED,
                    next_delivery,
                    {"admin_reactivated_at": now},
                )
            except DependencyError as e:
                logger.warning("Held deliveries for subscription %s not released: %s", subscription_id, e.message)

        reactivated_pauses = await self._close_drained_pauses(
            touched_pauses, AdminPauseStatus.REACTIVATED, request.admin_user_id, now,
        )

        await self._record(request.admin_user_id, AuditAction.ADMIN_REACTIVATE_SUBSCRIPTIONS, {
            "reactivation_type": request.reactivation_type.value,
            "subscription_ids": [str(i) for i in target_ids],
            "admin_pause_id": str(pause.id) if pause is not None else None,
            "next_delivery_date": next_delivery.isoformat(),
            "processed_count": processed,
            "total_subscriptions": len(targets),
        })

        logger.info("Reactivated %d/%d admin-paused subscriptions", processed, len(targets))
        return ReactivationResult(
            processed_count=processed,
            total_subscriptions=len(targets),
            next_delivery_date=next_delivery,
            reactivated_pause_ids=reactivated_pauses,
            errors=errors,
        )

    async def _close_drained_pauses(
        self,
        pause_ids: set[uuid.UUID],
        status: AdminPauseStatus,
        actor: uuid.UUID | None,
        now: datetime,
    ) -> list[uuid.UUID]:
        """Close every pause in pause_ids that no longer holds any subscription."""
        closed = []
        for pause_id in pause_ids:
            try:
                remaining = await self.subscriptions.list_by_status(
                    SubscriptionStatus.ADMIN_PAUSED, admin_pause_id=pause_id,
                )
                if remaining:
                    continue
                await self.pauses.update(pause_id, {
                    "status": status,
                    "reactivated_at": now,
                    "reactivated_by": actor,
                })
                closed.append(pause_id)
            except PersistenceError as e:
                logger.warning("Admin pause %s not closed: %s", pause_id, e.message)
        return closed

    # ── Expiry sweep ────────────────────────────────────────

    async def expire_elapsed(self, now: datetime) -> int:
        """Reactivate subscriptions held by pauses whose end date has passed.

        Runs as the system (no admin id). Returns the number of pauses expired.
        """
        expired = 0
        for pause in await self.pauses.list_elapsed(now):
            held = await self.subscriptions.list_by_status(
                SubscriptionStatus.ADMIN_PAUSED, admin_pause_id=pause.id,
            )
            if held:
                result = await self._reactivate(
                    ReactivationRequest(admin_user_id=None, admin_pause_id=pause.id),
                    now,
                    pause,
                )
                if result.errors:
                    logger.warning("Admin pause %s expired with %d errors", pause.id, len(result.errors))
                    continue

            await self.pauses.update(pause.id, {"status": AdminPauseStatus.EXPIRED})
            await self._record(None, AuditAction.ADMIN_PAUSE_EXPIRED, {
                "admin_pause_id": str(pause.id),
                "end_date": pause.end_date.isoformat() if pause.end_date else None,
                "resumed_subscriptions": len(held),
            })
            expired += 1

        if expired:
            logger.info("Expired %d elapsed admin pauses", expired)
        return expired

    # ── Helpers ─────────────────────────────────────────────

    async def _ensure_admin(self, admin_user_id: uuid.UUID | None) -> None:
        if admin_user_id is None or not await self.users.is_admin(admin_user_id):
            raise AuthorizationError("Unauthorized: admin access required")

    async def _record(self, admin_user_id, action: AuditAction, details: dict) -> None:
        try:
            await self.audit.insert(admin_user_id, action.value, details)
        except DependencyError as e:
            logger.warning("Audit entry %s not written: %s", action.value, e.message)
