"""
Subscription Service — checkout creation and customer self-service.

  create   payment already confirmed upstream; the pause gate may defer
           the first delivery
  pause    needs USER_PAUSE_NOTICE_HOURS before the next delivery; the
           customer has USER_REACTIVATION_WINDOW_MONTHS to come back
  resume   past the window the subscription expires; the paused time is
           added to the end date
  cancel   refused while a store hold is in place
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timedelta

from config import settings
from schemas.enums import DeliveryFrequency, DeliveryStatus, SubscriptionStatus
from services.delivery_schedule import (
    DeliverySeries, add_days, add_months, compute_delivery_series,
    compute_first_delivery, days_between, pin_delivery_time,
)
from services.errors import DependencyError, NotFoundError, PersistenceError, ValidationError
from services.lifecycle import ensure_transition, refusal_message
from services.pause_gate import PauseGateResult

logger = logging.getLogger(__name__)


@dataclass
class CreateSubscriptionRequest:
    user_id: uuid.UUID
    plan_id: str
    delivery_frequency: DeliveryFrequency
    duration_months: int
    selected_items: list[dict] = field(default_factory=list)
    delivery_address: dict | None = None
    pricing: dict | None = None


@dataclass
class CreatedSubscription:
    subscription: object
    first_delivery_date: datetime
    is_after_cutoff: bool
    pause_notice: PauseGateResult


@dataclass
class ResumeResult:
    subscription_id: uuid.UUID
    next_delivery_date: datetime
    extended_end_date: datetime
    pause_duration_days: int
    pause_notice: PauseGateResult


class SubscriptionService:

    def __init__(self, subscriptions, deliveries, gate):
        self.subscriptions = subscriptions
        self.deliveries = deliveries
        self.gate = gate

    async def create(self, request: CreateSubscriptionRequest, now: datetime) -> CreatedSubscription:
        if not request.plan_id:
            raise ValidationError("Plan ID is required")
        if request.duration_months < 1:
            raise ValidationError("Subscription duration must be at least one month")
        if not request.selected_items:
            raise ValidationError("At least one item must be selected")

        first = compute_first_delivery(now, settings.ORDER_CUTOFF_HOUR)
        notice = await self.gate.check(request.user_id, now)
        if notice.is_affected:
            first_delivery = notice.adjusted_first_delivery
        else:
            first_delivery = pin_delivery_time(first.first_delivery_date, settings.DELIVERY_HOUR)

        subscription = await self.subscriptions.create({
            "user_id": request.user_id,
            "plan_id": request.plan_id,
            "delivery_frequency": request.delivery_frequency,
            "next_delivery_date": first_delivery,
            "subscription_start_date": now,
            "subscription_end_date": add_months(now, request.duration_months),
            "subscription_duration": request.duration_months,
            "status": SubscriptionStatus.ACTIVE,
            "selected_items": request.selected_items,
            "delivery_address": request.delivery_address,
            "pricing": request.pricing,
        })

        try:
            await self.deliveries.upsert(
                subscription.id, first_delivery, request.selected_items, DeliveryStatus.SCHEDULED,
            )
        except PersistenceError as e:
            # the cron run will create it on the due date
            logger.warning("First delivery for subscription %s not recorded: %s", subscription.id, e.message)

        logger.info(
            "Subscription %s created for user %s, first delivery %s%s",
            subscription.id, request.user_id, first_delivery.date(),
            " (deferred by admin pause)" if notice.is_affected else "",
        )
        return CreatedSubscription(
            subscription=subscription,
            first_delivery_date=first_delivery,
            is_after_cutoff=first.is_after_cutoff,
            pause_notice=notice,
        )

    async def pause(
        self,
        subscription_id: uuid.UUID,
        user_id: uuid.UUID,
        now: datetime,
        reason: str | None = None,
    ) -> datetime:
        """Pause on the customer's request. Returns the reactivation deadline."""
        subscription = await self._owned(subscription_id, user_id)
        ensure_transition(subscription.status, SubscriptionStatus.PAUSED)

        next_delivery = subscription.next_delivery_date
        notice = timedelta(hours=settings.USER_PAUSE_NOTICE_HOURS)
        if next_delivery is not None and next_delivery - now < notice:
            raise ValidationError(
                f"Subscriptions can only be paused at least {settings.USER_PAUSE_NOTICE_HOURS} hours "
                f"before the next delivery."
            )

        deadline = add_months(now, settings.USER_REACTIVATION_WINDOW_MONTHS)
        await self.subscriptions.update(subscription.id, {
            "status": SubscriptionStatus.PAUSED,
            "pause_date": now,
            "pause_reason": reason or "User requested pause",
            "reactivation_deadline": deadline,
        })

        try:
            await self.deliveries.bulk_update_status(
                subscription.id, DeliveryStatus.SCHEDULED, DeliveryStatus.SKIPPED, now,
            )
        except DependencyError as e:
            logger.warning("Upcoming deliveries for subscription %s not skipped: %s", subscription.id, e.message)

        logger.info("Subscription %s paused by user until %s", subscription.id, deadline.date())
        return deadline

    async def resume(self, subscription_id: uuid.UUID, user_id: uuid.UUID, now: datetime) -> ResumeResult:
        subscription = await self._owned(subscription_id, user_id)
        if subscription.status is not SubscriptionStatus.PAUSED:
            raise ValidationError(refusal_message(subscription.status))

        paused_at = (subscription.pause_date or now).astimezone(now.tzinfo)
        deadline = subscription.reactivation_deadline or add_months(
            paused_at, settings.USER_REACTIVATION_WINDOW_MONTHS,
        )
        if now > deadline:
            ensure_transition(subscription.status, SubscriptionStatus.EXPIRED)
            await self.subscriptions.update(subscription.id, {"status": SubscriptionStatus.EXPIRED})
            logger.info("Subscription %s expired: reactivation window closed %s", subscription.id, deadline.date())
            raise ValidationError(
                "Reactivation period has expired. Please create a new subscription."
            )

        notice = await self.gate.check(user_id, now)
        if notice.is_affected:
            next_delivery = notice.adjusted_first_delivery
        else:
            first = compute_first_delivery(now, settings.ORDER_CUTOFF_HOUR)
            next_delivery = pin_delivery_time(first.first_delivery_date, settings.DELIVERY_HOUR)

        paused_days = max(days_between(paused_at, now), 0)
        extended_end = add_days(subscription.subscription_end_date, paused_days)

        await self.subscriptions.update(subscription.id, {
            "status": SubscriptionStatus.ACTIVE,
            "next_delivery_date": next_delivery,
            "subscription_end_date": extended_end,
            "pause_date": None,
            "pause_reason": None,
            "reactivation_deadline": None,
        })

        try:
            await self.deliveries.upsert(
                subscription.id, next_delivery, subscription.selected_items or [], DeliveryStatus.SCHEDULED,
            )
        except PersistenceError as e:
            logger.warning("Resumed delivery for subscription %s not recorded: %s", subscription.id, e.message)

        logger.info("Subscription %s resumed, next delivery %s", subscription.id, next_delivery.date())
        return ResumeResult(
            subscription_id=subscription.id,
            next_delivery_date=next_delivery,
            extended_end_date=extended_end,
            pause_duration_days=paused_days,
            pause_notice=notice,
        )

    async def cancel(self, subscription_id: uuid.UUID, user_id: uuid.UUID, now: datetime) -> None:
        subscription = await self._owned(subscription_id, user_id)
        ensure_transition(subscription.status, SubscriptionStatus.CANCELLED)

        await self.subscriptions.update(subscription.id, {"status": SubscriptionStatus.CANCELLED})
        try:
            await self.deliveries.bulk_update_status(
                subscription.id, DeliveryStatus.SCHEDULED, DeliveryStatus.SKIPPED, now,
            )
        except DependencyError as e:
            logger.warning("Upcoming deliveries for subscription %s not skipped: %s", subscription.id, e.message)
        logger.info("Subscription %s cancelled by user", subscription.id)

    async def list_for_user(self, user_id: uuid.UUID) -> list:
        return await self.subscriptions.list_for_user(user_id)

    async def schedule(self, subscription_id: uuid.UUID) -> DeliverySeries:
        subscription = await self.subscriptions.get(subscription_id)
        if subscription is None:
            raise NotFoundError("Subscription not found")
        return compute_delivery_series(
            subscription.delivery_frequency,
            subscription.subscription_duration,
            subscription.subscription_start_date,
        )

    async def _owned(self, subscription_id: uuid.UUID, user_id: uuid.UUID):
        subscription = await self.subscriptions.get_for_user(subscription_id, user_id)
        if subscription is None:
            raise NotFoundError("Subscription not found")
        return subscription
