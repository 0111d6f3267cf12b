"""
Reconciliation Engine — the cron pass over active subscriptions.

Order of work per run:
  1. Expire admin pauses whose end date has passed
  2. For each active subscription:
       due today or earlier  -> upsert the scheduled delivery, advance the date
       due too far ahead     -> recompute the date from today (drift repair);
                                a user under an admin pause gets the
                                pause gate's deferred date instead
       otherwise             -> leave it alone
  3. Remove duplicate scheduled delivery rows

Safe to run repeatedly and concurrently with itself: the delivery upsert
ignores an existing (subscription, date) row and a second run with the same
`now` finds nothing left to change.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime

from config import settings
from schemas.enums import DeliveryFrequency, DeliveryStatus, SubscriptionStatus
from services.delivery_schedule import (
    compute_next_delivery_after, days_between, pin_delivery_time,
    start_of_day, subscription_type_for_plan,
)
from services.errors import ServiceError

logger = logging.getLogger(__name__)


@dataclass
class ReconciliationReport:
    processed_count: int
    total_subscriptions: int
    timestamp: datetime
    expired_pauses: int = 0
    duplicates_removed: int = 0
    errors: list[str] = field(default_factory=list)


def drift_tolerance_days(frequency: DeliveryFrequency | str) -> int:
    if DeliveryFrequency(frequency) is DeliveryFrequency.WEEKLY:
        return settings.WEEKLY_DRIFT_TOLERANCE_DAYS
    return settings.DEFAULT_DRIFT_TOLERANCE_DAYS


@dataclass(frozen=True)
class _DueRow:
    """The fields reconciliation needs, copied off the ORM row before any write."""

    id: uuid.UUID
    user_id: uuid.UUID
    plan_id: str
    delivery_frequency: DeliveryFrequency | str
    next_delivery_date: datetime | None
    selected_items: list

    @classmethod
    def of(cls, subscription) -> "_DueRow":
        return cls(
            id=subscription.id,
            user_id=subscription.user_id,
            plan_id=subscription.plan_id,
            delivery_frequency=subscription.delivery_frequency,
            next_delivery_date=subscription.next_delivery_date,
            selected_items=list(subscription.selected_items or []),
        )


class ReconciliationEngine:

    def __init__(self, subscriptions, deliveries, pause_controller, schedule_settings, pause_gate):
        self.subscriptions = subscriptions
        self.deliveries = deliveries
        self.pause_controller = pause_controller
        self.schedule_settings = schedule_settings
        self.pause_gate = pause_gate

    async def run(self, now: datetime) -> ReconciliationReport:
        errors: list[str] = []

        expired = 0
        try:
            expired = await self.pause_controller.expire_elapsed(now)
        except ServiceError as e:
            logger.error("Admin pause expiry failed: %s", e.message)
            errors.append(f"Failed to expire admin pauses: {e.message}")

        gaps = await self.schedule_settings.load_gaps()
        subscriptions = await self.subscriptions.list_by_status(SubscriptionStatus.ACTIVE)
        today = start_of_day(now)

        processed = 0
        for subscription in subscriptions:
            row = _DueRow.of(subscription)
            try:
                if await self._reconcile(row, now, today, gaps, errors):
                    processed += 1
            except ServiceError as e:
                logger.error("Failed to reconcile subscription %s: %s", row.id, e.message)
                errors.append(f"Failed to process subscription {row.id}: {e.message}")
            except Exception as e:
                logger.exception("Unexpected error reconciling subscription %s", row.id)
                errors.append(f"Failed to process subscription {row.id}: {e}")

        removed = 0
        try:
            removed = await self.deliveries.delete_duplicates()
        except ServiceError as e:
            logger.error("Duplicate delivery cleanup failed: %s", e.message)
            errors.append(f"Failed to clean up duplicate deliveries: {e.message}")

        logger.info(
            "Delivery scheduler: %d/%d subscriptions updated, %d pauses expired, %d duplicates removed, %d errors",
            processed, len(subscriptions), expired, removed, len(errors),
        )
        return ReconciliationReport(
            processed_count=processed,
            total_subscriptions=len(subscriptions),
            timestamp=now,
            expired_pauses=expired,
            duplicates_removed=removed,
            errors=errors,
        )

    async def _reconcile(self, row: _DueRow, now: datetime, today: datetime, gaps, errors: list[str]) -> bool:
        """Bring one subscription's next delivery date up to date. True if it was written."""
        due = row.next_delivery_date

        if due is None:
            logger.warning("Subscription %s has no next delivery date, recomputing", row.id)
            next_delivery = await self._repaired_date(row, now, today, gaps)
        else:
            due = due.astimezone(today.tzinfo) if today.tzinfo is not None else due
            if start_of_day(due) <= today:
                try:
                    await self.deliveries.upsert(row.id, due, row.selected_items, DeliveryStatus.SCHEDULED)
                except ServiceError as e:
                    # the date still advances; the missed record is reported
                    logger.error("Delivery record for subscription %s not written: %s", row.id, e.message)
                    errors.append(f"Failed to record delivery for subscription {row.id}: {e.message}")
                next_delivery = self._cadence_date(row, today, gaps)
            elif days_between(today, due) <= drift_tolerance_days(row.delivery_frequency):
                return False
            else:
                next_delivery = await self._repaired_date(row, now, today, gaps)
                if next_delivery != row.next_delivery_date:
                    logger.warning(
                        "Subscription %s next delivery %s is %d days out, moving to %s",
                        row.id, due.date(), days_between(today, due), next_delivery.date(),
                    )

        if row.next_delivery_date == next_delivery:
            return False

        await self.subscriptions.update(row.id, {"next_delivery_date": next_delivery})
        return True

    @staticmethod
    def _cadence_date(row: _DueRow, today: datetime, gaps) -> datetime:
        return pin_delivery_time(
            compute_next_delivery_after(subscription_type_for_plan(row.plan_id), today, gaps),
            settings.DELIVERY_HOUR,
        )

    async def _repaired_date(self, row: _DueRow, now: datetime, today: datetime, gaps) -> datetime:
        """Fresh next delivery for a drifted or missing date.

        A user covered by an admin pause gets the gate's deferred first
        delivery, so repair never lands inside the pause window.
        """
        notice = await self.pause_gate.check(row.user_id, now)
        if notice.is_affected:
            logger.info("Subscription %s held for admin pause %s", row.id, notice.admin_pause_id)
            return notice.adjusted_first_delivery
        return self._cadence_date(row, today, gaps)
