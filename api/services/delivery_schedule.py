"""
Delivery Schedule — first/next delivery dates and full delivery series.

Rules:
  - Orders placed before the 6 PM cutoff get their first delivery tomorrow,
    orders at or after the cutoff the day after tomorrow
  - No deliveries on the blackout day (Sunday): a Sunday becomes the Monday after
  - Daily plans deliver every non-blackout day
  - Weekly and monthly plans deliver every other day (see compute_delivery_series)
  - Per-type gaps (juices / fruit bowls / customized) are operator-tunable

All functions take their reference time as a parameter and do calendar
arithmetic on the wall clock of the datetime they are given.
"""

from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, time, timedelta
from typing import Mapping

from config import settings
from schemas.enums import DeliveryFrequency, SubscriptionType

BLACKOUT_WEEKDAY = settings.BLACKOUT_WEEKDAY
DEFAULT_CUTOFF_HOUR = 18


@dataclass(frozen=True)
class DeliveryGap:
    gap_days: int
    is_daily: bool


@dataclass(frozen=True)
class FirstDelivery:
    first_delivery_date: datetime
    cutoff_time: datetime
    is_after_cutoff: bool


@dataclass(frozen=True)
class DeliverySeries:
    start_date: datetime
    end_date: datetime
    delivery_dates: tuple[datetime, ...]

    @property
    def total_deliveries(self) -> int:
        return len(self.delivery_dates)


# gap_days=1 means one empty day between deliveries
DEFAULT_DELIVERY_GAPS: dict[str, DeliveryGap] = {
    SubscriptionType.JUICES.value: DeliveryGap(gap_days=1, is_daily=False),
    SubscriptionType.FRUIT_BOWLS.value: DeliveryGap(gap_days=1, is_daily=True),
    SubscriptionType.CUSTOMIZED.value: DeliveryGap(gap_days=2, is_daily=False),
}

PLAN_SUBSCRIPTION_TYPES: dict[str, str] = {
    "juice_weekly": SubscriptionType.JUICES.value,
    "juice_monthly": SubscriptionType.JUICES.value,
    "fruit_bowl_daily": SubscriptionType.FRUIT_BOWLS.value,
    "fruit_bowl_weekly": SubscriptionType.FRUIT_BOWLS.value,
    "customized_weekly": SubscriptionType.CUSTOMIZED.value,
    "customized_monthly": SubscriptionType.CUSTOMIZED.value,
}


def start_of_day(dt: datetime) -> datetime:
    """Midnight of the same calendar day (tzinfo preserved)."""
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


def pin_delivery_time(dt: datetime, hour: int) -> datetime:
    """Set the delivery hour on an already-resolved delivery day."""
    return dt.replace(hour=hour, minute=0, second=0, microsecond=0)


def add_days(dt: datetime, days: int) -> datetime:
    return dt + timedelta(days=days)


def add_months(dt: datetime, months: int) -> datetime:
    """Add calendar months, clamping the day to the end of a shorter month."""
    month_index = dt.month - 1 + months
    year = dt.year + month_index // 12
    month = month_index % 12 + 1
    day = min(dt.day, calendar.monthrange(year, month)[1])
    return dt.replace(year=year, month=month, day=day)


def days_between(earlier: datetime, later: datetime) -> int:
    """Whole calendar days from one day to another."""
    return (later.date() - earlier.date()).days


def is_blackout_day(dt: datetime, blackout_weekday: int = BLACKOUT_WEEKDAY) -> bool:
    return dt.weekday() == blackout_weekday


def skip_blackout(dt: datetime, blackout_weekday: int = BLACKOUT_WEEKDAY) -> datetime:
    """Normalize to midnight and move a blackout day forward by exactly one day."""
    day = start_of_day(dt)
    if is_blackout_day(day, blackout_weekday):
        day = add_days(day, 1)
    return day


def compute_first_delivery(order_time: datetime, cutoff_hour: int = DEFAULT_CUTOFF_HOUR) -> FirstDelivery:
    """
    First delivery for an order placed at order_time.

    Args:
        order_time: When the order was placed (local wall clock)
        cutoff_hour: Orders at or after this hour slip one extra day

    Returns:
        FirstDelivery with the blackout-adjusted day at midnight
    """
    cutoff_time = order_time.replace(hour=cutoff_hour, minute=0, second=0, microsecond=0)
    is_after_cutoff = order_time >= cutoff_time

    first = add_days(start_of_day(order_time), 2 if is_after_cutoff else 1)

    return FirstDelivery(
        first_delivery_date=skip_blackout(first),
        cutoff_time=cutoff_time,
        is_after_cutoff=is_after_cutoff,
    )


def compute_delivery_series(
    frequency: DeliveryFrequency | str,
    duration_months: int,
    start_date: datetime,
) -> DeliverySeries:
    """
    Every delivery date in [start_date, start_date + duration_months].

    Daily plans deliver every non-blackout day. Weekly and monthly plans both
    use the same every-other-day cadence; the label only changes the billing
    period. When a 2-day step lands on the blackout day the next step is 1 day.
    """
    frequency = DeliveryFrequency(frequency)
    current = start_of_day(start_date)
    end_date = add_months(current, duration_months)

    dates: list[datetime] = []
    while current <= end_date:
        if is_blackout_day(current):
            current = add_days(current, 1)
            continue

        dates.append(current)
        if frequency is DeliveryFrequency.DAILY:
            current = add_days(current, 1)
        elif frequency in (DeliveryFrequency.WEEKLY, DeliveryFrequency.MONTHLY):
            current = add_days(current, 2)
        else:  # pragma: no cover
            raise ValueError(f"Unhandled delivery frequency: {frequency}")

    return DeliverySeries(start_date=start_date, end_date=end_date, delivery_dates=tuple(dates))


def subscription_type_for_plan(plan_id: str) -> str:
    """Map a plan id to its subscription type (juices, fruit_bowls, customized)."""
    if plan_id in PLAN_SUBSCRIPTION_TYPES:
        return PLAN_SUBSCRIPTION_TYPES[plan_id]

    plan = plan_id.lower()
    if "juice" in plan:
        return SubscriptionType.JUICES.value
    if "fruit" in plan or "bowl" in plan:
        return SubscriptionType.FRUIT_BOWLS.value
    return SubscriptionType.CUSTOMIZED.value


def _step_days(gap: DeliveryGap | None) -> int:
    if gap is None or gap.is_daily:
        return 1
    return gap.gap_days + 1


def compute_next_delivery_after(
    subscription_type: str,
    last_date: datetime,
    gaps: Mapping[str, DeliveryGap] | None = None,
) -> datetime:
    """
    Next delivery day after last_date using the per-type gap table.

    Types missing from the table advance by a single day. The result is
    blackout-adjusted and at midnight; callers pin the delivery hour.
    """
    gap = (gaps if gaps is not None else DEFAULT_DELIVERY_GAPS).get(subscription_type)
    return skip_blackout(add_days(start_of_day(last_date), _step_days(gap)))


def preview_schedule(
    subscription_type: str,
    start_date: datetime,
    count: int = 14,
    gaps: Mapping[str, DeliveryGap] | None = None,
) -> list[datetime]:
    """First `count` delivery days from start_date for an admin preview."""
    gap = (gaps if gaps is not None else DEFAULT_DELIVERY_GAPS).get(subscription_type)
    step = _step_days(gap)

    dates: list[datetime] = []
    current = start_of_day(start_date)
    while len(dates) < count:
        if is_blackout_day(current):
            current = add_days(current, 1)
            continue
        dates.append(current)
        current = add_days(current, step)
    return dates


def describe_schedule(gap: DeliveryGap | None) -> str:
    """Human-readable cadence, e.g. 'Every 2 days'."""
    step = _step_days(gap)
    if step == 1:
        return "Daily delivery"
    return f"Every {step} days"
