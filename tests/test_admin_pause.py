"""Tests for admin pause / reactivation (in-memory stores)."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "api"))

import uuid
from datetime import datetime, timedelta
from zoneinfo import ZoneInfo

import pytest

from schemas.enums import (
    AdminPauseStatus, AuditAction, DeliveryStatus, PauseType, ReactivationType, SubscriptionStatus,
)
from services.admin_pause import PauseRequest, ReactivationRequest
from services.errors import AuthorizationError, NotFoundError, ValidationError

IST = ZoneInfo("Asia/Kolkata")
MONDAY_10AM = datetime(2025, 6, 16, 10, 0, tzinfo=IST)


def _at8(year, month, day):
    return datetime(year, month, day, 8, 0, tzinfo=IST)


def _pause_request(world, **overrides):
    values = dict(
        admin_user_id=world.admin_id,
        pause_type=PauseType.ALL,
        start_date=MONDAY_10AM + timedelta(hours=1),
        end_date=datetime(2025, 6, 20, 23, 59, tzinfo=IST),
        reason="Kitchen maintenance",
    )
    values.update(overrides)
    return PauseRequest(**values)


# ── Pause ──────────────────────────────────────────────────

@pytest.mark.asyncio
async def test_pause_all_holds_every_active_subscription(world):
    first = world.subscriptions.add(next_delivery_date=_at8(2025, 6, 18))
    second = world.subscriptions.add(next_delivery_date=_at8(2025, 6, 17))
    cancelled = world.subscriptions.add(status=SubscriptionStatus.CANCELLED)

    result = await world.controller.pause(_pause_request(world), MONDAY_10AM)

    assert result.processed_count == 2
    assert result.total_subscriptions == 2
    assert result.errors == []
    for sub in (first, second):
        assert sub.status is SubscriptionStatus.ADMIN_PAUSED
        assert sub.admin_pause_id == result.admin_pause_id
        assert sub.pause_reason == "Kitchen maintenance"
        assert sub.reactivation_deadline == datetime(2025, 9, 20, 23, 59, tzinfo=IST)
    # the next delivery date is left for reactivation to recompute
    assert first.next_delivery_date == _at8(2025, 6, 18)
    assert cancelled.status is SubscriptionStatus.CANCELLED

    pause = world.pauses.rows[result.admin_pause_id]
    assert pause.status is AdminPauseStatus.ACTIVE
    assert pause.affected_subscription_count == 2
    assert pause.affected_user_ids is None


@pytest.mark.asyncio
async def test_pause_holds_only_deliveries_from_start_date(world):
    sub = world.subscriptions.add(next_delivery_date=_at8(2025, 6, 18))
    today = world.deliveries.add(sub.id, _at8(2025, 6, 16))
    later = world.deliveries.add(sub.id, _at8(2025, 6, 18))

    result = await world.controller.pause(_pause_request(world), MONDAY_10AM)

    assert today.status is DeliveryStatus.SCHEDULED
    assert later.status is DeliveryStatus.ADMIN_PAUSED
    assert later.admin_pause_id == result.admin_pause_id


@pytest.mark.asyncio
async def test_indefinite_pause_deadline_is_six_months_from_start(world):
    sub = world.subscriptions.add()
    start = datetime(2025, 6, 17, 0, 0, tzinfo=IST)

    await world.controller.pause(_pause_request(world, start_date=start, end_date=None), MONDAY_10AM)

    assert sub.reactivation_deadline == datetime(2025, 12, 17, 0, 0, tzinfo=IST)
    assert sub.admin_pause_end is None


@pytest.mark.asyncio
async def test_selected_pause_only_touches_listed_users(world):
    target = world.subscriptions.add()
    bystander = world.subscriptions.add()

    result = await world.controller.pause(
        _pause_request(world, pause_type=PauseType.SELECTED, user_ids=[target.user_id]),
        MONDAY_10AM,
    )

    assert result.processed_count == 1
    assert target.status is SubscriptionStatus.ADMIN_PAUSED
    assert bystander.status is SubscriptionStatus.ACTIVE
    assert world.pauses.rows[result.admin_pause_id].affected_user_ids == [str(target.user_id)]


@pytest.mark.asyncio
async def test_pause_writes_audit_entry(world):
    world.subscriptions.add()
    await world.controller.pause(_pause_request(world), MONDAY_10AM)

    entry = world.audit.entries[-1]
    assert entry.action == AuditAction.ADMIN_PAUSE_SUBSCRIPTIONS.value
    assert entry.admin_user_id == world.admin_id
    assert entry.details["processed_count"] == 1


@pytest.mark.parametrize("overrides, message", [
    ({"start_date": MONDAY_10AM - timedelta(minutes=1)}, "past"),
    ({"end_date": MONDAY_10AM + timedelta(hours=1)}, "after start"),
    ({"pause_type": PauseType.SELECTED, "user_ids": []}, "User IDs"),
    ({"reason": "   "}, "reason"),
])
@pytest.mark.asyncio
async def test_invalid_pause_writes_nothing(world, overrides, message):
    sub = world.subscriptions.add()

    with pytest.raises(ValidationError) as exc:
        await world.controller.pause(_pause_request(world, **overrides), MONDAY_10AM)

    assert message in exc.value.message
    assert world.pauses.rows == {}
    assert sub.status is SubscriptionStatus.ACTIVE
    assert world.audit.entries == []


@pytest.mark.asyncio
async def test_non_admin_cannot_pause(world):
    sub = world.subscriptions.add()
    with pytest.raises(AuthorizationError):
        await world.controller.pause(_pause_request(world, admin_user_id=uuid.uuid4()), MONDAY_10AM)
    assert world.pauses.rows == {}
    assert sub.status is SubscriptionStatus.ACTIVE


@pytest.mark.asyncio
async def test_pause_without_targets_is_not_found(world):
    world.subscriptions.add(status=SubscriptionStatus.PAUSED)
    with pytest.raises(NotFoundError):
        await world.controller.pause(_pause_request(world), MONDAY_10AM)
    assert world.pauses.rows == {}


@pytest.mark.asyncio
async def test_pause_survives_audit_and_delivery_failures(world):
    sub = world.subscriptions.add()
    world.audit.fail = True
    world.deliveries.fail = True

    result = await world.controller.pause(_pause_request(world), MONDAY_10AM)

    assert result.processed_count == 1
    assert result.errors == []
    assert sub.status is SubscriptionStatus.ADMIN_PAUSED


@pytest.mark.asyncio
async def test_pause_collects_per_subscription_errors(world):
    broken = world.subscriptions.add()
    healthy = world.subscriptions.add()
    world.subscriptions.fail_ids.add(broken.id)

    result = await world.controller.pause(_pause_request(world), MONDAY_10AM)

    assert result.processed_count == 1
    assert result.total_subscriptions == 2
    assert result.errors == [f"Failed to pause subscription {broken.id}: Update subscription {broken.id} failed"]
    assert healthy.status is SubscriptionStatus.ADMIN_PAUSED


@pytest.mark.asyncio
async def test_pause_carries_on_after_unexpected_error(world):
    broken = world.subscriptions.add()
    healthy = world.subscriptions.add()
    update = world.subscriptions.update

    async def flaky_update(subscription_id, values):
        if subscription_id == broken.id:
            raise RuntimeError("connection reset")
        await update(subscription_id, values)

    world.subscriptions.update = flaky_update

    result = await world.controller.pause(_pause_request(world), MONDAY_10AM)

    assert result.processed_count == 1
    assert result.errors == [f"Failed to pause subscription {broken.id}: connection reset"]
    assert healthy.status is SubscriptionStatus.ADMIN_PAUSED


# ── Reactivate ─────────────────────────────────────────────

async def _paused_world(world, count=2):
    subs = [world.subscriptions.add(next_delivery_date=_at8(2025, 6, 17)) for _ in range(count)]
    result = await world.controller.pause(_pause_request(world), MONDAY_10AM)
    return subs, world.pauses.rows[result.admin_pause_id]


@pytest.mark.asyncio
async def test_reactivate_by_pause_id(world):
    subs, pause = await _paused_world(world)
    held_early = world.deliveries.add(subs[0].id, _at8(2025, 6, 19), DeliveryStatus.ADMIN_PAUSED)
    held_late = world.deliveries.add(subs[0].id, _at8(2025, 6, 21), DeliveryStatus.ADMIN_PAUSED)
    wednesday_evening = datetime(2025, 6, 18, 19, 0, tzinfo=IST)

    result = await world.controller.reactivate(
        ReactivationRequest(admin_user_id=world.admin_id, admin_pause_id=pause.id),
        wednesday_evening,
    )

    # after the 6 PM cutoff: Friday
    assert result.next_delivery_date == _at8(2025, 6, 20)
    assert result.processed_count == 2
    for sub in subs:
        assert sub.status is SubscriptionStatus.ACTIVE
        assert sub.next_delivery_date == _at8(2025, 6, 20)
        assert sub.admin_pause_id is None
        assert sub.reactivation_deadline is None
        assert sub.admin_reactivated_by == world.admin_id
        assert sub.admin_reactivated_at == wednesday_evening
    assert held_early.status is DeliveryStatus.ADMIN_PAUSED
    assert held_late.status is DeliveryStatus.SCHEDULED
    assert pause.status is AdminPauseStatus.REACTIVATED
    assert pause.reactivated_by == world.admin_id
    assert result.reactivated_pause_ids == [pause.id]
    assert world.audit.actions()[-1] == AuditAction.ADMIN_REACTIVATE_SUBSCRIPTIONS.value


@pytest.mark.asyncio
async def test_reactivating_a_subset_keeps_pause_active(world):
    subs, pause = await _paused_world(world)
    now = datetime(2025, 6, 18, 9, 0, tzinfo=IST)

    partial = await world.controller.reactivate(
        ReactivationRequest(admin_user_id=world.admin_id, subscription_ids=[subs[0].id]), now,
    )
    assert partial.processed_count == 1
    assert subs[1].status is SubscriptionStatus.ADMIN_PAUSED
    assert pause.status is AdminPauseStatus.ACTIVE

    rest = await world.controller.reactivate(
        ReactivationRequest(admin_user_id=world.admin_id, subscription_ids=[subs[1].id]), now,
    )
    assert rest.processed_count == 1
    assert pause.status is AdminPauseStatus.REACTIVATED


@pytest.mark.asyncio
async def test_reactivate_all(world):
    subs, _ = await _paused_world(world, count=3)
    result = await world.controller.reactivate(
        ReactivationRequest(admin_user_id=world.admin_id, reactivation_type=ReactivationType.ALL),
        datetime(2025, 6, 18, 9, 0, tzinfo=IST),
    )
    assert result.processed_count == 3
    assert all(s.status is SubscriptionStatus.ACTIVE for s in subs)


@pytest.mark.asyncio
async def test_reactivate_on_saturday_skips_sunday(world):
    friday = datetime(2025, 6, 13, 10, 0, tzinfo=IST)
    sub = world.subscriptions.add()
    result = await world.controller.pause(
        _pause_request(world, start_date=friday + timedelta(hours=1), end_date=None), friday,
    )

    await world.controller.reactivate(
        ReactivationRequest(admin_user_id=world.admin_id, admin_pause_id=result.admin_pause_id),
        datetime(2025, 6, 14, 10, 0, tzinfo=IST),
    )

    assert sub.next_delivery_date == _at8(2025, 6, 16)


@pytest.mark.asyncio
async def test_reactivating_an_empty_pause_closes_it(world):
    pause = world.pauses.add(pause_type=PauseType.ALL, start_date=MONDAY_10AM)

    result = await world.controller.reactivate(
        ReactivationRequest(admin_user_id=world.admin_id, admin_pause_id=pause.id), MONDAY_10AM,
    )

    assert result.processed_count == 0
    assert pause.status is AdminPauseStatus.REACTIVATED


@pytest.mark.asyncio
async def test_reactivate_unknown_pause_is_not_found(world):
    with pytest.raises(NotFoundError):
        await world.controller.reactivate(
            ReactivationRequest(admin_user_id=world.admin_id, admin_pause_id=uuid.uuid4()), MONDAY_10AM,
        )


@pytest.mark.asyncio
async def test_reactivate_requires_a_target(world):
    with pytest.raises(ValidationError):
        await world.controller.reactivate(ReactivationRequest(admin_user_id=world.admin_id), MONDAY_10AM)


@pytest.mark.asyncio
async def test_reactivate_requires_admin(world):
    _, pause = await _paused_world(world)
    with pytest.raises(AuthorizationError):
        await world.controller.reactivate(
            ReactivationRequest(admin_user_id=uuid.uuid4(), admin_pause_id=pause.id), MONDAY_10AM,
        )
