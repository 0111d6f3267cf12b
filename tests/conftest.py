"""In-memory stand-ins for the repositories, plus a throwaway SQLite session for repository tests."""

import sys
import os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), "..", "api"))

import uuid
from datetime import datetime, timezone
from types import SimpleNamespace
from zoneinfo import ZoneInfo

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine

import models  # noqa: F401  registers every table on Base.metadata
from db.database import Base
from schemas.enums import AdminPauseStatus, DeliveryFrequency, DeliveryStatus, SubscriptionStatus
from services.admin_pause import AdminPauseController
from services.errors import DependencyError, PersistenceError
from services.pause_gate import PauseStatusGate
from services.reconciliation import ReconciliationEngine
from services.schedule_settings import ScheduleSettingsService
from services.subscriptions import SubscriptionService

IST = ZoneInfo("Asia/Kolkata")


class FakeSubscriptions:
    def __init__(self):
        self.rows: dict[uuid.UUID, SimpleNamespace] = {}
        self.fail_ids: set[uuid.UUID] = set()

    def add(self, **overrides) -> SimpleNamespace:
        start = overrides.pop("subscription_start_date", datetime(2025, 6, 1, 9, 0, tzinfo=IST))
        row = SimpleNamespace(
            id=uuid.uuid4(),
            user_id=uuid.uuid4(),
            plan_id="juice_monthly",
            delivery_frequency=DeliveryFrequency.MONTHLY,
            next_delivery_date=None,
            subscription_start_date=start,
            subscription_end_date=datetime(2025, 9, 1, 9, 0, tzinfo=IST),
            subscription_duration=3,
            status=SubscriptionStatus.ACTIVE,
            pause_date=None,
            pause_reason=None,
            reactivation_deadline=None,
            admin_pause_id=None,
            admin_pause_start=None,
            admin_pause_end=None,
            admin_reactivated_at=None,
            admin_reactivated_by=None,
            selected_items=[{"item_type": "juice", "id": "j-1", "name": "Green Detox", "quantity": 1}],
            delivery_address=None,
            pricing=None,
            created_at=datetime(2025, 6, 1, 9, 0, tzinfo=timezone.utc),
        )
        for key, value in overrides.items():
            setattr(row, key, value)
        self.rows[row.id] = row
        return row

    async def create(self, values):
        return self.add(**values)

    async def get(self, subscription_id):
        return self.rows.get(subscription_id)

    async def get_for_user(self, subscription_id, user_id):
        row = self.rows.get(subscription_id)
        return row if row is not None and row.user_id == user_id else None

    async def list_for_user(self, user_id):
        return [r for r in self.rows.values() if r.user_id == user_id]

    async def list_by_status(self, status, *, user_ids=None, ids=None, admin_pause_id=None):
        rows = [r for r in self.rows.values() if r.status is status]
        if user_ids is not None:
            wanted = {str(u) for u in user_ids}
            rows = [r for r in rows if str(r.user_id) in wanted]
        if ids is not None:
            wanted = {str(i) for i in ids}
            rows = [r for r in rows if str(r.id) in wanted]
        if admin_pause_id is not None:
            rows = [r for r in rows if r.admin_pause_id == admin_pause_id]
        return rows

    async def update(self, subscription_id, values):
        if subscription_id in self.fail_ids:
            raise PersistenceError(f"Update subscription {subscription_id} failed")
        row = self.rows[subscription_id]
        for key, value in values.items():
            setattr(row, key, value)

    async def count_by_status(self):
        counts: dict[str, int] = {}
        for row in self.rows.values():
            counts[row.status.value] = counts.get(row.status.value, 0) + 1
        return counts


class FakeDeliveries:
    def __init__(self):
        self.rows: list[SimpleNamespace] = []
        self.fail = False
        self._next_id = 1

    def add(self, subscription_id, delivery_date, status=DeliveryStatus.SCHEDULED):
        row = SimpleNamespace(
            id=self._next_id,
            subscription_id=subscription_id,
            delivery_date=delivery_date,
            status=status,
            items=[],
            admin_pause_id=None,
            admin_reactivated_at=None,
        )
        self._next_id += 1
        self.rows.append(row)
        return row

    def for_subscription(self, subscription_id):
        return [r for r in self.rows if r.subscription_id == subscription_id]

    async def upsert(self, subscription_id, delivery_date, items, status=DeliveryStatus.SCHEDULED):
        if self.fail:
            raise PersistenceError("Upsert delivery failed")
        for row in self.rows:
            if row.subscription_id == subscription_id and row.delivery_date == delivery_date:
                return False
        self.add(subscription_id, delivery_date, status).items = items
        return True

    async def bulk_update_status(self, subscription_id, from_status, to_status, on_or_after, extra=None):
        if self.fail:
            raise DependencyError("Update deliveries failed")
        changed = 0
        for row in self.rows:
            if (
                row.subscription_id == subscription_id
                and row.status is from_status
                and row.delivery_date >= on_or_after
            ):
                row.status = to_status
                for key, value in (extra or {}).items():
                    setattr(row, key, value)
                changed += 1
        return changed

    async def delete_duplicates(self):
        seen = set()
        keep, removed = [], 0
        for row in sorted(self.rows, key=lambda r: r.id):
            key = (row.subscription_id, row.delivery_date)
            if key in seen and row.status is DeliveryStatus.SCHEDULED:
                removed += 1
                continue
            seen.add(key)
            keep.append(row)
        self.rows = keep
        return removed

    async def list_for_subscription(self, subscription_id):
        return self.for_subscription(subscription_id)


class FakePauses:
    def __init__(self):
        self.rows: dict[uuid.UUID, SimpleNamespace] = {}

    def add(self, **values) -> SimpleNamespace:
        row = SimpleNamespace(
            id=uuid.uuid4(),
            pause_type=values.pop("pause_type"),
            affected_user_ids=None,
            start_date=values.pop("start_date"),
            end_date=None,
            reason="Festival holiday",
            admin_user_id=uuid.uuid4(),
            status=AdminPauseStatus.ACTIVE,
            affected_subscription_count=0,
            reactivated_at=None,
            reactivated_by=None,
            created_at=datetime.now(timezone.utc),
        )
        for key, value in values.items():
            setattr(row, key, value)
        self.rows[row.id] = row
        return row

    async def insert(self, values):
        return self.add(**dict(values))

    async def get(self, pause_id):
        return self.rows.get(pause_id)

    async def update(self, pause_id, values):
        row = self.rows[pause_id]
        for key, value in values.items():
            setattr(row, key, value)

    async def list_active(self, now):
        return [
            p for p in self.rows.values()
            if p.status is AdminPauseStatus.ACTIVE and (p.end_date is None or p.end_date >= now)
        ]

    async def list_elapsed(self, now):
        return [
            p for p in self.rows.values()
            if p.status is AdminPauseStatus.ACTIVE and p.end_date is not None and p.end_date < now
        ]

    async def list_all(self, limit=100):
        return list(self.rows.values())[:limit]


class FakeAudit:
    def __init__(self):
        self.entries: list[SimpleNamespace] = []
        self.fail = False

    async def insert(self, admin_user_id, action, details):
        if self.fail:
            raise DependencyError(f"Write audit entry {action} failed")
        entry = SimpleNamespace(
            id=uuid.uuid4(),
            admin_user_id=admin_user_id,
            action=action,
            details=details,
            created_at=datetime.now(timezone.utc),
        )
        self.entries.append(entry)
        return entry

    async def list_recent(self, actions, limit=50):
        actions = set(actions)
        return [e for e in reversed(self.entries) if e.action in actions][:limit]

    def actions(self):
        return [e.action for e in self.entries]


class FakeUsers:
    def __init__(self, admin_ids=()):
        self.admin_ids = set(admin_ids)

    async def is_admin(self, user_id):
        return user_id in self.admin_ids


class FakeScheduleSettings:
    def __init__(self):
        self.rows: dict[str, SimpleNamespace] = {}
        self.fail = False

    async def list_all(self):
        if self.fail:
            raise PersistenceError("Fetch delivery schedule settings failed")
        return list(self.rows.values())

    async def list_active(self):
        return [r for r in await self.list_all() if r.is_active]

    async def upsert(self, subscription_type, delivery_gap_days, is_daily, description, updated_by):
        self.rows[subscription_type] = SimpleNamespace(
            subscription_type=subscription_type,
            delivery_gap_days=delivery_gap_days,
            is_daily=is_daily,
            description=description,
            is_active=True,
            updated_by=updated_by,
            updated_at=datetime.now(timezone.utc),
        )


@pytest.fixture
def admin_id():
    return uuid.uuid4()


@pytest.fixture
def world(admin_id):
    """Every fake store plus the services wired on top of them."""
    w = SimpleNamespace(
        subscriptions=FakeSubscriptions(),
        deliveries=FakeDeliveries(),
        pauses=FakePauses(),
        audit=FakeAudit(),
        users=FakeUsers([admin_id]),
        settings_repo=FakeScheduleSettings(),
        admin_id=admin_id,
    )
    w.controller = AdminPauseController(w.subscriptions, w.deliveries, w.pauses, w.audit, w.users)
    w.gate = PauseStatusGate(w.pauses)
    w.schedule_settings = ScheduleSettingsService(w.settings_repo, w.audit, cache=None)
    w.engine = ReconciliationEngine(w.subscriptions, w.deliveries, w.controller, w.schedule_settings, w.gate)
    w.service = SubscriptionService(w.subscriptions, w.deliveries, w.gate)
    return w


@pytest_asyncio.fixture
async def db_session(tmp_path):
    """AsyncSession on a fresh SQLite file with the full schema created."""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'freshpress.db'}")

    # pysqlite's own transaction handling breaks SAVEPOINT; let SQLAlchemy emit BEGIN
    @event.listens_for(engine.sync_engine, "connect")
    def _no_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _explicit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()
