"""Delivery record store — idempotent upserts keyed by (subscription, date)."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select, update, delete, exists
from sqlalchemy.orm import aliased

from models.delivery import SubscriptionDelivery
from repositories.base import BaseRepository
from schemas.enums import DeliveryStatus
from services.errors import DependencyError


class DeliveryRepository(BaseRepository):

    async def upsert(
        self,
        subscription_id: uuid.UUID,
        delivery_date: datetime,
        items: list,
        status: DeliveryStatus = DeliveryStatus.SCHEDULED,
    ) -> bool:
        """Insert a delivery record; an existing (subscription, date) row is left alone.

        Returns True when a row was inserted.
        """
        statement = (
            self._insert(SubscriptionDelivery)
            .values(
                subscription_id=subscription_id,
                delivery_date=delivery_date,
                status=status,
                items=items or [],
            )
            .on_conflict_do_nothing(index_elements=["subscription_id", "delivery_date"])
        )
        result = await self._write(statement, f"Upsert delivery for subscription {subscription_id}")
        return (result.rowcount or 0) > 0

    async def bulk_update_status(
        self,
        subscription_id: uuid.UUID,
        from_status: DeliveryStatus,
        to_status: DeliveryStatus,
        on_or_after: datetime,
        extra: dict[str, Any] | None = None,
    ) -> int:
        """Move a subscription's records dated on/after a moment from one status to another."""
        statement = (
            update(SubscriptionDelivery)
            .where(
                SubscriptionDelivery.subscription_id == subscription_id,
                SubscriptionDelivery.status == from_status,
                SubscriptionDelivery.delivery_date >= on_or_after,
            )
            .values(status=to_status, **(extra or {}))
        )
        result = await self._write(statement, f"Update deliveries for subscription {subscription_id}", DependencyError)
        return result.rowcount or 0

    async def delete_duplicates(self) -> int:
        """Remove scheduled records that repeat an older row's (subscription, date)."""
        older = aliased(SubscriptionDelivery)
        statement = delete(SubscriptionDelivery).where(
            SubscriptionDelivery.status == DeliveryStatus.SCHEDULED,
            exists().where(
                older.subscription_id == SubscriptionDelivery.subscription_id,
                older.delivery_date == SubscriptionDelivery.delivery_date,
                older.id < SubscriptionDelivery.id,
            ),
        ).execution_options(synchronize_session=False)
        result = await self._write(statement, "Delete duplicate deliveries")
        return result.rowcount or 0

    async def list_for_subscription(self, subscription_id: uuid.UUID) -> list[SubscriptionDelivery]:
        result = await self._fetch(
            select(SubscriptionDelivery)
            .where(SubscriptionDelivery.subscription_id == subscription_id)
            .order_by(SubscriptionDelivery.delivery_date),
            f"Fetch deliveries for subscription {subscription_id}",
        )
        return list(result.scalars().all())
