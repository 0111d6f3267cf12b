"""Subscription repository — reads by status/user/pause and partial updates."""

import uuid
from collections.abc import Iterable
from typing import Any

from sqlalchemy import select, update, func

from models.subscription import Subscription
from repositories.base import BaseRepository
from schemas.enums import SubscriptionStatus


class SubscriptionRepository(BaseRepository):

    async def create(self, values: dict[str, Any]) -> Subscription:
        return await self._add(Subscription(**values), "Create subscription")

    async def get(self, subscription_id: uuid.UUID) -> Subscription | None:
        result = await self._fetch(
            select(Subscription).where(Subscription.id == subscription_id),
            f"Fetch subscription {subscription_id}",
        )
        return result.scalar_one_or_none()

    async def get_for_user(self, subscription_id: uuid.UUID, user_id: uuid.UUID) -> Subscription | None:
        result = await self._fetch(
            select(Subscription).where(
                Subscription.id == subscription_id,
                Subscription.user_id == user_id,
            ),
            f"Fetch subscription {subscription_id}",
        )
        return result.scalar_one_or_none()

    async def list_for_user(self, user_id: uuid.UUID) -> list[Subscription]:
        result = await self._fetch(
            select(Subscription)
            .where(Subscription.user_id == user_id)
            .order_by(Subscription.created_at.desc()),
            f"Fetch subscriptions for user {user_id}",
        )
        return list(result.scalars().all())

    async def list_by_status(
        self,
        status: SubscriptionStatus,
        *,
        user_ids: Iterable[uuid.UUID] | None = None,
        ids: Iterable[uuid.UUID] | None = None,
        admin_pause_id: uuid.UUID | None = None,
    ) -> list[Subscription]:
        """Subscriptions in a status, optionally narrowed by user, id or admin pause."""
        query = select(Subscription).where(Subscription.status == status)
        if user_ids is not None:
            query = query.where(Subscription.user_id.in_(list(user_ids)))
        if ids is not None:
            query = query.where(Subscription.id.in_(list(ids)))
        if admin_pause_id is not None:
            query = query.where(Subscription.admin_pause_id == admin_pause_id)

        result = await self._fetch(query.order_by(Subscription.created_at), f"Fetch {status.value} subscriptions")
        return list(result.scalars().all())

    async def update(self, subscription_id: uuid.UUID, values: dict[str, Any]) -> None:
        await self._write(
            update(Subscription).where(Subscription.id == subscription_id).values(**values),
            f"Update subscription {subscription_id}",
        )

    async def count_by_status(self) -> dict[str, int]:
        result = await self._fetch(
            select(Subscription.status, func.count(Subscription.id)).group_by(Subscription.status),
            "Count subscriptions by status",
        )
        return {SubscriptionStatus(status).value: count for status, count in result.all()}
