"""Delivery schedule settings repository."""

import uuid

from sqlalchemy import select

from models.delivery_schedule_setting import DeliveryScheduleSetting
from repositories.base import BaseRepository


class ScheduleSettingsRepository(BaseRepository):

    async def list_all(self) -> list[DeliveryScheduleSetting]:
        result = await self._fetch(
            select(DeliveryScheduleSetting).order_by(DeliveryScheduleSetting.subscription_type),
            "Fetch delivery schedule settings",
        )
        return list(result.scalars().all())

    async def list_active(self) -> list[DeliveryScheduleSetting]:
        result = await self._fetch(
            select(DeliveryScheduleSetting).where(DeliveryScheduleSetting.is_active.is_(True)),
            "Fetch active delivery schedule settings",
        )
        return list(result.scalars().all())

    async def upsert(
        self,
        subscription_type: str,
        delivery_gap_days: int,
        is_daily: bool,
        description: str | None,
        updated_by: uuid.UUID | None,
    ) -> None:
        values = {
            "delivery_gap_days": delivery_gap_days,
            "is_daily": is_daily,
            "description": description,
            "is_active": True,
            "updated_by": updated_by,
        }
        statement = (
            self._insert(DeliveryScheduleSetting)
            .values(subscription_type=subscription_type, **values)
            .on_conflict_do_update(index_elements=["subscription_type"], set_=values)
        )
        await self._write(statement, f"Update delivery schedule for {subscription_type}")
