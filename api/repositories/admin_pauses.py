"""Admin pause store — pause records are inserted and updated, never deleted."""

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import select, update, or_

from models.admin_pause import AdminPause
from repositories.base import BaseRepository
from schemas.enums import AdminPauseStatus


class AdminPauseStore(BaseRepository):

    async def insert(self, values: dict[str, Any]) -> AdminPause:
        return await self._add(AdminPause(**values), "Create admin pause")

    async def get(self, pause_id: uuid.UUID) -> AdminPause | None:
        result = await self._fetch(
            select(AdminPause).where(AdminPause.id == pause_id),
            f"Fetch admin pause {pause_id}",
        )
        return result.scalar_one_or_none()

    async def update(self, pause_id: uuid.UUID, values: dict[str, Any]) -> None:
        await self._write(
            update(AdminPause).where(AdminPause.id == pause_id).values(**values),
            f"Update admin pause {pause_id}",
        )

    async def list_active(self, now: datetime) -> list[AdminPause]:
        """Active pauses that have not ended yet (indefinite ones included)."""
        result = await self._fetch(
            select(AdminPause)
            .where(
                AdminPause.status == AdminPauseStatus.ACTIVE,
                or_(AdminPause.end_date.is_(None), AdminPause.end_date >= now),
            )
            .order_by(AdminPause.start_date),
            "Fetch active admin pauses",
        )
        return list(result.scalars().all())

    async def list_elapsed(self, now: datetime) -> list[AdminPause]:
        """Active pauses whose end date has passed."""
        result = await self._fetch(
            select(AdminPause).where(
                AdminPause.status == AdminPauseStatus.ACTIVE,
                AdminPause.end_date.is_not(None),
                AdminPause.end_date < now,
            ),
            "Fetch elapsed admin pauses",
        )
        return list(result.scalars().all())

    async def list_all(self, limit: int = 100) -> list[AdminPause]:
        result = await self._fetch(
            select(AdminPause).order_by(AdminPause.created_at.desc()).limit(limit),
            "Fetch admin pauses",
        )
        return list(result.scalars().all())
