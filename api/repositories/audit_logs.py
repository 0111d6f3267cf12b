"""Append-only admin audit log."""

import uuid
from collections.abc import Iterable

from sqlalchemy import select

from models.audit_log import AdminAuditLog
from repositories.base import BaseRepository
from services.errors import DependencyError


class AuditLogStore(BaseRepository):

    async def insert(self, admin_user_id: uuid.UUID | None, action: str, details: dict) -> AdminAuditLog:
        return await self._add(
            AdminAuditLog(admin_user_id=admin_user_id, action=action, details=details),
            f"Write audit entry {action}",
            DependencyError,
        )

    async def list_recent(self, actions: Iterable[str], limit: int = 50) -> list[AdminAuditLog]:
        result = await self._fetch(
            select(AdminAuditLog)
            .where(AdminAuditLog.action.in_(list(actions)))
            .order_by(AdminAuditLog.created_at.desc())
            .limit(limit),
            "Fetch audit entries",
        )
        return list(result.scalars().all())
