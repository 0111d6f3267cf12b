"""Shared session handling for the SQLAlchemy repositories.

Every write runs inside its own SAVEPOINT and commits on success, so a batch
touching many rows is a series of independent single-row updates. A failed
statement rolls back only its savepoint: rows already loaded by the caller
stay usable and the batch can carry on. Failures surface as PersistenceError
(or DependencyError for secondary effects such as audit entries).
"""

import logging
from typing import Any

from sqlalchemy.dialects.postgresql import insert as pg_insert
from sqlalchemy.dialects.sqlite import insert as sqlite_insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from services.errors import PersistenceError, ServiceError

logger = logging.getLogger(__name__)


class BaseRepository:

    def __init__(self, db: AsyncSession):
        self.db = db

    def _insert(self, model):
        """INSERT with ON CONFLICT support for the session's dialect."""
        if self.db.get_bind().dialect.name == "sqlite":
            return sqlite_insert(model)
        return pg_insert(model)

    async def _fetch(self, statement, action: str):
        try:
            return await self.db.execute(statement)
        except SQLAlchemyError as exc:
            logger.error("%s failed: %s", action, exc)
            raise PersistenceError(f"{action} failed") from exc

    async def _write(self, statement, action: str, error: type[ServiceError] = PersistenceError):
        try:
            async with self.db.begin_nested():
                result = await self.db.execute(statement)
            await self.db.commit()
            return result
        except SQLAlchemyError as exc:
            logger.error("%s failed: %s", action, exc)
            raise error(f"{action} failed") from exc

    async def _add(self, obj: Any, action: str, error: type[ServiceError] = PersistenceError) -> Any:
        try:
            async with self.db.begin_nested():
                self.db.add(obj)
            await self.db.commit()
            await self.db.refresh(obj)
            return obj
        except SQLAlchemyError as exc:
            logger.error("%s failed: %s", action, exc)
            raise error(f"{action} failed") from exc
