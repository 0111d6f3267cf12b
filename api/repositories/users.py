"""User lookups needed for admin authorization."""

import uuid

from sqlalchemy import select

from models.user import User
from repositories.base import BaseRepository


class UserRepository(BaseRepository):

    async def get(self, user_id: uuid.UUID) -> User | None:
        result = await self._fetch(select(User).where(User.id == user_id), f"Fetch user {user_id}")
        return result.scalar_one_or_none()

    async def is_admin(self, user_id: uuid.UUID) -> bool:
        user = await self.get(user_id)
        return bool(user and user.is_admin)
