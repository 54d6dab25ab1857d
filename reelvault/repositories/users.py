from __future__ import annotations

from typing import List

from sqlalchemy import delete, select
from sqlalchemy.ext.asyncio import AsyncSession

from reelvault.db.models.user import User


class UserRepository:
    """Uploader identities. Deleting a user never touches video metadata."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def list(self) -> List[User]:
        return list(
            (await self.session.execute(select(User).order_by(User.created_at.desc()))).scalars().all()
        )

    async def create(self, name: str) -> User:
        user = User(name=name)
        self.session.add(user)
        await self.session.commit()
        return user

    async def delete(self, user_id: str) -> bool:
        result = await self.session.execute(delete(User).where(User.id == user_id))
        await self.session.commit()
        return bool(result.rowcount)
