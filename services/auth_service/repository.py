from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import UserProfile


class UserRepository:

    @staticmethod
    async def create(db: AsyncSession, user: UserProfile) -> UserProfile:
        db.add(user)
        await db.commit()
        await db.refresh(user)
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: str) -> Optional[UserProfile]:
        result = await db.execute(select(UserProfile).where(UserProfile.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[UserProfile]:
        result = await db.execute(select(UserProfile).where(UserProfile.email == email))
        return result.scalars().first()

    @staticmethod
    async def get_names(db: AsyncSession, user_ids: Iterable[str]) -> dict[str, str]:
        ids = list(set(user_ids))
        if not ids:
            return {}
        result = await db.execute(
            select(UserProfile.id, UserProfile.name).where(UserProfile.id.in_(ids))
        )
        return {row.id: row.name for row in result}
