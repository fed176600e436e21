from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import LocationUpdate


class LocationRepository:
    @staticmethod
    async def add(db: AsyncSession, update: LocationUpdate) -> LocationUpdate:
        db.add(update)
        await db.commit()
        await db.refresh(update)
        return update

    @staticmethod
    async def next_sequence(db: AsyncSession, order_id: str) -> int:
        """Next insertion number for the order; callers hold the order's feed lock."""
        result = await db.execute(
            select(func.coalesce(func.max(LocationUpdate.sequence), 0)).where(LocationUpdate.order_id == order_id)
        )
        return result.scalar_one() + 1

    @staticmethod
    async def list_for_order(db: AsyncSession, order_id: str) -> list[LocationUpdate]:
        result = await db.execute(
            select(LocationUpdate)
            .where(LocationUpdate.order_id == order_id)
            .order_by(LocationUpdate.sequence.asc())
        )
        return list(result.scalars().all())
