from typing import Iterable, Optional

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from services.schedule_service.models import DriverSchedule
from .models import Order


class OrderRepository:
    @staticmethod
    async def create_order(db: AsyncSession, order: Order) -> Order:
        db.add(order)
        await db.commit()
        await db.refresh(order)
        return order

    @staticmethod
    async def get_order(db: AsyncSession, order_id: str) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.id == order_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_payment_id(db: AsyncSession, payment_id: str) -> Optional[Order]:
        result = await db.execute(select(Order).where(Order.payment_id == payment_id))
        return result.scalars().first()

    @staticmethod
    async def list_for_customer(db: AsyncSession, customer_id: str) -> list[Order]:
        result = await db.execute(
            select(Order).where(Order.customer_id == customer_id).order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    @staticmethod
    async def list_for_schedules(db: AsyncSession, schedule_ids: Iterable[str]) -> list[Order]:
        ids = list(schedule_ids)
        if not ids:
            return []
        result = await db.execute(
            select(Order)
            .where(Order.schedule_id.in_(ids))
            .where(Order.status != "cancelled")
            .order_by(Order.created_at.desc())
        )
        return list(result.scalars().all())

    # --- Conditional writes: no commit, the caller owns the transaction ---

    @staticmethod
    async def decrement_capacity(db: AsyncSession, schedule_id: str, quantity: int) -> bool:
        """UPDATE ... WHERE available_capacity >= quantity; True when a row was changed."""
        stmt = (
            update(DriverSchedule)
            .where(DriverSchedule.id == schedule_id)
            .where(DriverSchedule.available_capacity >= quantity)
            .values(available_capacity=DriverSchedule.available_capacity - quantity)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1

    @staticmethod
    async def transition_status(db: AsyncSession, order_id: str, from_status: str, to_status: str) -> bool:
        """Compare-and-set on the order status; True when the order was in from_status."""
        stmt = (
            update(Order)
            .where(Order.id == order_id)
            .where(Order.status == from_status)
            .values(status=to_status)
            .execution_options(synchronize_session=False)
        )
        result = await db.execute(stmt)
        return result.rowcount == 1
