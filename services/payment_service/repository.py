from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from .models import Payment

class PaymentRepository:
    @staticmethod
    async def create_payment(db: AsyncSession, payment: Payment) -> Payment:
        db.add(payment)
        await db.commit()
        await db.refresh(payment)
        return payment

    @staticmethod
    async def get_succeeded(db: AsyncSession, payment_id: str) -> Optional[Payment]:
        result = await db.execute(
            select(Payment)
            .where(Payment.payment_id == payment_id)
            .where(Payment.status == "succeeded")
        )
        return result.scalars().first()

    @staticmethod
    async def list_for_handle(db: AsyncSession, payment_id: str) -> list[Payment]:
        result = await db.execute(
            select(Payment).where(Payment.payment_id == payment_id).order_by(Payment.created_at)
        )
        return list(result.scalars().all())

    @staticmethod
    async def update_payment(db: AsyncSession, payment: Payment) -> Payment:
        db.add(payment)
        await db.commit()
        await db.refresh(payment)
        return payment
