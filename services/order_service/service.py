"""
Booking core: stage an order against a schedule, then commit it on payment.

Capacity is checked twice. The check in create_order is advisory and only
rejects requests that are already too large. The authoritative check is the
conditional decrement in confirm_payment, which runs in the same transaction
as the order's pending -> confirmed transition.
"""
import secrets
import string
import time
from typing import Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.constants import MAX_SCHEDULE_CAPACITY, price_cents
from shared.errors import (
    CapacityExceededError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
    TRANSIENT_DB_ERRORS,
    ValidationError,
)
from shared.observability import (
    bites_capacity_conflicts_total,
    bites_orders_created_total,
    bites_payment_confirmations_total,
)
from shared.security import Identity
from services.schedule_service.repository import ScheduleRepository
from .models import Order
from .repository import OrderRepository
from .schemas import OrderCreate, OrderCreated

logger = structlog.get_logger(__name__)

_HANDLE_ALPHABET = string.ascii_lowercase + string.digits

# Driver-initiated transitions after payment
DRIVER_TRANSITIONS = {
    "confirmed": ("in_transit", "completed"),
    "in_transit": ("completed",),
}


def new_payment_handle() -> str:
    suffix = "".join(secrets.choice(_HANDLE_ALPHABET) for _ in range(8))
    return f"payment_{int(time.time() * 1000)}_{suffix}"


class OrderService:
    @staticmethod
    async def create_order(db: AsyncSession, identity: Identity, data: OrderCreate) -> OrderCreated:
        if not identity.is_customer:
            raise PermissionDeniedError(detail="Only parents and students can place orders")
        if data.quantity < 1:
            raise ValidationError(detail="Please order at least 1 meal")
        if data.quantity > MAX_SCHEDULE_CAPACITY:
            raise ValidationError(detail=f"Quantity cannot exceed {MAX_SCHEDULE_CAPACITY}")
        if not data.description or not data.description.strip():
            raise ValidationError(detail="Please describe the food you are sending")

        try:
            schedule = await ScheduleRepository.get_schedule(db, data.schedule_id)
            if not schedule:
                raise NotFoundError(detail="Schedule not found")

            # Advisory: no reservation is taken here
            if data.quantity > schedule.available_capacity:
                bites_capacity_conflicts_total.labels(stage="create").inc()
                raise CapacityExceededError(available=schedule.available_capacity, requested=data.quantity)

            order = Order(
                customer_id=identity.user_id,
                schedule_id=schedule.id,
                quantity=data.quantity,
                description=data.description.strip(),
                special_instructions=data.special_instructions or None,
                payment_id=new_payment_handle(),
                status="pending",
            )
            order = await OrderRepository.create_order(db, order)
        except TRANSIENT_DB_ERRORS as e:
            await db.rollback()
            raise ServiceUnavailableError() from e

        bites_orders_created_total.inc()
        logger.info(
            "order_created",
            order_id=order.id,
            schedule_id=order.schedule_id,
            quantity=order.quantity,
            customer_id=order.customer_id,
        )
        return OrderCreated(
            order_id=order.id,
            payment_handle=order.payment_id,
            amount=price_cents(order.quantity),
        )

    @staticmethod
    async def confirm_payment(
        db: AsyncSession, payment_handle: str, identity: Optional[Identity] = None
    ) -> Order:
        """
        Commit a pending order after a successful payment.

        The capacity decrement and the status change are one transaction; if
        either conditional update matches no row the whole unit is rolled back.
        When an identity is given, only that customer's orders are visible.
        """
        order = await OrderRepository.get_by_payment_id(db, payment_handle)
        if not order or (identity is not None and order.customer_id != identity.user_id):
            bites_payment_confirmations_total.labels(status="not_found").inc()
            raise NotFoundError(detail="No order found for this payment")
        if order.status != "pending":
            bites_payment_confirmations_total.labels(status="invalid_state").inc()
            raise InvalidStateError(detail=f"Order is already {order.status}")

        # Plain values; the instance is expired by any rollback below
        order_id, schedule_id, quantity = order.id, order.schedule_id, order.quantity

        try:
            if not await OrderRepository.decrement_capacity(db, schedule_id, quantity):
                await db.rollback()
                schedule = await ScheduleRepository.get_schedule(db, schedule_id)
                available = schedule.available_capacity if schedule else 0
                bites_capacity_conflicts_total.labels(stage="confirm").inc()
                bites_payment_confirmations_total.labels(status="capacity_exceeded").inc()
                logger.warning(
                    "confirm_capacity_exceeded",
                    order_id=order_id,
                    schedule_id=schedule_id,
                    requested=quantity,
                    available=available,
                )
                raise CapacityExceededError(available=available, requested=quantity)

            if not await OrderRepository.transition_status(db, order_id, "pending", "confirmed"):
                # Lost a race with another confirmation or a cancellation
                await db.rollback()
                bites_payment_confirmations_total.labels(status="invalid_state").inc()
                raise InvalidStateError(detail="Order is no longer pending")

            await db.commit()
        except TRANSIENT_DB_ERRORS as e:
            await db.rollback()
            raise ServiceUnavailableError() from e

        await db.refresh(order)
        bites_payment_confirmations_total.labels(status="confirmed").inc()
        logger.info("payment_confirmed", order_id=order_id, schedule_id=schedule_id, quantity=quantity)
        return order

    @staticmethod
    async def get_order_for_customer(db: AsyncSession, order_id: str, identity: Identity) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order or order.customer_id != identity.user_id:
            raise NotFoundError(detail="Order not found or you don't have permission to view it")
        return order

    @staticmethod
    async def list_orders_for_customer(db: AsyncSession, identity: Identity) -> list[Order]:
        return await OrderRepository.list_for_customer(db, identity.user_id)

    @staticmethod
    async def cancel_order(db: AsyncSession, order_id: str, identity: Identity) -> Order:
        """Cancel a pending order. Pending orders never held capacity, so none is returned."""
        order = await OrderService.get_order_for_customer(db, order_id, identity)
        if order.status != "pending":
            raise InvalidStateError(detail=f"Only pending orders can be cancelled, order is {order.status}")

        if not await OrderRepository.transition_status(db, order.id, "pending", "cancelled"):
            await db.rollback()
            raise InvalidStateError(detail="Order is no longer pending")
        await db.commit()
        await db.refresh(order)

        logger.info("order_cancelled", order_id=order.id)
        return order

    @staticmethod
    async def update_status(db: AsyncSession, order_id: str, identity: Identity, new_status: str) -> Order:
        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFoundError(detail="Order not found")

        schedule = await ScheduleRepository.get_schedule(db, order.schedule_id)
        if not identity.is_driver or schedule is None or schedule.driver_id != identity.user_id:
            raise PermissionDeniedError(detail="Only the driver of this schedule can update the order")

        current = order.status
        if new_status not in DRIVER_TRANSITIONS.get(current, ()):
            raise InvalidStateError(detail=f"Cannot move order from {current} to {new_status}")

        if not await OrderRepository.transition_status(db, order.id, current, new_status):
            await db.rollback()
            raise InvalidStateError(detail="Order status changed concurrently, please reload")
        await db.commit()
        await db.refresh(order)

        logger.info("order_status_updated", order_id=order.id, from_status=current, to_status=new_status)
        return order
