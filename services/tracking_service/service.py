from typing import Callable, Optional

import structlog
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from shared.errors import (
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
    TRANSIENT_DB_ERRORS,
    ValidationError,
)
from shared.observability import bites_location_updates_total
from shared.security import Identity
from services.order_service.models import Order
from services.order_service.repository import OrderRepository
from services.order_service.schemas import OrderResponse
from services.schedule_service.repository import ScheduleRepository
from services.schedule_service.service import to_response
from .feed import Callback, location_feed
from .models import LocationUpdate
from .repository import LocationRepository
from .schemas import DeliveryStatus, LocationCreate, LocationResponse, TrackingView

logger = structlog.get_logger(__name__)


def delivery_status(order: Order) -> DeliveryStatus:
    if order.status == "completed":
        return DeliveryStatus(status="Delivered", color="green")
    if order.status == "in_transit":
        return DeliveryStatus(status="In Transit", color="blue")
    if order.status == "cancelled":
        return DeliveryStatus(status="Cancelled", color="gray")
    return DeliveryStatus(status="Preparing", color="yellow")


class TrackingService:

    @staticmethod
    async def _load_visible_order(db: AsyncSession, order_id: str, identity: Identity) -> Order:
        """The order, if the caller is its customer or the driver carrying it."""
        order = await OrderRepository.get_order(db, order_id)
        if order and order.customer_id == identity.user_id:
            return order
        if order and identity.is_driver:
            schedule = await ScheduleRepository.get_schedule(db, order.schedule_id)
            if schedule and schedule.driver_id == identity.user_id:
                return order
        raise NotFoundError(detail="Order not found or you don't have permission to view it")

    @staticmethod
    async def append_location_update(
        db: AsyncSession, identity: Identity, order_id: str, data: LocationCreate
    ) -> LocationUpdate:
        if data.latitude is None and data.longitude is None:
            raise ValidationError(detail="Please provide a valid location")

        order = await OrderRepository.get_order(db, order_id)
        if not order:
            raise NotFoundError(detail="Order not found")
        schedule = await ScheduleRepository.get_schedule(db, order.schedule_id)
        if not identity.is_driver or schedule is None or schedule.driver_id != identity.user_id:
            raise PermissionDeniedError(detail="Only the driver of this order can post its location")
        if order.status == "cancelled":
            raise InvalidStateError(detail="Order was cancelled")

        async with location_feed.lock(order_id):
            try:
                update = LocationUpdate(
                    order_id=order_id,
                    sequence=await LocationRepository.next_sequence(db, order_id),
                    latitude=data.latitude,
                    longitude=data.longitude,
                    note=data.note or None,
                )
                db.add(update)
                if order.status == "confirmed":
                    await OrderRepository.transition_status(db, order_id, "confirmed", "in_transit")
                await db.commit()
                await db.refresh(update)
                await db.refresh(order)
            except IntegrityError as e:
                # Another process took the same sequence number
                await db.rollback()
                raise ServiceUnavailableError(detail="Concurrent location update, please retry") from e
            except TRANSIENT_DB_ERRORS as e:
                await db.rollback()
                raise ServiceUnavailableError() from e

            await location_feed.publish(order_id, LocationResponse.model_validate(update))

        bites_location_updates_total.inc()
        logger.info("location_update_appended", order_id=order_id, update_id=update.id)
        return update

    @staticmethod
    async def list_location_updates(
        db: AsyncSession, order_id: str, identity: Optional[Identity] = None
    ) -> list[LocationUpdate]:
        """All updates of an order, oldest first."""
        if identity is not None:
            await TrackingService._load_visible_order(db, order_id, identity)
        return await LocationRepository.list_for_order(db, order_id)

    @staticmethod
    def subscribe_to_location_updates(order_id: str, on_update: Callback) -> Callable[[], None]:
        return location_feed.subscribe(order_id, on_update)

    @staticmethod
    async def authorize_subscription(db: AsyncSession, order_id: str, identity: Identity) -> Order:
        return await TrackingService._load_visible_order(db, order_id, identity)

    @staticmethod
    async def track_order(db: AsyncSession, order_id: str, identity: Identity) -> TrackingView:
        order = await TrackingService._load_visible_order(db, order_id, identity)
        schedule = await ScheduleRepository.get_schedule(db, order.schedule_id)
        updates = await LocationRepository.list_for_order(db, order_id)
        return TrackingView(
            order=OrderResponse.model_validate(order),
            schedule=to_response(schedule),
            location_updates=[LocationResponse.model_validate(u) for u in updates],
            delivery_status=delivery_status(order),
        )
