from datetime import date
from typing import AsyncIterator, Optional

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.constants import MAX_SCHEDULE_CAPACITY, MIN_LOCATION_LENGTH
from shared.errors import (
    NotFoundError,
    PermissionDeniedError,
    ServiceUnavailableError,
    TRANSIENT_DB_ERRORS,
    ValidationError,
)
from shared.security import Identity
from services.order_service.repository import OrderRepository
from services.order_service.schemas import OrderResponse
from .models import DriverSchedule
from .repository import ScheduleRepository
from .schemas import DriverOverview, DriverStats, ScheduleCreate, ScheduleResponse

logger = structlog.get_logger(__name__)


def to_response(schedule: DriverSchedule, driver_name: Optional[str] = None) -> ScheduleResponse:
    return ScheduleResponse.model_validate(schedule).model_copy(update={"driver_name": driver_name})


class ScheduleService:

    @staticmethod
    async def create_schedule(db: AsyncSession, identity: Identity, data: ScheduleCreate) -> DriverSchedule:
        if not identity.is_driver:
            raise PermissionDeniedError(detail="Only drivers can schedule a drive")

        from_location = data.from_location.strip()
        to_location = data.to_location.strip()
        if len(from_location) < MIN_LOCATION_LENGTH:
            raise ValidationError(detail="Please enter a valid departure location")
        if len(to_location) < MIN_LOCATION_LENGTH:
            raise ValidationError(detail="Please enter a valid destination")
        if not 1 <= data.capacity <= MAX_SCHEDULE_CAPACITY:
            raise ValidationError(detail=f"Capacity must be between 1 and {MAX_SCHEDULE_CAPACITY}")

        schedule = DriverSchedule(
            driver_id=identity.user_id,
            from_location=from_location,
            to_location=to_location,
            departure_date=data.departure_date,
            departure_time=data.departure_time,
            capacity=data.capacity,
            available_capacity=data.capacity,
        )
        schedule = await ScheduleRepository.create_schedule(db, schedule)
        logger.info("schedule_created", schedule_id=schedule.id, driver_id=identity.user_id, capacity=schedule.capacity)
        return schedule

    @staticmethod
    async def get_schedule(db: AsyncSession, schedule_id: str) -> DriverSchedule:
        schedule = await ScheduleRepository.get_schedule(db, schedule_id)
        if not schedule:
            raise NotFoundError(detail="Schedule not found")
        return schedule

    @staticmethod
    async def list_upcoming_schedules(
        db: AsyncSession, today: Optional[date] = None
    ) -> AsyncIterator[ScheduleResponse]:
        """Schedules a customer can still book, each with the driver's name."""
        today = today or date.today()
        try:
            async for schedule, driver_name in ScheduleRepository.iter_upcoming(db, today):
                yield to_response(schedule, driver_name)
        except TRANSIENT_DB_ERRORS as e:
            logger.error("schedule_query_failed", error=str(e))
            raise ServiceUnavailableError(detail="Schedule query failed") from e

    @staticmethod
    async def list_driver_schedules(
        db: AsyncSession, driver_id: str, today: Optional[date] = None, past: bool = False
    ) -> AsyncIterator[DriverSchedule]:
        today = today or date.today()
        try:
            async for schedule in ScheduleRepository.iter_for_driver(db, driver_id, today, past=past):
                yield schedule
        except TRANSIENT_DB_ERRORS as e:
            logger.error("schedule_query_failed", driver_id=driver_id, error=str(e))
            raise ServiceUnavailableError(detail="Schedule query failed") from e

    @staticmethod
    def list_past_schedules_for_driver(
        db: AsyncSession, driver_id: str, today: Optional[date] = None
    ) -> AsyncIterator[DriverSchedule]:
        return ScheduleService.list_driver_schedules(db, driver_id, today, past=True)

    @staticmethod
    async def driver_overview(db: AsyncSession, identity: Identity, today: Optional[date] = None) -> DriverOverview:
        if not identity.is_driver:
            raise PermissionDeniedError(detail="Only drivers have a driver dashboard")

        upcoming = [s async for s in ScheduleService.list_driver_schedules(db, identity.user_id, today)]
        past = [s async for s in ScheduleService.list_past_schedules_for_driver(db, identity.user_id, today)]
        orders = await OrderRepository.list_for_schedules(db, [s.id for s in upcoming])

        return DriverOverview(
            upcoming=[to_response(s) for s in upcoming],
            past=[to_response(s) for s in past],
            orders=[OrderResponse.model_validate(o) for o in orders],
            stats=DriverStats(
                upcoming_drives=len(upcoming),
                active_orders=len(orders),
                past_drives=len(past),
            ),
        )
