from datetime import date
from typing import AsyncIterator, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from services.auth_service.models import UserProfile
from .models import DriverSchedule


class ScheduleRepository:

    @staticmethod
    async def create_schedule(db: AsyncSession, schedule: DriverSchedule) -> DriverSchedule:
        db.add(schedule)
        await db.commit()
        await db.refresh(schedule)
        return schedule

    @staticmethod
    async def get_schedule(db: AsyncSession, schedule_id: str) -> Optional[DriverSchedule]:
        result = await db.execute(select(DriverSchedule).where(DriverSchedule.id == schedule_id))
        return result.scalars().first()

    @staticmethod
    async def iter_upcoming(db: AsyncSession, today: date) -> AsyncIterator[tuple[DriverSchedule, Optional[str]]]:
        """Bookable schedules joined with the driver's display name, soonest first."""
        stmt = (
            select(DriverSchedule, UserProfile.name)
            .outerjoin(UserProfile, UserProfile.id == DriverSchedule.driver_id)
            .where(DriverSchedule.available_capacity > 0)
            .where(DriverSchedule.departure_date >= today)
            .order_by(DriverSchedule.departure_date.asc(), DriverSchedule.departure_time.asc())
        )
        result = await db.execute(stmt)
        for schedule, driver_name in result:
            yield schedule, driver_name

    @staticmethod
    async def iter_for_driver(
        db: AsyncSession, driver_id: str, today: date, past: bool = False
    ) -> AsyncIterator[DriverSchedule]:
        stmt = select(DriverSchedule).where(DriverSchedule.driver_id == driver_id)
        if past:
            stmt = stmt.where(DriverSchedule.departure_date < today).order_by(
                DriverSchedule.departure_date.desc(), DriverSchedule.departure_time.desc()
            )
        else:
            stmt = stmt.where(DriverSchedule.departure_date >= today).order_by(
                DriverSchedule.departure_date.asc(), DriverSchedule.departure_time.asc()
            )
        result = await db.execute(stmt)
        for schedule in result.scalars():
            yield schedule
