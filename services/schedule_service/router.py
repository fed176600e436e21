from datetime import date
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from shared.config.constants import DRIVER_ROLES
from shared.config.database import get_db
from shared.security import Identity, get_current_user, require_roles
from .schemas import DriverOverview, ScheduleCreate, ScheduleResponse
from .service import ScheduleService, to_response

router = APIRouter(prefix="/schedules", tags=["Schedules"])


@router.post("/", response_model=ScheduleResponse, status_code=status.HTTP_201_CREATED)
async def create_schedule(
    payload: ScheduleCreate,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    schedule = await ScheduleService.create_schedule(db, identity, payload)
    return to_response(schedule)


@router.get("/upcoming", response_model=list[ScheduleResponse])
async def list_upcoming(
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return [s async for s in ScheduleService.list_upcoming_schedules(db)]


@router.get("/mine", response_model=list[ScheduleResponse])
async def list_mine(
    past: bool = Query(default=False),
    on: Optional[date] = Query(default=None, description="Reference date, defaults to today"),
    identity: Identity = Depends(require_roles(*DRIVER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return [
        to_response(s)
        async for s in ScheduleService.list_driver_schedules(db, identity.user_id, on, past=past)
    ]


@router.get("/driver/overview", response_model=DriverOverview)
async def driver_overview(
    identity: Identity = Depends(require_roles(*DRIVER_ROLES)),
    db: AsyncSession = Depends(get_db),
):
    return await ScheduleService.driver_overview(db, identity)


@router.get("/{schedule_id}", response_model=ScheduleResponse)
async def get_schedule(
    schedule_id: str,
    identity: Identity = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
):
    return to_response(await ScheduleService.get_schedule(db, schedule_id))
