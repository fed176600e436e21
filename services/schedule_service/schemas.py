from datetime import date, datetime, time
from typing import List, Optional

from pydantic import BaseModel

from shared.config.constants import DEFAULT_SCHEDULE_CAPACITY
from services.order_service.schemas import OrderResponse


class ScheduleCreate(BaseModel):
    from_location: str
    to_location: str
    departure_date: date
    departure_time: time
    capacity: int = DEFAULT_SCHEDULE_CAPACITY


class ScheduleResponse(BaseModel):
    id: str
    driver_id: str
    from_location: str
    to_location: str
    departure_date: date
    departure_time: time
    capacity: int
    available_capacity: int
    created_at: Optional[datetime] = None
    driver_name: Optional[str] = None

    class Config:
        from_attributes = True


class DriverStats(BaseModel):
    upcoming_drives: int
    active_orders: int
    past_drives: int


class DriverOverview(BaseModel):
    upcoming: List[ScheduleResponse]
    past: List[ScheduleResponse]
    orders: List[OrderResponse]
    stats: DriverStats
