from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel

from services.order_service.schemas import OrderResponse
from services.schedule_service.schemas import ScheduleResponse


class LocationCreate(BaseModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    note: Optional[str] = None


class LocationResponse(BaseModel):
    id: str
    order_id: str
    sequence: int
    latitude: Optional[float]
    longitude: Optional[float]
    note: Optional[str]
    created_at: datetime

    class Config:
        from_attributes = True


class DeliveryStatus(BaseModel):
    status: str
    color: str


class TrackingView(BaseModel):
    order: OrderResponse
    schedule: ScheduleResponse
    location_updates: List[LocationResponse]
    delivery_status: DeliveryStatus
