import uuid

from sqlalchemy import CheckConstraint, Column, Date, DateTime, Integer, String, Time
from sqlalchemy.sql import func

from shared.config.database import Base


class DriverSchedule(Base):
    __tablename__ = "driver_schedules"
    __table_args__ = (
        CheckConstraint("capacity > 0", name="ck_schedule_capacity_positive"),
        # available_capacity is only ever moved by the conditional decrement
        CheckConstraint(
            "available_capacity >= 0 AND available_capacity <= capacity",
            name="ck_schedule_available_capacity_bounds",
        ),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    driver_id = Column(String(36), nullable=False, index=True)
    from_location = Column(String(255), nullable=False)
    to_location = Column(String(255), nullable=False)
    departure_date = Column(Date, nullable=False, index=True)
    departure_time = Column(Time, nullable=False)
    capacity = Column(Integer, nullable=False)
    available_capacity = Column(Integer, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
