import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, Text
from shared.config.database import Base

ORDER_STATUSES = ("pending", "confirmed", "in_transit", "completed", "cancelled")


def _utcnow():
    return datetime.now(timezone.utc)


class Order(Base):
    __tablename__ = "orders"
    __table_args__ = (
        CheckConstraint("quantity > 0", name="ck_order_quantity_positive"),
    )

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    customer_id = Column(String(36), nullable=False, index=True)
    schedule_id = Column(String(36), ForeignKey("driver_schedules.id"), nullable=False, index=True)
    quantity = Column(Integer, nullable=False)
    description = Column(Text, nullable=True)
    special_instructions = Column(Text, nullable=True)
    payment_id = Column(String(64), unique=True, nullable=True, index=True)
    status = Column(String(16), nullable=False, default="pending") # pending, confirmed, in_transit, completed, cancelled
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
