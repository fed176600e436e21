import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text, UniqueConstraint

from shared.config.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


class LocationUpdate(Base):
    """Append-only position report for one order."""

    __tablename__ = "location_updates"
    __table_args__ = (UniqueConstraint("order_id", "sequence", name="uq_location_updates_order_sequence"),)

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    order_id = Column(String(36), ForeignKey("orders.id"), nullable=False, index=True)
    sequence = Column(Integer, nullable=False) # 1, 2, ... per order; defines history order
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    note = Column(Text, nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
