import uuid

from sqlalchemy import Column, DateTime, String
from sqlalchemy.sql import func

from shared.config.database import Base


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    user_type = Column(String(32), nullable=False, default="student") # parent, student, driver, parent_driver
    hashed_password = Column(String(255), nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
