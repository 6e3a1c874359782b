import uuid

from sqlalchemy import Column, Boolean, Float, Integer, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base
from app.core.constants import DEFAULT_VOLUNTEER_RATING


class Volunteer(Base):
    """نموذج المتطوع"""
    __tablename__ = "volunteers"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)

    # يتغير فقط عبر المطابقة وتتبع الاستلام
    available = Column(Boolean, default=True, nullable=False)

    # آخر موقع معروف
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)
    last_active = Column(DateTime(timezone=True), nullable=True)

    # إحصائيات (تحدث عند التسليم فقط)
    total_pickups = Column(Integer, default=0, nullable=False)
    rating = Column(Float, default=DEFAULT_VOLUNTEER_RATING, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="volunteer")
    pickups = relationship("Pickup", back_populates="volunteer")

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
