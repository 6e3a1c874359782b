import uuid

from sqlalchemy import Column, Integer, String, Text, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base, value_enum
from app.core.constants import DonationStatus, FoodType


class Donation(Base):
    """نموذج عرض التبرع بفائض الطعام"""
    __tablename__ = "donations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    organization_id = Column(UUID(as_uuid=True), ForeignKey("organizations.id"), nullable=False, index=True)

    # تفاصيل الطعام
    food_type = Column(value_enum(FoodType, "food_type"), nullable=False)
    quantity = Column(Integer, nullable=False)                # بالكيلوغرام
    description = Column(Text, nullable=False)

    # التوقيت
    expiry = Column(DateTime(timezone=True), nullable=False)
    pickup_window_start = Column(DateTime(timezone=True), nullable=False)
    pickup_window_end = Column(DateTime(timezone=True), nullable=False)

    # الحالة
    status = Column(
        value_enum(DonationStatus, "donation_status"),
        default=DonationStatus.PENDING,
        nullable=False,
        index=True,
    )

    # تعليمات التعامل
    temperature_requirements = Column(String(200), nullable=True)
    handling_instructions = Column(Text, nullable=True)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    organization = relationship("Organization", back_populates="donations")
    pickups = relationship("Pickup", back_populates="donation")

    @property
    def active_pickup(self):
        for pickup in self.pickups:
            if pickup.cancelled_at is None:
                return pickup
        return None
