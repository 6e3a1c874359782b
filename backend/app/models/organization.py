import uuid

from sqlalchemy import Column, String, Boolean, Float, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class Organization(Base):
    """نموذج الجهة المتبرعة (مطعم، فندق، متجر)"""
    __tablename__ = "organizations"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)

    # بيانات الجهة
    name = Column(String(200), nullable=False)
    type = Column(String(50), nullable=False)                 # restaurant, hotel, store...
    address = Column(String(500), nullable=False)

    # الموقع
    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    # معلومات الاتصال
    contact_person = Column(String(200), nullable=False)
    contact_phone = Column(String(20), nullable=False)

    # توثيق الإدارة
    verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="organization")
    donations = relationship("Donation", back_populates="organization")

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
