import uuid

from sqlalchemy import Column, String, Boolean, Float, DateTime, ForeignKey, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class Charity(Base):
    """نموذج الجمعية الخيرية المستفيدة"""
    __tablename__ = "charities"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    user_id = Column(UUID(as_uuid=True), ForeignKey("users.id"), unique=True, nullable=False)

    name = Column(String(200), nullable=False)
    registration_number = Column(String(100), nullable=False)  # رقم التسجيل الرسمي
    address = Column(String(500), nullable=False)

    latitude = Column(Float, nullable=True)
    longitude = Column(Float, nullable=True)

    contact_person = Column(String(200), nullable=False)
    contact_phone = Column(String(20), nullable=False)

    verified = Column(Boolean, default=False, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="charity")
    pickups = relationship("Pickup", back_populates="charity")

    @property
    def has_location(self) -> bool:
        return self.latitude is not None and self.longitude is not None
