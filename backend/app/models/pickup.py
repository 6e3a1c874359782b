import uuid

from sqlalchemy import Column, Integer, Text, DateTime, ForeignKey, Index, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base


class Pickup(Base):
    """نموذج مهمة النقل: يربط التبرع بمتطوع وجمعية"""
    __tablename__ = "pickups"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    donation_id = Column(UUID(as_uuid=True), ForeignKey("donations.id"), nullable=False)
    charity_id = Column(UUID(as_uuid=True), ForeignKey("charities.id"), nullable=True)
    volunteer_id = Column(UUID(as_uuid=True), ForeignKey("volunteers.id"), nullable=True, index=True)

    # التواريخ (متزايدة: assigned <= picked_up <= delivered)
    assigned_at = Column(DateTime(timezone=True), server_default=func.now())
    picked_up_at = Column(DateTime(timezone=True), nullable=True)
    delivered_at = Column(DateTime(timezone=True), nullable=True)
    cancelled_at = Column(DateTime(timezone=True), nullable=True)  # إلغاء التعيين

    # الإثباتات (مراجع مبهمة من خدمة التخزين)
    proof_of_pickup = Column(Text, nullable=True)
    proof_of_delivery = Column(Text, nullable=True)

    notes = Column(Text, nullable=True)
    rating = Column(Integer, nullable=True)                   # 1-5

    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    donation = relationship("Donation", back_populates="pickups")
    charity = relationship("Charity", back_populates="pickups")
    volunteer = relationship("Volunteer", back_populates="pickups")

    __table_args__ = (
        # مهمة نشطة واحدة فقط لكل تبرع
        Index(
            "uq_pickups_active_donation",
            "donation_id",
            unique=True,
            postgresql_where=cancelled_at.is_(None),
            sqlite_where=cancelled_at.is_(None),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.cancelled_at is None
