import uuid

from sqlalchemy import Column, Date, Integer, Numeric, DateTime, func
from sqlalchemy.dialects.postgresql import UUID

from app.database import Base


class ImpactMetric(Base):
    """الأثر اليومي للطعام المُنقذ"""
    __tablename__ = "impact_metrics"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    date = Column(Date, unique=True, nullable=False)

    meals_saved = Column(Integer, default=0, nullable=False)
    kg_food_saved = Column(Numeric(10, 2), default=0, nullable=False)
    co2_saved = Column(Numeric(10, 2), default=0, nullable=False)
    beneficiaries_served = Column(Integer, default=0, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
