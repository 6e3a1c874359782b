from sqlalchemy import Column, String, DateTime, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import relationship

from app.database import Base, value_enum
from app.core.constants import UserRole


class User(Base):
    """المستخدم - المعرّف هو معرّف الهوية لدى مزود المصادقة"""
    __tablename__ = "users"

    id = Column(UUID(as_uuid=True), primary_key=True)
    full_name = Column(String(200), nullable=False)
    phone = Column(String(20), nullable=True)
    role = Column(value_enum(UserRole, "user_role"), nullable=False)  # لا يتغير بعد الإنشاء
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    organization = relationship("Organization", back_populates="user", uselist=False)
    charity = relationship("Charity", back_populates="user", uselist=False)
    volunteer = relationship("Volunteer", back_populates="user", uselist=False)
