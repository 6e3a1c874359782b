from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field, field_validator
import re

from app.core.constants import UserRole


def normalize_phone(v: Optional[str]) -> Optional[str]:
    if v is None:
        return v
    phone = re.sub(r'[\s\-]', '', v)
    if not re.match(r'^(\+?[0-9]{8,15})$', phone):
        raise ValueError('رقم الهاتف غير صالح')
    return phone


class RegisterRequest(BaseModel):
    """التسجيل بعد المصادقة لدى مزود الهوية"""
    role: UserRole
    full_name: str = Field(..., min_length=2, max_length=200)
    phone: Optional[str] = Field(default=None, max_length=20)

    @field_validator('phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)


class UserResponse(BaseModel):
    id: UUID
    full_name: str
    phone: Optional[str]
    role: UserRole
    created_at: Optional[datetime]
    organization_id: Optional[UUID] = None
    charity_id: Optional[UUID] = None
    volunteer_id: Optional[UUID] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_user(cls, user) -> "UserResponse":
        return cls(
            id=user.id,
            full_name=user.full_name,
            phone=user.phone,
            role=user.role,
            created_at=user.created_at,
            organization_id=user.organization.id if user.organization else None,
            charity_id=user.charity.id if user.charity else None,
            volunteer_id=user.volunteer.id if user.volunteer else None,
        )
