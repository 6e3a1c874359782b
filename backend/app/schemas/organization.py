"""
Schemas ملفات المتبرعين والجمعيات والمتطوعين
"""
from typing import Optional, List
from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator, model_validator

from app.schemas.user import normalize_phone


class Location(BaseModel):
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)

    @model_validator(mode="after")
    def both_or_neither(self):
        if (self.latitude is None) != (self.longitude is None):
            raise ValueError('يجب تحديد خط العرض وخط الطول معاً')
        return self


# === الحقول المشتركة ===

class ProfileCreate(Location):
    name: str = Field(..., min_length=2, max_length=200, description="الاسم")
    address: str = Field(..., min_length=3, max_length=500)
    contact_person: str = Field(..., min_length=2, max_length=200)
    contact_phone: str = Field(..., max_length=20)

    @field_validator('contact_phone')
    @classmethod
    def validate_phone(cls, v: str) -> str:
        return normalize_phone(v)


class ProfileUpdate(BaseModel):
    name: Optional[str] = Field(default=None, min_length=2, max_length=200)
    address: Optional[str] = Field(default=None, min_length=3, max_length=500)
    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)
    contact_person: Optional[str] = Field(default=None, min_length=2, max_length=200)
    contact_phone: Optional[str] = Field(default=None, max_length=20)

    @field_validator('contact_phone')
    @classmethod
    def validate_phone(cls, v: Optional[str]) -> Optional[str]:
        return normalize_phone(v)


# === الجهات المتبرعة ===

class OrganizationCreate(ProfileCreate):
    type: str = Field(..., min_length=2, max_length=50, description="نوع الجهة: مطعم، فندق، متجر")


class OrganizationUpdate(ProfileUpdate):
    type: Optional[str] = Field(default=None, min_length=2, max_length=50)


class OrganizationResponse(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    type: str
    address: str
    latitude: Optional[float]
    longitude: Optional[float]
    contact_person: str
    contact_phone: str
    verified: bool
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}


class OrganizationListResponse(BaseModel):
    items: List[OrganizationResponse]
    total: int
    page: int
    limit: int


# === الجمعيات ===

class CharityCreate(ProfileCreate):
    registration_number: str = Field(..., min_length=2, max_length=100, description="رقم التسجيل")


class CharityUpdate(ProfileUpdate):
    registration_number: Optional[str] = Field(default=None, min_length=2, max_length=100)


class CharityResponse(BaseModel):
    id: UUID
    user_id: UUID
    name: str
    registration_number: str
    address: str
    latitude: Optional[float]
    longitude: Optional[float]
    contact_person: str
    contact_phone: str
    verified: bool
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}


class CharityListResponse(BaseModel):
    items: List[CharityResponse]
    total: int
    page: int
    limit: int


class VerifyRequest(BaseModel):
    verified: bool = True


# === المتطوعون ===

class VolunteerCreate(Location):
    pass


class VolunteerLocationUpdate(Location):
    """موقع فارغ يعني الخروج من المطابقة"""
    pass


class VolunteerResponse(BaseModel):
    id: UUID
    user_id: UUID
    available: bool
    latitude: Optional[float]
    longitude: Optional[float]
    last_active: Optional[datetime]
    total_pickups: int
    rating: float
    created_at: Optional[datetime]

    model_config = {"from_attributes": True}


class VolunteerListResponse(BaseModel):
    items: List[VolunteerResponse]
    total: int
    page: int
    limit: int
