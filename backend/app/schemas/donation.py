from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from app.core.constants import DonationStatus, FoodType


class DonationCreate(BaseModel):
    organization_id: Optional[UUID] = Field(default=None, description="للإدارة فقط")
    food_type: FoodType
    quantity: int = Field(..., gt=0, le=100000, description="الكمية بالكيلوغرام")
    description: str = Field(..., min_length=3, max_length=2000)
    expiry: datetime
    pickup_window_start: datetime
    pickup_window_end: datetime
    temperature_requirements: Optional[str] = Field(default=None, max_length=200)
    handling_instructions: Optional[str] = Field(default=None, max_length=2000)

    @model_validator(mode="after")
    def window_is_ordered(self):
        if self.pickup_window_end <= self.pickup_window_start:
            raise ValueError('يجب أن تنتهي نافذة الاستلام بعد بدايتها')
        return self


class DonationUpdate(BaseModel):
    food_type: Optional[FoodType] = None
    quantity: Optional[int] = Field(default=None, gt=0, le=100000)
    description: Optional[str] = Field(default=None, min_length=3, max_length=2000)
    expiry: Optional[datetime] = None
    pickup_window_start: Optional[datetime] = None
    pickup_window_end: Optional[datetime] = None
    temperature_requirements: Optional[str] = Field(default=None, max_length=200)
    handling_instructions: Optional[str] = Field(default=None, max_length=2000)


class DonationResponse(BaseModel):
    id: UUID
    organization_id: UUID
    food_type: FoodType
    quantity: int
    description: str
    expiry: datetime
    pickup_window_start: datetime
    pickup_window_end: datetime
    status: DonationStatus
    temperature_requirements: Optional[str]
    handling_instructions: Optional[str]
    created_at: Optional[datetime]
    updated_at: Optional[datetime]

    model_config = {"from_attributes": True}


class PaginatedDonations(BaseModel):
    items: List[DonationResponse]
    total: int
    page: int
    limit: int
    has_more: bool
