from datetime import datetime
from typing import Optional, List
from uuid import UUID

from pydantic import BaseModel, Field

from app.core.constants import DonationStatus


class ConfirmPickupRequest(BaseModel):
    proof_ref: Optional[str] = Field(default=None, max_length=1000, description="مرجع إثبات الاستلام")
    notes: Optional[str] = Field(default=None, max_length=2000)


class ConfirmDeliveryRequest(BaseModel):
    proof_ref: Optional[str] = Field(default=None, max_length=1000, description="مرجع إثبات التسليم")
    rating: Optional[int] = Field(default=None, ge=1, le=5)
    notes: Optional[str] = Field(default=None, max_length=2000)


class CancelAssignmentRequest(BaseModel):
    reason: Optional[str] = Field(default=None, max_length=2000)


class PickupResponse(BaseModel):
    id: UUID
    donation_id: UUID
    volunteer_id: Optional[UUID]
    charity_id: Optional[UUID]
    assigned_at: Optional[datetime]
    picked_up_at: Optional[datetime]
    delivered_at: Optional[datetime]
    cancelled_at: Optional[datetime]
    proof_of_pickup: Optional[str]
    proof_of_delivery: Optional[str]
    notes: Optional[str]
    rating: Optional[int]
    donation_status: Optional[DonationStatus] = None

    model_config = {"from_attributes": True}

    @classmethod
    def from_pickup(cls, pickup) -> "PickupResponse":
        data = cls.model_validate(pickup)
        data.donation_status = pickup.donation.status if pickup.donation else None
        return data


class PaginatedPickups(BaseModel):
    items: List[PickupResponse]
    total: int
    page: int
    limit: int
    has_more: bool
