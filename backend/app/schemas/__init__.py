from app.schemas.user import RegisterRequest, UserResponse
from app.schemas.organization import (
    OrganizationCreate,
    OrganizationUpdate,
    OrganizationResponse,
    CharityCreate,
    CharityUpdate,
    CharityResponse,
    VolunteerCreate,
    VolunteerLocationUpdate,
    VolunteerResponse,
    VerifyRequest,
)
from app.schemas.donation import (
    DonationCreate,
    DonationUpdate,
    DonationResponse,
    PaginatedDonations,
)
from app.schemas.pickup import (
    ConfirmPickupRequest,
    ConfirmDeliveryRequest,
    CancelAssignmentRequest,
    PickupResponse,
    PaginatedPickups,
)
from app.schemas.impact import ImpactMetricResponse, ImpactListResponse, ImpactSummaryResponse

__all__ = [
    # User
    "RegisterRequest",
    "UserResponse",
    # Profiles
    "OrganizationCreate",
    "OrganizationUpdate",
    "OrganizationResponse",
    "CharityCreate",
    "CharityUpdate",
    "CharityResponse",
    "VolunteerCreate",
    "VolunteerLocationUpdate",
    "VolunteerResponse",
    "VerifyRequest",
    # Donation
    "DonationCreate",
    "DonationUpdate",
    "DonationResponse",
    "PaginatedDonations",
    # Pickup
    "ConfirmPickupRequest",
    "ConfirmDeliveryRequest",
    "CancelAssignmentRequest",
    "PickupResponse",
    "PaginatedPickups",
    # Impact
    "ImpactMetricResponse",
    "ImpactListResponse",
    "ImpactSummaryResponse",
]
