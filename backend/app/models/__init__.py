from app.models.user import User
from app.models.organization import Organization
from app.models.charity import Charity
from app.models.volunteer import Volunteer
from app.models.donation import Donation
from app.models.pickup import Pickup
from app.models.impact import ImpactMetric
from app.models.audit import AuditLog

__all__ = [
    "User",
    "Organization",
    "Charity",
    "Volunteer",
    "Donation",
    "Pickup",
    "ImpactMetric",
    "AuditLog",
]
