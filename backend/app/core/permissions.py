"""
محرك الصلاحيات - قواعد الوصول على مستوى السجل

Every service calls ``enforce`` before reading or mutating a record. The
predicate only looks at already-loaded attributes, so callers must load the
relationships it needs (donation -> organization, pickup -> volunteer/charity).
"""
import logging
from typing import Optional

from app.core.constants import Operation, UserRole
from app.core.exceptions import ForbiddenError
from app.models.charity import Charity
from app.models.donation import Donation
from app.models.impact import ImpactMetric
from app.models.organization import Organization
from app.models.pickup import Pickup
from app.models.user import User
from app.models.volunteer import Volunteer

logger = logging.getLogger(__name__)

# ملفات التعريف: الدور المطلوب لمالك كل نوع
PROFILE_ROLES = {
    Organization: UserRole.DONOR,
    Charity: UserRole.CHARITY,
    Volunteer: UserRole.VOLUNTEER,
}

# من يحق له كل عملية على مهمة النقل
PICKUP_PARTIES = {
    Operation.CONFIRM_PICKUP: {"volunteer"},
    Operation.CONFIRM_DELIVERY: {"volunteer", "charity"},
    Operation.CANCEL_ASSIGNMENT: {"volunteer", "charity", "admin"},
    Operation.WRITE: {"volunteer", "charity", "admin"},
}


def is_admin(principal: Optional[User]) -> bool:
    return principal is not None and principal.role == UserRole.ADMIN


def _owns(principal: User, owner_user_id) -> bool:
    return owner_user_id is not None and principal.id == owner_user_id


def _pickup_parties(principal: User, pickup: Pickup) -> set:
    parties = set()
    if is_admin(principal):
        parties.add("admin")
    if pickup.volunteer is not None and _owns(principal, pickup.volunteer.user_id):
        parties.add("volunteer")
    if pickup.charity is not None and _owns(principal, pickup.charity.user_id):
        parties.add("charity")
    donation = pickup.donation
    if donation is not None and donation.organization is not None:
        if _owns(principal, donation.organization.user_id):
            parties.add("donor")
    return parties


def can_access(principal: Optional[User], operation: Operation, entity) -> bool:
    if principal is None:
        return False

    if isinstance(entity, Pickup):
        parties = _pickup_parties(principal, entity)
        if operation == Operation.READ:
            return bool(parties & {"volunteer", "charity", "donor", "admin"})
        allowed = PICKUP_PARTIES.get(operation)
        return bool(allowed and parties & allowed)

    if operation == Operation.READ:
        return isinstance(entity, (Organization, Charity, Volunteer, Donation, ImpactMetric))

    if operation == Operation.VERIFY:
        return isinstance(entity, (Organization, Charity)) and is_admin(principal)

    if operation != Operation.WRITE:
        return False

    if is_admin(principal):
        return True

    profile_role = PROFILE_ROLES.get(type(entity))
    if profile_role is not None:
        return principal.role == profile_role and _owns(principal, entity.user_id)

    if isinstance(entity, Donation):
        organization = entity.organization
        return (
            organization is not None
            and principal.role == UserRole.DONOR
            and _owns(principal, organization.user_id)
        )

    return False


def enforce(principal: Optional[User], operation: Operation, entity, message: str = None) -> None:
    """Raise ForbiddenError unless ``principal`` may perform ``operation``."""
    if not can_access(principal, operation, entity):
        logger.warning(
            f"Denied {operation.value} on {type(entity).__name__} "
            f"{getattr(entity, 'id', None)} for {getattr(principal, 'id', None)}"
        )
        raise ForbiddenError(message or "غير مصرح لك بهذا الإجراء")
