import logging
from typing import List, Optional, Tuple, Type
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.clock import utcnow
from app.core.constants import Operation, UserRole
from app.core.exceptions import DuplicateError, ForbiddenError, NotFoundError, ValidationError
from app.core.permissions import enforce
from app.models.charity import Charity
from app.models.organization import Organization
from app.models.user import User
from app.models.volunteer import Volunteer
from app.services.geocoding_service import geocoding_service

logger = logging.getLogger(__name__)

ENTITY_NAMES = {
    Organization: "الجهة المتبرعة",
    Charity: "الجمعية",
    Volunteer: "المتطوع",
}

ROLE_PROFILES = {
    UserRole.DONOR: Organization,
    UserRole.CHARITY: Charity,
    UserRole.VOLUNTEER: Volunteer,
}

# حقول لا يغيرها صاحب الملف بنفسه
PROTECTED_FIELDS = {"id", "user_id", "verified", "available", "total_pickups", "rating", "created_at"}


class ProfileService:
    """Organization, charity and volunteer profiles (one per user, matching the role)."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def _fill_location(self, profile) -> None:
        if profile.latitude is not None and profile.longitude is not None:
            return
        if profile.latitude is not None or profile.longitude is not None:
            raise ValidationError("يجب تحديد خط العرض وخط الطول معاً", field="latitude")
        coords = await geocoding_service.geocode(profile.address)
        if coords:
            profile.latitude, profile.longitude = coords

    async def create_profile(self, actor: User, model: Type, **fields):
        if ROLE_PROFILES.get(actor.role) is not model:
            raise ForbiddenError("دورك لا يسمح بإنشاء هذا الملف")

        existing = await self.db.execute(select(model).where(model.user_id == actor.id))
        if existing.scalar_one_or_none():
            raise DuplicateError("لديك ملف مسجل مسبقاً")

        profile = model(user_id=actor.id, **fields)
        enforce(actor, Operation.WRITE, profile)

        if model is Volunteer:
            profile.last_active = utcnow()
        else:
            await self._fill_location(profile)

        self.db.add(profile)
        await self.db.flush()
        await self.db.refresh(profile)
        logger.info(f"Created {model.__tablename__} profile {profile.id} for user {actor.id}")
        return profile

    async def get_profile(self, model: Type, profile_id: UUID, actor: User = None):
        profile = await self.db.get(model, profile_id)
        if not profile:
            raise NotFoundError(ENTITY_NAMES[model], str(profile_id))
        if actor is not None:
            enforce(actor, Operation.READ, profile)
        return profile

    async def update_profile(self, model: Type, profile_id: UUID, actor: User, **fields):
        profile = await self.get_profile(model, profile_id)
        enforce(actor, Operation.WRITE, profile, "لا يمكنك تعديل ملف مستخدم آخر")

        for key, value in fields.items():
            if key in PROTECTED_FIELDS:
                continue
            if value is not None and hasattr(profile, key):
                setattr(profile, key, value)

        if model is Volunteer:
            profile.last_active = utcnow()
        elif "address" in fields and fields["address"] is not None and "latitude" not in fields:
            profile.latitude = profile.longitude = None
            await self._fill_location(profile)

        await self.db.flush()
        await self.db.refresh(profile)
        return profile

    async def update_volunteer_location(
        self,
        volunteer_id: UUID,
        actor: User,
        latitude: Optional[float],
        longitude: Optional[float],
    ) -> Volunteer:
        """Report the last known position. Clearing it takes the volunteer out of matching."""
        volunteer = await self.get_profile(Volunteer, volunteer_id)
        enforce(actor, Operation.WRITE, volunteer, "لا يمكنك تعديل ملف مستخدم آخر")

        if (latitude is None) != (longitude is None):
            raise ValidationError("يجب تحديد خط العرض وخط الطول معاً", field="latitude")

        volunteer.latitude = latitude
        volunteer.longitude = longitude
        volunteer.last_active = utcnow()
        await self.db.flush()
        await self.db.refresh(volunteer)
        return volunteer

    async def set_verified(self, model: Type, profile_id: UUID, actor: User, verified: bool):
        profile = await self.get_profile(model, profile_id)
        enforce(actor, Operation.VERIFY, profile, "التوثيق من صلاحيات الإدارة فقط")

        profile.verified = verified
        await self.db.flush()
        await self.db.refresh(profile)
        logger.info(f"{model.__tablename__} {profile.id} verified={verified} by {actor.id}")
        return profile

    async def list_profiles(
        self,
        model: Type,
        verified: Optional[bool] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List, int]:
        query = select(model)
        if verified is not None and hasattr(model, "verified"):
            query = query.where(model.verified.is_(verified))

        count_query = select(func.count()).select_from(query.subquery())
        total = (await self.db.execute(count_query)).scalar()

        query = query.order_by(model.created_at.desc())
        query = query.offset((page - 1) * limit).limit(limit)

        result = await self.db.execute(query)
        return list(result.scalars().all()), total
