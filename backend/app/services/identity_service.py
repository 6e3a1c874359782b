import logging
from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm import selectinload

from app.core.constants import UserRole
from app.core.exceptions import DuplicateError, UnauthorizedError, ValidationError
from app.models.user import User

logger = logging.getLogger(__name__)


class IdentityResolver:
    """Maps an authenticated principal id to its User record and role."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_user(self, principal_id: UUID) -> Optional[User]:
        result = await self.db.execute(
            select(User)
            .options(
                selectinload(User.organization),
                selectinload(User.charity),
                selectinload(User.volunteer),
            )
            .where(User.id == principal_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def resolve_role(self, principal_id: UUID) -> User:
        user = await self.find_user(principal_id)
        if not user:
            raise UnauthorizedError("المستخدم غير مسجل")
        return user

    async def register(
        self,
        principal_id: UUID,
        role: UserRole,
        full_name: str,
        phone: Optional[str] = None,
    ) -> User:
        """Create the User for a new principal. The role is fixed from here on."""
        if role == UserRole.ADMIN:
            raise ValidationError("لا يمكن التسجيل بدور الإدارة", field="role")

        if await self.find_user(principal_id):
            raise DuplicateError("هذا الحساب مسجل مسبقاً")

        user = User(id=principal_id, role=role, full_name=full_name, phone=phone)
        self.db.add(user)
        await self.db.flush()
        logger.info(f"Registered user {user.id} as {role.value}")
        return await self.resolve_role(principal_id)
