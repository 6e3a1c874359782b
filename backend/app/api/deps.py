from typing import Optional
from uuid import UUID

from fastapi import Depends, Header
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.core.security import principal_from_token
from app.core.exceptions import UnauthorizedError, ForbiddenError
from app.core.constants import UserRole
from app.models.user import User
from app.services.identity_service import IdentityResolver

security = HTTPBearer()


async def get_identity_resolver(db: AsyncSession = Depends(get_db)) -> IdentityResolver:
    return IdentityResolver(db)


async def get_principal_id(
    credentials: HTTPAuthorizationCredentials = Depends(security),
) -> UUID:
    """معرّف الهوية من رمز مزود المصادقة"""
    subject = principal_from_token(credentials.credentials)
    if not subject:
        raise UnauthorizedError("رمز الوصول غير صالح أو منتهي الصلاحية")
    try:
        return UUID(subject)
    except ValueError:
        raise UnauthorizedError("رمز الوصول غير صالح أو منتهي الصلاحية")


async def get_current_user(
    principal_id: UUID = Depends(get_principal_id),
    resolver: IdentityResolver = Depends(get_identity_resolver),
) -> User:
    return await resolver.resolve_role(principal_id)


async def get_current_admin(
    current_user: User = Depends(get_current_user),
) -> User:
    if current_user.role != UserRole.ADMIN:
        raise ForbiddenError("هذه الخدمة متاحة للإدارة فقط")
    return current_user


async def get_request_timeout(
    x_request_timeout: Optional[float] = Header(default=None),
) -> Optional[float]:
    """مهلة يحددها المستدعي بالثواني"""
    return x_request_timeout
