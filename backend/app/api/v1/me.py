"""
حساب المستخدم الحالي - التسجيل وتحديد الدور
"""
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends

from app.api.deps import get_current_user, get_identity_resolver, get_principal_id, get_request_timeout
from app.core.timeouts import with_timeout
from app.models.user import User
from app.schemas.user import RegisterRequest, UserResponse
from app.services.identity_service import IdentityResolver

router = APIRouter(prefix="/me", tags=["الحساب - Me"])


@router.get("", response_model=UserResponse)
async def get_me(current_user: User = Depends(get_current_user)):
    """بيانات المستخدم الحالي ودوره."""
    return UserResponse.from_user(current_user)


@router.post("/register", response_model=UserResponse, status_code=201)
async def register(
    body: RegisterRequest,
    principal_id: UUID = Depends(get_principal_id),
    resolver: IdentityResolver = Depends(get_identity_resolver),
    timeout: Optional[float] = Depends(get_request_timeout),
):
    """تسجيل مستخدم جديد بدور ثابت (متبرع، جمعية، متطوع)."""
    user = await with_timeout(
        resolver.register(
            principal_id,
            role=body.role,
            full_name=body.full_name,
            phone=body.phone,
        ),
        timeout,
    )
    return UserResponse.from_user(user)
