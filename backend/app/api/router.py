"""
تجميع جميع مسارات API
"""
from fastapi import APIRouter

from app.api.v1 import me, organizations, volunteers, donations, pickups, impact

api_router = APIRouter(prefix="/api/v1")

# الحساب والتسجيل
api_router.include_router(me.router)

# الملفات: الجهات المتبرعة، الجمعيات، المتطوعون
api_router.include_router(organizations.router)
api_router.include_router(organizations.charity_router)
api_router.include_router(volunteers.router)

# دورة حياة التبرع
api_router.include_router(donations.router)
api_router.include_router(pickups.router)

# الأثر
api_router.include_router(impact.router)
