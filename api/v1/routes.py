from fastapi import APIRouter

from api.v1.endpoints.admin import admin_users, navigation
from api.v1.endpoints.auth import login
from core.config import settings

api_router = APIRouter(prefix=settings.API_V1_STR)


# Authentication Endpoints
api_router.include_router(login.router, prefix="/auth", tags=["Authentication"])

# Admin Endpoints
api_router.include_router(
    admin_users.router, prefix="/admin/users", tags=["Admin Users Management"]
)
api_router.include_router(navigation.router, prefix="/admin", tags=["Admin Navigation"])
