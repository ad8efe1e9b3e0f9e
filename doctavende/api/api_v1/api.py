from fastapi import APIRouter

from doctavende.api.api_v1.endpoints import admin, auth, browse, dashboard

api_router = APIRouter()
api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(browse.router, prefix="/browse", tags=["browse"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
