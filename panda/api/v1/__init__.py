"""V1 API router aggregation."""

from fastapi import APIRouter

from panda.api.v1.admin import router as admin_router
from panda.api.v1.auth import router as auth_router
from panda.api.v1.services import router as services_router

v1_router = APIRouter(prefix="/v1")
v1_router.include_router(auth_router)
v1_router.include_router(services_router)
v1_router.include_router(admin_router)
