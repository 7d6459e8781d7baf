from fastapi import APIRouter
from solardesk.api.v1.endpoints import (
    auth,
    projects,
    stages,
    payments,
    dashboard,
)

api_router = APIRouter()

api_router.include_router(auth.router, prefix="/auth", tags=["auth"])
api_router.include_router(projects.router, prefix="/projects", tags=["projects"])
api_router.include_router(stages.router, prefix="/projects", tags=["stages"])
api_router.include_router(payments.router, prefix="/projects", tags=["payments"])
api_router.include_router(dashboard.router, prefix="/dashboard", tags=["dashboard"])
