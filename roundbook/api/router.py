"""Top-level API router."""

from fastapi import APIRouter

from roundbook.api.routes.activities import router as activities_router
from roundbook.api.routes.activity_images import router as activity_images_router
from roundbook.api.routes.date_periods import router as date_periods_router
from roundbook.api.routes.health import router as health_router
from roundbook.api.routes.me import router as me_router
from roundbook.api.routes.parcel_types import router as parcel_types_router
from roundbook.api.routes.reports import router as reports_router
from roundbook.api.routes.rounds import router as rounds_router

api_router = APIRouter()
api_router.include_router(health_router, tags=["health"])
api_router.include_router(me_router)
api_router.include_router(date_periods_router)
api_router.include_router(rounds_router)
api_router.include_router(parcel_types_router)
api_router.include_router(activities_router)
api_router.include_router(activity_images_router)
api_router.include_router(reports_router)
