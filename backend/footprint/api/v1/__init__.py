"""API v1 router aggregation."""
from fastapi import APIRouter

from footprint.api.v1.geocode import router as geocode_router
from footprint.api.v1.fog import router as fog_router
from footprint.api.v1.footprint import router as footprint_router

router = APIRouter()

router.include_router(geocode_router)
router.include_router(fog_router)
router.include_router(footprint_router)
