"""Journey footprint endpoint."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from footprint.api.deps import get_boundary_store, get_resolver
from footprint.api.v1.fog import report_schema
from footprint.config import get_settings
from footprint.database import get_db
from footprint.schemas.fog import FootprintResponse, Precision
from footprint.services.boundary_store import BoundaryStore
from footprint.services.fog_controller import compute_fog
from footprint.services.footprint_stats import footprint_stats
from footprint.services.photos import load_journey_photos
from footprint.services.region_resolver import RegionResolver

router = APIRouter(prefix="/footprint", tags=["Footprint"])


@router.get("/{journey_id}", response_model=FootprintResponse)
async def get_journey_footprint(
    journey_id: str,
    precision: Precision = "city",
    db: AsyncSession = Depends(get_db),
    resolver: RegionResolver = Depends(get_resolver),
    store: BoundaryStore = Depends(get_boundary_store),
):
    """Unlocked regions and report statistics for a journey's photos."""
    photos = await load_journey_photos(db, journey_id)
    if not photos:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Journey has no photos",
        )

    controller, report = await compute_fog(
        photos,
        precision,
        resolver,
        store,
        max_concurrency=get_settings().FOG_MAX_CONCURRENCY,
    )
    regions = controller.regions()
    return FootprintResponse(
        journey_id=journey_id,
        precision=precision,
        regions=regions,
        labels=controller.labels(),
        visited_count=controller.visited_count,
        report=report_schema(report),
        stats=footprint_stats(photos, regions, controller.visited_count),
    )
