"""Fog-of-war API endpoints."""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status

from footprint.api.deps import get_boundary_store, get_resolver
from footprint.config import get_settings
from footprint.schemas.fog import (
    FogStateResponse,
    Precision,
    RegionBoundaryResponse,
    ResolutionErrorSchema,
    RunReportSchema,
    UnlockRequest,
)
from footprint.services.boundary_store import BoundaryStore
from footprint.services.fog_controller import compute_fog
from footprint.services.fog_session import FogRunReport
from footprint.services.region_resolver import RegionResolver, SOURCE_REMOTE
from footprint.utils.result import NOT_FOUND

router = APIRouter(prefix="/fog", tags=["Fog"])


def report_schema(report: Optional[FogRunReport]) -> Optional[RunReportSchema]:
    if report is None:
        return None
    return RunReportSchema(
        total=report.total,
        unlocked=report.unlocked,
        duplicates=report.duplicates,
        stale=report.stale,
        failed=report.failed,
        errors=[
            ResolutionErrorSchema(kind=e.kind, message=e.message, region_key=e.region_key)
            for e in report.errors
        ],
    )


@router.get("/region-boundary", response_model=RegionBoundaryResponse)
async def get_region_boundary(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    precision: Precision = "country",
    resolver: RegionResolver = Depends(get_resolver),
    store: BoundaryStore = Depends(get_boundary_store),
):
    """
    Resolve one coordinate and return the boundary of the region containing it.

    Countries without local data come back with ``supported=false`` so the
    client can use the remote whole-country outline instead.
    """
    resolved = await resolver.resolve(lat, lng, precision)
    if not resolved.ok:
        raise HTTPException(
            status_code=(
                status.HTTP_502_BAD_GATEWAY
                if resolved.error.retryable
                else status.HTTP_400_BAD_REQUEST
            ),
            detail={"error_code": resolved.error.kind.upper(), "message": resolved.error.message},
        )

    descriptor = resolved.value
    response = RegionBoundaryResponse(
        supported=descriptor.supported,
        source=descriptor.source,
        country_code=descriptor.country_code,
        country_name=descriptor.country_name,
        requested_precision=precision,
        region_key=descriptor.region_key,
    )
    if descriptor.source == SOURCE_REMOTE:
        return response

    loaded = await store.load_boundary(descriptor, lat, lng)
    if not loaded.ok:
        if loaded.error.kind == NOT_FOUND:
            response.supported = False
            response.source = SOURCE_REMOTE
            response.region_key = descriptor.country_code
            return response
        raise HTTPException(
            status_code=status.HTTP_502_BAD_GATEWAY,
            detail={"error_code": loaded.error.kind.upper(), "message": loaded.error.message},
        )

    match = loaded.value
    response.precision = match.adm_level
    response.region_name = match.region_name
    response.region_key = match.region_key
    response.geojson = match.features[0] if len(match.features) == 1 else {
        "type": "FeatureCollection",
        "features": match.features,
    }
    return response


@router.post("/unlock", response_model=FogStateResponse)
async def unlock_photos(
    data: UnlockRequest,
    resolver: RegionResolver = Depends(get_resolver),
    store: BoundaryStore = Depends(get_boundary_store),
):
    """
    Run the full unlock pipeline over a photo set.

    Returns the unlocked region collection and the label collection as they
    stand once every photo has been processed.
    """
    controller, report = await compute_fog(
        data.photos,
        data.precision,
        resolver,
        store,
        max_concurrency=get_settings().FOG_MAX_CONCURRENCY,
    )
    return FogStateResponse(
        precision=data.precision,
        regions=controller.regions(),
        labels=controller.labels(),
        visited_count=controller.visited_count,
        report=report_schema(report),
    )
