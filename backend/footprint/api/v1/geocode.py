"""Reverse geocoding endpoint."""
from fastapi import APIRouter, Depends, HTTPException, Query, status

from footprint.api.deps import get_geocoder
from footprint.schemas.fog import GeocodeResponse
from footprint.services.geocoder import GeocoderClient

router = APIRouter(prefix="/geocode", tags=["Geocode"])


@router.get("", response_model=GeocodeResponse)
async def reverse_geocode(
    lat: float = Query(..., ge=-90, le=90),
    lng: float = Query(..., ge=-180, le=180),
    geocoder: GeocoderClient = Depends(get_geocoder),
):
    """
    Resolve a coordinate to a readable place name.

    Points inside the domestic bounding box go to AMap (with admin code),
    everything else to Mapbox.
    """
    result = await geocoder.geocode(lat, lng)
    if not result.ok:
        raise HTTPException(
            status_code=(
                status.HTTP_502_BAD_GATEWAY
                if result.error.retryable
                else status.HTTP_400_BAD_REQUEST
            ),
            detail={"error_code": result.error.kind.upper(), "message": result.error.message},
        )

    place = result.value
    return GeocodeResponse(
        provider=place.provider,
        formatted_address=place.formatted_address,
        country=place.country,
        **place.extra,
    )
