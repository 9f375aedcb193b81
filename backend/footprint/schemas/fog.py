"""Pydantic schemas for the fog-of-war and footprint endpoints."""
from datetime import datetime
from typing import Optional, List, Literal, Any
from pydantic import BaseModel, Field

Precision = Literal["city", "province", "country"]


class PhotoPoint(BaseModel):
    """A geotagged photo; the fog pipeline only reads lat/lng."""
    id: str
    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)
    date_time: Optional[datetime] = None
    location_name: Optional[str] = None
    caption: Optional[str] = None

    class Config:
        from_attributes = True


class UnlockRequest(BaseModel):
    """Photo set to run through the unlock pipeline."""
    precision: Precision = "city"
    photos: List[PhotoPoint] = Field(default_factory=list)


class ResolutionErrorSchema(BaseModel):
    kind: str
    message: str
    region_key: Optional[str] = None


class RunReportSchema(BaseModel):
    total: int = 0
    unlocked: int = 0
    duplicates: int = 0
    stale: int = 0
    failed: int = 0
    errors: List[ResolutionErrorSchema] = Field(default_factory=list)


class FogStateResponse(BaseModel):
    """Both live geometry collections after a run."""
    precision: Precision
    regions: dict[str, Any]
    labels: dict[str, Any]
    visited_count: int
    report: Optional[RunReportSchema] = None


class RegionBoundaryResponse(BaseModel):
    """Single-coordinate region lookup."""
    supported: bool
    source: str
    country_code: str
    country_name: str = ""
    precision: Optional[str] = None
    requested_precision: Precision
    region_name: Optional[str] = None
    region_key: Optional[str] = None
    geojson: Optional[dict[str, Any]] = None


class GeocodeResponse(BaseModel):
    success: bool = True
    provider: str
    formatted_address: str
    country: Optional[str] = None
    adcode: Optional[str] = None
    province: Optional[str] = None
    city: Optional[str] = None
    district: Optional[str] = None


class FootprintStats(BaseModel):
    """Journey summary shown in the footprint report."""
    days: int = 0
    distance_km: int = 0
    furthest_km: int = 0
    visited_count: int = 0
    unlocked_area_km2: float = 0.0


class FootprintResponse(FogStateResponse):
    journey_id: str
    stats: FootprintStats
