"""Journey statistics for the footprint report (geodesic, WGS84)."""
import logging
import math
import time
from typing import Optional, Sequence

from pyproj import Geod
from shapely.errors import ShapelyError
from shapely.geometry import shape
from shapely.ops import unary_union

from footprint.schemas.fog import FootprintStats, PhotoPoint

logger = logging.getLogger(__name__)

_GEOD = Geod(ellps="WGS84")
_SECONDS_PER_DAY = 24 * 3600


def _timestamp(photo: PhotoPoint) -> float:
    return photo.date_time.timestamp() if photo.date_time else 0.0


def unlocked_area_km2(regions: Optional[dict]) -> float:
    """Geodesic area of the union of the unlocked region features."""
    geometries = []
    for feature in (regions or {}).get("features", []):
        try:
            geometries.append(shape(feature["geometry"]))
        except (ShapelyError, ValueError, TypeError, KeyError, AttributeError) as e:
            logger.debug("Skipping unreadable region geometry: %s", e)
    if not geometries:
        return 0.0

    try:
        merged = [unary_union(geometries)]
    except (ShapelyError, ValueError) as e:
        logger.warning("Union of unlocked regions failed, summing instead: %s", e)
        merged = geometries

    area_m2 = 0.0
    for geometry in merged:
        area, _ = _GEOD.geometry_area_perimeter(geometry)
        area_m2 += abs(area)
    return round(area_m2 / 1_000_000, 1)


def footprint_stats(
    photos: Sequence[PhotoPoint],
    regions: Optional[dict] = None,
    visited_count: int = 0,
) -> FootprintStats:
    """Days spanned, track length, furthest point from the start."""
    stats = FootprintStats(
        visited_count=visited_count,
        unlocked_area_km2=unlocked_area_km2(regions),
    )
    if not photos:
        return stats

    ordered = sorted(photos, key=_timestamp)

    now = time.time()
    first = ordered[0].date_time.timestamp() if ordered[0].date_time else now
    last = ordered[-1].date_time.timestamp() if ordered[-1].date_time else now
    stats.days = max(1, math.ceil((last - first) / _SECONDS_PER_DAY) + 1)

    lons = [p.lng for p in ordered]
    lats = [p.lat for p in ordered]
    if len(ordered) > 1:
        stats.distance_km = round(_GEOD.line_length(lons, lats) / 1000)

        start_lon = [lons[0]] * len(lons)
        start_lat = [lats[0]] * len(lats)
        _, _, distances = _GEOD.inv(start_lon, start_lat, lons, lats)
        stats.furthest_km = round(max(distances) / 1000)

    return stats
