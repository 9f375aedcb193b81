import logging
from typing import Any, Optional

from shapely.errors import ShapelyError
from shapely.geometry import Point, shape

logger = logging.getLogger(__name__)

# Coarse pre-filter for the domestic (AMap) geocoder.
# [min_lon, min_lat, max_lon, max_lat]; bounds are exclusive.
DOMESTIC_BBOX = [73.0, 3.0, 135.0, 54.0]

# Property keys tried, in order, when naming a boundary feature
NAME_PROPERTIES = ("shapeName", "name", "NAME")


def is_roughly_domestic(lat: float, lng: float) -> bool:
    """Cheap bounding-box test; not an exact border check."""
    min_lon, min_lat, max_lon, max_lat = DOMESTIC_BBOX
    return min_lon < lng < max_lon and min_lat < lat < max_lat


def is_valid_coordinate(lat: float, lng: float) -> bool:
    return -90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0


def features_from_geojson(geojson: Any) -> list[dict]:
    """Normalize a Feature or FeatureCollection payload to a list of Features."""
    if not isinstance(geojson, dict):
        return []
    if geojson.get("type") == "FeatureCollection":
        return [f for f in geojson.get("features") or [] if isinstance(f, dict)]
    if geojson.get("type") == "Feature":
        return [geojson]
    return []


def feature_collection(features: list[dict]) -> dict:
    return {"type": "FeatureCollection", "features": list(features)}


def feature_name(feature: dict) -> Optional[str]:
    props = feature.get("properties") or {}
    return props.get("name")


def region_name_from_properties(feature: dict, default: str = "Unknown") -> str:
    props = feature.get("properties") or {}
    for key in NAME_PROPERTIES:
        if props.get(key):
            return props[key]
    return default


def ensure_feature_name(feature: dict, name: str, overwrite: bool = False) -> dict:
    """Make sure ``properties.name`` is set, the aggregator dedupes on it."""
    props = feature.get("properties")
    if not isinstance(props, dict):
        props = {}
        feature["properties"] = props
    if overwrite or not props.get("name"):
        props["name"] = name
    return feature


def find_feature_containing_point(
    geojson: Any, lat: float, lng: float
) -> Optional[tuple[dict, str]]:
    """Return (feature, region_name) for the first feature covering the point.

    Features whose geometry cannot be parsed or tested are skipped.
    """
    point = Point(lng, lat)
    for feature in features_from_geojson(geojson):
        try:
            geometry = feature.get("geometry")
            if not geometry:
                continue
            if shape(geometry).covers(point):
                return feature, region_name_from_properties(feature)
        except (ShapelyError, ValueError, TypeError, KeyError, AttributeError, IndexError) as e:
            logger.debug("Skipping malformed boundary feature: %s", e)
            continue
    return None
