"""Build the local simplified boundary dataset from raw geoBoundaries files.

Usage:
    python scripts/prepare_boundaries.py SRC_DIR [DEST_DIR] [TOLERANCE]

SRC_DIR holds geoBoundaries-{ISO3}-{ADM}.geojson files; the output follows the
{ISO3}/{ADM}/{ISO3}_{ADM}_simplified.geojson layout read by the fog service.
"""
import os
import re
import json
import sys

from shapely.errors import ShapelyError
from shapely.geometry import mapping, shape

# Add parent directory to path to import footprint modules
sys.path.append(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from footprint.config import get_settings
from footprint.services.boundary_store import LocalBoundaryProvider
from footprint.services.countries import ADM_LEVELS, SUPPORTED_COUNTRIES

settings = get_settings()

SOURCE_PATTERN = re.compile(r"^geoBoundaries-([A-Z]{3})-(ADM[0-2])\.geojson$")
DEFAULT_TOLERANCE = 0.01  # degrees


def simplify_collection(data: dict, tolerance: float) -> dict:
    features = []
    for feature in data.get("features", []):
        geom_data = feature.get("geometry")
        if not geom_data:
            continue
        try:
            geometry = shape(geom_data).simplify(tolerance, preserve_topology=True)
        except (ShapelyError, ValueError, TypeError) as e:
            name = (feature.get("properties") or {}).get("shapeName")
            print(f"  Skipping {name}: {e}")
            continue
        if geometry.is_empty:
            continue
        features.append({
            "type": "Feature",
            "properties": feature.get("properties") or {},
            "geometry": mapping(geometry),
        })
    return {"type": "FeatureCollection", "features": features}


def prepare_boundaries(src_dir: str, dest_dir: str, tolerance: float) -> int:
    provider = LocalBoundaryProvider(dest_dir)
    count = 0
    for file_name in sorted(os.listdir(src_dir)):
        match = SOURCE_PATTERN.match(file_name)
        if not match:
            continue
        country_code, adm_level = match.groups()
        if country_code not in SUPPORTED_COUNTRIES or adm_level not in ADM_LEVELS:
            print(f"Skipping unsupported {file_name}")
            continue

        print(f"Reading {file_name}...")
        with open(os.path.join(src_dir, file_name), "r", encoding="utf-8") as f:
            data = json.load(f)

        simplified = simplify_collection(data, tolerance)
        out_path = provider.file_path(country_code, adm_level)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        with open(out_path, "w", encoding="utf-8") as f:
            json.dump(simplified, f, ensure_ascii=False)

        print(f"  {len(simplified['features'])} features -> {out_path}")
        count += 1
    return count


if __name__ == "__main__":
    if len(sys.argv) < 2:
        print(__doc__)
        sys.exit(1)

    src_dir = sys.argv[1]
    dest_dir = sys.argv[2] if len(sys.argv) > 2 else settings.BOUNDARY_DATA_PATH
    tolerance = float(sys.argv[3]) if len(sys.argv) > 3 else DEFAULT_TOLERANCE

    if not os.path.isdir(src_dir):
        print(f"Directory not found: {src_dir}")
        sys.exit(1)

    written = prepare_boundaries(src_dir, dest_dir, tolerance)
    print(f"Successfully wrote {written} boundary files.")
