from datetime import datetime, timedelta

import pytest

from footprint.schemas.fog import PhotoPoint
from footprint.services.footprint_stats import footprint_stats, unlocked_area_km2

from conftest import LYON, PARIS, collection, feature, square

START = datetime(2024, 5, 1, 9, 0, 0)


def photo(photo_id, lat, lng, hours=0.0):
    return PhotoPoint(id=photo_id, lat=lat, lng=lng, date_time=START + timedelta(hours=hours))


def test_empty_journey():
    stats = footprint_stats([])

    assert stats.days == 0
    assert stats.distance_km == 0
    assert stats.unlocked_area_km2 == 0.0


def test_single_photo_counts_as_one_day():
    stats = footprint_stats([photo("a", *PARIS)])

    assert stats.days == 1
    assert stats.distance_km == 0
    assert stats.furthest_km == 0


def test_distance_and_span():
    photos = [
        photo("lyon", *LYON, hours=50),
        photo("paris", *PARIS, hours=0),
        photo("back", 48.5, 2.6, hours=26),
    ]

    stats = footprint_stats(photos, visited_count=2)

    # Paris -> (near Paris) -> Lyon, ordered by time
    assert 355 <= stats.distance_km <= 385
    assert 355 <= stats.furthest_km <= 380
    assert stats.days == 4
    assert stats.visited_count == 2


def test_area_of_unlocked_regions():
    regions = collection(feature("Equator", square(0.0, 0.0)))

    # one degree square at the equator is about 12,300 km2
    assert unlocked_area_km2(regions) == pytest.approx(12300, rel=0.01)


def test_overlapping_regions_are_not_double_counted():
    regions = collection(
        feature("A", square(0.0, 0.0)),
        feature("B", square(0.0, 0.0)),
        {"type": "Feature", "properties": {"name": "broken"}, "geometry": None},
    )

    assert unlocked_area_km2(regions) == pytest.approx(12300, rel=0.01)
