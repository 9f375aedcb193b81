"""Boundary polygon providers.

Three interchangeable sources, picked by the region resolver:

* domestic admin-code outlines from the DataV boundary service,
* the local pre-simplified geoBoundaries dataset (memoised per country/level),
* a remote per-country GeoJSON file for countries without local data.

Nothing here raises; every outcome is a Result so the fog session can skip a
photo without losing the rest of the batch.
"""
import asyncio
import json
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

import aiofiles
import httpx

from footprint.config import Settings, get_settings
from footprint.services.countries import degradation_chain
from footprint.services.region_resolver import (
    RegionDescriptor,
    SOURCE_DOMESTIC,
    SOURCE_LOCAL,
    SOURCE_REMOTE,
)
from footprint.utils.geo import (
    ensure_feature_name,
    feature_name,
    features_from_geojson,
    find_feature_containing_point,
)
from footprint.utils.http import fetch_json
from footprint.utils.result import MALFORMED, NOT_FOUND, UNSUPPORTED, Result

logger = logging.getLogger("footprint.fog.boundaries")


@dataclass
class BoundaryMatch:
    """Boundary features for one region, ready for the aggregator."""
    region_key: str
    region_name: str
    source: str
    features: list[dict] = field(default_factory=list)
    adm_level: Optional[str] = None
    country_code: Optional[str] = None
    requested_precision: Optional[str] = None


def local_region_key(country_code: str, adm_level: str, region_name: str) -> str:
    return f"{country_code}_{adm_level}_{region_name}"


class DomesticBoundaryProvider:
    """Admin-code outlines; the simple outline first, the full file second."""

    def __init__(self, http: httpx.AsyncClient, base_url: str):
        self.http = http
        self.base_url = base_url.rstrip("/")

    async def load(self, adcode: str) -> Result[BoundaryMatch]:
        result = await fetch_json(self.http, f"{self.base_url}/{adcode}.json")
        if not result.ok:
            logger.debug("Simple outline for %s unavailable (%s), trying full", adcode, result.error)
            result = await fetch_json(self.http, f"{self.base_url}/{adcode}_full.json")
        if not result.ok:
            return Result.failure(result.error.kind, result.error.message, adcode)

        features = features_from_geojson(result.value)
        if not features:
            return Result.failure(MALFORMED, "outline has no features", adcode)

        region_name = feature_name(features[0]) or adcode
        for feature in features:
            ensure_feature_name(feature, region_name)
        return Result.success(
            BoundaryMatch(
                region_key=adcode,
                region_name=region_name,
                source=SOURCE_DOMESTIC,
                features=features,
                country_code="CHN",
            )
        )


class LocalBoundaryProvider:
    """Pre-simplified polygons on disk, keyed by ``{countryCode}/{admLevel}``.

    Loaded files are cached for the process lifetime; the set of countries and
    levels is small and fixed.
    """

    def __init__(self, data_path: str | Path):
        self.data_path = Path(data_path)
        self._cache: dict[str, dict] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def file_path(self, country_code: str, adm_level: str) -> Path:
        return (
            self.data_path
            / country_code
            / adm_level
            / f"{country_code}_{adm_level}_simplified.geojson"
        )

    @property
    def cached_keys(self) -> list[str]:
        return list(self._cache)

    async def load_geojson(self, country_code: str, adm_level: str) -> Optional[dict]:
        cache_key = f"{country_code}_{adm_level}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        lock = self._locks.setdefault(cache_key, asyncio.Lock())
        async with lock:
            if cache_key in self._cache:
                return self._cache[cache_key]

            path = self.file_path(country_code, adm_level)
            try:
                async with aiofiles.open(path, "r", encoding="utf-8") as f:
                    geojson = json.loads(await f.read())
            except FileNotFoundError:
                logger.debug("No local boundary file %s", path)
                return None
            except (OSError, ValueError) as e:
                logger.warning("Failed to load GeoJSON %s/%s: %s", country_code, adm_level, e)
                return None

            self._cache[cache_key] = geojson
            return geojson

    def _match(
        self, country_code: str, adm_level: str, geojson: dict, lat: float, lng: float
    ) -> Optional[BoundaryMatch]:
        found = find_feature_containing_point(geojson, lat, lng)
        if found is None:
            return None
        feature, region_name = found
        # Copy so the cached file is never mutated
        feature = dict(feature, properties=dict(feature.get("properties") or {}))
        ensure_feature_name(feature, region_name)
        return BoundaryMatch(
            region_key=local_region_key(country_code, adm_level, region_name),
            region_name=region_name,
            source=SOURCE_LOCAL,
            features=[feature],
            adm_level=adm_level,
            country_code=country_code,
        )

    async def locate(
        self,
        country_code: str,
        requested_precision: str,
        lat: float,
        lng: float,
        adm_level: Optional[str] = None,
    ) -> Result[BoundaryMatch]:
        """Find the region containing the point, degrading to coarser levels."""
        chain = degradation_chain(country_code, requested_precision)
        if adm_level in chain:
            chain = chain[chain.index(adm_level):]
        if not chain:
            return Result.failure(UNSUPPORTED, f"no local levels for {country_code}")

        for level in chain:
            geojson = await self.load_geojson(country_code, level)
            if geojson is None:
                continue
            match = self._match(country_code, level, geojson, lat, lng)
            if match is not None:
                return Result.success(match)
            if level == "ADM0":
                break
            # Point outside every polygon at this level: one coarse retry
            adm0 = await self.load_geojson(country_code, "ADM0")
            if adm0 is not None:
                match = self._match(country_code, "ADM0", adm0, lat, lng)
                if match is not None:
                    return Result.success(match)
            break

        return Result.failure(
            NOT_FOUND, f"point {lat},{lng} not in any {country_code} polygon"
        )


class RemoteCountryProvider:
    """Whole-country outlines for countries outside the local dataset."""

    def __init__(self, http: httpx.AsyncClient, lookup_url: str, geojson_url: str):
        self.http = http
        self.lookup_url = lookup_url.rstrip("/")
        self.geojson_url = geojson_url.rstrip("/")

    async def lookup_alpha3(self, alpha2: str) -> Result[tuple[str, str]]:
        result = await fetch_json(self.http, f"{self.lookup_url}/{alpha2}")
        if not result.ok:
            return Result.from_error(result.error)
        data = result.value
        if isinstance(data, dict):
            data = [data]
        if not data or not isinstance(data[0], dict) or not data[0].get("cca3"):
            return Result.failure(MALFORMED, f"no alpha-3 code for {alpha2}")
        alpha3 = data[0]["cca3"]
        common_name = (data[0].get("name") or {}).get("common") or alpha3
        return Result.success((alpha3, common_name))

    async def load(self, alpha2: str, region_key: Optional[str] = None) -> Result[BoundaryMatch]:
        lookup = await self.lookup_alpha3(alpha2)
        if not lookup.ok:
            return Result.failure(lookup.error.kind, lookup.error.message, region_key)
        alpha3, common_name = lookup.value

        result = await fetch_json(self.http, f"{self.geojson_url}/{alpha3}.geo.json")
        if not result.ok:
            return Result.failure(result.error.kind, result.error.message, region_key or alpha3)

        features = features_from_geojson(result.value)
        if not features:
            return Result.failure(MALFORMED, f"no features for {alpha3}", region_key or alpha3)
        for feature in features:
            ensure_feature_name(feature, common_name, overwrite=True)
        return Result.success(
            BoundaryMatch(
                region_key=region_key or alpha3,
                region_name=common_name,
                source=SOURCE_REMOTE,
                features=features,
                adm_level="ADM0",
                country_code=alpha3,
            )
        )


class BoundaryStore:
    """Dispatch a resolved region to the provider that serves it."""

    def __init__(
        self,
        http: httpx.AsyncClient,
        settings: Optional[Settings] = None,
        local: Optional[LocalBoundaryProvider] = None,
    ):
        settings = settings or get_settings()
        self.domestic = DomesticBoundaryProvider(http, settings.DATAV_BOUNDARY_URL)
        self.local = local or LocalBoundaryProvider(settings.BOUNDARY_DATA_PATH)
        self.remote = RemoteCountryProvider(
            http, settings.RESTCOUNTRIES_URL, settings.WORLD_GEOJSON_URL
        )

    async def load_boundary(
        self, descriptor: RegionDescriptor, lat: float, lng: float
    ) -> Result[BoundaryMatch]:
        if descriptor.source == SOURCE_DOMESTIC:
            result = await self.domestic.load(descriptor.region_key)
        elif descriptor.source == SOURCE_LOCAL:
            result = await self.local.locate(
                descriptor.country_code,
                descriptor.requested_precision,
                lat,
                lng,
                adm_level=descriptor.adm_level,
            )
        elif descriptor.source == SOURCE_REMOTE:
            if not descriptor.alpha2:
                return Result.failure(UNSUPPORTED, "remote fallback needs an alpha-2 code")
            result = await self.remote.load(descriptor.alpha2, descriptor.region_key)
        else:
            return Result.failure(UNSUPPORTED, f"unknown boundary source {descriptor.source!r}")

        if not result.ok:
            logger.warning("Boundary load failed (%s): %s", descriptor.source, result.error)
        return result
