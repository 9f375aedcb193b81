"""Reverse geocoding against AMap (domestic) and Mapbox (international)."""
import logging
from dataclasses import dataclass, field
from typing import Optional

import httpx

from footprint.config import Settings, get_settings
from footprint.utils.geo import is_roughly_domestic
from footprint.utils.http import fetch_json
from footprint.utils.result import MALFORMED, UNRESOLVED, Result

logger = logging.getLogger("footprint.geocoder")

UNKNOWN_PLACE = "Unknown place"
UNKNOWN_WILDERNESS = "Uncharted wilderness"


@dataclass
class DomesticPlace:
    adcode: Optional[str]
    province: str = ""
    city: str = ""
    district: str = ""
    country: str = "China"
    formatted_address: str = UNKNOWN_PLACE

    @property
    def name_chain(self) -> list[str]:
        return [n for n in (self.province, self.city, self.district) if n]


@dataclass
class CountryPlace:
    alpha2: str
    name: str


@dataclass
class PlaceName:
    provider: str
    formatted_address: str
    country: Optional[str] = None
    extra: dict = field(default_factory=dict)


def _text(value) -> str:
    # AMap encodes missing components as []
    if isinstance(value, str):
        return value
    return ""


class GeocoderClient:
    """Thin request/response wrapper over the two reverse geocoders."""

    def __init__(self, http: httpx.AsyncClient, settings: Optional[Settings] = None):
        self.http = http
        self.settings = settings or get_settings()

    async def reverse_domestic(self, lat: float, lng: float) -> Result[DomesticPlace]:
        if not self.settings.AMAP_KEY:
            logger.error("AMAP_KEY is not configured")
            return Result.failure(UNRESOLVED, "domestic geocoder not configured")

        result = await fetch_json(
            self.http,
            self.settings.AMAP_REGEO_URL,
            params={
                "output": "json",
                "location": f"{lng},{lat}",
                "key": self.settings.AMAP_KEY,
                "radius": 1000,
                "extensions": "all",
            },
        )
        if not result.ok:
            return Result.from_error(result.error)

        data = result.value
        if not isinstance(data, dict) or data.get("status") != "1" or not data.get("regeocode"):
            logger.warning("AMap regeo failed for %s,%s: %s", lat, lng, data)
            return Result.failure(UNRESOLVED, "AMap returned no regeocode")

        regeocode = data["regeocode"]
        component = regeocode.get("addressComponent")
        if not isinstance(component, dict):
            return Result.failure(MALFORMED, "AMap regeocode has no addressComponent")

        place = DomesticPlace(
            adcode=_text(component.get("adcode")) or None,
            province=_text(component.get("province")),
            city=_text(component.get("city")),
            district=_text(component.get("district")),
            country=_text(component.get("country")) or "China",
        )
        address = regeocode.get("formatted_address")
        if isinstance(address, str) and address:
            place.formatted_address = address
        else:
            place.formatted_address = "".join(place.name_chain) or UNKNOWN_PLACE
        return Result.success(place)

    async def _mapbox(self, lat: float, lng: float, **params) -> Result[list]:
        if not self.settings.MAPBOX_TOKEN:
            logger.error("MAPBOX_TOKEN is not configured")
            return Result.failure(UNRESOLVED, "international geocoder not configured")

        result = await fetch_json(
            self.http,
            f"{self.settings.MAPBOX_GEOCODING_URL}/{lng},{lat}.json",
            params={"access_token": self.settings.MAPBOX_TOKEN, **params},
        )
        if not result.ok:
            return Result.from_error(result.error)
        data = result.value
        if not isinstance(data, dict):
            return Result.failure(MALFORMED, "Mapbox payload is not an object")
        return Result.success(data.get("features") or [])

    async def reverse_country(self, lat: float, lng: float) -> Result[CountryPlace]:
        result = await self._mapbox(lat, lng, types="country")
        if not result.ok:
            return Result.from_error(result.error)
        if not result.value:
            return Result.failure(UNRESOLVED, "could not determine country")

        country = result.value[0]
        alpha2 = (country.get("properties") or {}).get("short_code")
        if not alpha2:
            return Result.failure(UNRESOLVED, "could not get country code")
        name = country.get("text") or country.get("place_name") or alpha2.upper()
        return Result.success(CountryPlace(alpha2=alpha2, name=name))

    async def reverse_place(self, lat: float, lng: float) -> Result[PlaceName]:
        result = await self._mapbox(
            lat, lng,
            types="place,region,locality,neighborhood,address",
            language="zh-CN",
        )
        if not result.ok:
            return Result.from_error(result.error)
        if not result.value:
            return Result.success(PlaceName("mapbox", UNKNOWN_WILDERNESS))

        feature = result.value[0]
        country = None
        for ctx in feature.get("context") or []:
            if str(ctx.get("id", "")).startswith("country"):
                country = ctx.get("text")
                break
        return Result.success(
            PlaceName("mapbox", feature.get("place_name") or UNKNOWN_PLACE, country)
        )

    async def geocode(self, lat: float, lng: float) -> Result[PlaceName]:
        """Human-readable place name, dispatching on the domestic pre-filter."""
        if not is_roughly_domestic(lat, lng):
            return await self.reverse_place(lat, lng)

        result = await self.reverse_domestic(lat, lng)
        if not result.ok:
            return Result.from_error(result.error)
        place = result.value
        return Result.success(
            PlaceName(
                "amap",
                place.formatted_address,
                place.country,
                extra={
                    "adcode": place.adcode,
                    "province": place.province,
                    "city": place.city,
                    "district": place.district,
                },
            )
        )
