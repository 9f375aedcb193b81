"""Map a coordinate to an administrative region at a requested precision."""
import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from footprint.services.countries import (
    convert_alpha2_to_alpha3,
    get_available_precision,
    is_country_supported,
    PRECISION_TO_ADM,
)
from footprint.services.geocoder import GeocoderClient
from footprint.utils.geo import is_roughly_domestic, is_valid_coordinate
from footprint.utils.result import MALFORMED, Result

logger = logging.getLogger("footprint.fog.resolver")

SOURCE_DOMESTIC = "domestic"
SOURCE_LOCAL = "local"
SOURCE_REMOTE = "remote"

DOMESTIC_COUNTRY_CODE = "100000"
# Province-level municipalities and SARs have no prefecture tier:
# Beijing, Tianjin, Shanghai, Chongqing, Hong Kong, Macau
MUNICIPALITY_PREFIXES = {"11", "12", "31", "50", "81", "82"}

_ADCODE_RE = re.compile(r"^\d{6}$")


@dataclass
class RegionDescriptor:
    """Where to fetch the boundary for a resolved coordinate.

    ``region_key`` is known up front for the domestic and remote sources. For
    the local dataset it is only known after point-in-polygon, so it is None.
    """
    source: str
    supported: bool
    country_code: str
    requested_precision: str
    country_name: str = ""
    alpha2: Optional[str] = None
    adm_level: Optional[str] = None
    region_key: Optional[str] = None
    name_chain: list[str] = field(default_factory=list)

    @property
    def degraded(self) -> bool:
        if self.source != SOURCE_LOCAL or not self.adm_level:
            return False
        return self.adm_level != PRECISION_TO_ADM[self.requested_precision]

    def as_remote_fallback(self) -> "RegionDescriptor":
        """Same country, served by the whole-country remote dataset."""
        return RegionDescriptor(
            source=SOURCE_REMOTE,
            supported=False,
            country_code=self.country_code,
            country_name=self.country_name,
            alpha2=self.alpha2,
            requested_precision=self.requested_precision,
            adm_level="ADM0",
            region_key=self.country_code,
        )


def domestic_region_code(adcode: str, precision: str) -> str:
    """Trim a 6-digit admin code to the requested precision tier."""
    if precision == "country":
        return DOMESTIC_COUNTRY_CODE
    prefix2 = adcode[:2]
    if precision == "province" or prefix2 in MUNICIPALITY_PREFIXES:
        return prefix2 + "0000"
    return adcode[:4] + "00"


class RegionResolver:
    """Resolve (lat, lng, precision) to a RegionDescriptor."""

    def __init__(self, geocoder: GeocoderClient):
        self.geocoder = geocoder

    async def resolve(self, lat: float, lng: float, precision: str) -> Result[RegionDescriptor]:
        if not is_valid_coordinate(lat, lng):
            return Result.failure(MALFORMED, f"coordinate out of range: {lat},{lng}")
        if is_roughly_domestic(lat, lng):
            return await self._resolve_domestic(lat, lng, precision)
        return await self._resolve_international(lat, lng, precision)

    async def _resolve_domestic(self, lat: float, lng: float, precision: str) -> Result[RegionDescriptor]:
        result = await self.geocoder.reverse_domestic(lat, lng)
        if not result.ok:
            logger.warning("Domestic geocoding failed for %s,%s: %s", lat, lng, result.error)
            return Result.from_error(result.error)

        place = result.value
        if not isinstance(place.adcode, str) or not _ADCODE_RE.match(place.adcode):
            logger.warning("Malformed adcode %r for %s,%s", place.adcode, lat, lng)
            return Result.failure(MALFORMED, f"malformed adcode {place.adcode!r}")

        return Result.success(
            RegionDescriptor(
                source=SOURCE_DOMESTIC,
                supported=True,
                country_code="CHN",
                country_name=place.country,
                requested_precision=precision,
                region_key=domestic_region_code(place.adcode, precision),
                name_chain=place.name_chain,
            )
        )

    async def _resolve_international(self, lat: float, lng: float, precision: str) -> Result[RegionDescriptor]:
        result = await self.geocoder.reverse_country(lat, lng)
        if not result.ok:
            logger.warning("Country lookup failed for %s,%s: %s", lat, lng, result.error)
            return Result.from_error(result.error)

        country = result.value
        alpha3 = convert_alpha2_to_alpha3(country.alpha2)
        country_code = alpha3 or country.alpha2.upper()

        adm_level = get_available_precision(alpha3, precision) if is_country_supported(alpha3) else None
        if adm_level is None:
            logger.debug("%s has no local boundary data, using remote fallback", country_code)
            return Result.success(
                RegionDescriptor(
                    source=SOURCE_REMOTE,
                    supported=False,
                    country_code=country_code,
                    country_name=country.name,
                    alpha2=country.alpha2,
                    requested_precision=precision,
                    region_key=country_code,
                )
            )

        return Result.success(
            RegionDescriptor(
                source=SOURCE_LOCAL,
                supported=True,
                country_code=alpha3,
                country_name=country.name,
                alpha2=country.alpha2,
                requested_precision=precision,
                adm_level=adm_level,
            )
        )
