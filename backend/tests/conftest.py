import asyncio
import json
from collections import Counter
from pathlib import Path

import httpx
import pytest

from footprint.config import Settings
from footprint.services.boundary_store import BoundaryStore
from footprint.services.geocoder import GeocoderClient
from footprint.services.region_resolver import RegionResolver


def square(lng: float, lat: float, size: float = 1.0) -> dict:
    return {
        "type": "Polygon",
        "coordinates": [[
            [lng, lat],
            [lng + size, lat],
            [lng + size, lat + size],
            [lng, lat + size],
            [lng, lat],
        ]],
    }


def feature(name: str, geometry: dict, key: str = "name") -> dict:
    return {"type": "Feature", "properties": {key: name}, "geometry": geometry}


def collection(*features: dict) -> dict:
    return {"type": "FeatureCollection", "features": list(features)}


# Coordinates used across the suite
BEIJING = (39.9, 116.4)         # adcode 110105
CHENGDU = (30.66, 104.06)       # adcode 510104
PARIS = (48.5, 2.5)
LYON = (45.5, 4.5)
DIJON_GAP = (47.0, 6.5)         # inside France ADM0, outside every ADM2 square
BERLIN = (52.5, 13.4)
NAIROBI = (-1.3, 36.8)


class FakeProviders:
    """Stand-in for AMap, Mapbox, DataV, restcountries and world.geo.json."""

    def __init__(self):
        self.adcodes: dict[tuple, object] = {
            BEIJING: "110105",
            CHENGDU: "510104",
        }
        self.countries: dict[tuple, str] = {
            PARIS: "fr",
            LYON: "fr",
            DIJON_GAP: "fr",
            BERLIN: "de",
            NAIROBI: "ke",
        }
        self.datav: dict[str, object] = {}
        self.restcountries = {"ke": ("KEN", "Kenya")}
        self.world = {"KEN": collection(feature("Kenya", square(34.0, -4.0, 6.0)))}
        self.calls: Counter = Counter()
        self.gate: asyncio.Event | None = None

    def add_domestic(self, lat: float, lng: float, adcode):
        self.adcodes[(lat, lng)] = adcode

    def datav_outline(self, code: str):
        if code in self.datav:
            return self.datav[code]
        # Deterministic square per code, far from the other fixtures
        offset = int(code) % 997 / 100.0
        return feature(f"region-{code}", square(100.0 + offset, 20.0 + offset, 0.5))

    async def handler(self, request: httpx.Request) -> httpx.Response:
        if self.gate is not None:
            await self.gate.wait()
        url = request.url
        self.calls[f"{url.host}{url.path}"] += 1

        if url.host == "restapi.amap.com":
            lng, lat = (float(v) for v in url.params["location"].split(","))
            if (lat, lng) not in self.adcodes:
                return httpx.Response(200, json={"status": "0", "info": "INVALID"})
            adcode = self.adcodes[(lat, lng)]
            return httpx.Response(200, json={
                "status": "1",
                "regeocode": {
                    "formatted_address": "",
                    "addressComponent": {
                        "adcode": adcode,
                        "province": "Province",
                        "city": [],
                        "district": "District",
                        "country": "China",
                    },
                },
            })

        if url.host == "api.mapbox.com":
            lng, lat = (float(v) for v in url.path.rsplit("/", 1)[1][:-len(".json")].split(","))
            alpha2 = self.countries.get((lat, lng))
            if alpha2 is None:
                return httpx.Response(200, json={"features": []})
            return httpx.Response(200, json={"features": [{
                "text": alpha2.upper() + " land",
                "place_name": f"Somewhere, {alpha2.upper()} land",
                "properties": {"short_code": alpha2},
                "context": [{"id": "country.1", "text": alpha2.upper() + " land"}],
            }]})

        if url.host == "geo.datav.aliyun.com":
            name = url.path.rsplit("/", 1)[1][:-len(".json")]
            full = name.endswith("_full")
            code = name[:-len("_full")] if full else name
            outline = self.datav_outline(code)
            if outline == "timeout":
                raise httpx.ReadTimeout("timed out", request=request)
            if isinstance(outline, int):
                return httpx.Response(outline)
            if isinstance(outline, dict) and outline.get("_only_full") and not full:
                return httpx.Response(404)
            return httpx.Response(200, json=outline)

        if url.host == "restcountries.com":
            alpha2 = url.path.rsplit("/", 1)[1]
            if alpha2 not in self.restcountries:
                return httpx.Response(404, json={"status": 404})
            alpha3, name = self.restcountries[alpha2]
            return httpx.Response(200, json=[{"cca3": alpha3, "name": {"common": name}}])

        if url.host == "raw.githubusercontent.com":
            alpha3 = url.path.rsplit("/", 1)[1][:-len(".geo.json")]
            if alpha3 not in self.world:
                return httpx.Response(404)
            return httpx.Response(200, json=self.world[alpha3])

        return httpx.Response(404)


def write_boundary(root: Path, country_code: str, adm_level: str, data: dict) -> Path:
    path = root / country_code / adm_level / f"{country_code}_{adm_level}_simplified.geojson"
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def boundary_root(tmp_path) -> Path:
    root = tmp_path / "geoBoundaries_simplified"
    write_boundary(root, "FRA", "ADM2", collection(
        feature("Paris", square(2.0, 48.0), key="shapeName"),
        feature("Lyon", square(4.0, 45.0), key="shapeName"),
    ))
    write_boundary(root, "FRA", "ADM1", collection(
        feature("Ile-de-France", square(1.0, 47.5, 3.0), key="shapeName"),
    ))
    write_boundary(root, "FRA", "ADM0", collection(
        feature("France", square(-5.0, 41.0, 14.0), key="shapeName"),
    ))
    # Germany: no ADM2 file on disk although the table lists one
    write_boundary(root, "DEU", "ADM1", collection(
        feature("Berlin", square(13.0, 52.0), key="shapeName"),
    ))
    return root


@pytest.fixture
def settings(boundary_root) -> Settings:
    return Settings(
        AMAP_KEY="amap-test",
        MAPBOX_TOKEN="mapbox-test",
        BOUNDARY_DATA_PATH=str(boundary_root),
        FOG_MAX_CONCURRENCY=4,
    )


@pytest.fixture
def providers() -> FakeProviders:
    return FakeProviders()


@pytest.fixture
async def http_client(providers):
    client = httpx.AsyncClient(transport=httpx.MockTransport(providers.handler))
    yield client
    await client.aclose()


@pytest.fixture
def geocoder(http_client, settings) -> GeocoderClient:
    return GeocoderClient(http_client, settings)


@pytest.fixture
def resolver(geocoder) -> RegionResolver:
    return RegionResolver(geocoder)


@pytest.fixture
def store(http_client, settings) -> BoundaryStore:
    return BoundaryStore(http_client, settings)
