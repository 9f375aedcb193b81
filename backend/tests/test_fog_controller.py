import asyncio

import pytest

from footprint.schemas.fog import PhotoPoint
from footprint.services.fog_controller import FogController, compute_fog
from footprint.services.render_sync import FOG_LAYERS, InMemoryMapSurface

from conftest import BEIJING, CHENGDU, PARIS


def names(collection: dict) -> set[str]:
    return {f["properties"]["name"] for f in collection["features"]}


@pytest.fixture
def surface():
    return InMemoryMapSurface()


@pytest.fixture
def controller(resolver, store, surface):
    return FogController(resolver, store, surface, precision="city", max_concurrency=4)


PHOTOS = [
    PhotoPoint(id="bj", lat=BEIJING[0], lng=BEIJING[1]),
    PhotoPoint(id="cd", lat=CHENGDU[0], lng=CHENGDU[1]),
]


async def test_enabling_fog_runs_current_photos(controller, surface):
    controller.on_photo_set_changed(PHOTOS)
    controller.toggle_fog_mode()
    report = await controller.drain()

    assert report.unlocked == 2
    assert names(surface.regions) == {"region-110000", "region-510100"}
    assert all(surface.visibility[layer] for layer in FOG_LAYERS)
    assert controller.visited_count == 2


async def test_photo_changes_are_ignored_while_disabled(controller, surface, providers):
    controller.on_photo_set_changed(PHOTOS)
    await controller.drain()

    assert surface.push_count == 0
    assert not providers.calls


async def test_precision_change_clears_then_repopulates(controller, surface):
    controller.on_photo_set_changed(PHOTOS)
    controller.toggle_fog_mode()
    await controller.drain()

    controller.set_precision("province")

    assert surface.regions["features"] == []
    assert surface.labels["features"] == []
    assert controller.visited_count == 0

    await controller.drain()

    assert names(surface.regions) == {"region-110000", "region-510000"}
    assert len(surface.labels["features"]) == 2


async def test_results_of_superseded_run_are_discarded(controller, surface, providers):
    providers.gate = asyncio.Event()
    controller.on_photo_set_changed([PhotoPoint(id="cd", lat=CHENGDU[0], lng=CHENGDU[1])])
    controller.toggle_fog_mode()
    # Let the first run reach the geocoder before the precision changes
    await asyncio.sleep(0.01)
    controller.set_precision("province")

    providers.gate.set()
    report = await controller.drain()

    assert names(surface.regions) == {"region-510000"}
    assert names(controller.regions()) == {"region-510000"}
    assert report.unlocked == 1
    assert providers.calls["geo.datav.aliyun.com/areas_v3/bound/510100.json"] == 0


async def test_same_precision_does_not_restart(controller, surface):
    controller.on_photo_set_changed(PHOTOS)
    controller.toggle_fog_mode()
    await controller.drain()
    epoch = controller.epoch

    controller.set_precision("city")

    assert controller.epoch == epoch
    assert len(surface.regions["features"]) == 2


async def test_toggle_off_hides_and_clears(controller, surface):
    controller.on_photo_set_changed(PHOTOS)
    controller.toggle_fog_mode()
    await controller.drain()

    controller.toggle_fog_mode()

    assert not any(surface.visibility[layer] for layer in FOG_LAYERS)
    assert surface.regions["features"] == []
    assert controller.session is None
    assert controller.visited_count == 0
    assert controller.regions()["features"] == []


async def test_reentering_fog_mode_starts_fresh(controller, surface, providers):
    controller.on_photo_set_changed(PHOTOS[:1])
    controller.toggle_fog_mode()
    await controller.drain()
    controller.toggle_fog_mode()

    controller.toggle_fog_mode()
    await controller.drain()

    assert names(surface.regions) == {"region-110000"}
    assert providers.calls["geo.datav.aliyun.com/areas_v3/bound/110000.json"] == 2


def test_unknown_precision_is_rejected(resolver, store, surface):
    with pytest.raises(ValueError):
        FogController(resolver, store, surface, precision="street")

    controller = FogController(resolver, store, surface)
    with pytest.raises(ValueError):
        controller.set_precision("street")


async def test_compute_fog_mixes_sources(resolver, store):
    photos = PHOTOS + [PhotoPoint(id="paris", lat=PARIS[0], lng=PARIS[1])]

    controller, report = await compute_fog(photos, "city", resolver, store, max_concurrency=2)

    assert report.total == 3
    assert report.unlocked == 3
    assert names(controller.regions()) == {"region-110000", "region-510100", "Paris"}
    assert controller.visited_count == 3
