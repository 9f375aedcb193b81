"""Fog mode entry points: precision tier, on/off toggle, photo set changes."""
import asyncio
import logging
from typing import Iterable, Optional

from footprint.schemas.fog import PhotoPoint
from footprint.services.boundary_store import BoundaryStore
from footprint.services.countries import PRECISIONS
from footprint.services.fog_session import (
    DEFAULT_MAX_CONCURRENCY,
    FogRunReport,
    FogSession,
)
from footprint.services.region_resolver import RegionResolver
from footprint.services.render_sync import InMemoryMapSurface, MapSurface, RenderSync
from footprint.utils.geo import feature_collection

logger = logging.getLogger("footprint.fog.controller")


class FogController:
    """Owns the current FogSession and rebuilds it on every reset.

    The public methods are fire-and-forget: they schedule a full re-run over
    the current photo set on the running event loop and return immediately.
    In-flight runs are never cancelled; each session is tagged with the epoch
    active at launch and its merges are dropped once the epoch moves on.
    """

    def __init__(
        self,
        resolver: RegionResolver,
        store: BoundaryStore,
        surface: MapSurface,
        precision: str = "city",
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        if precision not in PRECISIONS:
            raise ValueError(f"Unknown precision: {precision}")
        self.resolver = resolver
        self.store = store
        self.sync = RenderSync(surface)
        self.precision = precision
        self.max_concurrency = max_concurrency
        self.enabled = False
        self.photos: list[PhotoPoint] = []
        self.epoch = 0
        self.session: Optional[FogSession] = None
        self._tasks: set[asyncio.Task] = set()

    def set_precision(self, precision: str) -> None:
        if precision not in PRECISIONS:
            raise ValueError(f"Unknown precision: {precision}")
        if precision == self.precision:
            return
        logger.info("Fog precision %s -> %s", self.precision, precision)
        self.precision = precision
        if self.enabled:
            self._restart()

    def toggle_fog_mode(self) -> None:
        self.enabled = not self.enabled
        self.sync.set_visible(self.enabled)
        if self.enabled:
            self._restart()
        else:
            self._reset()
            self.session = None

    def on_photo_set_changed(self, photos: Iterable[PhotoPoint]) -> None:
        self.photos = list(photos)
        if self.enabled:
            self._restart()

    def _reset(self) -> None:
        self.epoch += 1
        self.sync.clear()
        self.session = FogSession(
            self.precision,
            self.resolver,
            self.store,
            self.sync,
            epoch=self.epoch,
            epoch_source=lambda: self.epoch,
            max_concurrency=self.max_concurrency,
        )

    def _restart(self) -> None:
        self._reset()
        task = asyncio.get_running_loop().create_task(self.session.run(self.photos))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def drain(self) -> Optional[FogRunReport]:
        """Wait for every scheduled run, stale ones included."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))
        return self.session.report if self.session else None

    @property
    def visited_count(self) -> int:
        return len(self.session.ledger) if self.session else 0

    def regions(self) -> dict:
        if self.session is None:
            return feature_collection([])
        return self.session.aggregator.regions()

    def labels(self) -> dict:
        if self.session is None:
            return feature_collection([])
        return self.session.aggregator.labels()


async def compute_fog(
    photos: Iterable[PhotoPoint],
    precision: str,
    resolver: RegionResolver,
    store: BoundaryStore,
    max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
) -> tuple[FogController, Optional[FogRunReport]]:
    """One-shot run for request handlers: enable fog mode and wait for it."""
    controller = FogController(
        resolver,
        store,
        InMemoryMapSurface(),
        precision=precision,
        max_concurrency=max_concurrency,
    )
    controller.on_photo_set_changed(photos)
    controller.toggle_fog_mode()
    report = await controller.drain()
    return controller, report
