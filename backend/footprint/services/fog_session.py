"""Fog-of-war unlock pipeline: ledger, geometry aggregation, per-session state.

A ``FogSession`` owns everything that must be thrown away when the precision
tier changes or fog mode is re-entered: the set of unlocked region keys and
the two growing GeoJSON collections. Sessions are never cleared in place, the
controller builds a new one.
"""
import asyncio
import logging
from dataclasses import dataclass, field
from typing import Callable, Iterable, Optional

from shapely.errors import ShapelyError
from shapely.geometry import mapping, shape

from footprint.schemas.fog import PhotoPoint
from footprint.services.boundary_store import BoundaryMatch, BoundaryStore
from footprint.services.region_resolver import RegionDescriptor, RegionResolver, SOURCE_LOCAL
from footprint.services.render_sync import RenderSync
from footprint.utils.geo import feature_collection, feature_name
from footprint.utils.result import (
    DUPLICATE,
    NOT_FOUND,
    STALE,
    ResolutionError,
    Result,
)

logger = logging.getLogger("footprint.fog.session")

DEFAULT_MAX_CONCURRENCY = 6


class UnlockLedger:
    """Set of region keys already unlocked in this session.

    ``try_unlock`` is a plain synchronous check-and-insert, so on the event
    loop it is atomic with respect to other photo tasks.
    """

    def __init__(self):
        self._keys: set[str] = set()

    def try_unlock(self, region_key: str) -> bool:
        if region_key in self._keys:
            return False
        self._keys.add(region_key)
        return True

    def release(self, region_key: str) -> None:
        """Forget a key whose boundary could not be loaded, so it can be retried."""
        self._keys.discard(region_key)

    def clear(self) -> None:
        self._keys.clear()

    def __contains__(self, region_key: str) -> bool:
        return region_key in self._keys

    def __len__(self) -> int:
        return len(self._keys)


class GeometryAggregator:
    """Running collection of unlocked regions plus one label per merge."""

    def __init__(self, sync: RenderSync, epoch: int, epoch_source: Callable[[], int]):
        self.sync = sync
        self.epoch = epoch
        self._epoch_source = epoch_source
        self._regions: list[dict] = []
        self._labels: list[dict] = []

    @property
    def is_current(self) -> bool:
        return self.epoch == self._epoch_source()

    def regions(self) -> dict:
        return feature_collection(self._regions)

    def labels(self) -> dict:
        return feature_collection(self._labels)

    def merge(self, features: list[dict], region_name: str, epoch: int) -> bool:
        """Merge a batch of boundary features; False if nothing was merged."""
        if epoch != self.epoch or not self.is_current:
            logger.debug("Discarding stale merge for %s (epoch %s)", region_name, epoch)
            return False

        names = {feature_name(f) for f in self._regions}
        batch = []
        for feature in features:
            name = feature_name(feature)
            if name in names:
                continue
            names.add(name)
            batch.append(feature)
        if not batch:
            return False

        self._regions.extend(batch)
        label = self.label_for(batch, region_name)
        if label is not None:
            self._labels.append(label)
        self.sync.push(self.regions(), self.labels())
        return True

    @staticmethod
    def label_for(features: list[dict], region_name: str) -> Optional[dict]:
        """Centroid of the union of ``features``, tagged with ``region_name``."""
        merged = None
        for feature in features:
            try:
                geometry = shape(feature["geometry"])
            except (ShapelyError, ValueError, TypeError, KeyError, AttributeError) as e:
                logger.debug("Unreadable geometry in %s: %s", region_name, e)
                continue
            if merged is None:
                merged = geometry
                continue
            try:
                merged = merged.union(geometry)
            except (ShapelyError, ValueError) as e:
                logger.debug("Union failed in %s, keeping prior shape: %s", region_name, e)

        if merged is None or merged.is_empty:
            return None
        centroid = merged.centroid
        if centroid.is_empty:
            return None
        return {
            "type": "Feature",
            "geometry": mapping(centroid),
            "properties": {"name": region_name},
        }


@dataclass
class FogRunReport:
    total: int = 0
    unlocked: int = 0
    duplicates: int = 0
    stale: int = 0
    errors: list[ResolutionError] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.errors)

    def add(self, result: Result) -> None:
        self.total += 1
        if result.ok:
            self.unlocked += 1
        elif result.error.kind == DUPLICATE:
            self.duplicates += 1
        elif result.error.kind == STALE:
            self.stale += 1
        else:
            self.errors.append(result.error)


class FogSession:
    """Unlock state for one precision tier and one fog-mode activation."""

    def __init__(
        self,
        precision: str,
        resolver: RegionResolver,
        store: BoundaryStore,
        sync: RenderSync,
        epoch: int = 0,
        epoch_source: Optional[Callable[[], int]] = None,
        max_concurrency: int = DEFAULT_MAX_CONCURRENCY,
    ):
        self.precision = precision
        self.resolver = resolver
        self.store = store
        self.epoch = epoch
        self.max_concurrency = max(1, max_concurrency)
        self.ledger = UnlockLedger()
        self.aggregator = GeometryAggregator(
            sync, epoch, epoch_source or (lambda: epoch)
        )
        self.report: Optional[FogRunReport] = None

    @property
    def is_current(self) -> bool:
        return self.aggregator.is_current

    def _stale(self, region_key: Optional[str] = None) -> Result:
        return Result.failure(STALE, f"epoch {self.epoch} superseded", region_key)

    async def unlock(self, photo: PhotoPoint) -> Result[BoundaryMatch]:
        """Resolve one photo and merge its region if it is new."""
        if not self.is_current:
            return self._stale()

        resolved = await self.resolver.resolve(photo.lat, photo.lng, self.precision)
        if not resolved.ok:
            return Result.from_error(resolved.error)
        descriptor = resolved.value

        if descriptor.source == SOURCE_LOCAL:
            # Cached file read; the key is only known after point-in-polygon
            result = await self.store.load_boundary(descriptor, photo.lat, photo.lng)
            if result.ok:
                if not self.ledger.try_unlock(result.value.region_key):
                    return Result.failure(DUPLICATE, "already unlocked", result.value.region_key)
                return self._merge(result.value)
            if result.error.kind != NOT_FOUND or not descriptor.alpha2:
                return result
            descriptor = descriptor.as_remote_fallback()

        return await self._fetch_and_merge(descriptor, photo)

    async def _fetch_and_merge(self, descriptor: RegionDescriptor, photo: PhotoPoint) -> Result[BoundaryMatch]:
        key = descriptor.region_key
        if not self.is_current:
            return self._stale(key)
        if not self.ledger.try_unlock(key):
            return Result.failure(DUPLICATE, "already unlocked", key)

        result = await self.store.load_boundary(descriptor, photo.lat, photo.lng)
        if not result.ok:
            self.ledger.release(key)
            return result
        return self._merge(result.value)

    def _merge(self, match: BoundaryMatch) -> Result[BoundaryMatch]:
        match.requested_precision = self.precision
        if not self.is_current:
            return self._stale(match.region_key)
        if not self.aggregator.merge(match.features, match.region_name, self.epoch):
            return Result.failure(DUPLICATE, "no new features", match.region_key)
        logger.debug("Unlocked %s (%s)", match.region_key, match.region_name)
        return Result.success(match)

    async def run(self, photos: Iterable[PhotoPoint]) -> FogRunReport:
        """Unlock every photo, at most ``max_concurrency`` at a time."""
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def worker(photo: PhotoPoint) -> Result:
            async with semaphore:
                return await self.unlock(photo)

        results = await asyncio.gather(*(worker(p) for p in photos))

        report = FogRunReport()
        for result in results:
            report.add(result)
        if self.is_current:
            self.report = report
            logger.info(
                "Fog run (%s, epoch %s): %s photos, %s unlocked, %s duplicates, %s failed",
                self.precision, self.epoch, report.total, report.unlocked,
                report.duplicates, report.failed,
            )
        return report
