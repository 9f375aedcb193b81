"""Hand-off of fog geometry to the map's live data sources."""
import logging
from typing import Protocol

from footprint.utils.geo import feature_collection

logger = logging.getLogger("footprint.fog.render")

BORDER_SOURCE = "lit-border-source"
CENTER_SOURCE = "lit-center-source"
FOG_LAYERS = ("lit-fill-layer", "lit-border-layer", "lit-label-layer")


class MapSurface(Protocol):
    """The rendering side; replaces a source's data wholesale."""

    def set_source_data(self, source_id: str, collection: dict) -> None:
        ...

    def set_layer_visibility(self, layer_id: str, visible: bool) -> None:
        ...


class InMemoryMapSurface:
    """Keeps the latest payload per source, served back by the API."""

    def __init__(self):
        self.sources: dict[str, dict] = {
            BORDER_SOURCE: feature_collection([]),
            CENTER_SOURCE: feature_collection([]),
        }
        self.visibility: dict[str, bool] = {layer: False for layer in FOG_LAYERS}
        self.push_count = 0

    def set_source_data(self, source_id: str, collection: dict) -> None:
        self.sources[source_id] = collection
        self.push_count += 1

    def set_layer_visibility(self, layer_id: str, visible: bool) -> None:
        self.visibility[layer_id] = visible

    @property
    def regions(self) -> dict:
        return self.sources[BORDER_SOURCE]

    @property
    def labels(self) -> dict:
        return self.sources[CENTER_SOURCE]


class RenderSync:
    """Synchronous, full-replacement pushes; no batching or diffing."""

    def __init__(self, surface: MapSurface):
        self.surface = surface

    def push(self, regions: dict, labels: dict) -> None:
        self.surface.set_source_data(BORDER_SOURCE, regions)
        self.surface.set_source_data(CENTER_SOURCE, labels)

    def clear(self) -> None:
        self.push(feature_collection([]), feature_collection([]))

    def set_visible(self, visible: bool) -> None:
        for layer in FOG_LAYERS:
            self.surface.set_layer_visibility(layer, visible)
        logger.debug("Fog layers %s", "shown" if visible else "hidden")
