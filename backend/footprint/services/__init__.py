"""Services exports."""
from footprint.services.boundary_store import BoundaryMatch, BoundaryStore
from footprint.services.fog_controller import FogController
from footprint.services.fog_session import FogSession, GeometryAggregator, UnlockLedger
from footprint.services.geocoder import GeocoderClient
from footprint.services.region_resolver import RegionDescriptor, RegionResolver
from footprint.services.render_sync import InMemoryMapSurface, RenderSync

__all__ = [
    "BoundaryMatch",
    "BoundaryStore",
    "FogController",
    "FogSession",
    "GeometryAggregator",
    "UnlockLedger",
    "GeocoderClient",
    "RegionDescriptor",
    "RegionResolver",
    "InMemoryMapSurface",
    "RenderSync",
]
