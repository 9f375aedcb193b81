"""Shared FastAPI dependencies for the fog services."""
import httpx
from fastapi import Depends, Request

from footprint.config import get_settings
from footprint.services.boundary_store import BoundaryStore
from footprint.services.geocoder import GeocoderClient
from footprint.services.region_resolver import RegionResolver


def get_http_client(request: Request) -> httpx.AsyncClient:
    """The application-wide client created in the lifespan."""
    return request.app.state.http


def get_geocoder(http: httpx.AsyncClient = Depends(get_http_client)) -> GeocoderClient:
    return GeocoderClient(http, get_settings())


def get_resolver(geocoder: GeocoderClient = Depends(get_geocoder)) -> RegionResolver:
    return RegionResolver(geocoder)


def get_boundary_store(request: Request) -> BoundaryStore:
    """Process-wide store so the local boundary cache is shared."""
    return request.app.state.boundary_store
