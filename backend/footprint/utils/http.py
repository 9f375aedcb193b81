"""Shared JSON fetch helper for the geocoding and boundary providers."""
import logging
from typing import Any, Optional

import httpx

from footprint.utils.result import MALFORMED, NOT_FOUND, TRANSIENT, Result

logger = logging.getLogger(__name__)


async def fetch_json(
    client: httpx.AsyncClient,
    url: str,
    params: Optional[dict] = None,
) -> Result[Any]:
    """GET ``url`` and decode JSON, mapping every failure to a Result error."""
    try:
        response = await client.get(url, params=params)
        response.raise_for_status()
    except httpx.TimeoutException as e:
        return Result.failure(TRANSIENT, f"timeout fetching {url}: {e}")
    except httpx.HTTPStatusError as e:
        code = e.response.status_code
        if code == 404:
            return Result.failure(NOT_FOUND, f"{url} returned 404")
        return Result.failure(TRANSIENT, f"{url} returned {code}")
    except httpx.HTTPError as e:
        return Result.failure(TRANSIENT, f"request to {url} failed: {e}")

    try:
        return Result.success(response.json())
    except ValueError as e:
        return Result.failure(MALFORMED, f"invalid JSON from {url}: {e}")
