"""Explicit success/failure values for the fog pipeline.

Every step of the unlock pipeline (geocoding, boundary loading, merging)
returns a ``Result`` instead of raising, so callers can tell a point that
legitimately has no region apart from a transient provider failure.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, Optional, TypeVar

T = TypeVar("T")

# Error kinds
UNRESOLVED = "unresolved"
UNSUPPORTED = "unsupported"
TRANSIENT = "transient"
NOT_FOUND = "not_found"
MALFORMED = "malformed"
STALE = "stale"
DUPLICATE = "duplicate"


@dataclass(frozen=True)
class ResolutionError:
    """Why a photo did not unlock a region."""

    kind: str
    message: str
    region_key: Optional[str] = None

    @property
    def retryable(self) -> bool:
        return self.kind == TRANSIENT

    def __str__(self) -> str:
        if self.region_key:
            return f"{self.kind} ({self.region_key}): {self.message}"
        return f"{self.kind}: {self.message}"


@dataclass(frozen=True)
class Result(Generic[T]):
    value: Optional[T] = None
    error: Optional[ResolutionError] = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: T) -> "Result[T]":
        return cls(value=value)

    @classmethod
    def failure(
        cls,
        kind: str,
        message: str,
        region_key: Optional[str] = None,
    ) -> "Result[T]":
        return cls(error=ResolutionError(kind, message, region_key))

    @classmethod
    def from_error(cls, error: ResolutionError) -> "Result[T]":
        return cls(error=error)
