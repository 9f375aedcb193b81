"""Model exports."""
from footprint.models.photo import PhotoNode

__all__ = [
    "PhotoNode",
]
