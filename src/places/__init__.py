"""Point-of-interest providers."""

from .base import PlaceProvider
from .overpass import OverpassProvider
from .static import StaticPlaceProvider

__all__ = ["PlaceProvider", "OverpassProvider", "StaticPlaceProvider"]
