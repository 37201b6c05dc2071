"""
quadlookup: Mercator quadkeys and an adaptive quadkey lookup tree.

This package maps WGS84 (lat, lon) coordinates to Mercator tiles and their
quadkeys, navigates between neighboring quadkeys by digit arithmetic alone,
and indexes arbitrary items by quadkey in a tree that splits itself as it
fills up.
"""

__version__ = "0.1.0"

from .projection import (
    MIN_ZOOM,
    MAX_ZOOM,
    clamp_coords,
    lat_lon_to_pixel,
    pixel_to_lat_lon,
    raster_size,
)
from .tiles import TileXY, TileQuadrant, pixel_to_tile, quadrant_of_pixel
from .quadkey import Quadkey, lat_lon_to_quadkey, tile_to_quadkey, quadkey_to_tile
from .lookup import QuadLookup, LockedQuadLookup, LookupConfig
from .oracle import Oracle, ListOracle
from .duckdb_oracle import DuckDBOracle
from .declination import MagneticModel, FunctionModel, DipoleModel, DeclinationCache

__all__ = [
    "MIN_ZOOM",
    "MAX_ZOOM",
    "clamp_coords",
    "lat_lon_to_pixel",
    "pixel_to_lat_lon",
    "raster_size",
    "TileXY",
    "TileQuadrant",
    "pixel_to_tile",
    "quadrant_of_pixel",
    "Quadkey",
    "lat_lon_to_quadkey",
    "tile_to_quadkey",
    "quadkey_to_tile",
    "QuadLookup",
    "LockedQuadLookup",
    "LookupConfig",
    "Oracle",
    "ListOracle",
    "DuckDBOracle",
    "MagneticModel",
    "FunctionModel",
    "DipoleModel",
    "DeclinationCache",
]
