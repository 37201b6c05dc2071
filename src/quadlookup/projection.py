"""
Mercator projection between WGS84 coordinates and map pixels.

This module handles the conversion between continuous (lat, lon) coordinates
and integer pixel coordinates on the Mercator raster at a zoom level.

At zoom z the raster is square with 256 * 2^z pixels per side:
- x grows eastwards from longitude -180
- y grows southwards from latitude +85.05112878

Latitudes beyond +/-85.05112878 (the Mercator limit around the poles) are
clipped before projecting.
"""

import math
from typing import Tuple


MIN_ZOOM = 1
MAX_ZOOM = 23

TILE_SIZE = 256

MIN_LATITUDE = -85.05112878
MAX_LATITUDE = 85.05112878
MIN_LONGITUDE = -180.0
MAX_LONGITUDE = 180.0

# WGS84 semi-major axis
EARTH_RADIUS_M = 6378137.0


def _clip(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def wrap90(degrees: float) -> float:
    """
    Constrain degrees to the range -90..+90 (latitude).

    Uses a triangle wave, so -91 becomes -89 and 91 becomes 89.
    Values already within range are returned unchanged.
    """
    if math.isnan(degrees):
        return degrees
    if -90.0 <= degrees <= 90.0:
        return degrees
    return abs((degrees - 90.0) % 360.0 - 180.0) - 90.0


def wrap180(degrees: float) -> float:
    """
    Constrain degrees to the range -180..+180 (longitude).

    Uses a sawtooth wave, so 181 becomes -179 and -181 becomes 179.
    Values already within range are returned unchanged.
    """
    if math.isnan(degrees):
        return degrees
    if -180.0 <= degrees <= 180.0:
        return degrees
    return (degrees - 180.0) % 360.0 - 180.0


def clamp_coords(lat: float, lon: float) -> Tuple[float, float]:
    """
    Normalize and clamp coordinates to the Mercator valid band.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees

    Returns:
        Tuple of (clamped_lat, clamped_lon)
    """
    clamped_lat = _clip(wrap90(lat), MIN_LATITUDE, MAX_LATITUDE)
    clamped_lon = _clip(wrap180(lon), MIN_LONGITUDE, MAX_LONGITUDE)
    return clamped_lat, clamped_lon


def map_size_tiles(zoom: int) -> int:
    """Number of tiles per side of the map at a zoom level."""
    return 1 << zoom


def max_tile_index(zoom: int) -> int:
    """Largest valid tile index on either axis at a zoom level."""
    return map_size_tiles(zoom) - 1


def raster_size(zoom: int) -> int:
    """
    Size of the whole map in pixels (per side) at a zoom level.

    Args:
        zoom: Zoom level

    Returns:
        256 * 2^zoom
    """
    return TILE_SIZE * map_size_tiles(zoom)


def resolution_m_per_pixel(zoom: int, latitude: float) -> float:
    """
    Ground resolution of a single pixel.

    Args:
        zoom: Zoom level
        latitude: Latitude in degrees where the resolution is measured

    Returns:
        Meters per pixel
    """
    return math.cos(math.radians(latitude)) * 2 * math.pi * EARTH_RADIUS_M / raster_size(zoom)


def resolution_m_per_tile(zoom: int, latitude: float) -> float:
    """Ground resolution of a whole tile in meters."""
    return resolution_m_per_pixel(zoom, latitude) * TILE_SIZE


def lat_lon_to_pixel(lat: float, lon: float, zoom: int) -> Tuple[int, int]:
    """
    Project WGS84 coordinates to map pixel coordinates.

    Args:
        lat: Latitude in degrees
        lon: Longitude in degrees
        zoom: Zoom level (not checked here)

    Returns:
        Tuple of (x, y) pixel indices in [0, raster_size - 1]

    The projection formula is:
        x = (lon + 180) / 360
        y = 0.5 - ln((1 + sin(lat)) / (1 - sin(lat))) / (4 * pi)
    both scaled by the raster size and rounded to the nearest pixel.
    """
    lat, lon = clamp_coords(lat, lon)

    x = (lon + 180.0) / 360.0
    sin_lat = math.sin(math.radians(lat))
    y = 0.5 - math.log((1.0 + sin_lat) / (1.0 - sin_lat)) / (4 * math.pi)

    size = raster_size(zoom)
    px = int(_clip(x * size + 0.5, 0, size - 1))
    py = int(_clip(y * size + 0.5, 0, size - 1))

    return px, py


def pixel_to_lat_lon(x: int, y: int, zoom: int) -> Tuple[float, float]:
    """
    Convert map pixel coordinates back to WGS84 coordinates.

    Args:
        x: Pixel column
        y: Pixel row
        zoom: Zoom level (not checked here)

    Returns:
        Tuple of (lat, lon) in degrees of the pixel's top left corner

    Pixels outside the raster are clipped to its border first.
    """
    size = raster_size(zoom)

    xx = _clip(x, 0, size - 1) / size - 0.5
    yy = 0.5 - _clip(y, 0, size - 1) / size

    lat = 90.0 - 360.0 * math.atan(math.exp(-yy * 2 * math.pi)) / math.pi
    lon = 360.0 * xx

    return lat, lon
