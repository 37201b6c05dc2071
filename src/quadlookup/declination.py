"""
Magnetic declination models and a quadkey keyed cache for them.

A magnetic model (e.g. the World Magnetic Model) is an opaque and possibly
expensive function of position, height and date. Declination changes
slowly over the surface, so DeclinationCache evaluates the model once per
tile at a coarse zoom level and answers every later request in that tile
from a QuadLookup. At zoom 8 a tile spans roughly 150 km at the equator.
"""

from abc import ABC, abstractmethod
import datetime
import logging
import math
import threading
from typing import Callable, Optional

from .lookup import QuadLookup
from .projection import MIN_ZOOM, MAX_ZOOM
from .quadkey import Quadkey


logger = logging.getLogger(__name__)

# Height above the ellipsoid where the declination is evaluated
DEFAULT_HEIGHT_KM = 3.0

DEFAULT_CACHE_ZOOM = 8


class MagneticModel(ABC):
    """
    Abstract base class for magnetic declination models.
    """

    @abstractmethod
    def declination(
        self, lat: float, lon: float, height_km: float, date: datetime.date
    ) -> float:
        """
        Magnetic declination at a position.

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees
            height_km: Height above the ellipsoid in km
            date: Date of the evaluation

        Returns:
            Declination in radians, positive east of true north
        """
        pass


class FunctionModel(MagneticModel):
    """
    Model wrapper for a plain function.

    Wraps a callable (lat, lon, height_km, date) -> radians.
    """

    def __init__(self, func: Callable[[float, float, float, datetime.date], float]):
        self._func = func

    def declination(
        self, lat: float, lon: float, height_km: float, date: datetime.date
    ) -> float:
        return self._func(lat, lon, height_km, date)


class DipoleModel(MagneticModel):
    """
    Centered dipole approximation of the geomagnetic field.

    The declination is the initial great circle bearing towards the
    geomagnetic north pole. Height and date are ignored. Good to a few
    degrees away from the poles; useful as a stand-in for a real model.
    """

    def __init__(self, pole_lat: float = 80.65, pole_lon: float = -72.68):
        self.pole_lat = pole_lat
        self.pole_lon = pole_lon

    def declination(
        self, lat: float, lon: float, height_km: float, date: datetime.date
    ) -> float:
        phi1 = math.radians(lat)
        phi2 = math.radians(self.pole_lat)
        dlon = math.radians(self.pole_lon - lon)

        y = math.sin(dlon) * math.cos(phi2)
        x = math.cos(phi1) * math.sin(phi2) - math.sin(phi1) * math.cos(phi2) * math.cos(dlon)
        return math.atan2(y, x)


class DeclinationCache:
    """
    Memoizes a magnetic model per quadkey tile.

    The model is evaluated at the center of the tile containing the
    requested position, so every position in a tile gets the same value
    regardless of which one was asked first.

    Thread safe: lookups, insertions and model evaluations all run under a
    single lock, which also serializes access to models that are not
    reentrant.
    """

    def __init__(
        self,
        model: MagneticModel,
        zoom: int = DEFAULT_CACHE_ZOOM,
        height_km: float = DEFAULT_HEIGHT_KM,
        date: Optional[datetime.date] = None,
        branch_limit: int = 32,
    ):
        """
        Initialize the cache.

        Args:
            model: The model to memoize
            zoom: Tile zoom level of the cache cells
            height_km: Height passed to the model
            date: Date passed to the model (default: today)
            branch_limit: Branch limit of the underlying lookup tree
        """
        if zoom < MIN_ZOOM or zoom > MAX_ZOOM:
            raise ValueError(f"zoom must be within {MIN_ZOOM}..{MAX_ZOOM}, got {zoom}")

        self.model = model
        self.zoom = zoom
        self.height_km = height_km
        self.date = date or datetime.date.today()
        self.hits = 0
        self.misses = 0

        self._lookup: QuadLookup[float] = QuadLookup(min(3, zoom), zoom, branch_limit)
        self._lock = threading.Lock()

    @property
    def size(self) -> int:
        """Number of tiles evaluated so far."""
        return self._lookup.count

    def declination_rad(self, lat: float, lon: float) -> float:
        """
        Declination in radians at a position, from the cache if possible.

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees

        Returns:
            Declination in radians, positive east
        """
        key = Quadkey.from_lat_lon(lat, lon, self.zoom)

        with self._lock:
            value = self._lookup.get_item_which_includes(key)
            if value is not None:
                self.hits += 1
                return value

            self.misses += 1
            center_lat, center_lon = key.center()
            value = self.model.declination(center_lat, center_lon, self.height_km, self.date)
            self._lookup.add(key, value)
            logger.debug("Cached declination %.5f rad for tile %s", value, key)
            return value

    def declination_deg(self, lat: float, lon: float) -> float:
        """Declination in degrees at a position."""
        return math.degrees(self.declination_rad(lat, lon))
