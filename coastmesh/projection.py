"""
Coordinate reference system handling.

``transform`` is the bridge to pyproj: it converts whole coordinate arrays
between two EPSG codes and reports whether the target system is geographic.
``cpp`` / ``inverse_cpp`` implement the Carte Parallelogrammatique projection
that ADCIRC uses as its internal working frame.
"""

import logging
from typing import Tuple

import numpy as np
import pyproj
from pyproj.exceptions import CRSError, ProjError

from .errors import TransformError

logger = logging.getLogger(__name__)

# Clarke 1866 equatorial radius used by ADCIRC for CPP
EARTH_RADIUS = 6378206.4
DEG2RAD = np.pi / 180.0


def _crs(epsg: int) -> pyproj.CRS:
    try:
        return pyproj.CRS.from_epsg(int(epsg))
    except (CRSError, ValueError, TypeError) as e:
        raise TransformError(f"Invalid reference system EPSG:{epsg}: {e}") from e


def is_geographic(epsg: int) -> bool:
    """True if EPSG ``epsg`` is a lat/lon system."""
    return bool(_crs(epsg).is_geographic)


def transform(source_epsg: int, target_epsg: int, x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray, bool]:
    """
    Convert coordinates from one EPSG system to another.

    Coordinates are ordered (x, y) = (lon, lat) for geographic systems.

    Args:
        source_epsg (int): EPSG code of the input coordinates.
        target_epsg (int): EPSG code to convert to.
        x (np.ndarray): x / longitude values.
        y (np.ndarray): y / latitude values.

    Returns:
        Tuple[np.ndarray, np.ndarray, bool]: Converted x, converted y, and
        whether the target system is geographic.

    Raises:
        TransformError: If either code is invalid or any point fails to convert.
    """
    source = _crs(source_epsg)
    target = _crs(target_epsg)
    try:
        transformer = pyproj.Transformer.from_crs(source, target, always_xy=True)
        xout, yout = transformer.transform(np.asarray(x, dtype=float), np.asarray(y, dtype=float),
                                           errcheck=True)
    except ProjError as e:
        raise TransformError(f"Error converting EPSG:{source_epsg} to EPSG:{target_epsg}: {e}") from e

    xout = np.asarray(xout, dtype=float)
    yout = np.asarray(yout, dtype=float)
    if not (np.all(np.isfinite(xout)) and np.all(np.isfinite(yout))):
        raise TransformError(f"Non-finite coordinates converting EPSG:{source_epsg} to EPSG:{target_epsg}")
    return xout, yout, bool(target.is_geographic)


def cpp(lambda0: float, phi0: float, lon: np.ndarray, lat: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """
    Carte Parallelogrammatique projection about (lambda0, phi0).

    Args:
        lambda0 (float): Reference longitude in degrees.
        phi0 (float): Reference latitude in degrees.
        lon (np.ndarray): Longitudes in degrees.
        lat (np.ndarray): Latitudes in degrees.

    Returns:
        Tuple[np.ndarray, np.ndarray]: x and y in metres.
    """
    lon = np.asarray(lon, dtype=float)
    lat = np.asarray(lat, dtype=float)
    x = EARTH_RADIUS * (lon - lambda0) * DEG2RAD * np.cos(phi0 * DEG2RAD)
    y = EARTH_RADIUS * lat * DEG2RAD
    return x, y


def inverse_cpp(lambda0: float, phi0: float, x: np.ndarray, y: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Inverse of :func:`cpp`; returns longitudes and latitudes in degrees."""
    x = np.asarray(x, dtype=float)
    y = np.asarray(y, dtype=float)
    lon = lambda0 + x / (EARTH_RADIUS * np.cos(phi0 * DEG2RAD)) / DEG2RAD
    lat = y / EARTH_RADIUS / DEG2RAD
    return lon, lat
