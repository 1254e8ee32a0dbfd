"""
Coordinate transformation functions.
Supports: ECI -> geodetic (WGS-84), geodetic <-> scene space, ECI -> scene space.

Scene space is the right-handed frame the 3D globe is drawn in: y points to
the north pole and Earth is a sphere of radius Config.SCENE_EARTH_RADIUS.
"""
import math
from datetime import datetime
from typing import Sequence, Tuple

from sgp4.api import jday

from config import Config
from models.orbital import GeodeticPosition, ScenePoint
from utils.time_util import ensure_utc

# WGS84 ellipsoid parameters (km)
WGS84_A = 6378.137
WGS84_F = 1.0 / 298.257223563
WGS84_E2 = 2 * WGS84_F - WGS84_F ** 2

J2000 = 2451545.0


def julian_date(instant: datetime) -> Tuple[float, float]:
    """Julian date of an instant as the (whole, fraction) pair sgp4 expects."""
    t = ensure_utc(instant)
    return jday(t.year, t.month, t.day, t.hour, t.minute, t.second + t.microsecond / 1e6)


def gmst_radians(instant: datetime) -> float:
    """
    Greenwich Mean Sidereal Time for an instant.
    """
    jd, fr = julian_date(instant)
    days = (jd - J2000) + fr
    T = days / 36525.0
    gmst = 280.46061837 + 360.98564736629 * days + \
        0.000387933 * T ** 2 - T ** 3 / 38710000.0
    return math.radians(gmst % 360.0)


def normalize_longitude(longitude: float) -> float:
    """Wrap a longitude in degrees into (-180, 180]."""
    wrapped = (longitude + 180.0) % 360.0 - 180.0
    if wrapped <= -180.0:
        wrapped += 360.0
    return wrapped


def eci_to_geodetic(position_km: Sequence[float], instant: datetime) -> GeodeticPosition:
    """
    Convert an ECI position to geodetic latitude/longitude/altitude.

    Args:
        position_km: ECI position [x, y, z] in km
        instant: time of the position (Earth rotation angle is taken from it)

    Returns:
        GeodeticPosition in degrees and km
    """
    x, y, z = position_km

    # Longitude: right ascension minus Earth's rotation
    lon = normalize_longitude(math.degrees(math.atan2(y, x) - gmst_radians(instant)))

    # Distance from Z-axis
    p = math.sqrt(x ** 2 + y ** 2)

    # Iterative refinement of geodetic latitude
    lat = math.atan2(z, p)
    c = 1.0
    for _ in range(20):
        sin_lat = math.sin(lat)
        c = 1.0 / math.sqrt(1 - WGS84_E2 * sin_lat ** 2)
        lat = math.atan2(z + WGS84_A * c * WGS84_E2 * sin_lat, p)

    cos_lat = math.cos(lat)
    if abs(cos_lat) > 1e-10:
        alt = p / cos_lat - WGS84_A * c
    else:
        # Over a pole
        alt = abs(z) - WGS84_A * c * (1 - WGS84_E2)

    return GeodeticPosition(
        latitude=math.degrees(lat),
        longitude=lon,
        altitude_km=alt,
    )


def geodetic_to_scene(lat: float, lon: float, radius: float) -> ScenePoint:
    """
    Map latitude/longitude (degrees) onto a sphere of the given radius in
    scene space. Ground stations and satellites must both go through this
    mapping so their points line up on the globe.
    """
    phi = math.radians(90.0 - lat)
    theta = math.radians(lon + 180.0)

    return ScenePoint(
        x=-radius * math.sin(phi) * math.cos(theta),
        y=radius * math.cos(phi),
        z=radius * math.sin(phi) * math.sin(theta),
    )


def scene_to_geodetic(point: ScenePoint) -> Tuple[float, float, float]:
    """
    Inverse of geodetic_to_scene.

    Returns:
        (lat, lon, radius); lon is 0 at the poles where it is undefined
    """
    radius = point.norm()
    if radius == 0:
        return 0.0, 0.0, 0.0

    cos_phi = max(-1.0, min(1.0, point.y / radius))
    lat = 90.0 - math.degrees(math.acos(cos_phi))

    if math.hypot(point.x, point.z) < 1e-12:
        return lat, 0.0, radius

    theta = math.degrees(math.atan2(point.z, -point.x))
    return lat, normalize_longitude(theta - 180.0), radius


def eci_to_scene(position_km: Sequence[float], scene_radius: float = None) -> ScenePoint:
    """
    Linearly scale an ECI position (km) into scene units.
    """
    if scene_radius is None:
        scene_radius = Config.SCENE_EARTH_RADIUS
    scale = scene_radius / Config.EARTH_RADIUS_KM
    x, y, z = position_km
    return ScenePoint(x * scale, y * scale, z * scale)


def altitude_to_scene_radius(altitude_km: float, scene_radius: float = None) -> float:
    """Scene-space distance from Earth's center for a point at the given altitude."""
    if scene_radius is None:
        scene_radius = Config.SCENE_EARTH_RADIUS
    return scene_radius * (Config.EARTH_RADIUS_KM + altitude_km) / Config.EARTH_RADIUS_KM
