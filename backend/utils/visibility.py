"""
Satellite-to-ground-station visibility tests in scene space.

Two policies are offered and callers pick one:
- is_visible: elevation above the station's local horizon (pass prediction,
  booking coverage)
- is_in_range: plain straight-line distance (coarse "nearby" checks such as
  drawing link lines in the scene)
"""
import math
from typing import Optional

from config import Config
from models.orbital import ScenePoint


def elevation_angle(sat: ScenePoint, gs: ScenePoint) -> Optional[float]:
    """
    Elevation of a satellite above a station's horizon, in degrees.

    The angle is measured at the station between the direction to Earth's
    center and the direction to the satellite; the horizon sits at 90 deg of
    that angle, so elevation = angle - 90. The station is assumed to lie on
    the sphere its position vector describes.

    Returns:
        Elevation in [-90, 90], or None for zero-length vectors
    """
    to_center = ScenePoint(-gs.x, -gs.y, -gs.z)
    to_sat = sat - gs

    norms = to_center.norm() * to_sat.norm()
    if norms == 0 or not math.isfinite(norms):
        return None

    # Floating-point drift can push the cosine just past +-1 (overhead passes)
    cos_angle = max(-1.0, min(1.0, to_center.dot(to_sat) / norms))
    return math.degrees(math.acos(cos_angle)) - 90.0


def visible_elevation(
    sat: ScenePoint,
    gs: ScenePoint,
    min_elevation_degrees: float = None,
    max_distance: float = None,
) -> Optional[float]:
    """
    Elevation in degrees when the satellite is at least min_elevation_degrees
    above the station's horizon and closer than max_distance (scene units),
    otherwise None.
    """
    if min_elevation_degrees is None:
        min_elevation_degrees = Config.DEFAULT_MIN_ELEVATION_DEG
    if max_distance is None:
        max_distance = Config.MAX_LINK_DISTANCE_SCENE

    distance = sat.distance_to(gs)
    if not (0 < distance < max_distance):
        return None

    elevation = elevation_angle(sat, gs)
    if elevation is None or elevation < min_elevation_degrees:
        return None
    return elevation


def is_visible(
    sat: ScenePoint,
    gs: ScenePoint,
    min_elevation_degrees: float = None,
    max_distance: float = None,
) -> bool:
    """True if visible_elevation() finds the satellite above the horizon."""
    return visible_elevation(sat, gs, min_elevation_degrees, max_distance) is not None


def is_in_range(sat: ScenePoint, gs: ScenePoint, max_distance: float = None) -> bool:
    """True if the straight-line distance is below max_distance (scene units)."""
    if max_distance is None:
        max_distance = Config.RANGE_CHECK_DISTANCE_SCENE
    return sat.distance_to(gs) < max_distance
