"""
Orbit calculation service using SGP4 propagator.
Provides satellite positions in ECI, geodetic and scene coordinates.
"""
import logging
import math
from datetime import datetime
from threading import Lock
from typing import Dict, Optional, Tuple

from sgp4.api import Satrec, SGP4_ERRORS

from config import Config
from models.orbital import OrbitalElementSet, PropagatedState, ScenePoint
from utils.coordinates import (
    altitude_to_scene_radius,
    eci_to_geodetic,
    eci_to_scene,
    geodetic_to_scene,
    julian_date,
)
from utils.errors import PropagationError
from utils.time_util import ensure_utc

logger = logging.getLogger(__name__)


class OrbitService:
    """
    Service for orbital calculations.

    Compiling a TLE into an SGP4 record is the expensive step, so compiled
    records are kept in a cache keyed by (catalog number, epoch) and reused
    for every instant. The cache is emptied whenever the catalog is reloaded.
    """

    def __init__(self):
        self._satrec_cache: Dict[Tuple[str, str], Tuple[str, str, Satrec]] = {}
        self._cache_lock = Lock()

    # ==================== Compilation ====================

    def _compile(self, element_set: OrbitalElementSet) -> Satrec:
        """Return the SGP4 record for an element set, compiling it on first use."""
        key = element_set.cache_key
        cached = self._satrec_cache.get(key)
        if cached and cached[0] == element_set.line1 and cached[1] == element_set.line2:
            return cached[2]

        try:
            satrec = Satrec.twoline2rv(element_set.line1, element_set.line2)
        except (ValueError, IndexError) as e:
            raise PropagationError(
                f"Cannot compile TLE for {element_set.name}: {e}",
                norad_id=element_set.catalog_number,
            ) from e

        with self._cache_lock:
            self._satrec_cache[key] = (element_set.line1, element_set.line2, satrec)
        return satrec

    def clear_cache(self):
        """Drop every compiled record (called on catalog refresh)."""
        with self._cache_lock:
            count = len(self._satrec_cache)
            self._satrec_cache.clear()
        logger.debug(f"Cleared {count} compiled SGP4 records")

    @property
    def cache_size(self) -> int:
        return len(self._satrec_cache)

    # ==================== Propagation ====================

    def propagate(self, element_set: OrbitalElementSet, instant: datetime) -> PropagatedState:
        """
        Propagate an element set to an instant.

        Args:
            element_set: Parsed TLE record
            instant: Time of the state (naive datetimes are taken as UTC)

        Returns:
            PropagatedState with ECI position (km) and velocity (km/s)

        Raises:
            PropagationError: when SGP4 reports an error or a non-finite state
        """
        instant = ensure_utc(instant)
        satrec = self._compile(element_set)

        jd, fr = julian_date(instant)
        error_code, r, v = satrec.sgp4(jd, fr)

        if error_code != 0:
            reason = SGP4_ERRORS.get(error_code, f"error code {error_code}")
            raise PropagationError(
                f"SGP4 failed for {element_set.name}: {reason}",
                norad_id=element_set.catalog_number,
                code=error_code,
            )

        if not all(math.isfinite(c) for c in (*r, *v)):
            raise PropagationError(
                f"SGP4 returned a non-finite state for {element_set.name}",
                norad_id=element_set.catalog_number,
            )

        return PropagatedState(position_km=tuple(r), velocity_km_s=tuple(v), instant=instant)

    def satellite_scene_position(self, element_set: OrbitalElementSet, instant: datetime) -> ScenePoint:
        """
        Satellite position in the same scene frame as ground stations:
        the geodetic sub-point mapped onto a sphere raised by the altitude.

        Raises:
            PropagationError: see propagate()
        """
        state = self.propagate(element_set, instant)
        geo = eci_to_geodetic(state.position_km, state.instant)
        return geodetic_to_scene(geo.latitude, geo.longitude, altitude_to_scene_radius(geo.altitude_km))

    # ==================== Query Functions ====================

    def calculate_satellite_position(
        self,
        element_set: OrbitalElementSet,
        instant: datetime = None
    ) -> Optional[ScenePoint]:
        """
        Calculate a satellite's position in scene units at a given time.

        Returns:
            ECI position scaled to scene units, or None if the satellite
            cannot be propagated at this instant
        """
        try:
            state = self.propagate(element_set, ensure_utc(instant))
        except PropagationError as e:
            logger.debug(f"No position for {element_set.name}: {e}")
            return None
        return eci_to_scene(state.position_km)

    def get_satellite_info(
        self,
        element_set: OrbitalElementSet,
        instant: datetime = None
    ) -> Optional[Dict]:
        """
        Get detailed satellite information at a given time.

        Returns:
            Dictionary with geodetic position, speed, category, NORAD ID
            and period, or None if the satellite has no valid state
        """
        instant = ensure_utc(instant)
        try:
            state = self.propagate(element_set, instant)
        except PropagationError as e:
            logger.debug(f"No info for {element_set.name}: {e}")
            return None

        geo = eci_to_geodetic(state.position_km, instant)
        if geo.altitude_km <= 0:
            logger.warning(
                f"Non-physical altitude {geo.altitude_km:.1f} km for {element_set.name} "
                f"(NORAD {element_set.catalog_number})"
            )
            return None

        return {
            'name': element_set.name,
            'position': geo.to_dict(),
            'velocity': state.speed_km_s,
            'category': element_set.category or 'Unknown',
            'noradId': element_set.catalog_number,
            'period': element_set.period_minutes,
            'time': instant.isoformat(),
        }


# Singleton instance
orbit_service = OrbitService()
