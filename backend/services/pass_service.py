"""
Pass (contact window) prediction service.

Walks a time horizon in fixed steps, tests visibility of one satellite from
each ground station and turns the sampled visible/not-visible signal into
contact windows.

Resolution: windows are detected at the step size (60 s by default). Passes
shorter than one step can be missed entirely, and reported start/end times
carry up to one step of jitter. A smaller step trades runtime for accuracy.
"""
import csv
import io
import logging
from datetime import datetime, timedelta
from threading import Event
from typing import Dict, Iterable, List, Optional, Sequence

from config import Config
from models.ground_station import GroundStation
from models.orbital import ContactWindow, OrbitalElementSet, StationPasses
from services.orbit_service import OrbitService, orbit_service
from utils.coordinates import geodetic_to_scene
from utils.errors import PropagationError
from utils.time_util import ensure_utc
from utils.visibility import is_in_range, visible_elevation

logger = logging.getLogger(__name__)

CSV_HEADER = ['Ground Station', 'Start Time', 'End Time', 'Duration (s)', 'Max Elevation (°)']


class PassPredictionService:
    """
    Service for satellite pass prediction over ground stations.
    """

    def __init__(self, orbits: OrbitService = None):
        self.orbits = orbits or orbit_service

    def _visible_elevation(
        self,
        element_set: OrbitalElementSet,
        station_point,
        instant: datetime,
        min_elevation: float,
        max_distance: float,
    ) -> Optional[float]:
        """Elevation if the satellite is visible at this instant, else None."""
        try:
            sat_point = self.orbits.satellite_scene_position(element_set, instant)
        except PropagationError:
            # Treat a failed step as not visible and keep scanning
            return None

        return visible_elevation(sat_point, station_point, min_elevation, max_distance)

    def _station_windows(
        self,
        element_set: OrbitalElementSet,
        station: GroundStation,
        start: datetime,
        end: datetime,
        step: timedelta,
        min_elevation: float,
        min_duration_seconds: float,
        max_distance: float,
    ) -> List[ContactWindow]:
        """Sweep one station and return its qualifying contact windows."""
        station_point = geodetic_to_scene(station.lat, station.lon, Config.SCENE_EARTH_RADIUS)
        windows = []

        window_start = None
        max_elevation = 0.0
        last_instant = start

        def close(window_end: datetime):
            duration = (window_end - window_start).total_seconds()
            if duration > min_duration_seconds:
                windows.append(ContactWindow(
                    ground_station_id=station.id,
                    ground_station_name=station.name,
                    start_time=window_start,
                    end_time=window_end,
                    max_elevation_degrees=max_elevation,
                ))

        current = start
        while current <= end:
            elevation = self._visible_elevation(
                element_set, station_point, current, min_elevation, max_distance
            )

            if elevation is not None:
                if window_start is None:
                    # Pass start
                    window_start = current
                    max_elevation = elevation
                elif elevation > max_elevation:
                    max_elevation = elevation
            elif window_start is not None:
                # Pass end
                close(current)
                window_start = None

            last_instant = current
            current += step

        # Still visible at the horizon end
        if window_start is not None:
            close(last_instant)

        return windows

    def predict_passes(
        self,
        element_set: OrbitalElementSet,
        ground_stations: Iterable[GroundStation],
        start_instant: datetime = None,
        horizon_hours: float = None,
        min_elevation: float = None,
        step_seconds: float = None,
        min_duration_seconds: float = None,
        max_distance: float = None,
        cancel_event: Event = None,
    ) -> List[StationPasses]:
        """
        Predict contact windows of one satellite over a set of ground stations.

        Args:
            element_set: Satellite to predict
            ground_stations: Stations to test
            start_instant: Start of the horizon (default: now)
            horizon_hours: Horizon length (default: Config.PASS_HORIZON_HOURS)
            min_elevation: Elevation floor in degrees
            step_seconds: Sampling step
            min_duration_seconds: Windows must last strictly longer than this
            max_distance: Link distance sanity bound in scene units
            cancel_event: Checked before each station; when set, results
                for the stations already finished are returned

        Returns:
            One StationPasses per station with at least one window, in
            station order. Stations without windows are omitted.

        Raises:
            ValueError: for a negative horizon or a non-positive step
        """
        horizon_hours = Config.PASS_HORIZON_HOURS if horizon_hours is None else horizon_hours
        min_elevation = Config.DEFAULT_MIN_ELEVATION_DEG if min_elevation is None else min_elevation
        step_seconds = Config.PASS_STEP_SECONDS if step_seconds is None else step_seconds
        if min_duration_seconds is None:
            min_duration_seconds = Config.MIN_PASS_DURATION_SECONDS
        max_distance = Config.MAX_LINK_DISTANCE_SCENE if max_distance is None else max_distance

        if horizon_hours < 0:
            raise ValueError(f"horizon_hours must be non-negative, got {horizon_hours}")
        if step_seconds <= 0:
            raise ValueError(f"step_seconds must be positive, got {step_seconds}")

        start = ensure_utc(start_instant)
        end = start + timedelta(hours=horizon_hours)
        step = timedelta(seconds=step_seconds)

        results = []
        for station in ground_stations:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Pass prediction for {element_set.name} cancelled")
                break

            windows = self._station_windows(
                element_set, station, start, end, step,
                min_elevation, min_duration_seconds, max_distance,
            )
            if windows:
                results.append(StationPasses(
                    ground_station_id=station.id,
                    ground_station_name=station.name,
                    passes=tuple(windows),
                ))

        logger.debug(
            f"{element_set.name}: {sum(len(r.passes) for r in results)} passes "
            f"over {len(results)} stations in {horizon_hours}h"
        )
        return results

    def predict_satellite_passes(
        self,
        element_set: OrbitalElementSet,
        ground_stations: Iterable[GroundStation],
        start_instant: datetime = None,
        horizon_hours: float = 24,
        **kwargs
    ) -> List[Dict]:
        """predict_passes() in the JSON shape the frontend consumes."""
        return [
            station_passes.to_dict()
            for station_passes in self.predict_passes(
                element_set, ground_stations, start_instant, horizon_hours, **kwargs
            )
        ]

    def get_accessible_ground_stations(
        self,
        element_set: OrbitalElementSet,
        ground_stations: Iterable[GroundStation],
        horizon_hours: float = 24,
        start_instant: datetime = None,
        **kwargs
    ) -> List[str]:
        """IDs of the stations that see at least one pass within the horizon."""
        return [
            station_passes.ground_station_id
            for station_passes in self.predict_passes(
                element_set, ground_stations, start_instant, horizon_hours, **kwargs
            )
        ]

    def predict_catalog_passes(
        self,
        element_sets: Iterable[OrbitalElementSet],
        ground_stations: Sequence[GroundStation],
        start_instant: datetime = None,
        horizon_hours: float = 24,
        cancel_event: Event = None,
        **kwargs
    ) -> Dict[str, List[StationPasses]]:
        """
        Predict passes for many satellites.

        Returns:
            {norad_id: [StationPasses, ...]} for satellites with any pass.
            When cancel_event is set the sweep stops before the next
            satellite and the partial result is returned.
        """
        start = ensure_utc(start_instant)
        results = {}

        for element_set in element_sets:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(f"Catalog pass sweep cancelled after {len(results)} satellites with passes")
                break

            passes = self.predict_passes(
                element_set, ground_stations, start, horizon_hours,
                cancel_event=cancel_event, **kwargs
            )
            if passes:
                results[element_set.catalog_number] = passes

        return results

    def stations_in_range(
        self,
        element_set: OrbitalElementSet,
        ground_stations: Iterable[GroundStation],
        instant: datetime,
        max_distance: float = None,
    ) -> List[str]:
        """IDs of the stations within straight-line link range at one instant."""
        try:
            sat_point = self.orbits.satellite_scene_position(element_set, ensure_utc(instant))
        except PropagationError:
            return []

        return [
            station.id
            for station in ground_stations
            if is_in_range(
                sat_point,
                geodetic_to_scene(station.lat, station.lon, Config.SCENE_EARTH_RADIUS),
                max_distance,
            )
        ]

    def export_passes_csv(self, station_passes: Iterable[StationPasses]) -> str:
        """
        Render contact windows as CSV, one row per window.
        """
        output = io.StringIO()
        writer = csv.writer(output, lineterminator='\n')
        writer.writerow(CSV_HEADER)

        for entry in station_passes:
            for window in entry.passes:
                writer.writerow([
                    entry.ground_station_name,
                    window.start_time.isoformat(),
                    window.end_time.isoformat(),
                    str(window.duration_seconds),
                    repr(window.max_elevation_degrees),
                ])

        return output.getvalue()


# Singleton instance
pass_service = PassPredictionService()
