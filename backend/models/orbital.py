"""
In-memory orbital records.

These are value objects computed from TLE feeds and never persisted:
element sets live as long as the catalog snapshot that produced them,
everything else is recomputed per query.
"""
import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Dict, Optional, Tuple


@dataclass(frozen=True)
class OrbitalElementSet:
    """
    One parsed TLE record (name line + two fixed-column element lines).
    """
    name: str
    line1: str
    line2: str
    category: str = 'Unknown'

    @property
    def catalog_number(self) -> str:
        """NORAD catalog number, line 1 columns 3-7."""
        return self.line1[2:7].strip()

    @property
    def mean_motion_rev_per_day(self) -> float:
        """Mean motion in revolutions per day, line 2 columns 53-63."""
        try:
            return float(self.line2[52:63])
        except ValueError:
            return 0.0

    @property
    def period_minutes(self) -> float:
        mean_motion = self.mean_motion_rev_per_day
        return 1440.0 / mean_motion if mean_motion > 0 else 0.0

    @property
    def epoch_text(self) -> str:
        return self.line1[18:32].strip()

    @property
    def epoch(self) -> Optional[datetime]:
        """
        Element set epoch (UTC, naive).
        Format: YYDDD.DDDDDDDD where YY is year, DDD.DD is day of year.
        """
        try:
            year_2digit = int(self.epoch_text[:2])
            day_fraction = float(self.epoch_text[2:])
        except ValueError:
            return None

        year = 1900 + year_2digit if year_2digit >= 57 else 2000 + year_2digit
        return datetime(year, 1, 1) + timedelta(days=day_fraction - 1)

    @property
    def cache_key(self) -> Tuple[str, str]:
        """Stable identity for compiled propagation state."""
        return self.catalog_number, self.epoch_text

    def to_dict(self) -> Dict:
        return {
            'name': self.name,
            'norad_id': self.catalog_number,
            'category': self.category,
            'line1': self.line1,
            'line2': self.line2,
            'period_minutes': self.period_minutes,
        }


@dataclass(frozen=True)
class PropagatedState:
    """ECI position (km) and velocity (km/s) of a satellite at one instant."""
    position_km: Tuple[float, float, float]
    velocity_km_s: Optional[Tuple[float, float, float]]
    instant: datetime

    @property
    def speed_km_s(self) -> float:
        if self.velocity_km_s is None:
            return 0.0
        vx, vy, vz = self.velocity_km_s
        return math.sqrt(vx * vx + vy * vy + vz * vz)


@dataclass(frozen=True)
class GeodeticPosition:
    latitude: float
    longitude: float
    altitude_km: float

    def to_dict(self) -> Dict:
        return {'lat': self.latitude, 'lon': self.longitude, 'alt': self.altitude_km}


@dataclass(frozen=True)
class ScenePoint:
    """Point in visualization space (Earth radius = Config.SCENE_EARTH_RADIUS)."""
    x: float
    y: float
    z: float

    def __sub__(self, other: 'ScenePoint') -> 'ScenePoint':
        return ScenePoint(self.x - other.x, self.y - other.y, self.z - other.z)

    def dot(self, other: 'ScenePoint') -> float:
        return self.x * other.x + self.y * other.y + self.z * other.z

    def norm(self) -> float:
        return math.sqrt(self.dot(self))

    def scaled(self, factor: float) -> 'ScenePoint':
        return ScenePoint(self.x * factor, self.y * factor, self.z * factor)

    def distance_to(self, other: 'ScenePoint') -> float:
        return (self - other).norm()

    def to_dict(self) -> Dict:
        return {'x': self.x, 'y': self.y, 'z': self.z}


@dataclass(frozen=True)
class ContactWindow:
    """A contiguous interval during which a satellite is visible from a station."""
    ground_station_id: str
    ground_station_name: str
    start_time: datetime
    end_time: datetime
    max_elevation_degrees: float

    @property
    def duration_seconds(self) -> float:
        return (self.end_time - self.start_time).total_seconds()

    def to_dict(self) -> Dict:
        return {
            'startTime': self.start_time.isoformat(),
            'endTime': self.end_time.isoformat(),
            'duration': self.duration_seconds,
            'maxElevation': self.max_elevation_degrees,
        }


@dataclass(frozen=True)
class StationPasses:
    """All qualifying contact windows of one satellite over one station."""
    ground_station_id: str
    ground_station_name: str
    passes: Tuple[ContactWindow, ...]

    def to_dict(self) -> Dict:
        return {
            'groundStationId': self.ground_station_id,
            'groundStationName': self.ground_station_name,
            'passes': [window.to_dict() for window in self.passes],
        }
