"""
Ground Station Data Service

Two rosters are merged:
1. Built-in stations, read once from data/ground_stations/builtin.json
   (read-only)
2. Custom stations registered by the user, stored in the database
"""

import json
import logging
import math
import os
import time
from typing import Dict, List, Optional

from models import db
from models.ground_station import (
    CUSTOM_STATION_STATUSES,
    STATION_STATUSES,
    CustomGroundStation,
    GroundStation,
)
from utils.errors import NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _coerce_float(data: Dict, field: str, low: float, high: float, label: str) -> float:
    try:
        value = float(data[field])
    except KeyError:
        raise ValidationError(f"{label} is required", field=field)
    except (TypeError, ValueError):
        raise ValidationError(f"{label} must be a number", field=field)
    if not (low <= value <= high):
        raise ValidationError(f"{label} must be between {low:g} and {high:g}", field=field)
    return value


class GroundStationService:
    """
    Service for managing satellite ground station data.
    """

    # Data directory for local ground station files
    DATA_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), 'data', 'ground_stations')

    def __init__(self, data_dir: str = None):
        self.data_dir = data_dir or self.DATA_DIR
        self._builtin: Optional[List[GroundStation]] = None

    # ==================== Built-in Roster ====================

    def _load_local_stations(self, slug: str) -> List[Dict]:
        """Load ground stations from local JSON file."""
        filepath = os.path.join(self.data_dir, f"{slug}.json")

        if not os.path.exists(filepath):
            logger.warning(f"No local ground station data for {slug}")
            return []

        with open(filepath, 'r', encoding='utf-8') as f:
            data = json.load(f)
        if isinstance(data, list):
            return data
        if isinstance(data, dict) and 'stations' in data:
            return data['stations']
        return []

    def _create_station(self, data: Dict) -> GroundStation:
        """Create a GroundStation from dictionary data."""
        return GroundStation(
            id=data['id'],
            name=data.get('name', 'Unknown'),
            lat=float(data.get('lat', data.get('latitude', 0))),
            lon=float(data.get('lon', data.get('longitude', 0))),
            city=data.get('city', ''),
            country=data.get('country', ''),
            status=data.get('status', 'online'),
            capacity=int(data.get('capacity', 1)),
            antenna_type=data.get('antennaType', data.get('antenna_type', '')),
            frequency_band=data.get('frequency', data.get('frequency_band', '')),
            rating=data.get('rating'),
        )

    def get_builtin_stations(self) -> List[GroundStation]:
        """The fixed roster, loaded on first use and never changed afterwards."""
        if self._builtin is None:
            stations = []
            for entry in self._load_local_stations('builtin'):
                try:
                    stations.append(self._create_station(entry))
                except (KeyError, TypeError, ValueError) as e:
                    logger.warning(f"Skipping invalid built-in station {entry.get('name')}: {e}")
            self._builtin = stations
            logger.info(f"Loaded {len(stations)} built-in ground stations")
        return list(self._builtin)

    def _builtin_ids(self):
        return {station.id for station in self.get_builtin_stations()}

    # ==================== Queries ====================

    def get_custom_stations(self) -> List[GroundStation]:
        rows = CustomGroundStation.query.order_by(CustomGroundStation.created_at).all()
        return [row.to_station() for row in rows]

    def get_all_stations(self, status: str = None, country: str = None) -> List[GroundStation]:
        """Built-in and custom stations, optionally filtered."""
        stations = self.get_builtin_stations() + self.get_custom_stations()
        if status:
            stations = [s for s in stations if s.status == status]
        if country:
            stations = [s for s in stations if country.lower() in (s.country or '').lower()]
        return stations

    def get_online_stations(self) -> List[GroundStation]:
        return self.get_all_stations(status='online')

    def get_station(self, station_id: str) -> GroundStation:
        for station in self.get_builtin_stations():
            if station.id == station_id:
                return station
        row = db.session.get(CustomGroundStation, station_id)
        if row is None:
            raise NotFoundError(f"Ground station not found: {station_id}")
        return row.to_station()

    # ==================== Custom Station Mutations ====================

    def _validate(self, data: Dict, partial: bool = False) -> Dict:
        """
        Validate registration/update input and return normalized column values.
        Nothing is written here, so a rejected request changes nothing.
        """
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        values = {}

        if not partial or 'name' in data:
            name = str(data.get('name') or '').strip()
            if not name:
                raise ValidationError("name is required", field='name')
            values['name'] = name

        location = data.get('location') if isinstance(data.get('location'), dict) else data
        if not partial or 'lat' in location or 'latitude' in location:
            lat_key = 'latitude' if 'latitude' in location else 'lat'
            values['latitude'] = _coerce_float(location, lat_key, -90.0, 90.0, 'Latitude')
        if not partial or 'lon' in location or 'longitude' in location:
            lon_key = 'longitude' if 'longitude' in location else 'lon'
            values['longitude'] = _coerce_float(location, lon_key, -180.0, 180.0, 'Longitude')

        for key in ('city', 'country'):
            if key in location:
                values[key] = str(location.get(key) or '')

        if 'capacity' in data or not partial:
            capacity = data.get('capacity', 1)
            if isinstance(capacity, bool) or not isinstance(capacity, (int, float)) \
                    or not math.isfinite(capacity) or int(capacity) != capacity or capacity < 1:
                raise ValidationError("capacity must be a positive integer", field='capacity')
            values['capacity'] = int(capacity)

        if 'rating' in data and data['rating'] is not None:
            values['rating'] = _coerce_float(data, 'rating', 0.0, 5.0, 'Rating')

        if 'status' in data:
            if data['status'] not in CUSTOM_STATION_STATUSES:
                raise ValidationError(
                    f"status must be one of: {', '.join(CUSTOM_STATION_STATUSES)}", field='status'
                )
            values['status'] = data['status']

        for source, column in (('antennaType', 'antenna_type'), ('frequency', 'frequency_band')):
            if source in data:
                values[column] = str(data.get(source) or '')
            elif column in data:
                values[column] = str(data.get(column) or '')

        return values

    def _get_custom_row(self, station_id: str) -> CustomGroundStation:
        if station_id in self._builtin_ids():
            raise ValidationError("Built-in ground stations cannot be modified")
        row = db.session.get(CustomGroundStation, station_id)
        if row is None:
            raise NotFoundError(f"Ground station not found: {station_id}")
        return row

    def register_station(self, data: Dict) -> GroundStation:
        """
        Register a custom ground station.

        Raises:
            ValidationError: missing name or out-of-range coordinates/capacity/rating
        """
        values = self._validate(data)
        values.setdefault('status', 'online')

        base = int(time.time() * 1000)
        station_id = f"custom-gs-{base}"
        suffix = 1
        while db.session.get(CustomGroundStation, station_id) is not None:
            station_id = f"custom-gs-{base + suffix}"
            suffix += 1

        row = CustomGroundStation(id=station_id, **values)
        db.session.add(row)
        db.session.commit()

        logger.info(f"Registered custom ground station {row.name} ({row.id})")
        return row.to_station()

    def update_station(self, station_id: str, data: Dict) -> GroundStation:
        row = self._get_custom_row(station_id)
        values = self._validate(data, partial=True)

        for column, value in values.items():
            setattr(row, column, value)
        db.session.commit()
        return row.to_station()

    def remove_station(self, station_id: str):
        row = self._get_custom_row(station_id)
        db.session.delete(row)
        db.session.commit()
        logger.info(f"Removed custom ground station {station_id}")

    def toggle_station_status(self, station_id: str) -> GroundStation:
        """Flip a custom station between online and offline."""
        row = self._get_custom_row(station_id)
        row.status = 'offline' if row.status == 'online' else 'online'
        db.session.commit()
        return row.to_station()

    def get_station_statistics(self) -> Dict:
        """
        Station counts by status and country.
        """
        stations = self.get_all_stations()
        stats = {
            'total': len(stations),
            'custom': sum(1 for s in stations if s.custom),
            'by_status': {status: 0 for status in STATION_STATUSES},
            'by_country': {},
        }
        for station in stations:
            stats['by_status'][station.status] = stats['by_status'].get(station.status, 0) + 1
            if station.country:
                stats['by_country'][station.country] = stats['by_country'].get(station.country, 0) + 1
        return stats


# Singleton instance
ground_station_service = GroundStationService()
