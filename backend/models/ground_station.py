"""
Ground station records.

GroundStation is the read-only record the pass predictor and booking flow
work with. Built-in stations are loaded from data/ground_stations/builtin.json;
user-registered stations are rows of CustomGroundStation and converted with
to_station().
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Dict, Optional

from . import db


STATION_STATUSES = ('online', 'offline', 'maintenance')
CUSTOM_STATION_STATUSES = ('online', 'offline')


@dataclass(frozen=True)
class GroundStation:
    id: str
    name: str
    lat: float
    lon: float
    city: str = ''
    country: str = ''
    status: str = 'online'
    capacity: int = 1
    antenna_type: str = ''
    frequency_band: str = ''
    rating: Optional[float] = None
    custom: bool = False
    created_at: Optional[datetime] = None

    @property
    def is_online(self) -> bool:
        return self.status == 'online'

    def to_dict(self) -> Dict:
        """Convert to the JSON shape used by the frontend."""
        return {
            'id': self.id,
            'name': self.name,
            'location': {
                'lat': self.lat,
                'lon': self.lon,
                'city': self.city,
                'country': self.country,
            },
            'status': self.status,
            'capacity': self.capacity,
            'antennaType': self.antenna_type,
            'frequency': self.frequency_band,
            'rating': self.rating,
            'isCustom': self.custom,
            'createdAt': self.created_at.isoformat() if self.created_at else None,
        }


class CustomGroundStation(db.Model):
    """
    A ground station registered by the user.
    """
    __tablename__ = 'custom_ground_stations'

    id = db.Column(db.String(40), primary_key=True)
    name = db.Column(db.String(100), nullable=False)

    # Location
    latitude = db.Column(db.Float, nullable=False)
    longitude = db.Column(db.Float, nullable=False)
    city = db.Column(db.String(100), default='')
    country = db.Column(db.String(100), default='')

    # Equipment
    capacity = db.Column(db.Integer, nullable=False, default=1)
    antenna_type = db.Column(db.String(100), default='')
    frequency_band = db.Column(db.String(100), default='')
    rating = db.Column(db.Float)

    # Status
    status = db.Column(db.String(20), nullable=False, default='online')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_station(self) -> GroundStation:
        return GroundStation(
            id=self.id,
            name=self.name,
            lat=self.latitude,
            lon=self.longitude,
            city=self.city or '',
            country=self.country or '',
            status=self.status,
            capacity=self.capacity,
            antenna_type=self.antenna_type or '',
            frequency_band=self.frequency_band or '',
            rating=self.rating,
            custom=True,
            created_at=self.created_at,
        )

    def to_dict(self):
        """Convert model to dictionary."""
        return self.to_station().to_dict()

    def __repr__(self):
        return f'<CustomGroundStation {self.name}>'
