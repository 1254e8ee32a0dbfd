"""
Data models for the Satellite Tracker.

SQLAlchemy models hold what the user creates (custom ground stations,
bookings, bids, settings); orbital records are plain frozen dataclasses.
"""
from flask_sqlalchemy import SQLAlchemy

db = SQLAlchemy()

from .orbital import (
    OrbitalElementSet,
    PropagatedState,
    GeodeticPosition,
    ScenePoint,
    ContactWindow,
    StationPasses,
)
from .ground_station import GroundStation, CustomGroundStation
from .booking import Booking, AuctionBid
from .setting import Setting

__all__ = [
    'db',
    'OrbitalElementSet', 'PropagatedState', 'GeodeticPosition', 'ScenePoint',
    'ContactWindow', 'StationPasses',
    'GroundStation', 'CustomGroundStation',
    'Booking', 'AuctionBid', 'Setting',
]
