"""
API route blueprints for the Satellite Tracker.
"""
from .satellite_routes import satellite_bp
from .ground_station_routes import ground_station_bp
from .booking_routes import booking_bp
from .settings_routes import settings_bp
from .downlink_routes import downlink_bp

__all__ = ['satellite_bp', 'ground_station_bp', 'booking_bp', 'settings_bp', 'downlink_bp']
