"""
Business logic services for the Satellite Tracker.

Services:
- tle_service: TLE download and parsing
- orbit_service: SGP4 propagation and coordinate conversion
- pass_service: Contact window prediction and CSV export
- catalog_service: Multi-source satellite catalog
- ground_station_service: Built-in and custom ground stations
- booking_service: Pricing, bookings and auctions
- settings_service: Persisted user settings
- downlink_service: Downlink data-rate prediction
- scheduler_service: Background task scheduling
"""

from .tle_service import TLEService, tle_service
from .orbit_service import OrbitService, orbit_service
from .pass_service import PassPredictionService, pass_service
from .catalog_service import CatalogService, CatalogStatus, SatelliteCatalog, TLESource, catalog_service
from .ground_station_service import GroundStationService, ground_station_service
from .booking_service import BookingService, booking_service, calculate_price
from .settings_service import SettingsService, settings_service
from .downlink_service import DownlinkService, downlink_service
from .scheduler_service import (
    scheduler,
    initialize_scheduler,
    shutdown_scheduler,
    get_scheduler_status,
    trigger_manual_update,
    update_parameters,
)

__all__ = [
    # TLE
    'TLEService',
    'tle_service',

    # Orbits and passes
    'OrbitService',
    'orbit_service',
    'PassPredictionService',
    'pass_service',

    # Catalog
    'CatalogService',
    'CatalogStatus',
    'SatelliteCatalog',
    'TLESource',
    'catalog_service',

    # Ground Stations
    'GroundStationService',
    'ground_station_service',

    # Bookings
    'BookingService',
    'booking_service',
    'calculate_price',

    # Settings
    'SettingsService',
    'settings_service',

    # Downlink
    'DownlinkService',
    'downlink_service',

    # Scheduler
    'scheduler',
    'initialize_scheduler',
    'shutdown_scheduler',
    'get_scheduler_status',
    'trigger_manual_update',
    'update_parameters',
]
