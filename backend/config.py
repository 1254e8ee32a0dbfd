"""
Configuration management for the Satellite Tracker backend.
"""
import os


class Config:
    """Base configuration class."""

    # Flask
    SECRET_KEY = os.environ.get('SECRET_KEY', 'satellite-tracker-dev-key')

    # Database - SQLite by default (easy setup), PostgreSQL for production
    # Holds custom ground stations, bookings, auction bids and settings
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        'DATABASE_URL',
        'sqlite:///satellite_tracker.db'
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Engine options - different for SQLite vs PostgreSQL
    @classmethod
    def get_engine_options(cls):
        db_uri = cls.SQLALCHEMY_DATABASE_URI
        if db_uri.startswith('sqlite'):
            return {
                'connect_args': {
                    'timeout': 30,  # Wait up to 30 seconds for lock
                    'check_same_thread': False,  # Scheduler thread shares the engine
                },
                'pool_pre_ping': True,
            }
        return {
            'pool_size': 10,
            'pool_recycle': 300,
            'pool_pre_ping': True,
        }

    SQLALCHEMY_ENGINE_OPTIONS = None  # Will be set dynamically

    # Logging
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FILE = os.environ.get('LOG_FILE')

    # TLE feed (CelesTrak GP endpoint)
    CELESTRAK_BASE_URL = 'https://celestrak.org/NORAD/elements/gp.php'
    TLE_FETCH_TIMEOUT = int(os.environ.get('TLE_FETCH_TIMEOUT', 30))

    # Categories loaded into the catalog: (label, CelesTrak group, per-source cap)
    TLE_SOURCES = [
        ('Geostationary', 'geo', None),
        ('Intelsat', 'intelsat', None),
        ('SES', 'ses', None),
        ('Iridium', 'iridium', None),
        ('Orbcomm', 'orbcomm', None),
        ('Globalstar', 'globalstar', None),
        ('GOES', 'goes', None),
        ('Earth Resources', 'resource', None),
        ('Search & Rescue', 'sarsat', None),
        ('Disaster Monitoring', 'dmc', None),
        ('Tracking and Data Relay', 'tdrss', None),
    ]

    # Catalog behaviour
    CATALOG_AUTOLOAD = os.environ.get('CATALOG_AUTOLOAD', 'true').lower() == 'true'

    # Scene geometry: Earth is drawn as a sphere of radius 2 scene units
    SCENE_EARTH_RADIUS = 2.0
    EARTH_RADIUS_KM = 6371.0

    # Visibility policy
    DEFAULT_MIN_ELEVATION_DEG = 10.0
    MAX_LINK_DISTANCE_SCENE = 15.0     # ~47,800 km, clears GEO slant ranges
    RANGE_CHECK_DISTANCE_SCENE = 3.0   # coarse "nearby" radius (~9,500 km)

    # Pass prediction policy
    # A 60 s step can miss passes shorter than a minute and puts up to
    # one step of jitter on reported start/end times.
    PASS_STEP_SECONDS = int(os.environ.get('PASS_STEP_SECONDS', 60))
    MIN_PASS_DURATION_SECONDS = int(os.environ.get('MIN_PASS_DURATION_SECONDS', 30))
    PASS_HORIZON_HOURS = 24

    # Booking pricing ($ per minute, matched against catalog category)
    PRICE_PER_MINUTE_DEFAULT = 10
    PRICE_PER_MINUTE_RULES = [
        (('Geostationary', 'GEO'), 25),
        (('Intelsat', 'SES'), 30),
        (('Iridium', 'Globalstar'), 15),
    ]
    BOOKING_MAX_GROUND_STATIONS = 3
    BOOKING_DEFAULT_DATA_RATE = '100 Mbps'

    # Default user settings
    DEFAULT_SETTINGS = {
        'filters': {
            'country': 'all',
            'timezone': 'all',
            'amount': 200,
        },
    }

    # Scheduler settings
    SCHEDULER_ENABLED = os.environ.get('SCHEDULER_ENABLED', 'true').lower() == 'true'
    CATALOG_REFRESH_HOURS = int(os.environ.get('CATALOG_REFRESH_HOURS', 4))
    AUCTION_CHECK_SECONDS = int(os.environ.get('AUCTION_CHECK_SECONDS', 60))


class DevelopmentConfig(Config):
    """Development configuration."""
    DEBUG = True
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'DEBUG')


class ProductionConfig(Config):
    """Production configuration."""
    DEBUG = False


class TestingConfig(Config):
    """Testing configuration: in-memory database, no network, no scheduler."""
    TESTING = True
    SQLALCHEMY_DATABASE_URI = 'sqlite://'
    CATALOG_AUTOLOAD = False
    SCHEDULER_ENABLED = False
    LOG_LEVEL = 'WARNING'


# Configuration mapping
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}
