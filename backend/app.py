"""
Satellite Tracker Backend Application
Flask application entry point with database initialization and API routes.
"""
import atexit
import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from flask_migrate import Migrate
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from config import config
from models import db
from utils.errors import NotFoundError, ValidationError
from utils.logging_config import setup_logging
from utils.response_util import error_response, validation_error_response

logger = logging.getLogger(__name__)


def create_app(config_name=None):
    """
    Application factory function.

    Args:
        config_name: Configuration name ('development', 'production', 'testing' or 'default')

    Returns:
        Flask application instance
    """
    if config_name is None:
        config_name = os.environ.get('FLASK_ENV', 'default')
    config_class = config[config_name]

    app = Flask(__name__)
    app.config.from_object(config_class)

    setup_logging(app.config['LOG_LEVEL'], app.config.get('LOG_FILE'))

    # Set dynamic engine options based on database type
    app.config['SQLALCHEMY_ENGINE_OPTIONS'] = config_class.get_engine_options()

    # Initialize extensions
    db.init_app(app)
    Migrate(app, db)

    uri = app.config['SQLALCHEMY_DATABASE_URI']
    with app.app_context():
        db.create_all()

        # WAL mode lets the scheduler thread write while requests read
        if uri.startswith('sqlite') and uri not in ('sqlite://', 'sqlite:///:memory:'):
            try:
                db.session.execute(text('PRAGMA journal_mode=WAL'))
                db.session.execute(text('PRAGMA busy_timeout=30000'))
                db.session.commit()
            except SQLAlchemyError as e:
                logger.warning(f'Could not enable WAL mode: {e}')

    # Enable CORS
    CORS(app, resources={
        r"/api/*": {
            "origins": "*",
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })

    # Register blueprints
    from routes import booking_bp, downlink_bp, ground_station_bp, satellite_bp, settings_bp

    app.register_blueprint(satellite_bp)
    app.register_blueprint(ground_station_bp)
    app.register_blueprint(booking_bp)
    app.register_blueprint(settings_bp)
    app.register_blueprint(downlink_bp)

    # Health check endpoint
    @app.route('/api/health', methods=['GET'])
    def health_check():
        """Health check endpoint for monitoring."""
        from services.catalog_service import catalog_service
        return jsonify({
            'status': 'ok',
            'message': 'Satellite Tracker API is running',
            'version': '1.0.0',
            'catalog': catalog_service.status.value,
            'satellites': len(catalog_service.catalog),
        })

    # API info endpoint
    @app.route('/api', methods=['GET'])
    def api_info():
        """API information and available endpoints."""
        return jsonify({
            'name': 'Satellite Tracker API',
            'version': '1.0.0',
            'data_source': 'CelesTrak GP element sets',
            'endpoints': {
                'satellites': '/api/satellites',
                'ground_stations': '/api/ground-stations',
                'bookings': '/api/bookings',
                'settings': '/api/settings',
                'downlink': '/api/downlink/prediction',
                'scheduler': '/api/scheduler/status',
                'health': '/api/health',
            }
        })

    # Scheduler status endpoint
    @app.route('/api/scheduler/status', methods=['GET'])
    def scheduler_status():
        """Get scheduler status and statistics."""
        from services.scheduler_service import get_scheduler_status
        return jsonify(get_scheduler_status())

    # Manual catalog refresh trigger
    @app.route('/api/scheduler/trigger-update', methods=['POST'])
    def trigger_update():
        """Manually trigger a catalog refresh."""
        from services.scheduler_service import trigger_manual_update
        queued = trigger_manual_update()
        return jsonify({
            'status': 'success',
            'message': 'Catalog refresh queued' if queued else 'Catalog refreshed'
        })

    # Error handlers
    @app.errorhandler(ValidationError)
    def validation_error(error):
        return validation_error_response(error)

    @app.errorhandler(NotFoundError)
    def lookup_error(error):
        return error_response(error.message, 404)

    @app.errorhandler(404)
    def not_found(error):
        return error_response('Resource not found', 404)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return error_response('Internal server error', 500)

    if app.config['CATALOG_AUTOLOAD']:
        from services.catalog_service import catalog_service
        catalog_service.refresh()

    return app


def start_scheduler(app):
    """Start the background scheduler."""
    from services.scheduler_service import initialize_scheduler, shutdown_scheduler

    initialize_scheduler(app)
    atexit.register(shutdown_scheduler)


if __name__ == '__main__':
    app = create_app()

    if app.config['SCHEDULER_ENABLED']:
        start_scheduler(app)

    port = int(os.environ.get('PORT', 6359))
    logger.info(f"Satellite Tracker API running at http://localhost:{port} (docs: /api)")

    app.run(
        host='0.0.0.0',
        port=port,
        debug=False,
        use_reloader=False
    )
