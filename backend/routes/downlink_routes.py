"""
API routes for downlink data-rate prediction.
"""
from flask import Blueprint, jsonify, request

from services.downlink_service import downlink_service
from utils.errors import ValidationError

downlink_bp = Blueprint('downlink', __name__, url_prefix='/api/downlink')


def _location_args():
    elevation = request.args.get('elevation', type=float)
    if elevation is None:
        raise ValidationError("elevation is required", field='elevation')
    lat = request.args.get('lat', 0, type=float)
    lon = request.args.get('lon', 0, type=float)
    return elevation, lat, lon


@downlink_bp.route('/prediction', methods=['GET'])
def get_prediction():
    """
    Projected data rate for one band.

    Query parameters:
    - band: Ka-band, Ku-band, X-band, C-band, S-band or L-band (default: Ka-band)
    - elevation: Elevation angle in degrees (required)
    - lat, lon: Ground station location
    """
    elevation, lat, lon = _location_args()
    band = request.args.get('band', 'Ka-band')
    return jsonify(downlink_service.predict(band, elevation, lat, lon))


@downlink_bp.route('/optimal-band', methods=['GET'])
def get_optimal_band():
    """
    Best band under current conditions.

    Query parameters:
    - elevation: Elevation angle in degrees (required)
    - lat, lon: Ground station location
    """
    elevation, lat, lon = _location_args()
    solar = downlink_service.get_current_solar_activity()
    weather = downlink_service.get_current_weather(lat, lon)
    return jsonify(downlink_service.get_optimal_band(elevation, solar, weather))
