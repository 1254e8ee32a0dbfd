"""
API routes for ground station data.
"""
from flask import Blueprint, jsonify, request

from services.ground_station_service import ground_station_service
from utils.response_util import success_response

ground_station_bp = Blueprint('ground_stations', __name__, url_prefix='/api/ground-stations')


@ground_station_bp.route('', methods=['GET'])
def get_ground_stations():
    """
    Get all ground stations (built-in and custom) with optional filtering.

    Query parameters:
    - status: online, offline or maintenance
    - country: Filter by country (partial match)
    """
    stations = ground_station_service.get_all_stations(
        status=request.args.get('status'),
        country=request.args.get('country'),
    )

    return jsonify({
        'count': len(stations),
        'stations': [station.to_dict() for station in stations]
    })


@ground_station_bp.route('/statistics', methods=['GET'])
def get_ground_station_statistics():
    return jsonify(ground_station_service.get_station_statistics())


@ground_station_bp.route('/<station_id>', methods=['GET'])
def get_ground_station(station_id):
    """
    Get a specific ground station by ID.
    """
    return jsonify(ground_station_service.get_station(station_id).to_dict())


@ground_station_bp.route('', methods=['POST'])
def create_ground_station():
    """
    Register a custom ground station.

    Request body:
    - name: Station name (required)
    - location: {lat, lon, city, country} (lat/lon required)
    - capacity: Concurrent links (positive integer, default 1)
    - antennaType, frequency, rating (0-5), status (online/offline)
    """
    station = ground_station_service.register_station(request.get_json(silent=True))
    return jsonify(station.to_dict()), 201


@ground_station_bp.route('/<station_id>', methods=['PUT'])
def update_ground_station(station_id):
    """
    Update a custom ground station. Built-in stations are read-only.
    """
    station = ground_station_service.update_station(station_id, request.get_json(silent=True))
    return jsonify(station.to_dict())


@ground_station_bp.route('/<station_id>', methods=['DELETE'])
def delete_ground_station(station_id):
    """
    Delete a custom ground station.
    """
    ground_station_service.remove_station(station_id)
    return success_response({'id': station_id}, message='Ground station deleted')


@ground_station_bp.route('/<station_id>/toggle', methods=['POST'])
def toggle_ground_station(station_id):
    """Flip a custom station between online and offline."""
    station = ground_station_service.toggle_station_status(station_id)
    return jsonify(station.to_dict())
