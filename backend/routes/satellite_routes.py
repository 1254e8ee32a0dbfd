"""
API routes for the satellite catalog, positions and pass predictions.
"""
from flask import Blueprint, Response, jsonify, request

from services.catalog_service import catalog_service
from services.ground_station_service import ground_station_service
from services.orbit_service import orbit_service
from services.pass_service import pass_service
from services.settings_service import settings_service
from utils.errors import NotFoundError, ValidationError
from utils.time_util import parse_datetime, utc_now

satellite_bp = Blueprint('satellites', __name__, url_prefix='/api/satellites')


def _get_element_set(norad_id):
    element_set = catalog_service.find(norad_id)
    if element_set is None:
        raise NotFoundError(f"Satellite not found: {norad_id}")
    return element_set


def _time_arg(name):
    text = request.args.get(name)
    if not text:
        return utc_now()
    try:
        return parse_datetime(text)
    except ValueError:
        raise ValidationError(f"Invalid {name} format", field=name)


def _selected_stations():
    """Stations named in ?stations=a,b (default: every online station)."""
    station_ids = request.args.get('stations')
    if not station_ids:
        return ground_station_service.get_online_stations()
    return [ground_station_service.get_station(s.strip()) for s in station_ids.split(',') if s.strip()]


def _pass_kwargs():
    kwargs = {}
    min_elevation = request.args.get('min_elevation', type=float)
    if min_elevation is not None:
        kwargs['min_elevation'] = min_elevation
    step = request.args.get('step', type=float)
    if step is not None:
        kwargs['step_seconds'] = step
    return kwargs


def _predict():
    hours = request.args.get('hours', 24, type=float)
    if hours < 0:
        raise ValidationError("hours must be non-negative", field='hours')
    kwargs = _pass_kwargs()
    if kwargs.get('step_seconds') is not None and kwargs['step_seconds'] <= 0:
        raise ValidationError("step must be positive", field='step')
    return hours, kwargs


@satellite_bp.route('', methods=['GET'])
def get_satellites():
    """
    Get the satellites to display.

    Query parameters:
    - max: Maximum results (default: the filters.amount setting)
    - category: Filter by category label
    """
    max_count = request.args.get('max', type=int)
    if max_count is None:
        max_count = settings_service.get_max_satellites()
    category = request.args.get('category')

    catalog = catalog_service.catalog
    satellites = catalog_service.get_satellites(max_count=max_count, category=category)

    return jsonify({
        'status': catalog_service.status.value,
        'total': len(catalog),
        'count': len(satellites),
        'loaded_at': catalog.loaded_at.isoformat() if catalog.loaded_at else None,
        'failed_sources': list(catalog.failed_sources),
        'satellites': [s.to_dict() for s in satellites],
    })


@satellite_bp.route('/categories', methods=['GET'])
def get_categories():
    """Satellite counts per category."""
    grouped = catalog_service.catalog.by_category()
    return jsonify({
        'categories': [
            {'name': name, 'count': len(element_sets)}
            for name, element_sets in grouped.items()
        ]
    })


@satellite_bp.route('/refresh', methods=['POST'])
def refresh_catalog():
    """Reload every TLE source now."""
    catalog = catalog_service.refresh()
    return jsonify({
        'status': catalog_service.status.value,
        'total': len(catalog),
        'source_counts': catalog.source_counts,
        'failed_sources': list(catalog.failed_sources),
    })


@satellite_bp.route('/positions', methods=['GET'])
def get_positions():
    """
    Scene positions of the displayed satellites.

    Query parameters:
    - time: ISO datetime string (default: now)
    - max: Maximum satellites (default: the filters.amount setting)
    """
    instant = _time_arg('time')
    max_count = request.args.get('max', type=int)
    if max_count is None:
        max_count = settings_service.get_max_satellites()

    positions = []
    for element_set in catalog_service.get_satellites(max_count=max_count):
        point = orbit_service.calculate_satellite_position(element_set, instant)
        if point is not None:
            positions.append({
                'norad_id': element_set.catalog_number,
                'name': element_set.name,
                'category': element_set.category,
                'position': point.to_dict(),
            })

    return jsonify({
        'time': instant.isoformat(),
        'count': len(positions),
        'positions': positions,
    })


@satellite_bp.route('/<norad_id>', methods=['GET'])
def get_satellite(norad_id):
    """
    Get element set and current state for a satellite by NORAD ID.
    """
    element_set = _get_element_set(norad_id)
    data = element_set.to_dict()
    data['epoch'] = element_set.epoch.isoformat() if element_set.epoch else None
    data['info'] = orbit_service.get_satellite_info(element_set)
    return jsonify(data)


@satellite_bp.route('/<norad_id>/position', methods=['GET'])
def get_satellite_position(norad_id):
    """
    Get the position of a satellite.

    Query parameters:
    - time: ISO datetime string (default: now)
    """
    element_set = _get_element_set(norad_id)
    instant = _time_arg('time')

    info = orbit_service.get_satellite_info(element_set, instant)
    if info is None:
        return jsonify({'error': 'Failed to calculate position'}), 422

    point = orbit_service.calculate_satellite_position(element_set, instant)
    info['scene'] = point.to_dict() if point else None
    info['stationsInRange'] = pass_service.stations_in_range(
        element_set, ground_station_service.get_online_stations(), instant
    )
    return jsonify(info)


@satellite_bp.route('/<norad_id>/passes', methods=['GET'])
def get_satellite_passes(norad_id):
    """
    Predict passes over ground stations.

    Query parameters:
    - hours: Horizon length (default: 24)
    - start: Start time ISO string (default: now)
    - stations: Comma-separated station IDs (default: all online stations)
    - min_elevation: Elevation floor in degrees (default: 10)
    - step: Sampling step in seconds (default: 60)
    """
    element_set = _get_element_set(norad_id)
    start = _time_arg('start')
    hours, kwargs = _predict()

    predictions = pass_service.predict_satellite_passes(
        element_set, _selected_stations(), start, hours, **kwargs
    )

    return jsonify({
        'satellite': element_set.name,
        'norad_id': element_set.catalog_number,
        'start': start.isoformat(),
        'hours': hours,
        'predictions': predictions,
    })


@satellite_bp.route('/<norad_id>/passes.csv', methods=['GET'])
def export_satellite_passes(norad_id):
    """Pass predictions as a CSV download (same parameters as /passes)."""
    element_set = _get_element_set(norad_id)
    start = _time_arg('start')
    hours, kwargs = _predict()

    station_passes = pass_service.predict_passes(
        element_set, _selected_stations(), start, hours, **kwargs
    )
    filename = f"passes-{element_set.catalog_number}-{start.strftime('%Y%m%d')}.csv"

    return Response(
        pass_service.export_passes_csv(station_passes),
        mimetype='text/csv',
        headers={'Content-Disposition': f'attachment; filename={filename}'},
    )


@satellite_bp.route('/<norad_id>/accessible-stations', methods=['GET'])
def get_accessible_stations(norad_id):
    """IDs of online stations with at least one pass in the horizon."""
    element_set = _get_element_set(norad_id)
    start = _time_arg('start')
    hours, kwargs = _predict()

    station_ids = pass_service.get_accessible_ground_stations(
        element_set, ground_station_service.get_online_stations(), hours, start, **kwargs
    )
    return jsonify({
        'norad_id': element_set.catalog_number,
        'count': len(station_ids),
        'ground_stations': station_ids,
    })