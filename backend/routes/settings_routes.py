"""
API routes for user settings.
"""
from flask import Blueprint, jsonify, request

from services.settings_service import settings_service

settings_bp = Blueprint('settings', __name__, url_prefix='/api/settings')


@settings_bp.route('', methods=['GET'])
def get_settings():
    return jsonify(settings_service.get_settings())


@settings_bp.route('', methods=['PUT'])
def update_settings():
    """
    Update settings.

    Request body (all optional):
    - filters: {country, timezone, amount}
    """
    return jsonify(settings_service.update_settings(request.get_json(silent=True)))
