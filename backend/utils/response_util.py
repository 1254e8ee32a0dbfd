"""
JSON envelopes for mutation results and errors.
"""
from flask import jsonify

from utils.errors import ValidationError


def success_response(data=None, message=None, status_code=200):
    """
    {'status': 'success', 'message'?, 'data'?} with the given HTTP status.
    """
    response = {'status': 'success'}
    if message:
        response['message'] = message
    if data is not None:
        response['data'] = data
    return jsonify(response), status_code


def error_response(message, status_code=400, field=None):
    """
    {'status': 'error', 'error': message, 'field'?} with the given HTTP status.
    """
    response = {'status': 'error', 'error': message}
    if field:
        response['field'] = field
    return jsonify(response), status_code


def validation_error_response(error: ValidationError):
    return error_response(error.message, 400, field=error.field)
