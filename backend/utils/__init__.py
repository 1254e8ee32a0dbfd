"""
Shared helpers: coordinates, visibility geometry, time, errors, logging and
API responses.
"""
