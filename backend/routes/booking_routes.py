"""
API routes for satellite bookings and auctions.
"""
from flask import Blueprint, jsonify, request

from services.booking_service import booking_service
from utils.errors import ValidationError
from utils.response_util import success_response
from utils.time_util import parse_datetime

booking_bp = Blueprint('bookings', __name__, url_prefix='/api/bookings')


@booking_bp.route('', methods=['GET'])
def get_bookings():
    """
    List bookings ordered by start time.

    Query parameters:
    - status: Filter by booking status
    """
    bookings = booking_service.list_bookings(status=request.args.get('status'))
    return jsonify({
        'count': len(bookings),
        'bookings': [b.to_dict() for b in bookings]
    })


@booking_bp.route('/active', methods=['GET'])
def get_active_bookings():
    bookings = booking_service.get_active_bookings()
    return jsonify({
        'count': len(bookings),
        'bookings': [b.to_dict() for b in bookings]
    })


@booking_bp.route('/quote', methods=['GET'])
def get_quote():
    """
    Price a booking without creating it.

    Query parameters:
    - satellite: NORAD ID or name (required)
    - duration: Minutes (required)
    """
    return jsonify(booking_service.quote(
        request.args.get('satellite'),
        request.args.get('duration'),
    ))


@booking_bp.route('', methods=['POST'])
def create_booking():
    """
    Create a booking.

    Request body:
    - satellite: NORAD ID or name (required)
    - startTime: ISO datetime (required)
    - duration: Minutes (required, positive)
    - purpose: Free text (required)
    - isAuction, auctionEndTime, groundStations, dataRate, userId
    """
    booking = booking_service.create_booking(request.get_json(silent=True))
    return jsonify(booking.to_dict()), 201


@booking_bp.route('/<booking_id>', methods=['GET'])
def get_booking(booking_id):
    return jsonify(booking_service.get_booking(booking_id).to_dict())


@booking_bp.route('/<booking_id>', methods=['DELETE'])
def delete_booking(booking_id):
    booking_service.remove_booking(booking_id)
    return success_response({'id': booking_id}, message='Booking deleted')


@booking_bp.route('/<booking_id>/cancel', methods=['POST'])
def cancel_booking(booking_id):
    return jsonify(booking_service.cancel_booking(booking_id).to_dict())


@booking_bp.route('/<booking_id>/status', methods=['PUT'])
def update_booking_status(booking_id):
    """
    Move a booking to a new status.

    Request body:
    - status: active, completed or cancelled
    """
    data = request.get_json(silent=True) or {}
    booking = booking_service.update_status(booking_id, data.get('status'))
    return jsonify(booking.to_dict())


@booking_bp.route('/<booking_id>/bids', methods=['GET'])
def get_bids(booking_id):
    """Bids on an auction booking, highest first."""
    bids = booking_service.get_auction_bids(booking_id)
    return jsonify({
        'count': len(bids),
        'bids': [bid.to_dict() for bid in bids]
    })


@booking_bp.route('/<booking_id>/bids', methods=['POST'])
def place_bid(booking_id):
    """
    Place a bid.

    Request body:
    - amount: Bid in dollars (must beat the current high bid)
    - bidderId, bidderName
    """
    data = request.get_json(silent=True) or {}
    bid = booking_service.place_bid(
        booking_id,
        data.get('amount'),
        data.get('bidderId'),
        data.get('bidderName'),
    )
    return jsonify(bid.to_dict()), 201


@booking_bp.route('/close-auctions', methods=['POST'])
def close_auctions():
    """
    Settle ended auctions now.

    Query parameters:
    - now: Reference time ISO string (default: current time)
    """
    now = request.args.get('now')
    if now:
        try:
            now = parse_datetime(now)
        except ValueError:
            raise ValidationError("Invalid now format", field='now')
    result = booking_service.close_auctions(now or None)
    return success_response(result, message='Auctions closed')
