"""
Booking service: pricing, reservations, status transitions and auctions.
"""
import logging
import math
import time
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from config import Config
from models import db
from models.booking import AuctionBid, Booking
from models.orbital import OrbitalElementSet
from services.catalog_service import CatalogService, catalog_service
from services.ground_station_service import GroundStationService, ground_station_service
from services.pass_service import PassPredictionService, pass_service
from utils.errors import NotFoundError, ValidationError
from utils.time_util import naive_utc, parse_datetime

logger = logging.getLogger(__name__)

# Allowed manual status transitions
STATUS_TRANSITIONS = {
    'pending': {'active', 'cancelled'},
    'active': {'completed', 'cancelled'},
    'outbid': {'cancelled'},
    'completed': set(),
    'cancelled': set(),
}


def price_per_minute(category: Optional[str]) -> float:
    """Per-minute rate for a satellite category."""
    category = category or ''
    for keywords, rate in Config.PRICE_PER_MINUTE_RULES:
        if any(keyword in category for keyword in keywords):
            return rate
    return Config.PRICE_PER_MINUTE_DEFAULT


def calculate_price(category: Optional[str], duration_minutes: int) -> float:
    return price_per_minute(category) * duration_minutes


class BookingService:
    """
    Service for creating and managing satellite bookings.
    """

    def __init__(
        self,
        catalog: CatalogService = None,
        stations: GroundStationService = None,
        passes: PassPredictionService = None,
    ):
        self.catalog = catalog or catalog_service
        self.stations = stations or ground_station_service
        self.passes = passes or pass_service

    # ==================== Pricing ====================

    def quote(self, satellite_ref: str, duration_minutes: int) -> Dict:
        """Price of booking a satellite (by NORAD ID or name) for a duration."""
        element_set = self._find_satellite(satellite_ref)
        duration = self._validate_duration(duration_minutes)
        rate = price_per_minute(element_set.category)
        return {
            'satelliteName': element_set.name,
            'satelliteId': element_set.catalog_number,
            'category': element_set.category,
            'duration': duration,
            'pricePerMinute': rate,
            'price': rate * duration,
        }

    # ==================== Validation ====================

    def _find_satellite(self, satellite_ref) -> OrbitalElementSet:
        if not satellite_ref:
            raise ValidationError("satellite is required", field='satellite')
        element_set = self.catalog.find(str(satellite_ref)) or \
            self.catalog.catalog.find_by_name(str(satellite_ref))
        if element_set is None:
            raise ValidationError(f"Unknown satellite: {satellite_ref}", field='satellite')
        return element_set

    def _validate_duration(self, duration) -> int:
        message = "duration must be a positive whole number of minutes"
        if isinstance(duration, bool):
            raise ValidationError(message, field='duration')
        try:
            minutes = float(duration)
        except (TypeError, ValueError):
            raise ValidationError(message, field='duration')
        if not math.isfinite(minutes) or minutes != int(minutes) or minutes <= 0:
            raise ValidationError(message, field='duration')
        return int(minutes)

    def _parse_time(self, value, field: str) -> datetime:
        if isinstance(value, datetime):
            return naive_utc(value)
        if not value:
            raise ValidationError(f"{field} is required", field=field)
        try:
            return naive_utc(parse_datetime(str(value)))
        except ValueError:
            raise ValidationError(f"{field} must be an ISO-8601 timestamp", field=field)

    # ==================== Ground Station Selection ====================

    def select_ground_stations(
        self,
        element_set: OrbitalElementSet,
        start_time: datetime,
        duration_minutes: int,
    ) -> List[str]:
        """
        Pick up to BOOKING_MAX_GROUND_STATIONS online stations, preferring
        stations that have a predicted pass during the booking.
        """
        online = self.stations.get_online_stations()
        limit = Config.BOOKING_MAX_GROUND_STATIONS

        horizon_hours = duration_minutes / 60.0
        accessible = self.passes.get_accessible_ground_stations(
            element_set, online, horizon_hours=horizon_hours, start_instant=start_time,
        )

        selected = list(accessible[:limit])
        for station in online:
            if len(selected) >= limit:
                break
            if station.id not in selected:
                selected.append(station.id)
        return selected

    # ==================== Bookings ====================

    def create_booking(self, data: Dict) -> Booking:
        """
        Create a pending booking.

        Required fields: satellite (NORAD ID or name), startTime, duration
        (minutes), purpose. Optional: isAuction, auctionEndTime, userId,
        dataRate.

        Raises:
            ValidationError: nothing is stored when any field is invalid
        """
        if not isinstance(data, dict):
            raise ValidationError("Request body must be a JSON object")

        element_set = self._find_satellite(data.get('satellite') or data.get('satelliteId'))
        start_time = self._parse_time(data.get('startTime'), 'startTime')
        duration = self._validate_duration(data.get('duration'))
        purpose = str(data.get('purpose') or '').strip()
        if not purpose:
            raise ValidationError("purpose is required", field='purpose')

        is_auction = bool(data.get('isAuction', False))
        auction_end_time = None
        if is_auction:
            auction_end_time = self._parse_time(data.get('auctionEndTime'), 'auctionEndTime')

        ground_station_ids = data.get('groundStations')
        if ground_station_ids is None:
            ground_station_ids = self.select_ground_stations(element_set, start_time, duration)
        else:
            for station_id in ground_station_ids:
                try:
                    self.stations.get_station(station_id)
                except NotFoundError:
                    raise ValidationError(f"Unknown ground station: {station_id}", field='groundStations')

        base = int(time.time() * 1000)
        booking = Booking(
            id=f"booking-{base}",
            satellite_name=element_set.name,
            satellite_id=element_set.catalog_number,
            start_time=start_time,
            end_time=start_time + timedelta(minutes=duration),
            duration_minutes=duration,
            price=calculate_price(element_set.category, duration),
            status='pending',
            ground_station_ids=list(ground_station_ids),
            data_rate=data.get('dataRate') or Config.BOOKING_DEFAULT_DATA_RATE,
            purpose=purpose,
            user_id=data.get('userId'),
            is_auction=is_auction,
            auction_end_time=auction_end_time,
        )
        suffix = 1
        while db.session.get(Booking, booking.id) is not None:
            booking.id = f"booking-{base + suffix}"
            suffix += 1

        db.session.add(booking)
        db.session.commit()

        logger.info(f"Created booking {booking.id} for {booking.satellite_name} (${booking.price:,.2f})")
        return booking

    def get_booking(self, booking_id: str) -> Booking:
        booking = db.session.get(Booking, booking_id)
        if booking is None:
            raise NotFoundError(f"Booking not found: {booking_id}")
        return booking

    def list_bookings(self, status: str = None) -> List[Booking]:
        query = Booking.query
        if status:
            query = query.filter_by(status=status)
        return query.order_by(Booking.start_time).all()

    def get_active_bookings(self) -> List[Booking]:
        return Booking.query.filter(Booking.status.in_(('active', 'pending'))) \
            .order_by(Booking.start_time).all()

    def update_status(self, booking_id: str, status: str) -> Booking:
        booking = self.get_booking(booking_id)
        allowed = STATUS_TRANSITIONS.get(booking.status, set())
        if status not in allowed:
            raise ValidationError(f"Cannot change booking from {booking.status} to {status}", field='status')

        booking.status = status
        db.session.commit()
        logger.info(f"Booking {booking_id} is now {status}")
        return booking

    def cancel_booking(self, booking_id: str) -> Booking:
        return self.update_status(booking_id, 'cancelled')

    def remove_booking(self, booking_id: str):
        booking = self.get_booking(booking_id)
        db.session.delete(booking)
        db.session.commit()

    # ==================== Auctions ====================

    def place_bid(self, booking_id: str, amount, bidder_id: str, bidder_name: str) -> AuctionBid:
        """
        Place a bid on an auction booking. The bid must beat the current
        high bid (or the list price when nobody has bid yet).
        """
        booking = self.get_booking(booking_id)
        if not booking.is_auction:
            raise ValidationError("Booking is not an auction")
        if booking.status in ('cancelled', 'completed'):
            raise ValidationError(f"Auction is closed ({booking.status})")
        if booking.auction_end_time and datetime.utcnow() >= booking.auction_end_time:
            raise ValidationError("Auction has ended")
        if not bidder_id or not bidder_name:
            raise ValidationError("bidderId and bidderName are required")
        try:
            amount = float(amount)
        except (TypeError, ValueError):
            raise ValidationError("amount must be a number", field='amount')
        if not math.isfinite(amount):
            raise ValidationError("amount must be a finite number", field='amount')

        current_high = booking.current_high_bid or booking.price
        if amount <= current_high:
            raise ValidationError(f"Bid must be higher than current bid (${current_high:,.2f})", field='amount')

        AuctionBid.query.filter_by(booking_id=booking_id, status='active') \
            .update({'status': 'outbid'})

        bid = AuctionBid(
            booking_id=booking_id,
            bidder_id=bidder_id,
            bidder_name=bidder_name,
            amount=amount,
            status='active',
        )
        db.session.add(bid)
        booking.current_high_bid = amount
        booking.bidder_id = bidder_id
        db.session.commit()

        return bid

    def get_auction_bids(self, booking_id: str) -> List[AuctionBid]:
        """Bids for a booking, highest first."""
        self.get_booking(booking_id)
        return AuctionBid.query.filter_by(booking_id=booking_id) \
            .order_by(AuctionBid.amount.desc()).all()

    def close_auctions(self, now: datetime = None) -> Dict[str, int]:
        """
        Settle every auction whose end time has passed. A winning bid turns
        the booking pending at the bid price; no bids cancel it.
        """
        now = naive_utc(now) if now else datetime.utcnow()
        ended = Booking.query.filter(
            Booking.is_auction.is_(True),
            Booking.auction_end_time.isnot(None),
            Booking.auction_end_time <= now,
            Booking.status.in_(('pending', 'outbid')),
        ).all()

        result = {'won': 0, 'cancelled': 0}
        for booking in ended:
            bids = booking.bids.all()
            if booking.current_high_bid and booking.bidder_id:
                booking.status = 'pending'
                booking.price = booking.current_high_bid
                for bid in bids:
                    is_winner = bid.status == 'active' and bid.amount == booking.current_high_bid
                    bid.status = 'won' if is_winner else 'lost'
                result['won'] += 1
            else:
                booking.status = 'cancelled'
                result['cancelled'] += 1
            # Settled auctions are not revisited
            booking.is_auction = False

        if ended:
            db.session.commit()
            logger.info(f"Closed {len(ended)} auctions: {result}")
        return result


# Singleton instance
booking_service = BookingService()
