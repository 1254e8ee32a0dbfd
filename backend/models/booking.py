"""
Booking and auction bid models.
"""
from datetime import datetime
from . import db


BOOKING_STATUSES = ('pending', 'active', 'completed', 'cancelled', 'outbid')
BID_STATUSES = ('active', 'outbid', 'won', 'lost')


class Booking(db.Model):
    """
    A reservation of satellite time, served by one or more ground stations.
    """
    __tablename__ = 'bookings'

    id = db.Column(db.String(40), primary_key=True)
    satellite_name = db.Column(db.String(100), nullable=False)
    satellite_id = db.Column(db.String(10), nullable=False, index=True)  # NORAD ID

    # Time range (naive UTC)
    start_time = db.Column(db.DateTime, nullable=False)
    end_time = db.Column(db.DateTime, nullable=False)
    duration_minutes = db.Column(db.Integer, nullable=False)

    price = db.Column(db.Float, nullable=False)
    status = db.Column(db.String(20), nullable=False, default='pending', index=True)
    ground_station_ids = db.Column(db.JSON, nullable=False, default=list)
    data_rate = db.Column(db.String(30))
    purpose = db.Column(db.Text, nullable=False)
    user_id = db.Column(db.String(50))

    # Auction
    is_auction = db.Column(db.Boolean, default=False)
    current_high_bid = db.Column(db.Float)
    auction_end_time = db.Column(db.DateTime)
    bidder_id = db.Column(db.String(50))

    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    bids = db.relationship('AuctionBid', backref='booking', lazy='dynamic',
                           cascade='all, delete-orphan')

    def to_dict(self):
        """Convert model to dictionary."""
        return {
            'id': self.id,
            'satelliteName': self.satellite_name,
            'satelliteId': self.satellite_id,
            'startTime': self.start_time.isoformat() if self.start_time else None,
            'endTime': self.end_time.isoformat() if self.end_time else None,
            'duration': self.duration_minutes,
            'price': self.price,
            'status': self.status,
            'userId': self.user_id,
            'groundStations': list(self.ground_station_ids or []),
            'dataRate': self.data_rate,
            'purpose': self.purpose,
            'isAuction': bool(self.is_auction),
            'currentHighBid': self.current_high_bid,
            'auctionEndTime': self.auction_end_time.isoformat() if self.auction_end_time else None,
            'bidderId': self.bidder_id,
        }

    def __repr__(self):
        return f'<Booking {self.id} {self.satellite_name} ({self.status})>'


class AuctionBid(db.Model):
    __tablename__ = 'auction_bids'

    id = db.Column(db.Integer, primary_key=True)
    booking_id = db.Column(db.String(40), db.ForeignKey('bookings.id'), nullable=False, index=True)
    bidder_id = db.Column(db.String(50), nullable=False)
    bidder_name = db.Column(db.String(100), nullable=False)
    amount = db.Column(db.Float, nullable=False)
    timestamp = db.Column(db.DateTime, default=datetime.utcnow)
    status = db.Column(db.String(20), nullable=False, default='active')

    def to_dict(self):
        return {
            'id': self.id,
            'bookingId': self.booking_id,
            'bidderId': self.bidder_id,
            'bidderName': self.bidder_name,
            'amount': self.amount,
            'timestamp': self.timestamp.isoformat() if self.timestamp else None,
            'status': self.status,
        }

    def __repr__(self):
        return f'<AuctionBid {self.bidder_id} {self.amount} ({self.status})>'
