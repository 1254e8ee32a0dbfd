from datetime import datetime, timedelta, timezone

import pytest

from models import db
from models.booking import AuctionBid, Booking
from services.booking_service import booking_service as service, calculate_price, price_per_minute
from utils.errors import NotFoundError, ValidationError

START = '2008-09-20T13:00:00Z'


def booking_data(**overrides):
    data = {
        'satellite': '40001',
        'startTime': START,
        'duration': 30,
        'purpose': 'Telemetry downlink',
        'userId': 'user-1',
    }
    data.update(overrides)
    return data


def auction_data(**overrides):
    end = datetime.now(timezone.utc) + timedelta(hours=1)
    return booking_data(isAuction=True, auctionEndTime=end.isoformat(), **overrides)


@pytest.mark.parametrize('category, rate', [
    ('Geostationary', 25),
    ('GEO', 25),
    ('Intelsat', 30),
    ('SES', 30),
    ('Iridium', 15),
    ('Globalstar', 15),
    ('Earth Resources', 10),
    (None, 10),
])
def test_price_per_minute(category, rate):
    assert price_per_minute(category) == rate


def test_calculate_price():
    assert calculate_price('Intelsat', 45) == 1350


def test_quote(app, catalog):
    quote = service.quote('40001', 30)
    assert quote['satelliteName'] == 'GEO SAT 1'
    assert quote['pricePerMinute'] == 25
    assert quote['price'] == 750

    assert service.quote('IRIDIUM 7', 10)['price'] == 150


def test_create_booking(app, catalog):
    booking = service.create_booking(booking_data())

    assert booking.status == 'pending'
    assert booking.satellite_name == 'GEO SAT 1'
    assert booking.satellite_id == '40001'
    assert booking.price == 750
    assert booking.end_time - booking.start_time == timedelta(minutes=30)
    assert booking.start_time == datetime(2008, 9, 20, 13, 0)
    assert booking.data_rate == '100 Mbps'

    online = {'gs-svalbard', 'gs-fairbanks', 'gs-wallops', 'gs-goonhilly', 'gs-kiruna',
              'gs-hartebeesthoek', 'gs-alice-springs', 'gs-santiago', 'gs-singapore', 'gs-tokyo'}
    assert len(booking.ground_station_ids) == 3
    assert set(booking.ground_station_ids) <= online
    assert len(set(booking.ground_station_ids)) == 3


def test_stations_with_passes_are_preferred(app, catalog, monkeypatch):
    monkeypatch.setattr(
        service.passes, 'get_accessible_ground_stations',
        lambda element_set, stations, **kwargs: ['gs-tokyo'],
    )
    booking = service.create_booking(booking_data())
    assert booking.ground_station_ids[0] == 'gs-tokyo'
    assert len(booking.ground_station_ids) == 3


def test_explicit_ground_stations(app, catalog):
    booking = service.create_booking(booking_data(groundStations=['gs-kiruna']))
    assert booking.ground_station_ids == ['gs-kiruna']


@pytest.mark.parametrize('overrides', [
    {'satellite': None},
    {'satellite': '99999'},
    {'startTime': None},
    {'startTime': 'tomorrow'},
    {'duration': 0},
    {'duration': -5},
    {'duration': 'long'},
    {'duration': 1.5},
    {'duration': float('inf')},
    {'duration': float('nan')},
    {'purpose': '   '},
    {'groundStations': ['gs-nowhere']},
    {'isAuction': True},
])
def test_invalid_bookings_are_not_stored(app, catalog, overrides):
    with pytest.raises(ValidationError):
        service.create_booking(booking_data(**overrides))
    assert Booking.query.count() == 0


def test_unique_booking_ids(app, catalog):
    first = service.create_booking(booking_data(groundStations=[]))
    second = service.create_booking(booking_data(groundStations=[]))
    assert first.id != second.id


def test_status_transitions(app, catalog):
    booking = service.create_booking(booking_data(groundStations=[]))

    assert service.update_status(booking.id, 'active').status == 'active'
    assert service.update_status(booking.id, 'completed').status == 'completed'

    with pytest.raises(ValidationError):
        service.update_status(booking.id, 'cancelled')
    with pytest.raises(ValidationError):
        service.update_status(booking.id, 'pending')


def test_cancel_is_terminal(app, catalog):
    booking = service.create_booking(booking_data(groundStations=[]))
    assert service.cancel_booking(booking.id).status == 'cancelled'
    with pytest.raises(ValidationError):
        service.update_status(booking.id, 'active')


def test_unknown_booking(app):
    with pytest.raises(NotFoundError):
        service.get_booking('booking-0')
    with pytest.raises(NotFoundError):
        service.cancel_booking('booking-0')


def test_list_and_active(app, catalog):
    first = service.create_booking(booking_data(groundStations=[]))
    second = service.create_booking(booking_data(groundStations=[], startTime='2008-09-20T10:00:00Z'))
    service.cancel_booking(first.id)

    assert [b.id for b in service.list_bookings()] == [second.id, first.id]
    assert [b.id for b in service.list_bookings(status='cancelled')] == [first.id]
    assert [b.id for b in service.get_active_bookings()] == [second.id]


def test_bid_must_beat_price_then_high_bid(app, catalog):
    booking = service.create_booking(auction_data(groundStations=[]))
    assert booking.is_auction

    with pytest.raises(ValidationError):
        service.place_bid(booking.id, 750, 'u2', 'Bob')

    first = service.place_bid(booking.id, 800, 'u2', 'Bob')
    assert booking.current_high_bid == 800

    with pytest.raises(ValidationError):
        service.place_bid(booking.id, 800, 'u3', 'Carol')

    second = service.place_bid(booking.id, 900, 'u3', 'Carol')

    assert db_status(first) == 'outbid'
    assert db_status(second) == 'active'
    assert booking.bidder_id == 'u3'
    assert [b.amount for b in service.get_auction_bids(booking.id)] == [900, 800]


def db_status(bid):
    return db.session.get(AuctionBid, bid.id).status


def test_bid_on_regular_booking_rejected(app, catalog):
    booking = service.create_booking(booking_data(groundStations=[]))
    with pytest.raises(ValidationError):
        service.place_bid(booking.id, 10_000, 'u2', 'Bob')


def test_close_auctions_with_winner(app, catalog):
    booking = service.create_booking(auction_data(groundStations=[]))
    service.place_bid(booking.id, 800, 'u2', 'Bob')
    service.place_bid(booking.id, 900, 'u3', 'Carol')

    assert service.close_auctions(now=datetime.now(timezone.utc)) == {'won': 0, 'cancelled': 0}

    after_end = booking.auction_end_time + timedelta(minutes=1)
    assert service.close_auctions(now=after_end) == {'won': 1, 'cancelled': 0}

    booking = service.get_booking(booking.id)
    assert booking.status == 'pending'
    assert booking.price == 900
    assert {b.bidder_id: b.status for b in booking.bids} == {'u2': 'lost', 'u3': 'won'}

    # Settled auctions are not settled again
    assert service.close_auctions(now=after_end) == {'won': 0, 'cancelled': 0}


def test_close_auction_without_bids_cancels(app, catalog):
    booking = service.create_booking(auction_data(groundStations=[]))
    result = service.close_auctions(now=booking.auction_end_time + timedelta(seconds=1))
    assert result == {'won': 0, 'cancelled': 1}
    assert service.get_booking(booking.id).status == 'cancelled'


@pytest.mark.parametrize('amount', ['nan', float('nan'), float('inf'), '-inf'])
def test_non_finite_bids_rejected(app, catalog, amount):
    booking = service.create_booking(auction_data(groundStations=[]))

    with pytest.raises(ValidationError) as excinfo:
        service.place_bid(booking.id, amount, 'u2', 'Bob')

    assert excinfo.value.field == 'amount'
    assert AuctionBid.query.count() == 0
    assert service.get_booking(booking.id).current_high_bid is None
