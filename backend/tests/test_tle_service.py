from datetime import datetime

import pytest
import requests

from services.tle_service import TLEService

from conftest import ISS_LINE1, ISS_LINE2, ISS_NAME, make_element_set, tle_text


@pytest.fixture
def service():
    return TLEService(base_url='https://feeds.example/gp.php', timeout=5)


def test_celestrak_url(service):
    assert service.get_celestrak_url('geo') == 'https://feeds.example/gp.php?GROUP=geo&FORMAT=tle'


def test_parse_single_record(service):
    text = f"{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}\n"
    [element_set] = service.parse_tle_text(text, category='Space Stations')
    assert element_set.name == ISS_NAME
    assert element_set.catalog_number == '25544'
    assert element_set.category == 'Space Stations'
    assert element_set.epoch == datetime(2008, 9, 20, 12, 25, 40, 104192)


def test_blank_lines_and_whitespace_ignored(service):
    text = f"\n  {ISS_NAME}  \n\n{ISS_LINE1}\r\n{ISS_LINE2}\n\n\n"
    assert len(service.parse_tle_text(text)) == 1


def test_malformed_triple_is_skipped(service):
    good = make_element_set('40001', 'GOOD 1', 'Test')
    also_good = make_element_set('40002', 'GOOD 2', 'Test')
    text = tle_text(good) + "BROKEN SAT\nx not a tle line\ny not a tle line\n" + tle_text(also_good)

    parsed = service.parse_tle_text(text)
    assert [s.name for s in parsed] == ['GOOD 1', 'GOOD 2']


def test_trailing_partial_record_is_dropped(service):
    text = tle_text(make_element_set('40001', 'GOOD 1', 'Test')) + "DANGLING\n1 40002U\n"
    assert len(service.parse_tle_text(text)) == 1


def test_default_category(service):
    [element_set] = service.parse_tle_text(f"{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}")
    assert element_set.category == 'Unknown'


def test_parse_fields(service):
    assert service.parse_norad_id(ISS_LINE1) == 25544
    assert service.parse_norad_id('1 abcde') is None
    assert service.parse_mean_motion(ISS_LINE2) == pytest.approx(15.72125391)

    params = service.calculate_orbital_params(ISS_LINE2)
    assert params['inclination'] == pytest.approx(51.6416)
    assert params['eccentricity'] == pytest.approx(0.0006703)
    assert 300 < params['perigee_km'] < params['apogee_km'] < 450
    assert service.calculate_orbital_params('2 garbage') == {}


def test_fetch_tle_text(service, fake_feeds):
    url = service.get_celestrak_url('stations')
    fake_feeds[url] = f"{ISS_NAME}\n{ISS_LINE1}\n{ISS_LINE2}\n"
    assert service.fetch_tle_text(url).startswith(ISS_NAME)


def test_fetch_failure_propagates(service, fake_feeds):
    with pytest.raises(requests.RequestException):
        service.fetch_tle_text('https://feeds.example/missing')
