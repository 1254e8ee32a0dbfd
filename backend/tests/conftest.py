"""
Shared fixtures: a testing app with an in-memory database, an installed
catalog snapshot and a fake HTTP layer for TLE feeds.
"""
from datetime import datetime, timezone

import pytest
import requests

from app import create_app
from models import db
from models.orbital import OrbitalElementSet
from services.catalog_service import SatelliteCatalog, catalog_service

ISS_NAME = 'ISS (ZARYA)'
ISS_LINE1 = '1 25544U 98067A   08264.51782528 -.00002182  00000-0 -11606-4 0  2927'
ISS_LINE2 = '2 25544  51.6416 247.4627 0006703 130.5360 325.0288 15.72125391563537'

# Close to the element set epoch
ISS_EPOCH = datetime(2008, 9, 20, 12, 25, 40, tzinfo=timezone.utc)


def tle_checksum(line: str) -> str:
    """Recompute the modulo-10 checksum of a TLE line."""
    body = line[:68]
    total = sum(int(c) for c in body if c.isdigit()) + body.count('-')
    return body + str(total % 10)


def make_element_set(norad_id: str, name: str, category: str) -> OrbitalElementSet:
    """ISS elements renumbered so several distinct satellites can share them."""
    number = norad_id.rjust(5)
    line1 = tle_checksum(ISS_LINE1[:2] + number + ISS_LINE1[7:])
    line2 = tle_checksum(ISS_LINE2[:2] + number + ISS_LINE2[7:])
    return OrbitalElementSet(name=name, line1=line1, line2=line2, category=category)


def tle_text(*element_sets) -> str:
    return '\n'.join(f"{s.name}\n{s.line1}\n{s.line2}" for s in element_sets) + '\n'


class FakeResponse:
    def __init__(self, text='', status_code=200):
        self.text = text
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} Error")


@pytest.fixture
def app():
    app = create_app('testing')
    with app.app_context():
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def iss():
    return OrbitalElementSet(ISS_NAME, ISS_LINE1, ISS_LINE2, category='Space Stations')


@pytest.fixture
def catalog(monkeypatch, iss):
    """Install a small catalog snapshot on the shared catalog service."""
    snapshot = SatelliteCatalog(
        element_sets=(
            iss,
            make_element_set('40001', 'GEO SAT 1', 'Geostationary'),
            make_element_set('40002', 'INTELSAT 99', 'Intelsat'),
            make_element_set('40003', 'IRIDIUM 7', 'Iridium'),
            make_element_set('40004', 'LANDSAT 9', 'Earth Resources'),
        ),
        loaded_at=ISS_EPOCH,
    )
    monkeypatch.setattr(catalog_service, '_catalog', snapshot)
    return snapshot


@pytest.fixture
def fake_feeds(monkeypatch):
    """
    Route requests.get by URL. Values are TLE text, or an exception
    instance to raise.
    """
    feeds = {}

    def fake_get(url, timeout=None, **kwargs):
        result = feeds.get(url)
        if result is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(result, Exception):
            raise result
        return FakeResponse(result)

    monkeypatch.setattr(requests, 'get', fake_get)
    return feeds
