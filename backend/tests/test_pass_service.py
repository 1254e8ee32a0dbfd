import csv
import io
from datetime import datetime, timedelta, timezone
from threading import Event

import pytest

from models.ground_station import GroundStation
from models.orbital import ContactWindow, ScenePoint, StationPasses
from services.orbit_service import OrbitService
from services.pass_service import CSV_HEADER, PassPredictionService
from utils.coordinates import eci_to_geodetic, normalize_longitude
from utils.errors import PropagationError
from utils.time_util import parse_datetime

from conftest import ISS_EPOCH

T0 = datetime(2024, 1, 1, 0, 0, tzinfo=timezone.utc)
EQUATOR_STATION = GroundStation(id='gs-eq', name='Equator', lat=0.0, lon=0.0)
# Sees both scripted positions well below its horizon
POLE_STATION = GroundStation(id='gs-pole', name='Pole', lat=90.0, lon=0.0)

OVERHEAD = ScenePoint(2.2, 0.0, 0.0)
FAR_SIDE = ScenePoint(-2.2, 0.0, 0.0)


class ScriptedOrbits:
    """Satellite overhead of (0, 0) during the given offsets from T0 (seconds)."""

    def __init__(self, visible_from, visible_until, failing=()):
        self.visible_from = visible_from
        self.visible_until = visible_until
        self.failing = set(failing)
        self.calls = 0

    def satellite_scene_position(self, element_set, instant):
        self.calls += 1
        offset = (instant - T0).total_seconds()
        if offset in self.failing:
            raise PropagationError("decayed", norad_id=element_set.catalog_number)
        if self.visible_from <= offset < self.visible_until:
            return OVERHEAD
        return FAR_SIDE


def predict(orbits, element_set, stations=(EQUATOR_STATION,), hours=0.1, **kwargs):
    service = PassPredictionService(orbits=orbits)
    return service.predict_passes(element_set, list(stations), T0, hours, step_seconds=10, **kwargs)


def test_twenty_second_pass_is_dropped(iss):
    assert predict(ScriptedOrbits(100, 120), iss) == []


def test_forty_second_pass_is_kept(iss):
    [station_passes] = predict(ScriptedOrbits(100, 140), iss)
    [window] = station_passes.passes

    assert station_passes.ground_station_id == 'gs-eq'
    assert window.start_time == T0 + timedelta(seconds=100)
    assert window.end_time == T0 + timedelta(seconds=140)
    assert window.duration_seconds == 40
    assert window.max_elevation_degrees == pytest.approx(90.0)


def test_thirty_second_pass_is_dropped(iss):
    assert predict(ScriptedOrbits(100, 130), iss) == []


def test_pass_open_at_horizon_end_closes_on_last_step(iss):
    # hours=0.1 -> 360 s; steps at 0, 10, ..., 360
    [station_passes] = predict(ScriptedOrbits(300, 10_000), iss)
    [window] = station_passes.passes
    assert window.start_time == T0 + timedelta(seconds=300)
    assert window.end_time == T0 + timedelta(seconds=360)


def test_propagation_failure_counts_as_not_visible(iss):
    orbits = ScriptedOrbits(100, 200, failing={150})
    [station_passes] = predict(orbits, iss)
    starts = [w.start_time for w in station_passes.passes]
    assert starts == [T0 + timedelta(seconds=100), T0 + timedelta(seconds=160)]


def test_zero_horizon_samples_once(iss):
    orbits = ScriptedOrbits(0, 100)
    assert predict(orbits, iss, hours=0) == []
    assert orbits.calls == 1


def test_invalid_arguments(iss):
    service = PassPredictionService(orbits=ScriptedOrbits(0, 0))
    with pytest.raises(ValueError):
        service.predict_passes(iss, [EQUATOR_STATION], T0, -1)
    with pytest.raises(ValueError):
        service.predict_passes(iss, [EQUATOR_STATION], T0, 1, step_seconds=0)


def test_stations_without_passes_are_omitted(iss):
    results = predict(ScriptedOrbits(100, 200), iss, stations=[POLE_STATION, EQUATOR_STATION])
    assert [r.ground_station_id for r in results] == ['gs-eq']


def test_cancellation_before_start(iss):
    cancel = Event()
    cancel.set()
    assert predict(ScriptedOrbits(100, 200), iss, cancel_event=cancel) == []


def test_cancellation_keeps_finished_stations(iss):
    cancel = Event()

    class CancellingOrbits(ScriptedOrbits):
        def satellite_scene_position(self, element_set, instant):
            # Cancel while the first station is being swept
            cancel.set()
            return super().satellite_scene_position(element_set, instant)

    second = GroundStation(id='gs-eq-2', name='Equator 2', lat=0.0, lon=0.0)
    results = predict(CancellingOrbits(100, 200), iss, stations=[EQUATOR_STATION, second], cancel_event=cancel)
    assert [r.ground_station_id for r in results] == ['gs-eq']


def test_catalog_sweep_cancelled_between_satellites(iss):
    cancel = Event()
    service = PassPredictionService(orbits=ScriptedOrbits(100, 200))

    def element_sets():
        yield iss
        cancel.set()
        yield iss

    results = service.predict_catalog_passes(element_sets(), [EQUATOR_STATION], T0, 0.1,
                                             cancel_event=cancel, step_seconds=10)
    assert list(results) == ['25544']


def _sub_satellite_station(iss, instant, lon_offset=0.0):
    state = OrbitService().propagate(iss, instant)
    geo = eci_to_geodetic(state.position_km, instant)
    return GroundStation(
        id='gs-sub', name='Sub-point',
        lat=geo.latitude if lon_offset == 0 else -geo.latitude,
        lon=normalize_longitude(geo.longitude + lon_offset),
    )


def test_five_minute_pass_at_default_step(iss):
    # Visible from 10 to 15 minutes into a one hour horizon
    service = PassPredictionService(orbits=ScriptedOrbits(600, 900))
    [station_passes] = service.predict_passes(iss, [EQUATOR_STATION], T0, 1)
    [window] = station_passes.passes

    assert abs(window.duration_seconds - 300) <= 60
    assert window.start_time == T0 + timedelta(minutes=10)


def test_stations_in_range(iss):
    service = PassPredictionService(orbits=ScriptedOrbits(0, 60))
    stations = [EQUATOR_STATION, POLE_STATION]

    assert service.stations_in_range(iss, stations, T0, max_distance=1.0) == ['gs-eq']
    assert service.stations_in_range(iss, stations, T0 + timedelta(minutes=5), max_distance=1.0) == []
    assert service.stations_in_range(iss, stations, T0, max_distance=10.0) == ['gs-eq', 'gs-pole']


def test_stations_in_range_without_position(iss):
    service = PassPredictionService(orbits=ScriptedOrbits(0, 60, failing={0}))
    assert service.stations_in_range(iss, [EQUATOR_STATION], T0) == []


def test_single_pass_over_sub_satellite_point(iss):
    station = _sub_satellite_station(iss, ISS_EPOCH)
    start = ISS_EPOCH - timedelta(minutes=15)

    results = PassPredictionService(orbits=OrbitService()).predict_passes(
        iss, [station], start, 0.5, step_seconds=10,
    )

    [station_passes] = results
    [window] = station_passes.passes
    assert window.start_time < ISS_EPOCH < window.end_time
    assert 60 < window.duration_seconds < 15 * 60
    assert window.max_elevation_degrees > 89.0


def test_no_pass_at_antipode(iss):
    station = _sub_satellite_station(iss, ISS_EPOCH, lon_offset=180.0)
    start = ISS_EPOCH - timedelta(minutes=5)

    results = PassPredictionService(orbits=OrbitService()).predict_passes(
        iss, [station], start, 10 / 60, step_seconds=10,
    )
    assert results == []


def test_accessible_ground_stations(iss):
    service = PassPredictionService(orbits=ScriptedOrbits(100, 200))
    ids = service.get_accessible_ground_stations(
        iss, [POLE_STATION, EQUATOR_STATION], horizon_hours=0.1, start_instant=T0, step_seconds=10,
    )
    assert ids == ['gs-eq']


def test_satellite_passes_json_shape(iss):
    service = PassPredictionService(orbits=ScriptedOrbits(100, 140))
    [entry] = service.predict_satellite_passes(iss, [EQUATOR_STATION], T0, 0.1, step_seconds=10)
    assert entry['groundStationId'] == 'gs-eq'
    assert entry['groundStationName'] == 'Equator'
    assert entry['passes'][0]['duration'] == 40
    assert entry['passes'][0]['startTime'] == '2024-01-01T00:01:40+00:00'


def test_export_passes_csv_reads_back():
    first = ContactWindow(
        ground_station_id='gs-eq',
        ground_station_name='Equator, Main',
        start_time=T0,
        end_time=T0 + timedelta(seconds=90),
        max_elevation_degrees=45.123456789,
    )
    second = ContactWindow(
        ground_station_id='gs-pole',
        ground_station_name='Pole',
        start_time=T0 + timedelta(hours=2, seconds=7),
        end_time=T0 + timedelta(hours=2, seconds=361),
        max_elevation_degrees=12.3456789012,
    )
    csv_text = PassPredictionService().export_passes_csv([
        StationPasses('gs-eq', 'Equator, Main', (first,)),
        StationPasses('gs-pole', 'Pole', (second,)),
    ])

    assert len(csv_text.splitlines()) == 3
    header, *rows = list(csv.reader(io.StringIO(csv_text)))
    assert header == CSV_HEADER

    for row, window in zip(rows, (first, second)):
        name, start, end, duration, elevation = row
        assert name == window.ground_station_name
        assert parse_datetime(start) == window.start_time
        assert parse_datetime(end) == window.end_time
        assert float(duration) == window.duration_seconds
        assert float(elevation) == window.max_elevation_degrees

def test_export_empty_csv():
    assert PassPredictionService().export_passes_csv([]) == ','.join(CSV_HEADER) + '\n'
