import pytest

from models.orbital import ScenePoint
from utils.coordinates import geodetic_to_scene
from utils.visibility import elevation_angle, is_in_range, is_visible, visible_elevation

STATION = geodetic_to_scene(0.0, 0.0, 2.0)  # (2, 0, 0)


def test_overhead_is_ninety_degrees():
    sat = ScenePoint(2.2, 0.0, 0.0)
    assert elevation_angle(sat, STATION) == pytest.approx(90.0)


def test_overhead_on_other_station():
    station = geodetic_to_scene(52.2, 0.3, 2.0)
    sat = geodetic_to_scene(52.2, 0.3, 2.11)
    # acos argument drifts past 1.0 without clamping
    assert elevation_angle(sat, station) == pytest.approx(90.0, abs=1e-6)


def test_opposite_side_is_below_horizon():
    sat = ScenePoint(-2.2, 0.0, 0.0)
    assert elevation_angle(sat, STATION) == pytest.approx(-90.0)


def test_horizon_direction():
    sat = ScenePoint(2.0, 1.0, 0.0)
    assert elevation_angle(sat, STATION) == pytest.approx(0.0, abs=1e-9)


def test_degenerate_vectors():
    assert elevation_angle(STATION, STATION) is None
    assert elevation_angle(ScenePoint(1, 0, 0), ScenePoint(0, 0, 0)) is None


def test_is_visible_uses_elevation_floor():
    low = ScenePoint(2.0, 1.0, 0.0)
    high = ScenePoint(2.5, 0.2, 0.0)
    assert not is_visible(low, STATION)
    assert is_visible(high, STATION)
    assert is_visible(low, STATION, min_elevation_degrees=-1.0)


def test_is_visible_rejects_zero_and_excess_distance():
    assert not is_visible(STATION, STATION, min_elevation_degrees=-90)
    far = ScenePoint(20.0, 0.0, 0.0)
    assert not is_visible(far, STATION)
    assert is_visible(far, STATION, max_distance=30.0)


def test_is_in_range():
    assert is_in_range(ScenePoint(2.5, 0, 0), STATION)
    assert not is_in_range(ScenePoint(-2.5, 0, 0), STATION)
    assert is_in_range(ScenePoint(-2.5, 0, 0), STATION, max_distance=5.0)


def test_visible_elevation_matches_is_visible():
    overhead = ScenePoint(2.2, 0.0, 0.0)
    assert visible_elevation(overhead, STATION) == pytest.approx(90.0)
    assert visible_elevation(ScenePoint(2.0, 1.0, 0.0), STATION) is None
    assert visible_elevation(ScenePoint(20.0, 0.0, 0.0), STATION) is None
    assert visible_elevation(overhead, STATION, max_distance=0.1) is None
