from __future__ import annotations

import math

import pytest

from meteo.wind import speed_dir_to_uv, uv_to_speed_dir, vectorial_mean_wind


def test_opposite_winds_nearly_cancel():
    result = vectorial_mean_wind([(5.0, 0.0), (5.0, 180.0)])

    assert result is not None
    assert result.speed < 1


def test_same_direction_keeps_direction():
    result = vectorial_mean_wind([(3.0, 90.0), (5.0, 90.0)])

    assert result.speed == pytest.approx(4.0)
    assert result.dir == pytest.approx(90.0)


def test_empty_input_has_no_mean():
    assert vectorial_mean_wind([]) is None


def test_readings_without_speed_are_skipped():
    result = vectorial_mean_wind([(None, 45.0), (float("nan"), 10.0), (2.0, 270.0)])

    assert result.speed == pytest.approx(2.0)
    assert result.dir == pytest.approx(270.0)


def test_missing_direction_counts_as_north():
    result = vectorial_mean_wind([(4.0, None)])

    assert result.speed == pytest.approx(4.0)
    assert result.dir == pytest.approx(0.0)


def test_wrap_around_north():
    result = vectorial_mean_wind([(5.0, 350.0), (5.0, 10.0)])

    assert result.dir == pytest.approx(0.0, abs=1e-6) or result.dir == pytest.approx(360.0, abs=1e-6)
    assert result.speed == pytest.approx(5.0 * math.cos(math.radians(10)))


def test_north_wind_blows_southward():
    u, v = speed_dir_to_uv(10.0, 0.0)

    assert u == pytest.approx(0.0, abs=1e-9)
    assert v == pytest.approx(-10.0)


@pytest.mark.parametrize(
    "speed,direction",
    [(0.5, 0.0), (3.2, 45.0), (7.0, 179.9), (12.5, 270.0), (1.0, 359.5)],
)
def test_uv_round_trip(speed, direction):
    back = uv_to_speed_dir(*speed_dir_to_uv(speed, direction))

    assert back.speed == pytest.approx(speed)
    assert back.dir == pytest.approx(direction)
