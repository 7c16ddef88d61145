"""Tests for api.solar.geometry."""

import math

import pytest

from api.solar.geometry import (
    effective_latitude,
    extraterrestrial_daily,
    monthly_rb,
    solar_declination,
    sunset_hour_angle,
)


# ---------------------------------------------------------------------------
# solar_declination
# ---------------------------------------------------------------------------


def test_declination_june_solstice():
    assert solar_declination(172) == pytest.approx(math.radians(23.45), abs=0.01)


def test_declination_december_solstice():
    assert solar_declination(355) == pytest.approx(math.radians(-23.45), abs=0.01)


def test_declination_near_equinox_is_small():
    assert abs(solar_declination(81)) < math.radians(1.0)


# ---------------------------------------------------------------------------
# sunset_hour_angle
# ---------------------------------------------------------------------------


def test_sunset_hour_angle_equator_is_quarter_turn():
    assert sunset_hour_angle(0.0, solar_declination(172)) == pytest.approx(math.pi / 2)


def test_sunset_hour_angle_polar_day():
    assert sunset_hour_angle(math.radians(85), math.radians(23)) == math.pi


def test_sunset_hour_angle_polar_night():
    assert sunset_hour_angle(math.radians(85), math.radians(-23)) == 0.0


@pytest.mark.parametrize("lat_deg", [-90, -89.9, -66.5, -23.5, 0, 23.5, 66.5, 89.9, 90])
@pytest.mark.parametrize("doy", [1, 81, 172, 266, 355])
def test_sunset_hour_angle_always_in_range(lat_deg, doy):
    ws = sunset_hour_angle(math.radians(lat_deg), solar_declination(doy))
    assert not math.isnan(ws)
    assert 0.0 <= ws <= math.pi


# ---------------------------------------------------------------------------
# extraterrestrial_daily
# ---------------------------------------------------------------------------


def test_extraterrestrial_equator_order_of_magnitude():
    h0 = extraterrestrial_daily(0.0, 81)
    # ~10.4 kWh/m²/day at the equator around the equinox
    assert 9.5 < h0 < 11.5


def test_extraterrestrial_polar_night_is_zero():
    assert extraterrestrial_daily(math.radians(85), 355) == 0.0


@pytest.mark.parametrize("lat_deg", [-90, -45, 0, 45, 90])
def test_extraterrestrial_never_negative(lat_deg):
    for doy in (17, 105, 198, 344):
        assert extraterrestrial_daily(math.radians(lat_deg), doy) >= 0.0


# ---------------------------------------------------------------------------
# monthly_rb
# ---------------------------------------------------------------------------


def test_effective_latitude_by_hemisphere():
    lat, tilt = math.radians(-23.5), math.radians(20)
    assert effective_latitude(lat, tilt, is_southern=True) == pytest.approx(lat + tilt)
    assert effective_latitude(-lat, tilt, is_southern=False) == pytest.approx(-lat - tilt)


def test_rb_is_one_for_flat_panel():
    decl = solar_declination(105)
    assert monthly_rb(math.radians(-23.5), decl, 0.0, True) == pytest.approx(1.0)
    assert monthly_rb(math.radians(40), decl, 0.0, False) == pytest.approx(1.0)


def test_rb_southern_winter_gain():
    # June at São Paulo: the sun is low in the north, an equator-facing tilt helps
    rb = monthly_rb(math.radians(-23.5), solar_declination(162), math.radians(23.5), True)
    assert rb > 1.2


def test_rb_southern_summer_loss():
    rb = monthly_rb(math.radians(-23.5), solar_declination(344), math.radians(23.5), True)
    assert 0.0 < rb < 1.0


def test_rb_northern_winter_gain():
    rb = monthly_rb(math.radians(40), solar_declination(344), math.radians(40), False)
    assert rb > 1.5


def test_rb_polar_night_is_zero():
    assert monthly_rb(math.radians(80), solar_declination(344), math.radians(30), False) == 0.0
