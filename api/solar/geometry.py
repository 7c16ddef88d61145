"""Solar geometry primitives.

Pure, stateless trigonometry used by the transposition model.  Angles are in
radians unless a name says otherwise; daily energies are in kWh/m²/day.

None of these functions raise on out-of-domain input.  Arguments that would
push ``acos`` outside [-1, 1] (polar day / polar night) are clamped so that a
single degenerate month cannot abort a twelve-month series.

References
----------
- Spencer, J. W. (1971). Fourier series representation of the position of
  the sun.  *Search* 2(5), 172.
- Klein, S. A. (1977). Calculation of monthly average insolation on tilted
  surfaces.  *Solar Energy* 19(4), 325–329.
"""

from __future__ import annotations

import math

from lib.constants import HOURS_IN_DAY, SOLAR_CONSTANT_KW_M2


def _day_angle(day_of_year: int) -> float:
    return 2 * math.pi * (day_of_year - 1) / 365


def solar_declination(day_of_year: int) -> float:
    """Solar declination (rad) from the seven-term Spencer series."""
    b = _day_angle(day_of_year)
    return (
        0.006918
        - 0.399912 * math.cos(b)
        + 0.070257 * math.sin(b)
        - 0.006758 * math.cos(2 * b)
        + 0.000907 * math.sin(2 * b)
        - 0.002697 * math.cos(3 * b)
        + 0.00148 * math.sin(3 * b)
    )


def sunset_hour_angle(lat_rad: float, decl_rad: float) -> float:
    """Sunset hour angle in [0, π].

    Returns π under polar day (cos argument below −1) and 0 under polar
    night (above 1).
    """
    cos_ws = -math.tan(lat_rad) * math.tan(decl_rad)
    if math.isnan(cos_ws):
        return 0.0
    if cos_ws < -1:
        return math.pi
    if cos_ws > 1:
        return 0.0
    return math.acos(cos_ws)


def extraterrestrial_daily(lat_rad: float, day_of_year: int) -> float:
    """Daily extraterrestrial radiation on a horizontal plane (H0), never negative."""
    eccentricity = 1 + 0.033 * math.cos(_day_angle(day_of_year))
    decl_rad = solar_declination(day_of_year)
    ws = sunset_hour_angle(lat_rad, decl_rad)

    h0 = (HOURS_IN_DAY / math.pi) * SOLAR_CONSTANT_KW_M2 * eccentricity * (
        math.cos(lat_rad) * math.cos(decl_rad) * math.sin(ws)
        + ws * math.sin(lat_rad) * math.sin(decl_rad)
    )
    return max(0.0, h0)


def effective_latitude(lat_rad: float, tilt_rad: float, is_southern: bool) -> float:
    """Latitude of the horizontal surface parallel to an equator-facing array.

    Tilting toward the equator moves the effective latitude toward zero: a
    southern array (negative latitude) adds the tilt, a northern one
    subtracts it.
    """
    return lat_rad + tilt_rad if is_southern else lat_rad - tilt_rad


def monthly_rb(lat_rad: float, decl_rad: float, tilt_rad: float, is_southern: bool) -> float:
    """Monthly-mean beam tilt factor Rb (Klein, 1977).

    Ratio of beam radiation on the tilted plane to beam radiation on the
    horizontal.  Returns 0 when the horizontal surface sees no daylight or
    the tilted plane sees no sun.
    """
    eff_lat = effective_latitude(lat_rad, tilt_rad, is_southern)

    ws = sunset_hour_angle(lat_rad, decl_rad)
    ws_tilted = sunset_hour_angle(eff_lat, decl_rad)
    ws_prime = min(ws, ws_tilted)

    if ws_prime <= 0:
        return 0.0

    numerator = (
        math.cos(eff_lat) * math.cos(decl_rad) * math.sin(ws_prime)
        + ws_prime * math.sin(eff_lat) * math.sin(decl_rad)
    )
    denominator = (
        math.cos(lat_rad) * math.cos(decl_rad) * math.sin(ws)
        + ws * math.sin(lat_rad) * math.sin(decl_rad)
    )

    if denominator <= 0:
        return 0.0
    return max(0.0, numerator / denominator)
