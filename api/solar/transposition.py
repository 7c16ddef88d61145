"""Liu-Jordan isotropic transposition of monthly horizontal irradiance.

Converts a monthly GHI series (optionally with a measured DHI companion)
into plane-of-array (POA) irradiance for an equator-facing array.

Model
-----
For each calendar month, evaluated on its representative day:

1.  **Diffuse horizontal**: taken from the measured DHI series when any of
    its twelve values is positive.  Otherwise estimated from the clearness
    index ``Kt = min(GHI / H0, 1)`` with the Erbs (1982) correlation::

        Kt <= 0.22          fd = 1 - 0.09 Kt
        0.22 < Kt <= 0.80   fd = 0.9511 - 0.1604 Kt + 4.388 Kt² - 16.638 Kt³ + 12.336 Kt⁴
        Kt > 0.80           fd = 0.165

        DHI = GHI × fd

2.  **Components on the tilted plane** (β = tilt, ρ = albedo)::

        beam    = max(GHI - DHI, 0) × Rb × cos(azimuth deviation)
        sky     = DHI × (1 + cos β) / 2
        ground  = GHI × ρ × (1 - cos β) / 2

        POA = max(beam + sky + ground, 0)

    A month with ``GHI <= 0`` produces ``POA = 0``.

The measured/estimated choice is made once per call and travels with the
result as ``method`` and ``dhi_source``; both are audit provenance.

Reference: Liu, B. Y. H. & Jordan, R. C. (1963).  The long-term average
performance of flat-plate solar-energy collectors.  *Solar Energy* 7(2).
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import ClassVar, Optional, Union

from api.solar.geometry import extraterrestrial_daily, monthly_rb, solar_declination
from lib.constants import MID_MONTH_DOY
from lib.types import DhiSource, MonthlySeries, TranspositionMethod

_ROUND_TO = 4

_ERBS_LOW_KT = 0.22
_ERBS_HIGH_KT = 0.80


@dataclass(frozen=True)
class MeasuredDhi:
    series: MonthlySeries

    method: ClassVar[TranspositionMethod] = "liu_jordan_isotropic"
    dhi_source: ClassVar[DhiSource] = "measured"


@dataclass(frozen=True)
class EstimatedDhi:
    series: MonthlySeries

    method: ClassVar[TranspositionMethod] = "ghi_only_estimated"
    dhi_source: ClassVar[DhiSource] = "estimated"


DiffuseInput = Union[MeasuredDhi, EstimatedDhi]


@dataclass(frozen=True)
class TranspositionResult:
    poa: MonthlySeries
    poa_annual_avg: float
    ghi_annual_avg: float
    gain_factor: float
    method: TranspositionMethod
    dhi_source: DhiSource


def erbs_diffuse_fraction(kt: float) -> float:
    """Diffuse fraction of GHI for clearness index *kt*, clamped to [0, 1]."""
    if kt <= _ERBS_LOW_KT:
        fraction = 1.0 - 0.09 * kt
    elif kt <= _ERBS_HIGH_KT:
        fraction = (
            0.9511
            - 0.1604 * kt
            + 4.388 * kt ** 2
            - 16.638 * kt ** 3
            + 12.336 * kt ** 4
        )
    else:
        fraction = 0.165
    return max(0.0, min(1.0, fraction))


def estimate_dhi(ghi: float, h0: float) -> float:
    if h0 <= 0 or ghi <= 0:
        return 0.0
    kt = min(ghi / h0, 1.0)
    return ghi * erbs_diffuse_fraction(kt)


def resolve_diffuse(ghi: MonthlySeries, dhi: Optional[MonthlySeries], lat_rad: float) -> DiffuseInput:
    """Pick the diffuse branch for a whole series: measured if any DHI > 0."""
    if dhi is not None and dhi.has_positive():
        return MeasuredDhi(dhi)

    estimated = [
        estimate_dhi(ghi_m, extraterrestrial_daily(lat_rad, doy))
        for ghi_m, doy in zip(ghi.values(), MID_MONTH_DOY)
    ]
    return EstimatedDhi(MonthlySeries.from_values(estimated))


def transpose(
    ghi: MonthlySeries,
    dhi: Optional[MonthlySeries],
    latitude: float,
    tilt_deg: float,
    azimuth_deviation_deg: float = 0.0,
    albedo: float = 0.2,
) -> TranspositionResult:
    """Transpose a monthly GHI(+DHI) series onto a tilted plane.

    Args:
        ghi:                   Monthly GHI (kWh/m²/day).
        dhi:                   Optional monthly DHI (kWh/m²/day).  All-zero
                               or ``None`` selects the Erbs estimate.
        latitude:              Site latitude in degrees, negative south.
        tilt_deg:              Panel tilt from horizontal (0 = flat).
        azimuth_deviation_deg: Deviation from the equator-facing azimuth.
        albedo:                Ground reflectance in [0, 1].

    Returns:
        :class:`TranspositionResult` with POA rounded to 4 decimals.
    """
    lat_rad = math.radians(latitude)
    tilt_rad = math.radians(tilt_deg)
    is_southern = latitude < 0
    azimuth_factor = math.cos(math.radians(azimuth_deviation_deg))

    diffuse = resolve_diffuse(ghi, dhi, lat_rad)

    poa_values: list[float] = []
    for ghi_m, dhi_m, doy in zip(ghi.values(), diffuse.series.values(), MID_MONTH_DOY):
        if ghi_m <= 0:
            poa_values.append(0.0)
            continue

        beam_horizontal = max(0.0, ghi_m - dhi_m)
        rb = monthly_rb(lat_rad, solar_declination(doy), tilt_rad, is_southern)

        beam_tilt = beam_horizontal * rb * azimuth_factor
        diffuse_sky = dhi_m * (1 + math.cos(tilt_rad)) / 2
        ground_reflected = ghi_m * albedo * (1 - math.cos(tilt_rad)) / 2

        poa = beam_tilt + diffuse_sky + ground_reflected
        poa_values.append(round(max(0.0, poa), _ROUND_TO))

    poa_avg = sum(poa_values) / 12
    ghi_avg = ghi.annual_average()

    return TranspositionResult(
        poa=MonthlySeries.from_values(poa_values),
        poa_annual_avg=round(poa_avg, _ROUND_TO),
        ghi_annual_avg=round(ghi_avg, _ROUND_TO),
        gain_factor=round(poa_avg / ghi_avg, _ROUND_TO) if ghi_avg > 0 else 1.0,
        method=diffuse.method,
        dhi_source=diffuse.dhi_source,
    )


def optimal_tilt(latitude: float) -> int:
    """Rule-of-thumb annual tilt (degrees) for a latitude.

    Fixed heuristic: |lat| + 5 below 10°, |lat| up to 25°, |lat| - 5 beyond.
    """
    abs_lat = abs(latitude)
    if abs_lat < 10:
        tilt = abs_lat + 5
    elif abs_lat < 25:
        tilt = abs_lat
    else:
        tilt = abs_lat - 5
    # half-degrees round up
    return math.floor(tilt + 0.5)
