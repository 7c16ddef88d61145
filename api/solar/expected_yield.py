"""Loss-adjusted expected energy yield.

    expected_kwh = capacity_kwp × hsp × days × (1 − shading)(1 − soiling)(1 − other)

HSP (peak sun hours) is numerically the daily irradiance in kWh/m²/day, so
``capacity × hsp`` is the ideal daily energy of the array at STC.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from lib.types import PlantLosses


@dataclass
class ExpectedYield:
    expected_kwh: float
    expected_factor: float
    deviation_percent: Optional[float] = None
    # unrounded; ratios are taken against this, expected_kwh is for display
    exact_kwh: float = 0.0


def deviation_percent(expected_kwh: float, actual_kwh: float) -> Optional[float]:
    """Shortfall of *actual* against *expected* in percent, never negative.

    Over-performance is reported as 0, not as a negative deviation.  Returns
    ``None`` when there is no positive expectation to compare against.
    """
    if expected_kwh <= 0:
        return None
    return round(max(0.0, (expected_kwh - actual_kwh) / expected_kwh * 100), 1)


def calc_expected_yield(
    capacity_kwp: float,
    hsp_kwh_m2: float,
    days: int,
    losses: Optional[PlantLosses] = None,
    actual_kwh: Optional[float] = None,
) -> ExpectedYield:
    factor = (losses or PlantLosses()).expected_factor()
    exact_kwh = capacity_kwp * hsp_kwh_m2 * days * factor

    return ExpectedYield(
        expected_kwh=round(exact_kwh, 1),
        expected_factor=factor,
        deviation_percent=deviation_percent(exact_kwh, actual_kwh) if actual_kwh is not None else None,
        exact_kwh=exact_kwh,
    )
