from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

ENERGY_WEIGHT = 30
CAPACITY_WEIGHT = 25
HSP_WEIGHT = 25
DAY_CLOSED_WEIGHT = 10
UNIT_WEIGHT = 10


@dataclass(frozen=True)
class ConfidenceBreakdown:
    """Which inputs of a PR computation were trustworthy, and the 0–100 score."""

    energy_valid: bool
    capacity_valid: bool
    hsp_available: bool
    day_is_closed: bool
    unit_validated: bool

    @property
    def total(self) -> int:
        return (
            ENERGY_WEIGHT * self.energy_valid
            + CAPACITY_WEIGHT * self.capacity_valid
            + HSP_WEIGHT * self.hsp_available
            + DAY_CLOSED_WEIGHT * self.day_is_closed
            + UNIT_WEIGHT * self.unit_validated
        )


def _positive(value: Optional[float]) -> bool:
    return value is not None and value > 0


def score_confidence(
    energy_kwh: Optional[float],
    capacity_kwp: Optional[float],
    hsp_kwh_m2: Optional[float],
    day_is_closed: bool,
    unit_is_kwh: bool,
) -> ConfidenceBreakdown:
    return ConfidenceBreakdown(
        energy_valid=_positive(energy_kwh),
        capacity_valid=_positive(capacity_kwp),
        hsp_available=_positive(hsp_kwh_m2),
        day_is_closed=day_is_closed is True,
        unit_validated=unit_is_kwh is True,
    )
