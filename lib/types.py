from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from typing import Literal, Optional, Sequence


MonthKey = Literal[
    "m01", "m02", "m03", "m04", "m05", "m06",
    "m07", "m08", "m09", "m10", "m11", "m12",
]

VersionStatus = Literal["processing", "active", "retired", "failed"]
DhiSource = Literal["measured", "estimated"]
TranspositionMethod = Literal["liu_jordan_isotropic", "ghi_only_estimated"]
HspSource = Literal["cache", "regional_premise", "national_fallback", "unavailable"]
HspConfidence = Literal["high", "medium", "low", "none"]
Region = Literal["norte", "nordeste", "centro_oeste", "sudeste", "sul"]
PrStatus = Literal["ok", "no_data", "config_required", "irradiation_unavailable"]
AlertLayer = Literal["internal", "preventive", "urgent"]


@dataclass(frozen=True)
class MonthlySeries:
    """Twelve monthly-average daily values in kWh/m²/day."""

    m01: float
    m02: float
    m03: float
    m04: float
    m05: float
    m06: float
    m07: float
    m08: float
    m09: float
    m10: float
    m11: float
    m12: float

    @classmethod
    def from_values(cls, values: Sequence[float]) -> MonthlySeries:
        if len(values) != 12:
            raise ValueError(f"a monthly series needs 12 values, got {len(values)}")
        return cls(*(float(v) for v in values))

    @classmethod
    def from_mapping(cls, data: dict, prefix: str = "") -> MonthlySeries:
        """Build from ``{"m01": ..}`` (or ``{"dhi_m01": ..}`` with *prefix*); missing months are 0."""
        return cls(*(float(data.get(f"{prefix}{f.name}") or 0.0) for f in fields(cls)))

    def values(self) -> list[float]:
        return [getattr(self, f.name) for f in fields(self)]

    def as_dict(self) -> dict[str, float]:
        return asdict(self)

    def annual_average(self) -> float:
        return sum(self.values()) / 12

    def has_positive(self) -> bool:
        return any(v > 0 for v in self.values())


@dataclass(frozen=True)
class GridPoint:
    latitude: float
    longitude: float


@dataclass
class PlantLosses:
    """Loss percentages applied multiplicatively to the ideal yield."""

    shading_percent: float = 8.0
    soiling_percent: float = 5.0
    other_percent: float = 12.0

    def __post_init__(self) -> None:
        for name in ("shading_percent", "soiling_percent", "other_percent"):
            value = getattr(self, name)
            if not 0.0 <= value < 100.0:
                raise ValueError(f"{name} must be in [0, 100), got {value}")

    def expected_factor(self) -> float:
        return (
            (1 - self.shading_percent / 100)
            * (1 - self.soiling_percent / 100)
            * (1 - self.other_percent / 100)
        )


@dataclass
class PlantInput:
    """One entry of the plant roster."""

    plant_id: str
    name: str
    installed_power_kwp: Optional[float]
    latitude: Optional[float]
    longitude: Optional[float]
    losses: Optional[PlantLosses] = None


@dataclass
class ReadingInput:
    """Energy produced by a plant over (part of) the aggregation period."""

    plant_id: str
    energy_kwh: float
    peak_power_kw: Optional[float] = None
