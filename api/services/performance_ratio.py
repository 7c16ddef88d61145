from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date, timedelta
from typing import Iterable, Optional

from api.db.client import DatabaseClient
from api.services.hsp import UNAVAILABLE, HspResult, HspService
from api.solar.confidence import score_confidence
from api.solar.expected_yield import calc_expected_yield, deviation_percent
from lib.time_util import closed_days_so_far, month_window
from lib.types import HspSource, PlantInput, PlantLosses, PrStatus, ReadingInput

log = logging.getLogger(__name__)

PR_CAP_PERCENT = 120.0


@dataclass
class PlantPerformanceRatio:
    plant_id: str
    name: str
    kwp: Optional[float]
    expected_kwh: Optional[float]
    actual_kwh: float
    pr_percent: Optional[float]
    pr_status: PrStatus
    hsp_kwh_m2: Optional[float]
    hsp_provenance: HspSource
    deviation_percent: Optional[float]
    confidence_score: int


def _pr_status(capacity_kwp: Optional[float], hsp: HspResult, actual_kwh: float) -> PrStatus:
    """Evaluated in strict priority; the first failing precondition wins."""
    if capacity_kwp is None or capacity_kwp <= 0:
        return "config_required"
    if not hsp.available:
        return "irradiation_unavailable"
    if actual_kwh <= 0:
        return "no_data"
    return "ok"


def _losses_for(plant) -> PlantLosses:
    overrides = {
        "shading_percent": plant.shading_loss_percent,
        "soiling_percent": plant.soiling_loss_percent,
        "other_percent": plant.other_loss_percent,
    }
    return PlantLosses(**{k: v for k, v in overrides.items() if v is not None})


def _sort_key(row: PlantPerformanceRatio) -> tuple[bool, float]:
    # ok rows first, worst PR first; non-ok rows keep their input order
    if row.pr_status == "ok" and row.pr_percent is not None:
        return False, row.pr_percent
    return row.pr_status != "ok", 0.0


class PerformanceRatioService:
    """Month-to-date Performance Ratio per plant.

    Expected energy covers only the closed days of the month
    (``max(1, day - 1)``) so a partially elapsed current day never reads as
    underperformance.  PR is capped at 120 % to bound meter and
    miscalibration anomalies.  HSP is resolved once per distinct
    coordinate in a batch.
    """

    def __init__(
        self,
        db: DatabaseClient | None = None,
        hsp_service: HspService | None = None,
    ) -> None:
        self._db = db or DatabaseClient()
        self._hsp = hsp_service or HspService(db=self._db)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _resolve_hsp_by_location(self, plants: list[PlantInput], month: int) -> dict[tuple[float, float], HspResult]:
        resolved: dict[tuple[float, float], HspResult] = {}
        for plant in plants:
            if plant.latitude is None or plant.longitude is None:
                continue
            loc = (plant.latitude, plant.longitude)
            if loc in resolved:
                continue
            resolved[loc] = self._hsp.get_monthly_avg_hsp(plant.latitude, plant.longitude, month)
        return resolved

    @staticmethod
    def _energy_by_plant(readings: Iterable[ReadingInput]) -> dict[str, float]:
        totals: dict[str, float] = defaultdict(float)
        for reading in readings:
            if reading.energy_kwh is not None and reading.energy_kwh > 0:
                totals[reading.plant_id] += reading.energy_kwh
        return totals

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_performance_ratios(
        self,
        plants: list[PlantInput],
        readings: list[ReadingInput],
        as_of: date | None = None,
    ) -> list[PlantPerformanceRatio]:
        as_of = as_of or date.today()
        days = closed_days_so_far(as_of)

        hsp_by_location = self._resolve_hsp_by_location(plants, as_of.month)
        energy = self._energy_by_plant(readings)

        results: list[PlantPerformanceRatio] = []
        for plant in plants:
            if plant.latitude is None or plant.longitude is None:
                hsp = UNAVAILABLE
            else:
                hsp = hsp_by_location[(plant.latitude, plant.longitude)]

            raw_kwh = energy.get(plant.plant_id, 0.0)
            actual_kwh = round(raw_kwh, 1)
            status = _pr_status(plant.installed_power_kwp, hsp, raw_kwh)

            expected_kwh: Optional[float] = None
            exact_kwh = 0.0
            pr_percent: Optional[float] = None
            deviation: Optional[float] = None

            if status in ("ok", "no_data"):
                expected = calc_expected_yield(
                    capacity_kwp=plant.installed_power_kwp,
                    hsp_kwh_m2=hsp.value,
                    days=days,
                    losses=plant.losses or PlantLosses(),
                )
                expected_kwh = expected.expected_kwh
                exact_kwh = expected.exact_kwh

            if status == "ok":
                if exact_kwh > 0:
                    pr_percent = round(min(raw_kwh / exact_kwh * 100, PR_CAP_PERCENT), 1)
                    deviation = deviation_percent(exact_kwh, raw_kwh)
                else:
                    # energy measured against no expectation
                    pr_percent = PR_CAP_PERCENT
                    deviation = 0.0

            confidence = score_confidence(
                energy_kwh=raw_kwh,
                capacity_kwp=plant.installed_power_kwp,
                hsp_kwh_m2=hsp.value,
                day_is_closed=True,
                unit_is_kwh=True,
            )

            results.append(
                PlantPerformanceRatio(
                    plant_id=plant.plant_id,
                    name=plant.name,
                    kwp=plant.installed_power_kwp,
                    expected_kwh=expected_kwh,
                    actual_kwh=actual_kwh,
                    pr_percent=pr_percent,
                    pr_status=status,
                    hsp_kwh_m2=hsp.value,
                    hsp_provenance=hsp.source,
                    deviation_percent=deviation,
                    confidence_score=confidence.total,
                )
            )

        return sorted(results, key=_sort_key)

    def get_stored_performance_ratios(self, as_of: date | None = None) -> list[PlantPerformanceRatio]:
        """Run :meth:`get_performance_ratios` over the stored roster and readings.

        Only closed days (month start up to the day before *as_of*) are read.
        """
        as_of = as_of or date.today()
        month_start, _ = month_window(as_of)

        plants = [
            PlantInput(
                plant_id=p.plant_id,
                name=p.name,
                installed_power_kwp=p.installed_power_kwp,
                latitude=p.latitude,
                longitude=p.longitude,
                losses=_losses_for(p),
            )
            for p in self._db.list_plants()
        ]
        readings = [
            ReadingInput(plant_id=r.plant_id, energy_kwh=r.energy_kwh, peak_power_kw=r.peak_power_kw)
            for r in self._db.get_readings(month_start, as_of - timedelta(days=1))
        ]
        log.debug("Computing PR for %d plant(s), %d reading(s) as of %s", len(plants), len(readings), as_of)
        return self.get_performance_ratios(plants, readings, as_of=as_of)
