"""Peak-sun-hours (HSP) resolution chain.

Daily resolution walks these tiers in order and stops at the first one that
yields a value:

1.  ``cache``: daily HSP stored within ±0.1° of the plant for the
    exact date; highest confidence wins.
2.  ``regional_premise``: monthly premise for the plant's macro-region.
3.  ``national_fallback``: monthly premise for the whole country.
4.  ``unavailable``: value ``None``, confidence ``none``.

Monthly averages start at tier 2.  ``unavailable`` is a legitimate result,
not an error; it must reach the caller as ``None`` and is never replaced by
a guessed number.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from typing import Callable, Optional

from api.db.client import DatabaseClient
from lib.constants import HSP_CACHE_BOX_DEG, NATIONAL_REGION
from lib.regions import classify_region
from lib.types import HspConfidence, HspSource

log = logging.getLogger(__name__)

_CONFIDENCE_RANK: dict[str, int] = {"high": 3, "medium": 2, "low": 1}


@dataclass(frozen=True)
class HspResult:
    value: Optional[float]
    source: HspSource
    confidence: HspConfidence

    @property
    def available(self) -> bool:
        return self.value is not None


UNAVAILABLE = HspResult(value=None, source="unavailable", confidence="none")

HspStep = Callable[[], Optional[HspResult]]


def _run_chain(steps: list[tuple[str, HspStep]]) -> HspResult:
    for name, step in steps:
        result = step()
        if result is not None:
            return result
        log.debug("HSP tier %s had no value, falling through.", name)
    return UNAVAILABLE


class HspService:

    def __init__(self, db: DatabaseClient | None = None) -> None:
        self._db = db or DatabaseClient()

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    def _from_daily_cache(self, lat: float, lon: float, day: date) -> Optional[HspResult]:
        rows = [
            r for r in self._db.get_daily_hsp_near(lat, lon, day, HSP_CACHE_BOX_DEG)
            if r.hsp_kwh_m2 is not None and r.hsp_kwh_m2 > 0 and r.confidence in _CONFIDENCE_RANK
        ]
        if not rows:
            return None
        best = max(rows, key=lambda r: _CONFIDENCE_RANK[r.confidence])
        return HspResult(value=best.hsp_kwh_m2, source="cache", confidence=best.confidence)

    def _from_premise(self, region: str, month: int, source: HspSource, confidence: HspConfidence) -> Optional[HspResult]:
        premise = self._db.get_premise(region, month)
        if premise is None or premise.hsp_kwh_m2 is None or premise.hsp_kwh_m2 <= 0:
            return None
        return HspResult(value=premise.hsp_kwh_m2, source=source, confidence=confidence)

    def _premise_steps(self, lat: float, lon: float, month: int) -> list[tuple[str, HspStep]]:
        region = classify_region(lat, lon)
        return [
            ("regional_premise", lambda: self._from_premise(region, month, "regional_premise", "medium")),
            ("national_fallback", lambda: self._from_premise(NATIONAL_REGION, month, "national_fallback", "low")),
        ]

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def get_daily_hsp(self, lat: float, lon: float, day: date) -> HspResult:
        steps: list[tuple[str, HspStep]] = [("cache", lambda: self._from_daily_cache(lat, lon, day))]
        steps.extend(self._premise_steps(lat, lon, day.month))
        return _run_chain(steps)

    def get_monthly_avg_hsp(self, lat: float, lon: float, month: int) -> HspResult:
        if not 1 <= month <= 12:
            raise ValueError(f"month must be in 1..12, got {month}")
        return _run_chain(self._premise_steps(lat, lon, month))
