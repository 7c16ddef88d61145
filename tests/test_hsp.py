"""Tests for api.services.hsp – tiered HSP resolution."""

from datetime import date

import pytest

from api.services.hsp import UNAVAILABLE, HspService

SP_LAT, SP_LON = -23.5, -46.6  # sudeste
DAY = date(2025, 3, 10)


@pytest.fixture
def service(db) -> HspService:
    return HspService(db=db)


def _premises(db, region: str, month: int, value: float) -> None:
    db.upsert_premises_bulk([{"region": region, "month": month, "hsp_kwh_m2": value}])


def _cached(db, lat: float, lon: float, value: float, confidence: str, day: date = DAY) -> None:
    db.upsert_daily_hsp_bulk(
        [{"latitude": lat, "longitude": lon, "day": day, "hsp_kwh_m2": value, "confidence": confidence}]
    )


# ---------------------------------------------------------------------------
# Daily
# ---------------------------------------------------------------------------


def test_cache_tier_wins(db, service):
    _cached(db, SP_LAT, SP_LON, 5.8, "high")
    _premises(db, "sudeste", 3, 4.9)
    result = service.get_daily_hsp(SP_LAT, SP_LON, DAY)
    assert (result.value, result.source, result.confidence) == (5.8, "cache", "high")


def test_cache_tier_prefers_highest_confidence(db, service):
    _cached(db, SP_LAT, SP_LON, 4.0, "low")
    _cached(db, SP_LAT + 0.05, SP_LON, 6.1, "high")
    _cached(db, SP_LAT, SP_LON + 0.05, 5.0, "medium")
    result = service.get_daily_hsp(SP_LAT, SP_LON, DAY)
    assert result.value == 6.1
    assert result.confidence == "high"


def test_cache_outside_box_or_other_day_is_ignored(db, service):
    _cached(db, SP_LAT + 0.3, SP_LON, 6.0, "high")
    _cached(db, SP_LAT, SP_LON, 6.0, "high", day=date(2025, 3, 11))
    _premises(db, "sudeste", 3, 4.9)
    result = service.get_daily_hsp(SP_LAT, SP_LON, DAY)
    assert result.source == "regional_premise"


def test_non_positive_cache_value_falls_through(db, service):
    _cached(db, SP_LAT, SP_LON, 0.0, "high")
    _premises(db, "sudeste", 3, 4.9)
    assert service.get_daily_hsp(SP_LAT, SP_LON, DAY).source == "regional_premise"


def test_regional_premise_is_medium(db, service):
    _premises(db, "sudeste", 3, 4.9)
    _premises(db, "brasil", 3, 5.1)
    result = service.get_daily_hsp(SP_LAT, SP_LON, DAY)
    assert (result.value, result.source, result.confidence) == (4.9, "regional_premise", "medium")


def test_other_region_premise_is_not_used(db, service):
    _premises(db, "nordeste", 3, 6.0)
    _premises(db, "brasil", 3, 5.1)
    result = service.get_daily_hsp(SP_LAT, SP_LON, DAY)
    assert (result.value, result.source, result.confidence) == (5.1, "national_fallback", "low")


def test_zero_regional_premise_falls_through(db, service):
    _premises(db, "sudeste", 3, 0.0)
    _premises(db, "brasil", 3, 5.1)
    assert service.get_daily_hsp(SP_LAT, SP_LON, DAY).source == "national_fallback"


def test_nothing_available(service):
    result = service.get_daily_hsp(SP_LAT, SP_LON, DAY)
    assert result == UNAVAILABLE
    assert result.value is None
    assert result.confidence == "none"
    assert result.available is False


# ---------------------------------------------------------------------------
# Monthly
# ---------------------------------------------------------------------------


def test_monthly_skips_daily_cache(db, service):
    _cached(db, SP_LAT, SP_LON, 6.5, "high", day=date(2025, 6, 1))
    _premises(db, "sudeste", 6, 3.9)
    result = service.get_monthly_avg_hsp(SP_LAT, SP_LON, 6)
    assert (result.value, result.source) == (3.9, "regional_premise")


def test_monthly_unavailable(service):
    assert service.get_monthly_avg_hsp(SP_LAT, SP_LON, 6) == UNAVAILABLE


@pytest.mark.parametrize("month", [0, 13])
def test_monthly_rejects_bad_month(service, month):
    with pytest.raises(ValueError):
        service.get_monthly_avg_hsp(SP_LAT, SP_LON, month)
