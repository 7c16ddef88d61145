"""Tests for api.services.alerts.classify_alert."""

import pytest

from api.services.alerts import classify_alert


def test_urgent_on_large_sustained_deviation():
    result = classify_alert(95, "ok", 35.0, consecutive_days=3)
    assert result.layer == "urgent"
    assert result.blocked is False


def test_low_confidence_overrides_large_deviation():
    result = classify_alert(75, "ok", 50.0, consecutive_days=10)
    assert result.layer == "internal"
    assert result.blocked is True


def test_preventive_on_moderate_week_long_deviation():
    result = classify_alert(85, "ok", 15.0, consecutive_days=7)
    assert result.layer == "preventive"
    assert result.blocked is False


@pytest.mark.parametrize("status", ["no_data", "config_required", "irradiation_unavailable"])
def test_untrusted_status_always_blocked(status):
    result = classify_alert(100, status, 80.0, consecutive_days=30, is_offline=True)
    assert result.layer == "internal"
    assert result.blocked is True


def test_offline_urgent_with_high_confidence():
    result = classify_alert(90, "ok", None, is_offline=True)
    assert result.layer == "urgent"
    assert result.reason == "plant_offline"


def test_zero_generation_urgent_with_high_confidence():
    result = classify_alert(92, "ok", 0.0, is_zero_gen_with_high_hsp=True)
    assert result.layer == "urgent"
    assert result.blocked is False


def test_offline_needs_urgent_confidence_floor():
    result = classify_alert(85, "ok", None, is_offline=True)
    assert result.layer == "internal"
    assert result.blocked is True


def test_large_deviation_below_urgent_floor_is_not_urgent():
    # 85 is admitted but below 90; 35 % is outside the preventive band
    result = classify_alert(85, "ok", 35.0, consecutive_days=10)
    assert result.layer == "internal"
    assert result.blocked is True


def test_large_deviation_single_day_is_not_urgent():
    result = classify_alert(95, "ok", 45.0, consecutive_days=1)
    assert result.layer == "internal"


def test_thirty_percent_is_not_urgent_but_is_preventive():
    result = classify_alert(95, "ok", 30.0, consecutive_days=7)
    assert result.layer == "preventive"


@pytest.mark.parametrize("deviation, days", [(10.0, 7), (30.0, 7), (20.0, 14)])
def test_preventive_band_inclusive(deviation, days):
    assert classify_alert(80, "ok", deviation, consecutive_days=days).layer == "preventive"


@pytest.mark.parametrize("deviation, days", [(9.9, 7), (15.0, 6)])
def test_below_preventive_threshold(deviation, days):
    result = classify_alert(88, "ok", deviation, consecutive_days=days)
    assert result.layer == "internal"
    assert result.blocked is True
