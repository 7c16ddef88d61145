"""Tests for api.solar.transposition."""

import pytest

from api.solar.transposition import (
    EstimatedDhi,
    MeasuredDhi,
    erbs_diffuse_fraction,
    estimate_dhi,
    optimal_tilt,
    transpose,
)
from lib.types import MonthlySeries

GHI = MonthlySeries.from_values([5.3, 5.5, 4.9, 4.3, 3.6, 3.4, 3.5, 4.4, 4.6, 5.0, 5.4, 5.6])
DHI = MonthlySeries.from_values([2.2, 2.1, 1.9, 1.6, 1.3, 1.1, 1.1, 1.4, 1.8, 2.0, 2.2, 2.3])
ZERO = MonthlySeries.from_values([0.0] * 12)


# ---------------------------------------------------------------------------
# Erbs correlation
# ---------------------------------------------------------------------------


def test_erbs_overcast_branch():
    assert erbs_diffuse_fraction(0.1) == pytest.approx(0.991)


def test_erbs_polynomial_branch():
    assert erbs_diffuse_fraction(0.5) == pytest.approx(0.65915, abs=1e-4)


def test_erbs_clear_branch():
    assert erbs_diffuse_fraction(0.9) == pytest.approx(0.165)


def test_erbs_branches_meet_at_low_breakpoint():
    # Both expressions evaluate to roughly the same value at Kt = 0.22
    assert erbs_diffuse_fraction(0.22) == pytest.approx(erbs_diffuse_fraction(0.2201), abs=0.01)


def test_estimate_dhi_zero_inputs():
    assert estimate_dhi(0.0, 10.0) == 0.0
    assert estimate_dhi(5.0, 0.0) == 0.0


def test_estimate_dhi_never_exceeds_ghi():
    assert estimate_dhi(12.0, 10.0) <= 12.0


# ---------------------------------------------------------------------------
# Branch selection
# ---------------------------------------------------------------------------


def test_measured_branch_when_any_dhi_positive():
    dhi = MonthlySeries.from_values([0.0] * 11 + [1.0])
    result = transpose(GHI, dhi, latitude=-23.5, tilt_deg=20)
    assert result.method == MeasuredDhi.method == "liu_jordan_isotropic"
    assert result.dhi_source == "measured"


@pytest.mark.parametrize("dhi", [None, ZERO])
def test_estimated_branch_without_dhi(dhi):
    result = transpose(GHI, dhi, latitude=-23.5, tilt_deg=20)
    assert result.method == EstimatedDhi.method == "ghi_only_estimated"
    assert result.dhi_source == "estimated"


# ---------------------------------------------------------------------------
# POA values
# ---------------------------------------------------------------------------


@pytest.mark.parametrize("dhi", [None, DHI])
def test_flat_panel_poa_equals_ghi(dhi):
    result = transpose(GHI, dhi, latitude=-23.5, tilt_deg=0)
    assert result.poa.values() == pytest.approx(GHI.values(), abs=1e-4)
    assert result.gain_factor == pytest.approx(1.0, abs=1e-3)


def test_zero_ghi_month_gives_zero_poa():
    ghi = MonthlySeries.from_values([0.0] + GHI.values()[1:])
    for lat in (-60, -23.5, 0, 40):
        for tilt in (0, 30, 90):
            result = transpose(ghi, DHI, latitude=lat, tilt_deg=tilt, albedo=1.0)
            assert result.poa.m01 == 0.0


def test_all_zero_ghi_gain_factor_is_one():
    result = transpose(ZERO, None, latitude=-10, tilt_deg=15)
    assert result.poa.values() == [0.0] * 12
    assert result.gain_factor == 1.0


@pytest.mark.parametrize("tilt", [0, 15, 45, 90])
@pytest.mark.parametrize("albedo", [0.0, 0.2, 1.0])
@pytest.mark.parametrize("lat", [-89.0, -33.0, -3.0, 0.0, 45.0, 89.0])
def test_poa_never_negative(tilt, albedo, lat):
    result = transpose(GHI, None, latitude=lat, tilt_deg=tilt, albedo=albedo)
    assert all(v >= 0.0 for v in result.poa.values())


def test_equator_facing_tilt_gains_at_sao_paulo():
    result = transpose(GHI, None, latitude=-23.5, tilt_deg=23)
    assert result.gain_factor > 1.0
    # Winter months benefit most in the southern hemisphere
    assert result.poa.m06 > GHI.m06
    assert result.poa.m12 < GHI.m12


def test_azimuth_deviation_reduces_poa():
    ideal = transpose(GHI, DHI, latitude=-23.5, tilt_deg=23)
    skewed = transpose(GHI, DHI, latitude=-23.5, tilt_deg=23, azimuth_deviation_deg=45)
    assert skewed.poa_annual_avg < ideal.poa_annual_avg


def test_outputs_rounded_to_four_decimals():
    result = transpose(GHI, DHI, latitude=-23.5, tilt_deg=23)
    for v in result.poa.values() + [result.poa_annual_avg, result.gain_factor]:
        assert round(v, 4) == v


# ---------------------------------------------------------------------------
# optimal_tilt
# ---------------------------------------------------------------------------


@pytest.mark.parametrize(
    "lat, expected",
    [(0.0, 5), (-5.0, 10), (-10.0, 10), (-15.0, 15), (-22.5, 23), (24.9, 25), (-25.0, 20), (-30.0, 25)],
)
def test_optimal_tilt(lat, expected):
    assert optimal_tilt(lat) == expected
