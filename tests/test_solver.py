"""Tests for the closed-form scale-factor solver."""

from __future__ import annotations

import math

import numpy as np
import pytest

from hcpCalibrator.calibrate_hcp.model import Degeneracy, RefinedPeak, ScaleSource
from hcpCalibrator.calibrate_hcp.scaling.solver import (
    manual_scale_factors,
    reciprocal_ring_radius,
    solve_scale_factors,
)

LATTICE = 0.246e-9


def _ring_peak(angle_deg: float, x_distortion: float = 1.0, y_distortion: float = 1.0) -> RefinedPeak:
    radius = reciprocal_ring_radius(LATTICE)
    theta = np.deg2rad(angle_deg)
    return RefinedPeak(
        x=float(radius * np.cos(theta) * x_distortion),
        y=float(radius * np.sin(theta) * y_distortion),
        value=1.0,
    )


def test_ring_radius() -> None:
    """Ensure the first reciprocal ring of an HCP lattice is 2 / (sqrt(3) a)."""

    assert reciprocal_ring_radius(1.0) == pytest.approx(2.0 / math.sqrt(3.0))
    with pytest.raises(ValueError):
        reciprocal_ring_radius(0.0)


def test_ideal_peaks_give_unit_scales() -> None:
    """Ensure undistorted first-ring peaks need no correction."""

    result = solve_scale_factors(_ring_peak(40.0), _ring_peak(100.0), LATTICE)
    assert result.x_scale == pytest.approx(1.0)
    assert result.y_scale == pytest.approx(1.0)
    assert not result.warning
    assert result.reasons == ()
    assert result.source is ScaleSource.SOLVED


def test_distorted_peaks_recover_distortion() -> None:
    """Ensure stretched peaks yield the stretch factors as scales."""

    first = _ring_peak(40.0, x_distortion=1.08, y_distortion=0.93)
    second = _ring_peak(100.0, x_distortion=1.08, y_distortion=0.93)
    result = solve_scale_factors(first, second, LATTICE)
    assert result.x_scale == pytest.approx(1.08)
    assert result.y_scale == pytest.approx(0.93)
    assert not result.x_warning
    assert not result.y_warning


def test_mirrored_peaks_on_x_axis_flag_both_axes() -> None:
    """Ensure (x, 0) and (-x, 0) are reported as degenerate on both axes."""

    result = solve_scale_factors(
        RefinedPeak(3e9, 0.0, 1.0), RefinedPeak(-3e9, 0.0, 1.0), LATTICE
    )
    assert result.x_warning
    assert result.y_warning
    assert result.warning
    assert Degeneracy.X_MAGNITUDES_EQUAL in result.reasons
    assert Degeneracy.Y_MAGNITUDES_EQUAL in result.reasons
    assert Degeneracy.DENOMINATOR_ZERO in result.reasons
    assert not math.isfinite(result.x_scale)
    assert not math.isfinite(result.y_scale)


def test_equal_y_magnitudes_flag_y() -> None:
    """Ensure peaks sharing |y| set the Y warning."""

    result = solve_scale_factors(
        RefinedPeak(4e9, 2e9, 1.0), RefinedPeak(1e9, -2e9, 1.0), LATTICE
    )
    assert result.y_warning
    assert Degeneracy.Y_MAGNITUDES_EQUAL in result.reasons


def test_first_peak_on_y_axis_flags_x() -> None:
    """Ensure x1 == 0 sets the X warning."""

    result = solve_scale_factors(
        RefinedPeak(0.0, 4.7e9, 1.0), RefinedPeak(4.0e9, 2.3e9, 1.0), LATTICE
    )
    assert result.x_warning
    assert Degeneracy.X1_ZERO in result.reasons


def test_collinear_peaks_flag_both_axes() -> None:
    """Ensure peaks on one line through the origin are degenerate."""

    result = solve_scale_factors(
        RefinedPeak(2e9, 1e9, 1.0), RefinedPeak(4e9, 2e9, 1.0), LATTICE
    )
    assert result.x_warning
    assert result.y_warning
    assert Degeneracy.DENOMINATOR_ZERO in result.reasons


def test_manual_factors_clear_warnings() -> None:
    """Ensure directly entered factors carry no warnings."""

    result = manual_scale_factors(2.0, 1.0)
    assert (result.x_scale, result.y_scale) == (2.0, 1.0)
    assert not result.warning
    assert result.source is ScaleSource.MANUAL
    assert result.metadata("scan") == {
        "Source Title": "scan",
        "X Scaling Factor": "2.00000",
        "Y Scaling Factor": "1.00000",
    }
