"""Closed-form anisotropic scale factors from two first-ring HCP peaks."""

from __future__ import annotations

import logging
from typing import List, Optional

import numpy as np

from hcpCalibrator.calibrate_hcp.model import (
    CalibrationResult,
    Degeneracy,
    RefinedPeak,
    ScaleSource,
)

_X_REASONS = {
    Degeneracy.X_MAGNITUDES_EQUAL,
    Degeneracy.X1_ZERO,
    Degeneracy.DENOMINATOR_ZERO,
    Degeneracy.X_NOT_FINITE,
}
_Y_REASONS = {
    Degeneracy.Y_MAGNITUDES_EQUAL,
    Degeneracy.DENOMINATOR_ZERO,
    Degeneracy.Y_NOT_FINITE,
}


def reciprocal_ring_radius(lattice: float) -> float:
    """Return the first-ring reciprocal magnitude ``2 / (sqrt(3) * a)`` of an HCP lattice.

    Parameters:
        lattice: Real-space nearest-neighbour spacing.

    Returns:
        Reciprocal-space radius in inverse lattice units.
    """

    if not lattice > 0:
        raise ValueError(f"Lattice constant must be positive, got {lattice}.")
    return 2.0 / (np.sqrt(3.0) * lattice)


def solve_scale_factors(
    first: RefinedPeak,
    second: RefinedPeak,
    lattice: float,
    logger: Optional[logging.Logger] = None,
) -> CalibrationResult:
    """Solve for the X/Y scale factors that put both peaks on the first ring.

    The corrected peaks ``(x * Xcorr, y * Ycorr)`` must both have the
    magnitude ``R`` of the ideal reciprocal ring, which gives::

        Ycorr = R * sqrt((x1^2 - x2^2) / (x1^2 y2^2 - x2^2 y1^2))
        Xcorr = sqrt((R^2 - Ycorr^2 y1^2) / x1^2)

    and the real-space factors are ``1 / Xcorr`` and ``1 / Ycorr``. The
    equations are not symmetric in the peaks, so ``first`` must be the
    first selected peak. Ill-posed geometry never raises: it is reported
    through the warning flags and degeneracy reasons while the (possibly
    non-finite) factors are still returned.

    Parameters:
        first: First selected peak (offset-corrected spectrum frame).
        second: Second selected peak.
        lattice: Real-space nearest-neighbour spacing.
        logger: Optional logger instance.

    Returns:
        CalibrationResult for the peak pair.
    """

    logger = logger or logging.getLogger(__name__)
    radius = reciprocal_ring_radius(lattice)
    x1_2, y1_2 = first.x**2, first.y**2
    x2_2, y2_2 = second.x**2, second.y**2
    denominator = x1_2 * y2_2 - x2_2 * y1_2
    with np.errstate(divide="ignore", invalid="ignore", over="ignore"):
        y_corr = radius * np.sqrt(np.float64(x1_2 - x2_2) / np.float64(denominator))
        x_corr = np.sqrt((radius**2 - y_corr**2 * y1_2) / np.float64(x1_2))
        x_scale = float(np.float64(1.0) / x_corr)
        y_scale = float(np.float64(1.0) / y_corr)
    reasons: List[Degeneracy] = []
    if x1_2 == x2_2:
        reasons.append(Degeneracy.X_MAGNITUDES_EQUAL)
    if y1_2 == y2_2:
        reasons.append(Degeneracy.Y_MAGNITUDES_EQUAL)
    if x1_2 == 0:
        reasons.append(Degeneracy.X1_ZERO)
    if denominator == 0:
        reasons.append(Degeneracy.DENOMINATOR_ZERO)
    if not np.isfinite(x_scale):
        reasons.append(Degeneracy.X_NOT_FINITE)
    if not np.isfinite(y_scale):
        reasons.append(Degeneracy.Y_NOT_FINITE)
    result = CalibrationResult(
        x_scale=x_scale,
        y_scale=y_scale,
        x_warning=any(reason in _X_REASONS for reason in reasons),
        y_warning=any(reason in _Y_REASONS for reason in reasons),
        reasons=tuple(reasons),
        source=ScaleSource.SOLVED,
    )
    if result.warning:
        logger.warning(
            "Degenerate peak pair (%s); X scale=%s, Y scale=%s.",
            ", ".join(reason.value for reason in reasons),
            x_scale,
            y_scale,
        )
    else:
        logger.info("Solved scale factors X=%.5f Y=%.5f.", x_scale, y_scale)
    return result


def manual_scale_factors(x_scale: float, y_scale: float) -> CalibrationResult:
    """Return a result holding directly entered factors with warnings cleared.

    Parameters:
        x_scale: Entered X factor.
        y_scale: Entered Y factor.

    Returns:
        CalibrationResult marked as manual.
    """

    return CalibrationResult(
        x_scale=float(x_scale),
        y_scale=float(y_scale),
        x_warning=False,
        y_warning=False,
        reasons=(),
        source=ScaleSource.MANUAL,
    )
