"""Scale-factor solving and calibrated resampling."""

from hcpCalibrator.calibrate_hcp.scaling.resample import Resampler, target_resolution
from hcpCalibrator.calibrate_hcp.scaling.solver import (
    manual_scale_factors,
    reciprocal_ring_radius,
    solve_scale_factors,
)

__all__ = [
    "Resampler",
    "manual_scale_factors",
    "reciprocal_ring_radius",
    "solve_scale_factors",
    "target_resolution",
]
