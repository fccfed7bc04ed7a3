"""Spectrum construction, peak refinement and display zoom."""

from hcpCalibrator.calibrate_hcp.fourier.peaks import (
    MAX_PEAKS,
    PeakSearch,
    PeakSelection,
    find_peak,
    refine_selection,
)
from hcpCalibrator.calibrate_hcp.fourier.spectrum import build_spectrum, fft_planes, humanize
from hcpCalibrator.calibrate_hcp.fourier.zoom import ZOOM_FACTORS, ZoomView, build_display

__all__ = [
    "MAX_PEAKS",
    "PeakSearch",
    "PeakSelection",
    "ZOOM_FACTORS",
    "ZoomView",
    "build_display",
    "build_spectrum",
    "fft_planes",
    "find_peak",
    "humanize",
    "refine_selection",
]
