"""Lateral calibration of SPM images against a known HCP lattice."""

from hcpCalibrator.calibrate_hcp.collection import ImageCollection
from hcpCalibrator.calibrate_hcp.model import (
    CalibrationResult,
    Degeneracy,
    RefinedPeak,
    ScaleSource,
    SpmImage,
)
from hcpCalibrator.calibrate_hcp.session import CalibrationSession, SessionState
from hcpCalibrator.calibrate_hcp.settings import CalibrationSettings, SettingsStore

__all__ = [
    "CalibrationResult",
    "CalibrationSession",
    "CalibrationSettings",
    "Degeneracy",
    "ImageCollection",
    "RefinedPeak",
    "ScaleSource",
    "SessionState",
    "SettingsStore",
    "SpmImage",
]
