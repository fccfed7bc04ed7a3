"""Pytest configuration and shared fixtures for calibration tests."""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import numpy as np
import pytest


def pytest_configure() -> None:
    """Ensure the repository root is on sys.path for imports."""

    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))


@pytest.fixture
def logger() -> logging.Logger:
    """Return a logger for tests."""

    return logging.getLogger("hcp_calibrator_tests")


@pytest.fixture
def peak_spectrum():
    """Return a 256x256 unit-pitch image with one Gaussian peak at column 169, row 151."""

    from hcpCalibrator.calibrate_hcp.model import SpmImage

    rows, columns = np.mgrid[0:256, 0:256]
    data = np.exp(-((columns - 169) ** 2 + (rows - 151) ** 2) / (2.0 * 2.0**2))
    return SpmImage(
        data=data,
        xreal=256.0,
        yreal=256.0,
        xoffset=-128.0,
        yoffset=-128.0,
        xy_unit="1/m",
        title="peak",
    )


@pytest.fixture
def lattice_config():
    """Return configuration values for a 10 nm field of a 0.246 nm lattice."""

    return {
        "xres": 256,
        "yres": 256,
        "xreal": 10e-9,
        "yreal": 10e-9,
        "lattice": 0.246e-9,
        "rotation_deg": 0.0,
        "x_distortion": 1.0,
        "y_distortion": 1.0,
        "noise_sigma": 0.0,
        "seed": 7,
    }
