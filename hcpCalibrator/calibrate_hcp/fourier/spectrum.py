"""Fourier magnitude spectrum construction."""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import numpy as np

from hcpCalibrator.calibrate_hcp.model import SpmImage
from hcpCalibrator.calibrate_hcp.utils import invert_unit


def hann_window(shape: Tuple[int, int]) -> np.ndarray:
    """Return a separable 2D Hann window.

    Parameters:
        shape: Window shape (rows, columns).

    Returns:
        2D window array.
    """

    rows, columns = shape
    return np.outer(np.hanning(rows), np.hanning(columns))


def fft_planes(data: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
    """Return the real and imaginary planes of a conditioned forward 2D DFT.

    The mean is subtracted and a Hann window applied before the
    transform, which uses orthonormal scaling.

    Parameters:
        data: 2D real-space samples.

    Returns:
        Tuple of (real, imaginary) planes shaped like ``data``.
    """

    conditioned = (data - np.mean(data)) * hann_window(data.shape)
    transform = np.fft.fft2(conditioned, norm="ortho")
    return transform.real, transform.imag


def humanize(data: np.ndarray) -> np.ndarray:
    """Swap quadrants so the zero-frequency sample sits at (rows//2, cols//2)."""

    return np.fft.fftshift(data)


def build_spectrum(image: SpmImage, logger: Optional[logging.Logger] = None) -> SpmImage:
    """Build the centered Fourier magnitude image of a real-space image.

    The result has reciprocal lateral units, extents equal to the
    reciprocal of the input sampling interval, offsets placing the
    zero-frequency pixel at (0, 0) and a floor of exactly zero.

    Parameters:
        image: Real-space image.
        logger: Optional logger instance.

    Returns:
        Spectrum SpmImage.
    """

    logger = logger or logging.getLogger(__name__)
    real, imag = fft_planes(image.data)
    modulus = humanize(np.hypot(real, imag))
    modulus = modulus - np.min(modulus)
    xreal = 1.0 / image.dx
    yreal = 1.0 / image.dy
    spectrum = SpmImage(
        data=modulus,
        xreal=xreal,
        yreal=yreal,
        xoffset=-(image.xres // 2) * (xreal / image.xres),
        yoffset=-(image.yres // 2) * (yreal / image.yres),
        xy_unit=invert_unit(image.xy_unit),
        z_unit=image.z_unit,
        title=f"{image.title} FFT".strip(),
    )
    logger.info(
        "Built %sx%s spectrum (pitch %.4g x %.4g %s).",
        spectrum.xres,
        spectrum.yres,
        spectrum.dx,
        spectrum.dy,
        spectrum.xy_unit,
    )
    return spectrum
