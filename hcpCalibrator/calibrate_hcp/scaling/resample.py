"""Apply calibration scale factors to the original real-space image."""

from __future__ import annotations

import logging
import math
from typing import Optional, Tuple

from hcpCalibrator.calibrate_hcp.model import CalibrationResult, SpmImage


def target_resolution(image: SpmImage, result: CalibrationResult) -> Optional[Tuple[int, int]]:
    """Return the calibrated resolution, or None when it cannot be produced.

    The X resolution is kept and the Y resolution becomes
    ``round(yres * y_scale / x_scale)`` so the output pixels stay square.

    Parameters:
        image: Original real-space image.
        result: Calibration result to apply.

    Returns:
        Tuple of (xres, yres), or None for non-finite or non-positive
        factors or a Y resolution below one pixel.
    """

    x_scale, y_scale = result.x_scale, result.y_scale
    if not (math.isfinite(x_scale) and math.isfinite(y_scale)):
        return None
    if x_scale <= 0 or y_scale <= 0:
        return None
    ratio = image.yres * y_scale / x_scale
    if not math.isfinite(ratio):
        return None
    yres = int(round(ratio))
    if yres < 1:
        return None
    return image.xres, yres


class Resampler:
    """Produce calibrated copies of real-space images.

    Parameters:
        order: Interpolation order used for resampling.
        title: Title given to calibrated images.
        logger: Optional logger instance.
    """

    def __init__(
        self,
        order: int = 1,
        title: str = "Calibrated",
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._order = order
        self._title = title

    def can_resample(self, image: SpmImage, result: CalibrationResult) -> bool:
        """Return True if ``result`` yields a valid output resolution for ``image``."""

        return target_resolution(image, result) is not None

    def resample(self, image: SpmImage, result: CalibrationResult) -> SpmImage:
        """Return the calibrated image.

        Parameters:
            image: Original real-space image.
            result: Calibration result to apply.

        Returns:
            Independent SpmImage with scaled extents, carrying provenance
            metadata for the source title and both factors.
        """

        resolution = target_resolution(image, result)
        if resolution is None:
            raise ValueError(
                f"Cannot resample {image.xres}x{image.yres} image with "
                f"X scale={result.x_scale}, Y scale={result.y_scale}."
            )
        xres, yres = resolution
        metadata = dict(image.metadata)
        metadata.update(result.metadata(image.title))
        calibrated = image.resampled(xres, yres, order=self._order).duplicate(
            xreal=image.xreal * result.x_scale,
            yreal=image.yreal * result.y_scale,
            title=self._title,
            metadata=metadata,
        )
        self._logger.info(
            "Resampled %sx%s -> %sx%s; extents %.4g x %.4g %s.",
            image.xres,
            image.yres,
            calibrated.xres,
            calibrated.yres,
            calibrated.xreal,
            calibrated.yreal,
            calibrated.xy_unit,
        )
        return calibrated
