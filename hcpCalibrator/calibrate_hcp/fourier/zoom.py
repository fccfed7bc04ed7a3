"""Display zoom of the spectrum and zoom-consistent peak remapping."""

from __future__ import annotations

import logging
from typing import List, Optional

from hcpCalibrator.calibrate_hcp.fourier.peaks import Point, PeakSelection, refine_selection
from hcpCalibrator.calibrate_hcp.model import RefinedPeak, SpmImage

ZOOM_FACTORS = (1, 2)


def build_display(spectrum: SpmImage, factor: int, order: int = 1) -> SpmImage:
    """Return the display image of ``spectrum`` at a zoom factor.

    The central ``(W // factor) | 1`` by ``(H // factor) | 1`` area is
    interpolated back to the full resolution; extents and offsets are
    divided by the factor. The odd window is one source pixel wider than
    the displayed extent and the interpolation maps pixel centers, so
    peaks refined at x2 sit up to half a full-resolution pixel high.

    Parameters:
        spectrum: Full spectrum image.
        factor: Zoom factor, 1 or 2.
        order: Interpolation order for the upsampling.

    Returns:
        Display SpmImage.
    """

    if factor not in ZOOM_FACTORS:
        raise ValueError(f"Zoom factor must be one of {ZOOM_FACTORS}, got {factor}.")
    if factor == 1:
        display = spectrum.duplicate()
    else:
        width = min((spectrum.xres // factor) | 1, spectrum.xres)
        height = min((spectrum.yres // factor) | 1, spectrum.yres)
        area = spectrum.area_extract(
            (spectrum.xres - width) // 2, (spectrum.yres - height) // 2, width, height
        )
        display = area.resampled(spectrum.xres, spectrum.yres, order=order)
    return display.duplicate(
        xreal=spectrum.xreal / factor,
        yreal=spectrum.yreal / factor,
        xoffset=spectrum.xoffset / factor,
        yoffset=spectrum.yoffset / factor,
        xy_unit=spectrum.xy_unit,
        z_unit=spectrum.z_unit,
    )


class ZoomView:
    """Hold the zoomed display of a spectrum and keep picks anchored to it.

    Parameters:
        spectrum: Full spectrum image.
        factor: Initial zoom factor.
        order: Interpolation order used when zooming in.
        logger: Optional logger instance.
    """

    def __init__(
        self,
        spectrum: SpmImage,
        factor: int = 1,
        order: int = 1,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._spectrum = spectrum
        self._order = order
        self._factor = factor
        self._display = build_display(spectrum, factor, order)

    @property
    def factor(self) -> int:
        """Return the current zoom factor."""

        return self._factor

    @property
    def spectrum(self) -> SpmImage:
        """Return the full spectrum image."""

        return self._spectrum

    @property
    def display(self) -> SpmImage:
        """Return the current display image."""

        return self._display

    def remapped_points(self, factor: int, selection: PeakSelection) -> List[Point]:
        """Return the selection points expressed in the display frame of ``factor``.

        Each point is moved to the physical frame with the current
        display offset and back into the frame of the new display.

        Parameters:
            factor: Target zoom factor.
            selection: Live selection.

        Returns:
            Remapped local points in selection order.
        """

        previous = self._display
        return [
            (
                point[0] + previous.xoffset - self._spectrum.xoffset / factor,
                point[1] + previous.yoffset - self._spectrum.yoffset / factor,
            )
            for point in selection.points()
        ]

    def out_of_frame(self, factor: int, selection: PeakSelection) -> List[int]:
        """Return indices of points that would leave the display at ``factor``.

        Parameters:
            factor: Target zoom factor.
            selection: Live selection.

        Returns:
            Indices of points outside ``[0, xreal] x [0, yreal]`` of the
            display built for ``factor``.
        """

        if factor not in ZOOM_FACTORS:
            raise ValueError(f"Zoom factor must be one of {ZOOM_FACTORS}, got {factor}.")
        xreal = self._spectrum.xreal / factor
        yreal = self._spectrum.yreal / factor
        return [
            index
            for index, (x, y) in enumerate(self.remapped_points(factor, selection))
            if not (0 <= x <= xreal and 0 <= y <= yreal)
        ]

    def set_factor(
        self, factor: int, selection: PeakSelection, radius: int
    ) -> List[RefinedPeak]:
        """Change the zoom factor and re-anchor every selected point.

        Each point is remapped into the new display frame, written back
        and re-snapped against the new display image. A change that
        would move a point outside the new display is refused, leaving
        the view and the selection untouched.

        Parameters:
            factor: New zoom factor.
            selection: Live selection to remap in place.
            radius: Peak search radius in pixels.

        Returns:
            Refined peaks in selection order.

        Raises:
            ValueError: If the factor is unsupported or a point would
                leave the new display.
        """

        outside = self.out_of_frame(factor, selection)
        if outside:
            raise ValueError(
                f"Peak(s) {[index + 1 for index in outside]} lie outside the x{factor} display."
            )
        display = build_display(self._spectrum, factor, self._order)
        for index, point in enumerate(self.remapped_points(factor, selection)):
            selection.set(index, point)
        self._logger.info(
            "Zoom changed x%s -> x%s; remapping %s selected point(s).",
            self._factor,
            factor,
            len(selection),
        )
        self._factor = factor
        self._display = display
        return refine_selection(selection, display, radius)
