"""Peak selection storage and local-maximum refinement."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, List, Optional, Tuple

import numpy as np

from hcpCalibrator.calibrate_hcp.model import RefinedPeak, SpmImage

Point = Tuple[float, float]

MAX_PEAKS = 2


@dataclass(frozen=True)
class PeakSearch:
    """Outcome of a single peak refinement.

    Parameters:
        peak: Refined peak in physical coordinates.
        point: Local (pre-offset) coordinates of the chosen pixel.
        moved: Whether the chosen pixel differs from the pixel under the input,
            or the input lay outside the image and was clipped to it.
    """

    peak: RefinedPeak
    point: Point
    moved: bool


def find_peak(image: SpmImage, point: Point, radius: int) -> PeakSearch:
    """Snap a point to the strongest pixel in its neighbourhood.

    The window spans ``[i0 - radius, i0 + radius)`` on both axes around
    the nearest pixel and is clipped to the image. The pixel under the
    point is the starting candidate and is only replaced by a strictly
    larger sample; among equal maxima the first in row-major order wins.

    Parameters:
        image: Image to search, usually the current display spectrum.
        point: Local (pre-offset) coordinates of the approximate peak.
        radius: Search radius in pixels.

    Returns:
        PeakSearch describing the refined peak.
    """

    if radius < 0:
        raise ValueError(f"Peak search radius must be non-negative, got {radius}.")
    column = image.rtoj(point[0])
    row = image.rtoi(point[1])
    best_column, best_row = column, row
    best_value = image.value(column, row)
    row_low, row_high = max(row - radius, 0), min(row + radius, image.yres)
    col_low, col_high = max(column - radius, 0), min(column + radius, image.xres)
    window = image.data[row_low:row_high, col_low:col_high]
    if window.size:
        flat_index = int(np.argmax(window))
        window_row, window_column = np.unravel_index(flat_index, window.shape)
        if window[window_row, window_column] > best_value:
            best_row = row_low + int(window_row)
            best_column = col_low + int(window_column)
            best_value = float(window[window_row, window_column])
    local = (image.jtor(best_column), image.itor(best_row))
    peak = RefinedPeak(
        x=local[0] + image.xoffset,
        y=local[1] + image.yoffset,
        value=best_value,
    )
    clipped = not (0 <= point[0] <= image.xreal and 0 <= point[1] <= image.yreal)
    moved = clipped or (best_column, best_row) != (column, row)
    return PeakSearch(peak=peak, point=local, moved=moved)


class PeakSelection:
    """Ordered store of at most two selection points with change listeners.

    Points are held in the local (pre-offset) frame of the display image.

    Parameters:
        logger: Optional logger instance.
    """

    def __init__(self, logger: Optional[logging.Logger] = None) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._points: List[Point] = []
        self._listeners: List[Callable[["PeakSelection"], None]] = []

    def __len__(self) -> int:
        return len(self._points)

    def connect(self, listener: Callable[["PeakSelection"], None]) -> None:
        """Register a callback invoked after every change."""

        self._listeners.append(listener)

    def is_full(self) -> bool:
        """Return True when two points are selected."""

        return len(self._points) >= MAX_PEAKS

    def points(self) -> List[Point]:
        """Return a copy of the selected points in order."""

        return list(self._points)

    def get(self, index: int) -> Optional[Point]:
        """Return the point at ``index`` or None if absent."""

        if 0 <= index < len(self._points):
            return self._points[index]
        return None

    def set(self, index: int, point: Point) -> bool:
        """Replace the point at ``index``, or append when ``index`` is the next slot.

        Parameters:
            index: Index to write.
            point: Local coordinates.

        Returns:
            True if the selection changed, otherwise False.
        """

        point = (float(point[0]), float(point[1]))
        if 0 <= index < len(self._points):
            if self._points[index] == point:
                return False
            self._points[index] = point
        elif index == len(self._points) and not self.is_full():
            self._points.append(point)
        else:
            self._logger.warning(
                "Ignoring selection write at index %s (holding %s of %s points).",
                index,
                len(self._points),
                MAX_PEAKS,
            )
            return False
        self._notify()
        return True

    def append(self, point: Point) -> Optional[int]:
        """Append a point if room remains.

        Returns:
            Index of the new point, or None when the selection is full.
        """

        index = len(self._points)
        if self.set(index, point):
            return index
        return None

    def remove(self, index: int) -> bool:
        """Remove the point at ``index``; later points shift down."""

        if not 0 <= index < len(self._points):
            return False
        del self._points[index]
        self._notify()
        return True

    def clear(self) -> None:
        """Remove every point."""

        if self._points:
            self._points.clear()
            self._notify()

    def _notify(self) -> None:
        for listener in self._listeners:
            listener(self)


def refine_selection(
    selection: PeakSelection, image: SpmImage, radius: int
) -> List[RefinedPeak]:
    """Refine every selected point and snap moved points in place.

    Parameters:
        selection: Selection to refine.
        image: Image the selection points refer to.
        radius: Search radius in pixels.

    Returns:
        Refined peaks in selection order.
    """

    peaks = []
    for index, point in enumerate(selection.points()):
        search = find_peak(image, point, radius)
        if search.moved:
            selection.set(index, search.point)
        peaks.append(search.peak)
    return peaks
