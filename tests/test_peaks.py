"""Tests for peak refinement and the peak selection store."""

from __future__ import annotations

import numpy as np
import pytest

from hcpCalibrator.calibrate_hcp.fourier.peaks import (
    PeakSelection,
    find_peak,
    refine_selection,
)
from hcpCalibrator.calibrate_hcp.model import SpmImage


def _cone(shape, column: int, row: int, offset: float = 0.0) -> SpmImage:
    """Return a unit-pitch image with a single strict maximum."""

    rows, columns = np.mgrid[0 : shape[0], 0 : shape[1]]
    data = 100.0 - np.hypot(columns - column, rows - row)
    return SpmImage(
        data=data, xreal=float(shape[1]), yreal=float(shape[0]), xoffset=offset, yoffset=offset
    )


@pytest.mark.parametrize("radius", [1, 2, 3, 5])
def test_find_peak_converges_from_anywhere_in_window(radius: int) -> None:
    """Ensure every start whose window contains the maximum reaches it."""

    image = _cone((40, 50), column=20, row=30)
    for start_column in range(20 - radius + 1, 20 + radius + 1):
        for start_row in range(30 - radius + 1, 30 + radius + 1):
            search = find_peak(image, (float(start_column), float(start_row)), radius)
            assert search.point == (20.0, 30.0)
            assert search.peak.value == pytest.approx(100.0)


def test_find_peak_radius_zero_keeps_pixel() -> None:
    """Ensure radius 0 returns the pixel under the point."""

    image = _cone((40, 50), column=20, row=30)
    search = find_peak(image, (12.2, 7.8), 0)
    assert search.point == (12.0, 8.0)
    assert not search.moved
    assert search.peak.value == pytest.approx(image.value(12, 8))


def test_find_peak_adds_offset() -> None:
    """Ensure refined peaks are reported in offset-corrected coordinates."""

    image = _cone((40, 50), column=20, row=30, offset=-25.0)
    search = find_peak(image, (21.0, 31.0), 3)
    assert search.moved
    assert search.point == (20.0, 30.0)
    assert (search.peak.x, search.peak.y) == (-5.0, 5.0)


def test_find_peak_clips_window_at_edges() -> None:
    """Ensure windows reaching outside the image are clipped, not errors."""

    image = _cone((10, 10), column=0, row=0)
    search = find_peak(image, (2.0, 1.0), 8)
    assert search.point == (0.0, 0.0)
    search = find_peak(image, (-3.0, 40.0), 2)
    assert 0.0 <= search.point[0] < 10.0
    assert 0.0 <= search.point[1] < 10.0


def test_find_peak_ties_prefer_first_in_row_major_order() -> None:
    """Ensure equal maxima resolve to the earliest row-major pixel."""

    data = np.zeros((10, 10))
    data[4, 6] = 5.0
    data[5, 3] = 5.0
    image = SpmImage(data=data, xreal=10.0, yreal=10.0)
    search = find_peak(image, (5.0, 5.0), 3)
    assert search.point == (6.0, 4.0)


def test_find_peak_rejects_negative_radius() -> None:
    """Ensure a negative radius is a programming error."""

    image = _cone((10, 10), column=5, row=5)
    with pytest.raises(ValueError):
        find_peak(image, (5.0, 5.0), -1)


def test_refine_selection_snaps_points() -> None:
    """Ensure moved points are written back in local coordinates."""

    image = _cone((40, 50), column=20, row=30, offset=-10.0)
    selection = PeakSelection()
    selection.append((22.0, 29.0))
    selection.append((5.0, 5.0))
    peaks = refine_selection(selection, image, 3)
    assert selection.get(0) == (20.0, 30.0)
    assert (peaks[0].x, peaks[0].y) == (10.0, 20.0)
    assert selection.get(1) == (7.0, 7.0)


def test_peak_selection_caps_at_two_points() -> None:
    """Ensure the selection holds at most two points and notifies listeners."""

    changes = []
    selection = PeakSelection()
    selection.connect(lambda store: changes.append(len(store)))
    assert selection.append((1.0, 1.0)) == 0
    assert selection.append((2.0, 2.0)) == 1
    assert selection.is_full()
    assert selection.append((3.0, 3.0)) is None
    assert selection.set(5, (3.0, 3.0)) is False
    assert selection.remove(0)
    assert selection.points() == [(2.0, 2.0)]
    selection.clear()
    assert len(selection) == 0
    assert changes == [1, 2, 1, 0]
