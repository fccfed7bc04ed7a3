"""Data models for HCP lattice calibration."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, replace
from typing import Dict, Optional, Tuple

import numpy as np
from skimage.transform import resize


@dataclass(frozen=True, eq=False)
class SpmImage:
    """Immutable 2D field of real samples with lateral geometry.

    Rows run along Y and columns along X. Pixel ``j`` sits at the real
    coordinate ``j * xreal / xres`` relative to the image origin; adding
    ``xoffset`` gives the physical coordinate. Every operation returns a
    new instance and the sample array is stored read-only.

    Parameters:
        data: 2D sample array shaped (yres, xres).
        xreal: Real-space width of the field.
        yreal: Real-space height of the field.
        xoffset: Physical X coordinate of the field origin.
        yoffset: Physical Y coordinate of the field origin.
        xy_unit: Unit of the lateral axes.
        z_unit: Unit of the sample values.
        title: Human-readable title.
        metadata: Free-form string metadata.
    """

    data: np.ndarray
    xreal: float
    yreal: float
    xoffset: float = 0.0
    yoffset: float = 0.0
    xy_unit: str = "m"
    z_unit: str = ""
    title: str = ""
    metadata: Dict[str, str] = field(default_factory=dict)

    def __post_init__(self) -> None:
        data = np.array(self.data, dtype=np.float64, copy=True)
        if data.ndim != 2 or data.size == 0:
            raise ValueError(f"Image data must be a non-empty 2D array, got shape {data.shape}.")
        if not (self.xreal > 0 and self.yreal > 0):
            raise ValueError(
                f"Image extents must be positive, got xreal={self.xreal}, yreal={self.yreal}."
            )
        data.flags.writeable = False
        object.__setattr__(self, "data", data)
        object.__setattr__(self, "xreal", float(self.xreal))
        object.__setattr__(self, "yreal", float(self.yreal))
        object.__setattr__(self, "xoffset", float(self.xoffset))
        object.__setattr__(self, "yoffset", float(self.yoffset))
        object.__setattr__(self, "metadata", dict(self.metadata))

    @property
    def xres(self) -> int:
        """Return the number of columns."""

        return int(self.data.shape[1])

    @property
    def yres(self) -> int:
        """Return the number of rows."""

        return int(self.data.shape[0])

    @property
    def dx(self) -> float:
        """Return the X sampling interval."""

        return self.xreal / self.xres

    @property
    def dy(self) -> float:
        """Return the Y sampling interval."""

        return self.yreal / self.yres

    def rtoj(self, x: float) -> int:
        """Return the column nearest to a local X coordinate, clipped to bounds."""

        return int(np.clip(round(x / self.dx), 0, self.xres - 1))

    def rtoi(self, y: float) -> int:
        """Return the row nearest to a local Y coordinate, clipped to bounds."""

        return int(np.clip(round(y / self.dy), 0, self.yres - 1))

    def jtor(self, column: float) -> float:
        """Return the local X coordinate of a column index."""

        return column * self.dx

    def itor(self, row: float) -> float:
        """Return the local Y coordinate of a row index."""

        return row * self.dy

    def value(self, column: int, row: int) -> float:
        """Return the sample at a pixel.

        Parameters:
            column: Column index.
            row: Row index.

        Returns:
            Sample value.
        """

        return float(self.data[row, column])

    def min_max(self) -> Tuple[float, float]:
        """Return the minimum and maximum sample values."""

        return float(np.min(self.data)), float(np.max(self.data))

    def duplicate(self, **changes) -> "SpmImage":
        """Return an independent copy with optional field changes.

        Parameters:
            **changes: Dataclass fields to replace in the copy.

        Returns:
            New SpmImage instance.
        """

        return replace(self, **changes)

    def with_data(self, data: np.ndarray) -> "SpmImage":
        """Return a copy carrying new samples and the same geometry."""

        return replace(self, data=data)

    def add(self, constant: float) -> "SpmImage":
        """Return a copy with a constant added to every sample."""

        return self.with_data(self.data + constant)

    def clamped(self, lower: float, upper: float) -> "SpmImage":
        """Return a copy with samples clamped to ``[lower, upper]``."""

        return self.with_data(np.clip(self.data, lower, upper))

    def area_extract(self, column: int, row: int, width: int, height: int) -> "SpmImage":
        """Return a rectangular sub-field.

        Parameters:
            column: First column of the area.
            row: First row of the area.
            width: Number of columns.
            height: Number of rows.

        Returns:
            SpmImage holding the area with the same sampling interval.
        """

        if (
            width <= 0
            or height <= 0
            or column < 0
            or row < 0
            or column + width > self.xres
            or row + height > self.yres
        ):
            raise ValueError(
                f"Area ({column}, {row}, {width}, {height}) lies outside "
                f"{self.xres}x{self.yres} image."
            )
        return replace(
            self,
            data=self.data[row : row + height, column : column + width],
            xreal=width * self.dx,
            yreal=height * self.dy,
            xoffset=self.xoffset + column * self.dx,
            yoffset=self.yoffset + row * self.dy,
        )

    def resampled(self, xres: int, yres: int, order: int = 1) -> "SpmImage":
        """Return a copy interpolated to a new resolution.

        Real-space extents and offsets are unchanged; only the sampling
        interval changes.

        Parameters:
            xres: New number of columns.
            yres: New number of rows.
            order: Spline interpolation order (0 nearest, 1 bilinear, 3 bicubic).

        Returns:
            Resampled SpmImage.
        """

        if xres <= 0 or yres <= 0:
            raise ValueError(f"Resample resolution must be positive, got {xres}x{yres}.")
        if (yres, xres) == self.data.shape:
            return self.duplicate()
        data = resize(
            self.data,
            (yres, xres),
            order=order,
            mode="edge",
            anti_aliasing=False,
            preserve_range=True,
        )
        return self.with_data(data)


@dataclass(frozen=True)
class RefinedPeak:
    """Locally maximal spectrum sample nearest a selection point.

    Parameters:
        x: Physical X coordinate (offset corrected).
        y: Physical Y coordinate (offset corrected).
        value: Sample value at the peak.
    """

    x: float
    y: float
    value: float


class Degeneracy(enum.Enum):
    """Named reasons for an ill-posed scale-factor solution."""

    X_MAGNITUDES_EQUAL = "x1^2 == x2^2"
    Y_MAGNITUDES_EQUAL = "y1^2 == y2^2"
    X1_ZERO = "x1 == 0"
    DENOMINATOR_ZERO = "x1^2*y2^2 == x2^2*y1^2"
    X_NOT_FINITE = "X scale is not finite"
    Y_NOT_FINITE = "Y scale is not finite"


class ScaleSource(enum.Enum):
    """Origin of the values held by a CalibrationResult."""

    SOLVED = "solved"
    MANUAL = "manual"


@dataclass(frozen=True)
class CalibrationResult:
    """Scale factors and their validity flags.

    The numeric factors may be non-finite; validity is carried only by
    the warning flags and the degeneracy reasons.

    Parameters:
        x_scale: Real-space X pitch correction factor.
        y_scale: Real-space Y pitch correction factor.
        x_warning: Whether the X factor is ill-posed.
        y_warning: Whether the Y factor is ill-posed.
        reasons: Degeneracy reasons detected while solving.
        source: Whether the factors were solved or entered manually.
    """

    x_scale: float
    y_scale: float
    x_warning: bool = False
    y_warning: bool = False
    reasons: Tuple[Degeneracy, ...] = ()
    source: ScaleSource = ScaleSource.SOLVED

    @property
    def warning(self) -> bool:
        """Return the aggregate warning indicator."""

        return self.x_warning or self.y_warning

    def metadata(self, source_title: Optional[str]) -> Dict[str, str]:
        """Return provenance metadata for a calibrated image.

        Parameters:
            source_title: Title of the calibrated source image.

        Returns:
            Mapping with the source title and both factors at 5 decimals.
        """

        return {
            "Source Title": source_title or "",
            "X Scaling Factor": f"{self.x_scale:.5f}",
            "Y Scaling Factor": f"{self.y_scale:.5f}",
        }
