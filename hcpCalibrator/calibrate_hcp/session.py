"""Interactive calibration session modelled as an explicit state machine."""

from __future__ import annotations

import enum
import logging
from dataclasses import replace
from typing import Callable, List, Optional, Tuple

from hcpCalibrator.calibrate_hcp.collection import ImageCollection
from hcpCalibrator.calibrate_hcp.fourier.peaks import (
    Point,
    PeakSelection,
    find_peak,
    refine_selection,
)
from hcpCalibrator.calibrate_hcp.fourier.spectrum import build_spectrum
from hcpCalibrator.calibrate_hcp.fourier.zoom import ZOOM_FACTORS, ZoomView
from hcpCalibrator.calibrate_hcp.model import CalibrationResult, RefinedPeak, SpmImage
from hcpCalibrator.calibrate_hcp.scaling.resample import Resampler
from hcpCalibrator.calibrate_hcp.scaling.solver import manual_scale_factors, solve_scale_factors
from hcpCalibrator.calibrate_hcp.settings import (
    DEFAULT_RADIUS,
    CalibrationOptions,
    CalibrationSettings,
    SettingsStore,
    calibration_options_from_config,
)
from hcpCalibrator.calibrate_hcp.validation import (
    RawNumber,
    clamp_float_to_range,
    validate_int_in_range,
    validate_positive_float,
)

PROCESSING_FUNCTION = "proc::calibrate_hcp"


class SessionState(enum.Enum):
    """Calibration session states."""

    EMPTY = "empty"
    ONE_PEAK = "one_peak"
    TWO_PEAKS = "two_peaks"
    MANUAL_OVERRIDE = "manual_override"


class CalibrationSession:
    """Own the working state of one calibration of one image.

    Events (adding or removing peaks, zooming, changing the lattice
    constant, entering scale factors) each recompute only the derived
    state they affect. Invalid entries are rejected by returning False
    and keep the last valid value.

    Parameters:
        image: Real-space image to calibrate.
        collection: Collection receiving the calibrated output.
        settings_store: Store for persisted settings.
        options: Processing options.
        source_id: Identifier of ``image`` in ``collection``, if any.
        logger: Optional logger instance.
    """

    def __init__(
        self,
        image: SpmImage,
        collection: ImageCollection,
        settings_store: Optional[SettingsStore] = None,
        options: Optional[CalibrationOptions] = None,
        source_id: Optional[int] = None,
        logger: Optional[logging.Logger] = None,
    ) -> None:
        self._logger = logger or logging.getLogger(__name__)
        self._source = image
        self._source_id = source_id
        self._collection = collection
        self._store = settings_store or SettingsStore(logger=self._logger)
        self._options = options or calibration_options_from_config({})
        self._settings = self._store.load()
        if self._settings.radius > self._options.max_search_radius:
            self._logger.warning(
                "Stored search radius %s exceeds %s; using %s.",
                self._settings.radius,
                self._options.max_search_radius,
                DEFAULT_RADIUS,
            )
            self._settings.radius = min(DEFAULT_RADIUS, self._options.max_search_radius)
        self._resampler = Resampler(
            order=self._options.resample_order,
            title=self._options.output_title,
            logger=self._logger,
        )
        spectrum = build_spectrum(image, self._logger)
        self._range = spectrum.min_max()
        self._zoom = ZoomView(spectrum, 1, self._options.zoom_order, self._logger)
        self._selection = PeakSelection(self._logger)
        self._peaks: List[RefinedPeak] = []
        self._result: Optional[CalibrationResult] = None
        self._manual_x: Optional[float] = None
        self._manual_y: Optional[float] = None
        self._preview = self._build_preview()
        self._closed = False

    @property
    def state(self) -> SessionState:
        """Return the current session state."""

        if self._selection.is_full():
            return SessionState.TWO_PEAKS
        if self._manual_x is not None or self._manual_y is not None:
            return SessionState.MANUAL_OVERRIDE
        if len(self._selection) == 1:
            return SessionState.ONE_PEAK
        return SessionState.EMPTY

    @property
    def closed(self) -> bool:
        """Return True once the session was confirmed or cancelled."""

        return self._closed

    @property
    def source(self) -> SpmImage:
        """Return the real-space image being calibrated."""

        return self._source

    @property
    def spectrum(self) -> SpmImage:
        """Return the full spectrum image."""

        return self._zoom.spectrum

    @property
    def display(self) -> SpmImage:
        """Return the display image selection points refer to."""

        return self._zoom.display

    @property
    def preview(self) -> SpmImage:
        """Return the display image clamped to the threshold range."""

        return self._preview

    @property
    def zoom(self) -> int:
        """Return the current zoom factor."""

        return self._zoom.factor

    @property
    def points(self) -> List[Point]:
        """Return the selection points in the display's local frame."""

        return self._selection.points()

    @property
    def peaks(self) -> List[RefinedPeak]:
        """Return the refined peaks in selection order."""

        return list(self._peaks)

    @property
    def result(self) -> Optional[CalibrationResult]:
        """Return the current calibration result, if any."""

        return self._result

    @property
    def warning(self) -> bool:
        """Return the aggregate warning indicator."""

        return self._result is not None and self._result.warning

    @property
    def settings(self) -> CalibrationSettings:
        """Return a copy of the current settings."""

        return replace(self._settings)

    @property
    def threshold_range(self) -> Tuple[float, float]:
        """Return the spectrum's minimum and maximum."""

        return self._range

    def connect_selection(self, listener: Callable[[PeakSelection], None]) -> None:
        """Register a callback invoked after every selection change."""

        self._selection.connect(listener)

    def add_peak(self, x: float, y: float) -> Optional[int]:
        """Select a new peak near a point of the display image.

        Parameters:
            x: Local X coordinate in the display image.
            y: Local Y coordinate in the display image.

        Returns:
            Index of the new peak, or None when the selection is full or
            the point lies outside the display.
        """

        self._ensure_open()
        if self._selection.is_full():
            self._logger.warning("Two peaks are already selected; ignoring (%s, %s).", x, y)
            return None
        if not self._inside_display(x, y):
            self._logger.warning("Point (%s, %s) lies outside the display image.", x, y)
            return None
        index = self._selection.append((x, y))
        self._peaks.append(self._refine(index))
        self._selection_changed()
        return index

    def move_peak(self, index: int, x: float, y: float) -> bool:
        """Move an existing peak to a new point and refine it.

        Parameters:
            index: Index of the peak to move.
            x: Local X coordinate in the display image.
            y: Local Y coordinate in the display image.

        Returns:
            True if the peak was moved.
        """

        self._ensure_open()
        if self._selection.get(index) is None or not self._inside_display(x, y):
            self._logger.warning("Cannot move peak %s to (%s, %s).", index, x, y)
            return False
        self._selection.set(index, (x, y))
        self._peaks[index] = self._refine(index)
        self._selection_changed()
        return True

    def remove_peak(self, index: int) -> bool:
        """Remove a selected peak; the remaining peak keeps its order."""

        self._ensure_open()
        if not self._selection.remove(index):
            return False
        del self._peaks[index]
        self._selection_changed()
        return True

    def clear_peaks(self) -> None:
        """Remove every selected peak."""

        self._ensure_open()
        self._selection.clear()
        self._peaks = []
        self._selection_changed()

    def set_zoom(self, factor: int) -> bool:
        """Change the display zoom and re-anchor the selected peaks.

        A zoom that would put a selected peak outside the new display is
        refused and the peaks, result and view are kept.

        Returns:
            True if the factor was accepted.
        """

        self._ensure_open()
        if factor not in ZOOM_FACTORS:
            self._logger.warning("Unsupported zoom factor %s; keeping x%s.", factor, self.zoom)
            return False
        if factor == self.zoom:
            return True
        outside = self._zoom.out_of_frame(factor, self._selection)
        if outside:
            self._logger.warning(
                "Peak(s) %s would lie outside the x%s display; keeping x%s.",
                ", ".join(str(index + 1) for index in outside),
                factor,
                self.zoom,
            )
            return False
        self._peaks = self._zoom.set_factor(factor, self._selection, self._settings.radius)
        self._preview = self._build_preview()
        if self._selection.is_full():
            self._solve()
        return True

    def set_lattice(self, value: RawNumber) -> bool:
        """Set the HCP lattice constant; non-positive values are rejected."""

        self._ensure_open()
        validation = validate_positive_float(value, "Lattice constant")
        if not validation.is_valid():
            self._logger.warning("%s Keeping %s.", validation.error, self._settings.lattice)
            return False
        self._settings.lattice = validation.value
        if self._selection.is_full():
            self._solve()
        return True

    def set_search_radius(self, value: RawNumber) -> bool:
        """Set the peak search radius and re-snap the selected peaks."""

        self._ensure_open()
        validation = validate_int_in_range(
            value, 1, self._options.max_search_radius, "Peak search radius"
        )
        if not validation.is_valid():
            self._logger.warning("%s Keeping %s px.", validation.error, self._settings.radius)
            return False
        self._settings.radius = validation.value
        self._peaks = refine_selection(self._selection, self.display, self._settings.radius)
        if self._selection.is_full():
            self._solve()
        return True

    def set_x_scale(self, value: RawNumber) -> bool:
        """Enter the X scale factor directly."""

        return self._enter_scale(value, "x")

    def set_y_scale(self, value: RawNumber) -> bool:
        """Enter the Y scale factor directly."""

        return self._enter_scale(value, "y")

    def set_lower_threshold(self, value: RawNumber) -> bool:
        """Set the lower display threshold, clamped to the spectrum range."""

        return self._set_threshold(value, "lower")

    def set_upper_threshold(self, value: RawNumber) -> bool:
        """Set the upper display threshold, clamped to the spectrum range."""

        return self._set_threshold(value, "upper")

    def set_full_range(self) -> None:
        """Set the thresholds to the spectrum's full range."""

        self._ensure_open()
        self._settings.lower, self._settings.upper = self._range
        self._preview = self._build_preview()

    def confirm(self) -> Optional[int]:
        """Finish the session and add the calibrated image to the collection.

        Output is produced when two peaks give a usable result or when
        both manual factors are positive. Otherwise the session ends
        without output.

        Returns:
            Identifier of the calibrated image, or None.
        """

        self._ensure_open()
        self._store.save(self._settings)
        result = self._result
        output_id = None
        if result is None:
            self._logger.info("No complete calibration to apply; nothing created.")
        elif not self._resampler.can_resample(self._source, result):
            self._logger.warning(
                "Scale factors X=%s Y=%s do not give a valid resolution; nothing created.",
                result.x_scale,
                result.y_scale,
            )
        else:
            if result.warning:
                self._logger.warning("Applying calibration flagged as degenerate.")
            calibrated = self._resampler.resample(self._source, result)
            output_id = self._collection.add(calibrated)
            self._collection.log_processing(self._source_id, output_id, PROCESSING_FUNCTION)
        self._close()
        return output_id

    def cancel(self) -> None:
        """Finish the session without output."""

        self._ensure_open()
        self._store.save(self._settings)
        self._close()

    def _enter_scale(self, value: RawNumber, axis: str) -> bool:
        self._ensure_open()
        validation = validate_positive_float(value, f"{axis.upper()} scale")
        if not validation.is_valid():
            self._logger.warning("%s", validation.error)
            return False
        if self._selection.is_full() and self._result is not None:
            self._result = replace(self._result, **{f"{axis}_scale": validation.value})
            self._logger.info("Overriding solved %s scale with %s.", axis.upper(), validation.value)
            return True
        if axis == "x":
            self._manual_x = validation.value
        else:
            self._manual_y = validation.value
        if self._manual_x is not None and self._manual_y is not None:
            self._result = manual_scale_factors(self._manual_x, self._manual_y)
            self._logger.info(
                "Manual scale factors X=%s Y=%s.", self._manual_x, self._manual_y
            )
        return True

    def _set_threshold(self, value: RawNumber, name: str) -> bool:
        self._ensure_open()
        low, high = self._range
        validation = clamp_float_to_range(value, low, high, f"{name.capitalize()} threshold")
        if not validation.is_valid():
            self._logger.warning("%s", validation.error)
            return False
        setattr(self._settings, name, validation.value)
        self._preview = self._build_preview()
        return True

    def _refine(self, index: int) -> RefinedPeak:
        search = find_peak(self.display, self._selection.get(index), self._settings.radius)
        if search.moved:
            self._selection.set(index, search.point)
        self._logger.debug(
            "Peak %s refined to (%.6g, %.6g) value %.6g.",
            index + 1,
            search.peak.x,
            search.peak.y,
            search.peak.value,
        )
        return search.peak

    def _selection_changed(self) -> None:
        self._manual_x = None
        self._manual_y = None
        self._result = None
        if self._selection.is_full():
            self._solve()
        self._logger.debug("Session state is %s.", self.state.value)

    def _solve(self) -> None:
        first, second = self._peaks
        self._result = solve_scale_factors(first, second, self._settings.lattice, self._logger)

    def _build_preview(self) -> SpmImage:
        lower = min(self._settings.lower, self._settings.upper)
        upper = max(self._settings.lower, self._settings.upper)
        if lower == upper:
            return self.display.duplicate()
        return self.display.clamped(lower, upper)

    def _inside_display(self, x: float, y: float) -> bool:
        display = self.display
        return 0 <= x <= display.xreal and 0 <= y <= display.yreal

    def _ensure_open(self) -> None:
        if self._closed:
            raise RuntimeError("Calibration session is already closed.")

    def _close(self) -> None:
        self._closed = True
        self._selection.clear()
        self._peaks = []
        self._logger.info("Calibration session closed.")
