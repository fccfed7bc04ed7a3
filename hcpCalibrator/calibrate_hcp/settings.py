"""Persistent session settings and processing options."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

SETTINGS_SECTION = "calibrate_hcp"
DEFAULT_LATTICE = 1e-9
DEFAULT_RADIUS = 3
MAX_SEARCH_RADIUS = 10

_INTERPOLATION_ORDERS = {
    "nearest": 0,
    "bilinear": 1,
    "linear": 1,
    "bicubic": 3,
}


@dataclass
class CalibrationSettings:
    """Values remembered between calibration sessions.

    Parameters:
        lower: Lower display threshold.
        upper: Upper display threshold.
        lattice: HCP lattice constant (nearest-neighbour spacing).
        radius: Peak search radius in pixels.
    """

    lower: float = 0.0
    upper: float = 0.0
    lattice: float = DEFAULT_LATTICE
    radius: int = DEFAULT_RADIUS


@dataclass(frozen=True)
class CalibrationOptions:
    """Processing options read from the YAML configuration.

    Parameters:
        zoom_order: Interpolation order for the zoomed display.
        resample_order: Interpolation order for the calibrated output.
        max_search_radius: Largest accepted peak search radius.
        output_title: Title of calibrated images.
        settings_path: YAML file holding persisted settings, if any.
    """

    zoom_order: int
    resample_order: int
    max_search_radius: int
    output_title: str
    settings_path: Optional[Path]


def _interpolation_order(value: Any, default: int) -> int:
    """Map an interpolation name or order to a spline order."""

    if value is None:
        return default
    if isinstance(value, str):
        return _INTERPOLATION_ORDERS.get(value.lower(), default)
    return int(value)


def calibration_options_from_config(config: Optional[Dict[str, Any]]) -> CalibrationOptions:
    """Build CalibrationOptions from configuration.

    Parameters:
        config: ``calibrate_hcp`` configuration dictionary.

    Returns:
        CalibrationOptions with defaults applied.
    """

    config = config or {}
    settings_path = config.get("settings_path")
    return CalibrationOptions(
        zoom_order=_interpolation_order(config.get("zoom_interpolation"), 1),
        resample_order=_interpolation_order(config.get("resample_interpolation"), 1),
        max_search_radius=int(config.get("max_search_radius", MAX_SEARCH_RADIUS)),
        output_title=str(config.get("output_title", "Calibrated")),
        settings_path=Path(settings_path) if settings_path else None,
    )


class SettingsStore:
    """Read and write CalibrationSettings in a YAML file.

    The file holds a ``calibrate_hcp`` mapping; other top-level keys are
    preserved on save.

    Parameters:
        path: YAML settings file, or None for an in-memory store.
        logger: Optional logger instance.
    """

    def __init__(self, path: Optional[Path] = None, logger: Optional[logging.Logger] = None) -> None:
        self._path = Path(path) if path is not None else None
        self._logger = logger or logging.getLogger(__name__)
        self._memory: Dict[str, Any] = {}

    @property
    def path(self) -> Optional[Path]:
        """Return the backing file path."""

        return self._path

    def load(self) -> CalibrationSettings:
        """Return stored settings with defaults for missing or invalid values.

        Returns:
            CalibrationSettings instance.
        """

        defaults = CalibrationSettings()
        stored = self._read_document().get(SETTINGS_SECTION) or {}
        if not isinstance(stored, dict):
            self._logger.warning("Ignoring malformed %s settings: %r", SETTINGS_SECTION, stored)
            return defaults
        settings = CalibrationSettings(
            lower=self._float(stored, "lower", defaults.lower),
            upper=self._float(stored, "upper", defaults.upper),
            lattice=self._float(stored, "lattice", defaults.lattice),
            radius=self._int(stored, "radius", defaults.radius),
        )
        if not settings.lattice > 0:
            self._logger.warning(
                "Stored lattice constant %s is not positive; using %s.",
                settings.lattice,
                defaults.lattice,
            )
            settings.lattice = defaults.lattice
        if settings.radius <= 0:
            self._logger.warning(
                "Stored search radius %s is not positive; using %s.", settings.radius, defaults.radius
            )
            settings.radius = defaults.radius
        return settings

    def save(self, settings: CalibrationSettings) -> None:
        """Persist settings.

        Parameters:
            settings: Settings to store.

        Returns:
            None.
        """

        document = self._read_document()
        document[SETTINGS_SECTION] = {
            key: (int(value) if key == "radius" else float(value))
            for key, value in asdict(settings).items()
        }
        if self._path is None:
            self._memory = document
            return
        self._path.parent.mkdir(parents=True, exist_ok=True)
        with self._path.open("w", encoding="utf-8") as handle:
            yaml.safe_dump(document, handle, sort_keys=False)
        self._logger.debug("Saved settings to %s", self._path)

    def _read_document(self) -> Dict[str, Any]:
        if self._path is None:
            return dict(self._memory)
        if not self._path.exists():
            return {}
        with self._path.open("r", encoding="utf-8") as handle:
            document = yaml.safe_load(handle) or {}
        if not isinstance(document, dict):
            self._logger.warning("Settings file %s is not a mapping; ignoring it.", self._path)
            return {}
        return document

    def _float(self, stored: Dict[str, Any], key: str, default: float) -> float:
        try:
            return float(stored.get(key, default))
        except (TypeError, ValueError):
            self._logger.warning("Invalid stored %s=%r; using %s.", key, stored.get(key), default)
            return default

    def _int(self, stored: Dict[str, Any], key: str, default: int) -> int:
        try:
            return int(stored.get(key, default))
        except (TypeError, ValueError):
            self._logger.warning("Invalid stored %s=%r; using %s.", key, stored.get(key), default)
            return default
