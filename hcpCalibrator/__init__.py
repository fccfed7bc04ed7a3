"""Top-level package for HCP lattice calibration of SPM images."""

from __future__ import annotations

import logging
from pathlib import Path

_LOGGER = logging.getLogger(__name__)
_VERSION_FILE = Path(__file__).resolve().parents[1] / "VERSION"
_FALLBACK_VERSION = "0.0.0"


def _read_version(path: Path) -> str:
    """Return the package version stored next to the sources.

    Parameters:
        path: Path to the VERSION file.

    Returns:
        Version string, or the fallback when the file is unreadable.
    """

    try:
        return path.read_text(encoding="utf-8").strip()
    except FileNotFoundError:
        _LOGGER.warning("VERSION file not found at %s; using %s.", path, _FALLBACK_VERSION)
    except OSError as exc:
        _LOGGER.warning(
            "Failed to read VERSION file at %s: %s; using %s.",
            path,
            exc,
            _FALLBACK_VERSION,
        )
    return _FALLBACK_VERSION


__version__ = _read_version(_VERSION_FILE)
