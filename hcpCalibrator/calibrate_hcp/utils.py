"""Shared utilities for HCP calibration workflows."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, Optional

import yaml

_DEFAULT_LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def configure_logging(debug: bool = False, log_config: Optional[Dict[str, Any]] = None) -> None:
    """Configure application logging.

    Parameters:
        debug: Whether to force DEBUG logging.
        log_config: Optional ``logging`` section of the YAML configuration
            with ``level``, ``format`` and ``file_path`` keys.

    Returns:
        None.
    """

    log_config = log_config or {}
    level_name = str(log_config.get("level", "INFO")).upper()
    level = logging.DEBUG if debug else getattr(logging, level_name, logging.INFO)
    handlers: list[logging.Handler] = [logging.StreamHandler()]
    file_path = log_config.get("file_path")
    if file_path:
        Path(file_path).parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(file_path))
    logging.basicConfig(
        level=level,
        format=log_config.get("format", _DEFAULT_LOG_FORMAT),
        handlers=handlers,
        force=True,
    )


def load_yaml_config(config_path: Path) -> Dict[str, Any]:
    """Load a YAML configuration file.

    Parameters:
        config_path: Path to the YAML file.

    Returns:
        Parsed configuration dictionary (empty for an empty file).
    """

    with Path(config_path).open("r", encoding="utf-8") as handle:
        return yaml.safe_load(handle) or {}


def invert_unit(unit: str) -> str:
    """Return the reciprocal of a unit string.

    ``"m"`` becomes ``"1/m"`` and ``"1/m"`` becomes ``"m"``. An empty
    unit stays empty. Compound units are wrapped in parentheses, which
    the inverse strips again.

    Parameters:
        unit: Unit string to invert.

    Returns:
        Reciprocal unit string.
    """

    unit = unit.strip()
    if not unit:
        return ""
    if unit.startswith("1/"):
        inner = unit[2:].strip()
        body = inner[1:-1]
        if inner.startswith("(") and inner.endswith(")") and "(" not in body and ")" not in body:
            return body.strip()
        return inner
    if "/" in unit or " " in unit:
        return f"1/({unit})"
    return f"1/{unit}"
