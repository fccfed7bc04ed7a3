"""Tests for persisted settings and configuration options."""

from __future__ import annotations

from pathlib import Path

import pytest
import yaml

from hcpCalibrator.calibrate_hcp.settings import (
    DEFAULT_LATTICE,
    DEFAULT_RADIUS,
    SETTINGS_SECTION,
    CalibrationSettings,
    SettingsStore,
    calibration_options_from_config,
)
from hcpCalibrator.calibrate_hcp.utils import load_yaml_config


def test_missing_file_gives_defaults(tmp_path: Path, logger) -> None:
    """Ensure a store without a file returns default settings."""

    settings = SettingsStore(tmp_path / "absent.yml", logger).load()
    assert settings == CalibrationSettings()
    assert settings.lattice == DEFAULT_LATTICE
    assert settings.radius == DEFAULT_RADIUS


def test_round_trip_preserves_other_sections(tmp_path: Path, logger) -> None:
    """Ensure saving keeps unrelated keys and reloads the same values."""

    path = tmp_path / "settings.yml"
    path.write_text(yaml.safe_dump({"other_tool": {"gamma": 2}}), encoding="utf-8")
    store = SettingsStore(path, logger)
    store.save(CalibrationSettings(lower=0.5, upper=4.0, lattice=2.46e-10, radius=5))

    document = load_yaml_config(path)
    assert document["other_tool"] == {"gamma": 2}
    assert document[SETTINGS_SECTION]["radius"] == 5
    reloaded = SettingsStore(path, logger).load()
    assert reloaded.lower == pytest.approx(0.5)
    assert reloaded.upper == pytest.approx(4.0)
    assert reloaded.lattice == pytest.approx(2.46e-10)
    assert reloaded.radius == 5


@pytest.mark.parametrize(
    "stored",
    [
        {"lattice": -1.0, "radius": 0},
        {"lattice": "abc", "radius": "wide"},
        {"lattice": 0.0, "radius": -4},
    ],
)
def test_invalid_values_fall_back_to_defaults(tmp_path: Path, logger, stored) -> None:
    """Ensure non-positive or unparsable values are replaced by defaults."""

    path = tmp_path / "settings.yml"
    path.write_text(yaml.safe_dump({SETTINGS_SECTION: stored}), encoding="utf-8")
    settings = SettingsStore(path, logger).load()
    assert settings.lattice == DEFAULT_LATTICE
    assert settings.radius == DEFAULT_RADIUS


def test_malformed_document_is_ignored(tmp_path: Path, logger) -> None:
    """Ensure a settings file that is not a mapping gives defaults."""

    path = tmp_path / "settings.yml"
    path.write_text("- just\n- a list\n", encoding="utf-8")
    assert SettingsStore(path, logger).load() == CalibrationSettings()


def test_in_memory_store(logger) -> None:
    """Ensure a store without a path keeps settings for the process."""

    store = SettingsStore(logger=logger)
    assert store.path is None
    store.save(CalibrationSettings(lattice=3e-10, radius=7))
    assert store.load().radius == 7
    assert store.load().lattice == pytest.approx(3e-10)


def test_options_from_config() -> None:
    """Ensure interpolation names map to spline orders and defaults apply."""

    options = calibration_options_from_config(
        {
            "zoom_interpolation": "bicubic",
            "resample_interpolation": "nearest",
            "max_search_radius": 6,
            "output_title": "Fixed",
            "settings_path": "tmp/s.yml",
        }
    )
    assert options.zoom_order == 3
    assert options.resample_order == 0
    assert options.max_search_radius == 6
    assert options.output_title == "Fixed"
    assert options.settings_path == Path("tmp/s.yml")

    defaults = calibration_options_from_config(None)
    assert defaults.zoom_order == 1
    assert defaults.resample_order == 1
    assert defaults.max_search_radius == 10
    assert defaults.output_title == "Calibrated"
    assert defaults.settings_path is None
