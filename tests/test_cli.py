"""Tests for the headless calibration CLI."""

from __future__ import annotations

from pathlib import Path

import numpy as np
import pytest
import yaml

from hcpCalibrator.calibrate_hcp.cli import CalibrationRunner, build_arg_parser, main
from hcpCalibrator.calibrate_hcp.simulated import HcpLatticeFactory


def test_debug_run_exports_calibrated_image(tmp_path: Path) -> None:
    """Ensure the simulated workflow writes the array, its description and a preview."""

    preview = tmp_path / "preview.png"
    main(["--debug", "--output-dir", str(tmp_path), "--preview", str(preview)])

    array = np.load(tmp_path / "calibrated.npy")
    with (tmp_path / "calibrated.yml").open("r", encoding="utf-8") as handle:
        description = yaml.safe_load(handle)
    assert array.shape == (description["yres"], description["xres"])
    assert description["title"] == "Calibrated"
    assert description["metadata"]["Source Title"] == "Simulated HCP"
    assert float(description["metadata"]["X Scaling Factor"]) == pytest.approx(1.0, abs=0.03)
    assert preview.exists()


def test_runner_applies_manual_factors(tmp_path: Path, lattice_config, logger) -> None:
    """Ensure manual factors without peaks still produce an output."""

    image = HcpLatticeFactory.from_config(lattice_config, logger).create()
    runner = CalibrationRunner({}, logger)
    path = runner.run(image, [], tmp_path, x_scale=1.0, y_scale=2.0)
    assert path == tmp_path / "calibrated.npy"
    assert np.load(path).shape == (512, 256)


def test_runner_without_calibration_writes_nothing(tmp_path: Path, lattice_config, logger) -> None:
    """Ensure a single peak ends without output."""

    factory = HcpLatticeFactory.from_config(lattice_config, logger)
    runner = CalibrationRunner({}, logger)
    assert runner.run(factory.create(), factory.wave_vectors()[:1], tmp_path) is None
    assert not (tmp_path / "calibrated.npy").exists()


def test_missing_input_exits() -> None:
    """Ensure the CLI refuses to run without an image or debug mode."""

    with pytest.raises(SystemExit):
        main([])


def test_parser_collects_peaks() -> None:
    """Ensure repeated --peak options are collected in order."""

    args = build_arg_parser().parse_args(["--peak", "1", "2", "--peak", "3", "4", "--zoom", "2"])
    assert args.peak == [[1.0, 2.0], [3.0, 4.0]]
    assert args.zoom == 2


@pytest.mark.parametrize("options", [{"lattice": -1.0}, {"radius": 0}, {"zoom": 3}])
def test_invalid_arguments_cancel_and_persist(tmp_path: Path, lattice_config, logger, options) -> None:
    """Ensure rejected arguments close the session and still store settings."""

    settings_path = tmp_path / "settings.yml"
    image = HcpLatticeFactory.from_config(lattice_config, logger).create()
    runner = CalibrationRunner({"settings_path": str(settings_path)}, logger)
    with pytest.raises(SystemExit):
        runner.run(image, [], tmp_path / "out", **options)
    assert settings_path.exists()
    assert not (tmp_path / "out" / "calibrated.npy").exists()
