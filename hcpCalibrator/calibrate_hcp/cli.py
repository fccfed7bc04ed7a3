"""Headless HCP calibration runner."""

from __future__ import annotations

import argparse
import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple

import numpy as np
import yaml
from matplotlib.figure import Figure

from hcpCalibrator.calibrate_hcp.collection import ImageCollection
from hcpCalibrator.calibrate_hcp.model import RefinedPeak, SpmImage
from hcpCalibrator.calibrate_hcp.session import CalibrationSession
from hcpCalibrator.calibrate_hcp.settings import SettingsStore, calibration_options_from_config
from hcpCalibrator.calibrate_hcp.simulated import HcpLatticeFactory
from hcpCalibrator.calibrate_hcp.utils import configure_logging, load_yaml_config


class CalibrationRunner:
    """Drive a calibration session from command-line values and export the result."""

    def __init__(self, config: Dict[str, Any], logger: logging.Logger) -> None:
        """Initialize the runner.

        Parameters:
            config: ``calibrate_hcp`` configuration dictionary.
            logger: Logger instance.
        """

        self._config = config
        self._logger = logger
        self._options = calibration_options_from_config(config)

    def run(
        self,
        image: SpmImage,
        peaks: Sequence[Tuple[float, float]],
        output_dir: Path,
        lattice: Optional[float] = None,
        radius: Optional[int] = None,
        zoom: int = 1,
        x_scale: Optional[float] = None,
        y_scale: Optional[float] = None,
        preview_path: Optional[Path] = None,
    ) -> Optional[Path]:
        """Calibrate an image and export the calibrated output.

        Parameters:
            image: Real-space image.
            peaks: Approximate peak positions in offset-corrected
                spectrum coordinates, in selection order.
            output_dir: Directory receiving ``calibrated.npy`` and ``calibrated.yml``.
            lattice: Lattice constant overriding the stored setting.
            radius: Peak search radius overriding the stored setting.
            zoom: Display zoom factor used for picking.
            x_scale: Manual X factor.
            y_scale: Manual Y factor.
            preview_path: Optional PNG path for the spectrum preview.

        Returns:
            Path of the exported array, or None when nothing was produced.
        """

        collection = ImageCollection(self._logger)
        source_id = collection.add(image)
        session = CalibrationSession(
            image,
            collection,
            settings_store=SettingsStore(self._options.settings_path, self._logger),
            options=self._options,
            source_id=source_id,
            logger=self._logger,
        )
        if lattice is not None and not session.set_lattice(lattice):
            _abort(session, f"Invalid lattice constant {lattice}.")
        if radius is not None and not session.set_search_radius(radius):
            _abort(session, f"Invalid peak search radius {radius}.")
        if not session.set_zoom(zoom):
            _abort(session, f"Invalid zoom factor {zoom}.")
        display = session.display
        for x, y in peaks:
            if session.add_peak(x - display.xoffset, y - display.yoffset) is None:
                self._logger.warning("Peak (%s, %s) was not selected.", x, y)
        if x_scale is not None:
            session.set_x_scale(x_scale)
        if y_scale is not None:
            session.set_y_scale(y_scale)
        result = session.result
        if result is not None:
            self._logger.info(
                "Scale factors X=%.5f%s Y=%.5f%s",
                result.x_scale,
                " (warning)" if result.x_warning else "",
                result.y_scale,
                " (warning)" if result.y_warning else "",
            )
        if preview_path is not None:
            export_preview(session.preview, session.peaks, preview_path)
            self._logger.info("Exported spectrum preview %s", preview_path)
        output_id = session.confirm()
        if output_id is None:
            self._logger.warning("No calibrated image was produced.")
            return None
        return export_image(collection.get(output_id), output_dir, "calibrated", self._logger)


def _abort(session: CalibrationSession, message: str) -> None:
    """Cancel a session, persisting its settings, and exit with ``message``."""

    session.cancel()
    raise SystemExit(message)


def export_preview(preview: SpmImage, peaks: Sequence[RefinedPeak], path: Path) -> None:
    """Save a PNG of the spectrum preview with the refined peaks marked.

    Parameters:
        preview: Display image to draw.
        peaks: Refined peaks in physical coordinates.
        path: Output PNG path.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    figure = Figure(figsize=(5, 5))
    axes = figure.add_subplot(1, 1, 1)
    extent = (
        preview.xoffset,
        preview.xoffset + preview.xreal,
        preview.yoffset + preview.yreal,
        preview.yoffset,
    )
    axes.imshow(preview.data, cmap="gray", extent=extent)
    for index, peak in enumerate(peaks, start=1):
        axes.plot(peak.x, peak.y, marker="+", color="red", markersize=12)
        axes.annotate(str(index), (peak.x, peak.y), color="red")
    axes.set_xlabel(f"x [{preview.xy_unit}]")
    axes.set_ylabel(f"y [{preview.xy_unit}]")
    axes.set_title(preview.title or "FFT")
    figure.tight_layout()
    figure.savefig(path, dpi=150)


def export_image(image: SpmImage, output_dir: Path, stem: str, logger: logging.Logger) -> Path:
    """Write an image as ``<stem>.npy`` with geometry in ``<stem>.yml``.

    Parameters:
        image: Image to export.
        output_dir: Output directory.
        stem: File name stem.
        logger: Logger instance.

    Returns:
        Path of the ``.npy`` file.
    """

    output_dir.mkdir(parents=True, exist_ok=True)
    array_path = output_dir / f"{stem}.npy"
    meta_path = output_dir / f"{stem}.yml"
    np.save(array_path, image.data)
    description = {
        "title": image.title,
        "xres": image.xres,
        "yres": image.yres,
        "xreal": image.xreal,
        "yreal": image.yreal,
        "xoffset": image.xoffset,
        "yoffset": image.yoffset,
        "xy_unit": image.xy_unit,
        "z_unit": image.z_unit,
        "metadata": dict(image.metadata),
    }
    with meta_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(description, handle, sort_keys=False)
    logger.info("Exported %s and %s", array_path, meta_path)
    return array_path


def load_image(path: Path, xreal: float, yreal: float, unit: str) -> SpmImage:
    """Load a 2D ``.npy`` array as an SpmImage.

    Parameters:
        path: Path to the array file.
        xreal: Real-space width.
        yreal: Real-space height.
        unit: Lateral unit.

    Returns:
        SpmImage instance titled after the file.
    """

    return SpmImage(data=np.load(path), xreal=xreal, yreal=yreal, xy_unit=unit, title=path.stem)


def build_arg_parser() -> argparse.ArgumentParser:
    """Build the CLI argument parser.

    Returns:
        ArgumentParser instance.
    """

    parser = argparse.ArgumentParser(
        description="Calibrate SPM image X/Y scales against a known HCP lattice"
    )
    parser.add_argument("--config", type=Path, help="Path to a calibrate_hcp YAML config.")
    parser.add_argument("--image", type=Path, help="Path to a 2D .npy image.")
    parser.add_argument("--xreal", type=float, help="Real-space image width.")
    parser.add_argument("--yreal", type=float, help="Real-space image height.")
    parser.add_argument("--unit", default="m", help="Lateral unit of the image.")
    parser.add_argument(
        "--peak",
        type=float,
        nargs=2,
        action="append",
        metavar=("X", "Y"),
        help="Approximate first-ring peak in spectrum coordinates (give twice).",
    )
    parser.add_argument("--lattice", type=float, help="HCP lattice constant.")
    parser.add_argument("--radius", type=int, help="Peak search radius in pixels.")
    parser.add_argument("--zoom", type=int, default=1, choices=(1, 2), help="Display zoom.")
    parser.add_argument("--x-scale", type=float, help="Manual X scale factor.")
    parser.add_argument("--y-scale", type=float, help="Manual Y scale factor.")
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=Path("tmp/calibrate_hcp"),
        help="Directory for the calibrated output.",
    )
    parser.add_argument("--preview", type=Path, help="Optional PNG path for the spectrum.")
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable debug logging and use a simulated lattice if no image is given.",
    )
    return parser


def main(argv: Optional[List[str]] = None) -> None:
    """Run the calibration CLI."""

    args = build_arg_parser().parse_args(argv)
    config = load_yaml_config(args.config).get("calibrate_hcp", {}) if args.config else {}
    configure_logging(args.debug, config.get("logging"))
    logger = logging.getLogger(__name__)
    peaks = [tuple(peak) for peak in args.peak or []]
    lattice = args.lattice
    if args.image:
        if args.xreal is None or args.yreal is None:
            raise SystemExit("--xreal and --yreal are required with --image.")
        image = load_image(args.image, args.xreal, args.yreal, args.unit)
    elif args.debug:
        factory = HcpLatticeFactory.from_config(config.get("debug", {}), logger)
        image = factory.create()
        if not peaks:
            peaks = factory.wave_vectors()[:2]
        if lattice is None:
            lattice = factory.lattice
    else:
        raise SystemExit("Provide --image or use --debug for a simulated lattice.")
    runner = CalibrationRunner(config, logger)
    runner.run(
        image,
        peaks,
        args.output_dir,
        lattice=lattice,
        radius=args.radius,
        zoom=args.zoom,
        x_scale=args.x_scale,
        y_scale=args.y_scale,
        preview_path=args.preview,
    )


if __name__ == "__main__":
    main()
