"""Synthetic HCP lattice images for debug workflows and tests."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple

import numpy as np

from hcpCalibrator.calibrate_hcp.model import SpmImage


@dataclass(frozen=True)
class SimulatedLatticeConfig:
    """Configuration for synthetic HCP lattice images.

    Parameters:
        xres: Number of columns.
        yres: Number of rows.
        xreal: Nominal real-space width.
        yreal: Nominal real-space height.
        lattice: Nearest-neighbour spacing of the lattice.
        rotation_deg: In-plane rotation of the lattice.
        x_distortion: Factor by which the true X extent exceeds the nominal one.
        y_distortion: Factor by which the true Y extent exceeds the nominal one.
        noise_sigma: Standard deviation of additive Gaussian noise.
        seed: Random seed for reproducible noise.
        unit: Lateral unit.
    """

    xres: int
    yres: int
    xreal: float
    yreal: float
    lattice: float
    rotation_deg: float
    x_distortion: float
    y_distortion: float
    noise_sigma: float
    seed: int
    unit: str


class HcpLatticeFactory:
    """Factory for synthetic images of a hexagonal close-packed surface.

    The image is the sum of three plane waves whose wave vectors form
    the first reciprocal ring of the lattice. Distortion factors mimic a
    mis-calibrated scanner: a correct calibration recovers them as the
    X and Y scale factors.
    """

    def __init__(self, config: SimulatedLatticeConfig, logger: logging.Logger) -> None:
        """Initialize the factory.

        Parameters:
            config: Simulation configuration.
            logger: Logger instance.
        """

        self._config = config
        self._logger = logger

    @classmethod
    def from_config(cls, config: Dict[str, Any], logger: logging.Logger) -> "HcpLatticeFactory":
        """Create a factory from configuration values.

        Parameters:
            config: ``debug`` configuration dictionary.
            logger: Logger instance.

        Returns:
            HcpLatticeFactory instance.
        """

        xres = int(config.get("xres", 256))
        lattice_config = SimulatedLatticeConfig(
            xres=xres,
            yres=int(config.get("yres", xres)),
            xreal=float(config.get("xreal", 10e-9)),
            yreal=float(config.get("yreal", config.get("xreal", 10e-9))),
            lattice=float(config.get("lattice", 0.246e-9)),
            rotation_deg=float(config.get("rotation_deg", 0.0)),
            x_distortion=float(config.get("x_distortion", 1.0)),
            y_distortion=float(config.get("y_distortion", 1.0)),
            noise_sigma=float(config.get("noise_sigma", 0.0)),
            seed=int(config.get("seed", 123)),
            unit=str(config.get("unit", "m")),
        )
        return cls(lattice_config, logger)

    @property
    def lattice(self) -> float:
        """Return the simulated lattice constant."""

        return self._config.lattice

    def wave_vectors(self) -> List[Tuple[float, float]]:
        """Return the measured first-ring wave vectors (cycles per unit length).

        Returns:
            Three (kx, ky) pairs at 30, 90 and 150 degrees plus rotation,
            scaled by the distortion factors.
        """

        magnitude = 2.0 / (np.sqrt(3.0) * self._config.lattice)
        vectors = []
        for angle in (30.0, 90.0, 150.0):
            theta = np.deg2rad(angle + self._config.rotation_deg)
            vectors.append(
                (
                    float(magnitude * np.cos(theta) * self._config.x_distortion),
                    float(magnitude * np.sin(theta) * self._config.y_distortion),
                )
            )
        return vectors

    def create(self) -> SpmImage:
        """Create the synthetic lattice image.

        Returns:
            SpmImage with nominal extents.
        """

        config = self._config
        self._logger.info(
            "Generating %sx%s HCP image (a=%.4g %s, distortion %.3f x %.3f).",
            config.xres,
            config.yres,
            config.lattice,
            config.unit,
            config.x_distortion,
            config.y_distortion,
        )
        xs = np.arange(config.xres) * (config.xreal / config.xres)
        ys = np.arange(config.yres) * (config.yreal / config.yres)
        xx, yy = np.meshgrid(xs, ys)
        data = np.zeros((config.yres, config.xres), dtype=np.float64)
        for kx, ky in self.wave_vectors():
            data += np.cos(2.0 * np.pi * (kx * xx + ky * yy))
        if config.noise_sigma > 0:
            rng = np.random.default_rng(config.seed)
            data += rng.normal(0.0, config.noise_sigma, size=data.shape)
        return SpmImage(
            data=data,
            xreal=config.xreal,
            yreal=config.yreal,
            xy_unit=config.unit,
            z_unit="m",
            title="Simulated HCP",
        )
