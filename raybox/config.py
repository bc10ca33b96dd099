"""Configuration loader for the algorithm comparison suite.

Box geometry, ray generation and comparison settings are read from a YAML
file into frozen dataclasses. The kernels themselves take no
configuration; only the comparison runner, the plots and the CLI do.
"""

from __future__ import annotations

import logging
import platform
import sys
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import numba
import numpy as np
import yaml

from raybox.geometry import Box, rotation_from_axis_angle
from raybox.intersect import ALGORITHMS

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Configuration Data Classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BoxConfig:
    """Geometry of the box under test.

    Attributes
    ----------
    center : tuple[float, float, float]
        Box centre in world space.
    radius : tuple[float, float, float]
        Half extents along the box axes.
    rotation_axis : tuple[float, float, float]
        Axis of the box orientation (unit length).
    rotation_angle_deg : float
        Rotation about ``rotation_axis`` [deg]. 0 gives an axis-aligned box.
    """

    center: tuple[float, float, float]
    radius: tuple[float, float, float]
    rotation_axis: tuple[float, float, float]
    rotation_angle_deg: float

    def build(self) -> Box:
        """Construct the :class:`Box` described by this config."""
        if self.rotation_angle_deg == 0.0:
            return Box.create(self.center, self.radius)
        rotation = rotation_from_axis_angle(
            self.rotation_axis, np.radians(self.rotation_angle_deg)
        )
        return Box.create(self.center, self.radius, rotation)


@dataclass(frozen=True)
class RayConfig:
    """Random ray generation settings.

    Attributes
    ----------
    count : int
        Number of rays per comparison run.
    seed : int
        Seed for ``numpy.random.default_rng``.
    origin_distance : float
        Distance of outside ray origins from the box centre, in units of
        the largest box radius. Must exceed sqrt(3) so that every outside
        origin clears the box corners.
    target_jitter : float
        Spread of ray target points around the box centre, in units of
        the box radius. Values above 1 produce a share of misses.
    inside_fraction : float
        Fraction of rays that start inside the box.
    """

    count: int
    seed: int
    origin_distance: float
    target_jitter: float
    inside_fraction: float


@dataclass(frozen=True)
class ComparisonConfig:
    """Algorithm comparison settings.

    Attributes
    ----------
    algorithms : tuple[str, ...]
        Registry keys of the algorithms to run.
    reference : str
        Algorithm every other one is compared against.
    relative_tolerance : float
        Relative tolerance for distance agreement.
    repeats : int
        Timed repetitions per algorithm; the best one is reported.
    oriented : bool
        Run the oriented code path.
    """

    algorithms: tuple[str, ...]
    reference: str
    relative_tolerance: float
    repeats: int
    oriented: bool


@dataclass(frozen=True)
class PlotConfig:
    """Depth/normal map rendering settings.

    Attributes
    ----------
    resolution : int
        Image width and height in pixels.
    view_direction : tuple[float, float, float]
        Direction of the orthographic view rays.
    dpi : int
        Figure resolution.
    """

    resolution: int
    view_direction: tuple[float, float, float]
    dpi: int


@dataclass(frozen=True)
class SuiteConfig:
    """Top-level configuration loaded from YAML."""

    box: BoxConfig
    rays: RayConfig
    comparison: ComparisonConfig
    plot: PlotConfig


# ---------------------------------------------------------------------------
# Configuration Loader
# ---------------------------------------------------------------------------


def _vec3(value: Any, key: str) -> tuple[float, float, float]:
    if not isinstance(value, (list, tuple)) or len(value) != 3:
        raise ValueError(f"'{key}' must be a list of 3 numbers, got {value!r}")
    return (float(value[0]), float(value[1]), float(value[2]))


def load_config(config_path: str | Path) -> SuiteConfig:
    """Load and validate a suite configuration from a YAML file.

    Parameters
    ----------
    config_path : str or Path
        Path to the YAML configuration file.

    Returns
    -------
    SuiteConfig
        Fully populated, typed configuration object.

    Raises
    ------
    FileNotFoundError
        If the configuration file does not exist.
    ValueError
        If required configuration keys are missing or values are invalid.
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise FileNotFoundError(f"Configuration file not found: {config_path}")

    with open(config_path, "r", encoding="utf-8") as f:
        raw: dict[str, Any] = yaml.safe_load(f) or {}

    logger.info("Loading configuration from: %s", config_path)

    try:
        config = _parse_config(raw)
    except KeyError as exc:
        raise ValueError(f"Missing configuration key: {exc.args[0]}") from exc

    _validate_config(config)
    logger.info(
        "Configuration loaded: %d algorithms, %d rays, reference '%s'",
        len(config.comparison.algorithms),
        config.rays.count,
        config.comparison.reference,
    )
    return config


def _parse_config(raw: dict[str, Any]) -> SuiteConfig:
    # --- Box ---
    bx = raw["box"]
    rot = bx.get("rotation", {"axis": [0.0, 0.0, 1.0], "angle_deg": 0.0})
    box = BoxConfig(
        center=_vec3(bx["center"], "box.center"),
        radius=_vec3(bx["radius"], "box.radius"),
        rotation_axis=_vec3(rot["axis"], "box.rotation.axis"),
        rotation_angle_deg=float(rot["angle_deg"]),
    )

    # --- Rays ---
    ry = raw["rays"]
    rays = RayConfig(
        count=int(ry["count"]),
        seed=int(ry["seed"]),
        origin_distance=float(ry["origin_distance"]),
        target_jitter=float(ry["target_jitter"]),
        inside_fraction=float(ry.get("inside_fraction", 0.0)),
    )

    # --- Comparison ---
    cmp_cfg = raw["comparison"]
    comparison = ComparisonConfig(
        algorithms=tuple(str(a) for a in cmp_cfg["algorithms"]),
        reference=str(cmp_cfg["reference"]),
        relative_tolerance=float(cmp_cfg["relative_tolerance"]),
        repeats=int(cmp_cfg["repeats"]),
        oriented=bool(cmp_cfg["oriented"]),
    )

    # --- Plot ---
    pl = raw.get("plot", {})
    plot = PlotConfig(
        resolution=int(pl.get("resolution", 256)),
        view_direction=_vec3(pl.get("view_direction", [-1.0, -0.6, -0.4]), "plot.view_direction"),
        dpi=int(pl.get("dpi", 150)),
    )

    return SuiteConfig(box=box, rays=rays, comparison=comparison, plot=plot)


def _validate_config(config: SuiteConfig) -> None:
    """Validate constraints on configuration values.

    Raises
    ------
    ValueError
        If any value is invalid.
    """
    if min(config.box.radius) <= 0.0:
        raise ValueError(f"Box radius must be strictly positive, got {config.box.radius}")
    axis_norm = float(np.linalg.norm(config.box.rotation_axis))
    if abs(axis_norm - 1.0) > 1e-6:
        raise ValueError(
            f"Rotation axis must be unit length, got norm {axis_norm:.6f}"
        )
    if config.rays.count <= 0:
        raise ValueError("Ray count must be positive.")
    # The origin sphere must enclose the box corners
    if config.rays.origin_distance <= np.sqrt(3.0):
        raise ValueError(
            f"Ray origin distance must exceed sqrt(3) box radii, "
            f"got {config.rays.origin_distance}"
        )
    if config.rays.target_jitter < 0.0:
        raise ValueError("Target jitter cannot be negative.")
    if not (0.0 <= config.rays.inside_fraction <= 1.0):
        raise ValueError(
            f"Inside fraction must be in [0, 1], got {config.rays.inside_fraction}"
        )
    unknown = [a for a in config.comparison.algorithms if a not in ALGORITHMS]
    if unknown:
        raise ValueError(f"Unknown algorithms {unknown}; expected {sorted(ALGORITHMS)}")
    if config.comparison.reference not in ALGORITHMS:
        raise ValueError(f"Unknown reference algorithm '{config.comparison.reference}'")
    if config.comparison.relative_tolerance <= 0.0:
        raise ValueError("Relative tolerance must be positive.")
    if config.comparison.repeats < 1:
        raise ValueError("Repeats must be >= 1.")
    if config.plot.resolution < 2:
        raise ValueError("Plot resolution must be >= 2.")
    if not np.any(np.asarray(config.plot.view_direction)):
        raise ValueError("Plot view direction must be non-zero.")

    logger.debug("Configuration validation passed.")


def log_platform_info() -> None:
    """Log platform and library version information for reproducibility."""
    logger.info("=" * 70)
    logger.info("PLATFORM INFORMATION (for reproducibility)")
    logger.info("=" * 70)
    logger.info("  Python:    %s", sys.version)
    logger.info("  Platform:  %s", platform.platform())
    logger.info("  Processor: %s", platform.processor())
    logger.info("  NumPy:     %s", np.__version__)
    logger.info("  Numba:     %s (threads=%d)", numba.__version__, numba.get_num_threads())
    logger.info("  Float64 eps: %e", np.finfo(np.float64).eps)
    logger.info("=" * 70)
