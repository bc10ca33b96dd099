"""Comparison Runner — time and cross-check the five box algorithms.

Orchestrates one comparison run:
1. Build the box and a reproducible ray set from the configuration
2. Warm up (JIT-compile) and time each algorithm's parallel driver
3. Compare every algorithm against the reference algorithm
4. Return (and optionally save) per-algorithm arrays and statistics

Notes
-----
Agreement is measured, not enforced: rays grazing an edge or a corner can
legitimately be classified differently by methods that order their
floating-point comparisons differently. Woo's inside-box convention
(``distance = 0``) differs from the slab family by design, so inside rays
are left out of its distance and surface checks.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

from comparison.ray_generator import RaySet, generate_rays
from raybox.batch import intersect_rays
from raybox.config import SuiteConfig
from raybox.geometry import Box

logger = logging.getLogger(__name__)

# Algorithms whose inside-box result is not the exit point.
_INSIDE_SHORT_CIRCUIT = frozenset({"woo"})


# ---------------------------------------------------------------------------
# Result Containers
# ---------------------------------------------------------------------------


@dataclass
class AlgorithmStats:
    """Timing and agreement statistics for one algorithm.

    Attributes
    ----------
    name : str
        Algorithm registry key.
    ns_per_ray : float
        Best wall time per ray over all repeats [ns].
    hit_rate : float
        Fraction of rays reported as hits.
    hit_agreement : float
        Fraction of rays whose hit flag matches the reference.
    distance_agreement : float
        Among rays both hit (and comparable), fraction whose distance is
        within the relative tolerance of the reference.
    max_surface_residual : float
        Largest ``| max|p_local / radius| - 1 |`` over hit points.
    compared_hits : int
        Number of rays entering the distance comparison.
    """

    name: str
    ns_per_ray: float
    hit_rate: float
    hit_agreement: float
    distance_agreement: float
    max_surface_residual: float
    compared_hits: int


@dataclass
class ComparisonResults:
    """Container for comparison output data.

    Attributes
    ----------
    rays : RaySet
        The rays every algorithm was run on.
    hits, distances, normals : dict[str, np.ndarray]
        Raw per-algorithm outputs keyed by algorithm name.
    stats : dict[str, AlgorithmStats]
        Per-algorithm statistics.
    metadata : dict
        Run metadata (box, ray count, tolerance, timing).
    """

    rays: RaySet
    hits: dict[str, np.ndarray] = field(default_factory=dict)
    distances: dict[str, np.ndarray] = field(default_factory=dict)
    normals: dict[str, np.ndarray] = field(default_factory=dict)
    stats: dict[str, AlgorithmStats] = field(default_factory=dict)
    metadata: dict = field(default_factory=dict)


# ---------------------------------------------------------------------------
# Metrics
# ---------------------------------------------------------------------------


def surface_residual(box: Box, points: np.ndarray) -> np.ndarray:
    """Distance of points from the box surface in normalized local units.

    Parameters
    ----------
    box : Box
        The box.
    points : np.ndarray
        World-space points. Shape: (N, 3).

    Returns
    -------
    np.ndarray
        ``| max_i |p_local_i / radius_i| - 1 |``. Zero on the surface.
        Shape: (N,).
    """
    rotation = np.asarray(box.rotation, dtype=np.float64)
    local = (points - np.asarray(box.center)) @ rotation.T
    scaled = np.abs(local * np.asarray(box.inv_radius))
    return np.abs(scaled.max(axis=1) - 1.0)


def distance_agreement(
    distances: np.ndarray,
    reference: np.ndarray,
    relative_tolerance: float,
) -> np.ndarray:
    """Elementwise ``|d - d_ref| <= rtol * max(|d_ref|, 1)``."""
    scale = np.maximum(np.abs(reference), 1.0)
    return np.abs(distances - reference) <= relative_tolerance * scale


# ---------------------------------------------------------------------------
# Comparison Runner
# ---------------------------------------------------------------------------


class ComparisonRunner:
    """Runs every configured algorithm on one ray set and cross-checks them.

    Parameters
    ----------
    config : SuiteConfig
        Suite configuration loaded from YAML.
    """

    def __init__(self, config: SuiteConfig) -> None:
        self._config = config
        self._box = config.box.build()

        logger.info(
            "ComparisonRunner initialized: center=%s, radius=%s, rotation=%.1f°",
            self._box.center,
            self._box.radius,
            config.box.rotation_angle_deg,
        )

    @property
    def box(self) -> Box:
        return self._box

    def run(
        self,
        algorithms: list[str] | None = None,
        num_rays: int | None = None,
        seed: int | None = None,
        save_data: bool = False,
        output_dir: Path | str = "output",
    ) -> ComparisonResults:
        """Execute the comparison.

        Parameters
        ----------
        algorithms : list[str], optional
            Override the configured algorithm list.
        num_rays : int, optional
            Override the configured ray count.
        seed : int, optional
            Override the configured seed.
        save_data : bool
            Save raw arrays and metadata to ``output_dir``.
        output_dir : Path or str
            Output directory for saved data.

        Returns
        -------
        ComparisonResults
            Raw outputs and statistics for every algorithm.
        """
        cmp_cfg = self._config.comparison
        ray_cfg = self._config.rays
        names = list(algorithms) if algorithms is not None else list(cmp_cfg.algorithms)
        reference = cmp_cfg.reference
        if reference not in names:
            names.insert(0, reference)

        wall_start = time.perf_counter()

        # Step 1: Rays
        logger.info("Step 1/3: Generating rays...")
        rays = generate_rays(
            self._box,
            num_rays if num_rays is not None else ray_cfg.count,
            seed=seed if seed is not None else ray_cfg.seed,
            origin_distance=ray_cfg.origin_distance,
            target_jitter=ray_cfg.target_jitter,
            inside_fraction=ray_cfg.inside_fraction,
        )
        n = len(rays)

        results = ComparisonResults(
            rays=rays,
            metadata={
                "box_center": self._box.center,
                "box_radius": self._box.radius,
                "box_rotation": self._box.rotation,
                "num_rays": n,
                "num_inside": int(rays.inside.sum()),
                "reference": reference,
                "relative_tolerance": cmp_cfg.relative_tolerance,
                "oriented": cmp_cfg.oriented,
                "repeats": cmp_cfg.repeats,
            },
        )

        # Step 2: Timed runs
        logger.info("Step 2/3: Timing %d algorithms on %d rays...", len(names), n)
        timings: dict[str, float] = {}
        for name in names:
            hits, distances, normals, best_s = self._time_algorithm(name, rays)
            results.hits[name] = hits
            results.distances[name] = distances
            results.normals[name] = normals
            timings[name] = best_s
            logger.info("  %-11s %8.2f ns/ray", name, 1e9 * best_s / max(n, 1))

        # Step 3: Cross-check
        logger.info("Step 3/3: Comparing against '%s'...", reference)
        for name in names:
            results.stats[name] = self._compare(
                name, results, reference, timings[name]
            )

        wall_elapsed = time.perf_counter() - wall_start
        results.metadata["wall_time_s"] = wall_elapsed
        self._log_summary(results)

        if save_data:
            from comparison.io_manager import save_results

            save_results(output_dir, results)

        return results

    def _time_algorithm(
        self,
        name: str,
        rays: RaySet,
    ) -> tuple[np.ndarray, np.ndarray, np.ndarray, float]:
        """Warm up, then run ``repeats`` times and keep the best time."""
        oriented = self._config.comparison.oriented
        warm = min(len(rays), 16)
        intersect_rays(
            self._box, rays.origins[:warm], rays.directions[:warm], name, oriented
        )

        best = float("inf")
        out = None
        for _ in range(self._config.comparison.repeats):
            start = time.perf_counter()
            out = intersect_rays(
                self._box, rays.origins, rays.directions, name, oriented
            )
            best = min(best, time.perf_counter() - start)

        hits, distances, normals = out
        return hits, distances, normals, best

    def _compare(
        self,
        name: str,
        results: ComparisonResults,
        reference: str,
        best_s: float,
    ) -> AlgorithmStats:
        rays = results.rays
        n = len(rays)
        hits = results.hits[name]
        distances = results.distances[name]
        ref_hits = results.hits[reference]
        ref_distances = results.distances[reference]

        comparable = np.ones(n, dtype=bool)
        if name in _INSIDE_SHORT_CIRCUIT or reference in _INSIDE_SHORT_CIRCUIT:
            comparable &= ~rays.inside

        both = hits & ref_hits & comparable
        agree = distance_agreement(
            distances[both], ref_distances[both], self._config.comparison.relative_tolerance
        )

        surface_mask = hits.copy()
        if name in _INSIDE_SHORT_CIRCUIT:
            surface_mask &= ~rays.inside
        if surface_mask.any():
            points = (
                rays.origins[surface_mask]
                + distances[surface_mask][:, None] * rays.directions[surface_mask]
            )
            metric_box = self._box
            if not self._config.comparison.oriented:
                metric_box = Box.create(self._box.center, self._box.radius)
            max_residual = float(surface_residual(metric_box, points).max())
        else:
            max_residual = 0.0

        return AlgorithmStats(
            name=name,
            ns_per_ray=1e9 * best_s / max(n, 1),
            hit_rate=float(hits.mean()) if n else 0.0,
            hit_agreement=float((hits == ref_hits).mean()) if n else 1.0,
            distance_agreement=float(agree.mean()) if agree.size else 1.0,
            max_surface_residual=max_residual,
            compared_hits=int(both.sum()),
        )

    @staticmethod
    def _log_summary(results: ComparisonResults) -> None:
        logger.info("=" * 78)
        logger.info(
            "  %-11s %10s %9s %9s %9s %12s",
            "algorithm", "ns/ray", "hit rate", "hit agr", "dist agr", "surface res",
        )
        logger.info("-" * 78)
        for s in results.stats.values():
            logger.info(
                "  %-11s %10.2f %9.4f %9.6f %9.6f %12.3e",
                s.name,
                s.ns_per_ray,
                s.hit_rate,
                s.hit_agreement,
                s.distance_agreement,
                s.max_surface_residual,
            )
        logger.info("=" * 78)
        logger.info(
            "Comparison complete: %.2f s wall time (%d rays)",
            results.metadata["wall_time_s"],
            results.metadata["num_rays"],
        )
