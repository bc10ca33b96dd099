"""Reproducible random ray sets for comparing the box algorithms.

Outside rays start on a sphere around the box and aim at jittered target
points around its centre; with a jitter above one box radius a share of
them misses. Inside rays start at random points within the box and point
in uniformly random directions.

All sampling happens in box-local space and is mapped to world space with
the box rotation, so the hit/miss mix does not depend on the orientation.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from raybox.geometry import Box

logger = logging.getLogger(__name__)

# Replacement for exactly-zero direction components (Williams/Scratch
# precondition).
_MIN_COMPONENT = 1e-12


@dataclass
class RaySet:
    """A batch of world-space rays.

    Attributes
    ----------
    origins : np.ndarray
        Ray origins. Shape: (N, 3).
    directions : np.ndarray
        Unit ray directions. Shape: (N, 3). No component is exactly zero.
    inside : np.ndarray
        True for rays whose origin lies inside the box. Shape: (N,).
    """

    origins: np.ndarray
    directions: np.ndarray
    inside: np.ndarray

    def __len__(self) -> int:
        return self.origins.shape[0]


def _random_unit_vectors(rng: np.random.Generator, n: int) -> np.ndarray:
    v = rng.standard_normal((n, 3))
    norms = np.linalg.norm(v, axis=1, keepdims=True)
    norms[norms == 0.0] = 1.0
    return v / norms


def generate_rays(
    box: Box,
    num_rays: int,
    seed: int = 42,
    origin_distance: float = 6.0,
    target_jitter: float = 1.5,
    inside_fraction: float = 0.0,
) -> RaySet:
    """Generate a reproducible ray set around ``box``.

    Parameters
    ----------
    box : Box
        Box the rays are aimed at.
    num_rays : int
        Total number of rays.
    seed : int
        Random seed.
    origin_distance : float
        Distance of outside origins from the centre, in units of the
        largest box radius. Below sqrt(3) some of them can land inside
        the box; ``RaySet.inside`` reports them as such.
    target_jitter : float
        Half width of the target region, in units of the box radius.
    inside_fraction : float
        Fraction of rays starting inside the box, in [0, 1].

    Returns
    -------
    RaySet
        World-space rays with their inside flags.
    """
    rng = np.random.default_rng(seed)
    radius = np.asarray(box.radius, dtype=np.float64)
    center = np.asarray(box.center, dtype=np.float64)
    rotation = np.asarray(box.rotation, dtype=np.float64)

    n_inside = int(round(num_rays * inside_fraction))
    n_outside = num_rays - n_inside

    # Outside rays: sphere of origins, jittered targets
    sphere_radius = origin_distance * float(radius.max())
    out_origins = _random_unit_vectors(rng, n_outside) * sphere_radius
    targets = rng.uniform(-1.0, 1.0, (n_outside, 3)) * radius * target_jitter
    out_dirs = targets - out_origins
    out_dirs /= np.linalg.norm(out_dirs, axis=1, keepdims=True)

    # Inside rays: strictly interior origins, random directions
    in_origins = rng.uniform(-0.95, 0.95, (n_inside, 3)) * radius
    in_dirs = _random_unit_vectors(rng, n_inside)

    local_origins = np.concatenate([out_origins, in_origins], axis=0)
    local_dirs = np.concatenate([out_dirs, in_dirs], axis=0)
    # Flags come from the sampled points, not from which branch drew them
    inside = np.all(np.abs(local_origins) < radius, axis=1)

    # Box-local → world: rotation.T @ v, i.e. v @ rotation for row vectors
    origins = local_origins @ rotation + center
    directions = local_dirs @ rotation
    directions[directions == 0.0] = _MIN_COMPONENT

    logger.debug(
        "Generated %d rays (%d inside, seed=%d, jitter=%.2f)",
        num_rays, int(inside.sum()), seed, target_jitter,
    )
    return RaySet(
        origins=np.ascontiguousarray(origins),
        directions=np.ascontiguousarray(directions),
        inside=inside,
    )
