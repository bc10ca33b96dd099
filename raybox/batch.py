"""Parallel evaluation of one box against many rays — Numba JIT.

This is the intended bulk usage of the kernels: one invocation per ray,
each lane independent, spread over all cores with ``prange``. Only a
single box is involved; there is no multi-box batching here.

One parallel driver is compiled per algorithm. The algorithm's kernel is
bound as a closure variable so that Numba inlines the call instead of
dispatching through a function pointer.
"""

from __future__ import annotations

import logging
from typing import Any, Callable

import numpy as np
from numba import njit, prange

from raybox.geometry import Box
from raybox.intersect import DEFAULT_ALGORITHM, get_intersector
from raybox.vector import vsafe_rcp

logger = logging.getLogger(__name__)

_INTERSECT_KERNELS: dict[str, Callable[..., Any]] = {}
_HIT_KERNELS: dict[str, Callable[..., Any]] = {}


# ===================================================================
# KERNEL FACTORIES
# ===================================================================


def _make_intersect_kernel(intersect_box: Callable[..., Any]) -> Callable[..., Any]:
    @njit(parallel=True, fastmath=False)
    def kernel(center, radius, inv_radius, rotation, origins, directions, oriented):
        # rotation arrives as a (3, 3) array; parfors reject nested tuple arguments
        n = origins.shape[0]
        hits = np.zeros(n, dtype=np.bool_)
        distances = np.empty(n, dtype=np.float64)
        normals = np.empty((n, 3), dtype=np.float64)

        for i in prange(n):
            origin = (origins[i, 0], origins[i, 1], origins[i, 2])
            direction = (directions[i, 0], directions[i, 1], directions[i, 2])
            m = (
                (rotation[0, 0], rotation[0, 1], rotation[0, 2]),
                (rotation[1, 0], rotation[1, 1], rotation[1, 2]),
                (rotation[2, 0], rotation[2, 1], rotation[2, 2]),
            )
            hit, distance, normal = intersect_box(
                center, radius, inv_radius, m,
                origin, direction, oriented, vsafe_rcp(direction),
            )
            hits[i] = hit
            distances[i] = distance
            normals[i, 0] = normal[0]
            normals[i, 1] = normal[1]
            normals[i, 2] = normal[2]

        return hits, distances, normals

    return kernel


def _make_hit_kernel(hit_box: Callable[..., Any]) -> Callable[..., Any]:
    @njit(parallel=True, fastmath=False)
    def kernel(center, radius, origins, directions):
        n = origins.shape[0]
        hits = np.zeros(n, dtype=np.bool_)

        for i in prange(n):
            origin = (origins[i, 0], origins[i, 1], origins[i, 2])
            direction = (directions[i, 0], directions[i, 1], directions[i, 2])
            hits[i] = hit_box(center, radius, origin, direction, vsafe_rcp(direction))

        return hits

    return kernel


def _intersect_kernel(algorithm: str) -> Callable[..., Any]:
    if algorithm not in _INTERSECT_KERNELS:
        intersector = get_intersector(algorithm)
        logger.debug("Compiling parallel intersect driver for '%s'", algorithm)
        _INTERSECT_KERNELS[algorithm] = _make_intersect_kernel(intersector.intersect_box)
    return _INTERSECT_KERNELS[algorithm]


def _hit_kernel(algorithm: str) -> Callable[..., Any]:
    if algorithm not in _HIT_KERNELS:
        intersector = get_intersector(algorithm)
        logger.debug("Compiling parallel hit driver for '%s'", algorithm)
        _HIT_KERNELS[algorithm] = _make_hit_kernel(intersector.hit_box)
    return _HIT_KERNELS[algorithm]


def _as_ray_array(name: str, arr: np.ndarray) -> np.ndarray:
    out = np.ascontiguousarray(arr, dtype=np.float64)
    if out.ndim != 2 or out.shape[1] != 3:
        raise ValueError(f"{name} must have shape (N, 3), got {out.shape}")
    return out


# ===================================================================
# PUBLIC API
# ===================================================================


def intersect_rays(
    box: Box,
    origins: np.ndarray,
    directions: np.ndarray,
    algorithm: str = DEFAULT_ALGORITHM,
    oriented: bool | None = None,
) -> tuple[np.ndarray, np.ndarray, np.ndarray]:
    """Full intersection test of ``N`` rays against one box.

    Parameters
    ----------
    box : Box
        Target box.
    origins : np.ndarray
        Ray origins. Shape: (N, 3).
    directions : np.ndarray
        Ray directions. Shape: (N, 3).
    algorithm : str
        Registry key.
    oriented : bool, optional
        Apply the box rotation. Default: True unless the box is axis-aligned.
        When False, each ray's reciprocal direction is its safe inverse.

    Returns
    -------
    hits : np.ndarray
        Hit flags. Shape: (N,), dtype: bool.
    distances : np.ndarray
        Hit distances, NaN on misses. Shape: (N,).
    normals : np.ndarray
        World-space normals, NaN on misses. Shape: (N, 3).

    Raises
    ------
    ValueError
        If the ray arrays are not (N, 3) or disagree in length.
    """
    origins = _as_ray_array("origins", origins)
    directions = _as_ray_array("directions", directions)
    if origins.shape[0] != directions.shape[0]:
        raise ValueError(
            f"origins and directions differ in length: "
            f"{origins.shape[0]} vs {directions.shape[0]}"
        )
    if oriented is None:
        oriented = not box.is_axis_aligned

    kernel = _intersect_kernel(algorithm)
    return kernel(
        box.center, box.radius, box.inv_radius,
        np.ascontiguousarray(box.rotation, dtype=np.float64),
        origins, directions, bool(oriented),
    )


def hit_rays(
    box: Box,
    origins: np.ndarray,
    directions: np.ndarray,
    algorithm: str = DEFAULT_ALGORITHM,
) -> np.ndarray:
    """Boolean-only test of ``N`` rays against one axis-aligned box.

    Returns
    -------
    np.ndarray
        Hit flags. Shape: (N,), dtype: bool.
    """
    origins = _as_ray_array("origins", origins)
    directions = _as_ray_array("directions", directions)
    if origins.shape[0] != directions.shape[0]:
        raise ValueError(
            f"origins and directions differ in length: "
            f"{origins.shape[0]} vs {directions.shape[0]}"
        )

    kernel = _hit_kernel(algorithm)
    return kernel(box.center, box.radius, origins, directions)
