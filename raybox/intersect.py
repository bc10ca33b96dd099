"""Algorithm registry and high-level ray-box API.

The five algorithms are stateless siblings sharing one contract, so they
are selected by name at the call site rather than through a class
hierarchy. Every entry of ``ALGORITHMS`` exposes the two kernels:

- ``intersect_box(center, radius, inv_radius, rotation, origin,
  direction, oriented, inv_dir) -> (hit, distance, normal)``
- ``hit_box(center, radius, origin, direction, inv_dir) -> bool``

``intersect`` and ``hit`` wrap them for :class:`~raybox.geometry.Box` and
:class:`~raybox.geometry.Ray` values.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, NamedTuple

from raybox import aila_wald, kay_kajiya, scratch, williams, woo
from raybox.geometry import Box, Ray, Vec3
from raybox.vector import as_vec3

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


class BoxIntersector(NamedTuple):
    """The two entry points of one algorithm.

    Attributes
    ----------
    name : str
        Registry key.
    intersect_box : Callable
        Full oriented test returning ``(hit, distance, normal)``.
    hit_box : Callable
        Axis-aligned boolean-only test.
    handles_zero_direction : bool
        False for the methods whose precondition excludes exactly-zero
        direction components.
    """

    name: str
    intersect_box: Callable[..., Any]
    hit_box: Callable[..., Any]
    handles_zero_direction: bool


ALGORITHMS: dict[str, BoxIntersector] = {
    "aila_wald": BoxIntersector("aila_wald", aila_wald.intersect_box, aila_wald.hit_box, True),
    "woo": BoxIntersector("woo", woo.intersect_box, woo.hit_box, True),
    "kay_kajiya": BoxIntersector("kay_kajiya", kay_kajiya.intersect_box, kay_kajiya.hit_box, True),
    "williams": BoxIntersector("williams", williams.intersect_box, williams.hit_box, False),
    "scratch": BoxIntersector("scratch", scratch.intersect_box, scratch.hit_box, False),
}

DEFAULT_ALGORITHM = "aila_wald"


def get_intersector(name: str) -> BoxIntersector:
    """Look up an algorithm by name.

    Raises
    ------
    KeyError
        If ``name`` is not registered.
    """
    try:
        return ALGORITHMS[name]
    except KeyError:
        raise KeyError(
            f"Unknown algorithm {name!r}; expected one of {sorted(ALGORITHMS)}"
        ) from None


# ---------------------------------------------------------------------------
# Result Container
# ---------------------------------------------------------------------------


class BoxHit(NamedTuple):
    """Result of a full intersection test.

    ``distance`` and ``normal`` are meaningful only when ``hit`` is True;
    on a miss they hold NaN.
    """

    hit: bool
    distance: float
    normal: Vec3


# ---------------------------------------------------------------------------
# High-level API
# ---------------------------------------------------------------------------


def intersect(
    box: Box,
    ray: Ray,
    algorithm: str = DEFAULT_ALGORITHM,
    oriented: bool | None = None,
    inv_dir=None,
) -> BoxHit:
    """Intersect one ray with one box.

    Parameters
    ----------
    box : Box
        Target box.
    ray : Ray
        World-space ray.
    algorithm : str
        Registry key (see ``ALGORITHMS``).
    oriented : bool, optional
        Apply the box rotation. Default: True unless the box is
        axis-aligned.
    inv_dir : array-like, optional
        Precomputed reciprocal direction for the non-oriented path.
        Default: the ray's safe inverse direction.

    Returns
    -------
    BoxHit
        Hit flag, first forward distance and world-space normal.
    """
    intersector = get_intersector(algorithm)
    if oriented is None:
        oriented = not box.is_axis_aligned
    inv = ray.inv_direction if inv_dir is None else as_vec3(inv_dir)

    hit_flag, distance, normal = intersector.intersect_box(
        box.center,
        box.radius,
        box.inv_radius,
        box.rotation,
        ray.origin,
        ray.direction,
        bool(oriented),
        inv,
    )
    return BoxHit(bool(hit_flag), float(distance), tuple(normal))


def hit(
    box: Box,
    ray: Ray,
    algorithm: str = DEFAULT_ALGORITHM,
    inv_dir=None,
) -> bool:
    """Occlusion-only test; the box rotation is ignored."""
    intersector = get_intersector(algorithm)
    if not box.is_axis_aligned:
        logger.debug("hit(): ignoring rotation of oriented box %s", box.center)
    inv = ray.inv_direction if inv_dir is None else as_vec3(inv_dir)
    return bool(
        intersector.hit_box(box.center, box.radius, ray.origin, ray.direction, inv)
    )
