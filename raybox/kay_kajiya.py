"""Ray-box intersection — incremental per-axis slabs (Kay & Kajiya).

Axes are visited one at a time while a running interval
``[t_near, t_far]`` is tightened, starting from ``(-inf, +inf)``. The loop
bails out as soon as the interval empties or lies behind the origin.

An axis whose direction component is exactly zero is handled explicitly:
the ray is parallel to that slab, so it misses if the origin is outside
the slab and the axis imposes no bound otherwise.

References
----------
- Kay, T. L. & Kajiya, J. T. (1986). "Ray Tracing Complex Scenes."
  Proc. SIGGRAPH '86, Computer Graphics 20(4), 269-278.
"""

from __future__ import annotations

import math

from numba import njit

from raybox.normals import recover_normal
from raybox.vector import NAN, no_hit, swap, to_box_space, vsub


@njit(cache=True, fastmath=False)
def _incremental_slabs(origin, direction, inv_dir, radius) -> tuple[bool, float, bool]:
    """Return ``(hit, distance, exiting)`` for a ray relative to a centred box.

    ``exiting`` is True when the distance is the exit parameter ``t_far``.
    """
    t_near = -math.inf
    t_far = math.inf

    for axis in range(3):
        o = origin[axis]
        r = radius[axis]

        if direction[axis] == 0.0:
            # Parallel to this slab
            if o < -r or o > r:
                return False, NAN, False
            continue

        t1 = (-r - o) * inv_dir[axis]
        t2 = (r - o) * inv_dir[axis]
        if t1 > t2:
            t1, t2 = swap(t1, t2)

        if t1 > t_near:
            t_near = t1
        if t2 < t_far:
            t_far = t2

        if t_near > t_far or t_far < 0.0:
            return False, NAN, False

    if t_near >= 0.0:
        return True, t_near, False
    return True, t_far, True


@njit(cache=True, fastmath=False)
def intersect_box(
    center,
    radius,
    inv_radius,
    rotation,
    ray_origin,
    ray_direction,
    oriented: bool,
    inv_dir,
):
    """Full intersection test: hit flag, distance and outward normal.

    Same contract as ``raybox.aila_wald.intersect_box``.
    """
    origin, direction, inv = to_box_space(
        center, rotation, ray_origin, ray_direction, oriented, inv_dir
    )

    hit, distance, exiting = _incremental_slabs(origin, direction, inv, radius)
    if not hit:
        return no_hit()

    normal = recover_normal(
        origin, direction, distance, exiting, inv_radius, rotation, oriented
    )
    return hit, distance, normal


@njit(cache=True, fastmath=False)
def hit_box(center, radius, ray_origin, ray_direction, inv_ray_direction) -> bool:
    """Boolean-only test against an axis-aligned box."""
    hit, _, _ = _incremental_slabs(
        vsub(ray_origin, center), ray_direction, inv_ray_direction, radius
    )
    return hit
