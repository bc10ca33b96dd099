"""Ray-box intersection — branch-minimal slab method (Aila & Wald).

Per axis, the distances to both planes of the slab are computed with the
reciprocal direction; componentwise min/max sorts them into entry and
exit candidates, and the ray's interval inside the box is

    t0 = max(min(t_lo, t_hi)),   t1 = min(max(t_lo, t_hi))

The method never records which axis produced ``t0``/``t1``, so the normal
is recovered afterwards from the hit point (see ``raybox.normals``).

Zero direction components are covered by the safe reciprocal: the
sentinel turns a parallel axis into a huge interval when the origin is
inside that slab and into an empty one when it is outside.

References
----------
- Aila, T. & Laine, S. (2009). "Understanding the Efficiency of Ray
  Traversal on GPUs." Proc. High Performance Graphics, pp. 145-149.
- Wald, I. et al. (2001). "Interactive Rendering with Coherent Ray
  Tracing." Computer Graphics Forum, 20(3), 153-165.
"""

from __future__ import annotations

import math

from numba import njit

from raybox.normals import recover_normal
from raybox.vector import (
    max_component,
    min_component,
    no_hit,
    to_box_space,
    vmax,
    vmin,
    vmul,
    vneg,
    vsub,
)


@njit(cache=True, fastmath=False)
def _slab_distance(local_origin, inv_dir, radius) -> tuple[bool, float, bool]:
    """Return ``(hit, distance, exiting)`` for a ray relative to a centred box.

    ``exiting`` is True when the distance is the exit parameter ``t1``.
    """
    t_lo = vmul(vsub(vneg(radius), local_origin), inv_dir)
    t_hi = vmul(vsub(radius, local_origin), inv_dir)

    t0 = max_component(vmin(t_lo, t_hi))
    t1 = min_component(vmax(t_lo, t_hi))

    exiting = not t0 > 0.0
    distance = t1 if exiting else t0
    hit = t0 <= t1 and distance > 0.0 and math.isfinite(distance)
    return hit, distance, exiting


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

    Parameters
    ----------
    center, radius, inv_radius : tuple
        Box centre, half extents and their reciprocals.
    rotation : tuple
        Box world-to-local rotation (3 row tuples).
    ray_origin, ray_direction : tuple
        Ray in world space.
    oriented : bool
        If True, the ray is rotated into box-local space first and
        ``inv_dir`` is ignored.
    inv_dir : tuple
        Precomputed reciprocal ray direction, used when not oriented.

    Returns
    -------
    tuple
        ``(hit, distance, normal)``. Distance and normal are NaN on a miss.
    """
    origin, direction, inv = to_box_space(
        center, rotation, ray_origin, ray_direction, oriented, inv_dir
    )

    hit, distance, exiting = _slab_distance(origin, inv, radius)
    if not hit:
        return no_hit()

    normal = recover_normal(
        origin, direction, distance, exiting, inv_radius, rotation, oriented
    )
    return hit, distance, normal


@njit(cache=True, fastmath=False)
def hit_box(center, radius, ray_origin, ray_direction, inv_ray_direction) -> bool:
    """Boolean-only test against an axis-aligned box."""
    hit, _, _ = _slab_distance(vsub(ray_origin, center), inv_ray_direction, radius)
    return hit
