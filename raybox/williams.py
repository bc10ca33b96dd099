"""Ray-box intersection — sign-branched slabs (Williams et al.).

The three-axis slab test is unrolled. On each axis the sign of the
reciprocal direction decides directly which plane is the near one and
which the far one, so no min/max or swap is needed; the per-axis
intervals are then merged into a running ``[tmin, tmax]``.

Precondition
------------
No direction component may be exactly zero. The division is not special
cased; behaviour at that boundary is left undefined, not handled.

References
----------
- Williams, A., Barrus, S., Morley, R. K. & Shirley, P. (2005). "An
  Efficient and Robust Ray-Box Intersection Algorithm." J. Graphics
  Tools, 10(1), 49-54.
"""

from __future__ import annotations

from numba import njit

from raybox.normals import recover_normal
from raybox.vector import NAN, no_hit, to_box_space, vsub


@njit(cache=True, fastmath=False)
def _branched_slabs(origin, inv_dir, radius) -> tuple[bool, float, bool]:
    """Return ``(hit, distance, exiting)`` for a ray relative to a centred box.

    ``exiting`` is True when the distance is the exit parameter ``tmax``.
    """
    if inv_dir[0] >= 0.0:
        tmin = (-radius[0] - origin[0]) * inv_dir[0]
        tmax = (radius[0] - origin[0]) * inv_dir[0]
    else:
        tmin = (radius[0] - origin[0]) * inv_dir[0]
        tmax = (-radius[0] - origin[0]) * inv_dir[0]

    if inv_dir[1] >= 0.0:
        tymin = (-radius[1] - origin[1]) * inv_dir[1]
        tymax = (radius[1] - origin[1]) * inv_dir[1]
    else:
        tymin = (radius[1] - origin[1]) * inv_dir[1]
        tymax = (-radius[1] - origin[1]) * inv_dir[1]

    if tmin > tymax or tymin > tmax:
        return False, NAN, False
    if tymin > tmin:
        tmin = tymin
    if tymax < tmax:
        tmax = tymax

    if inv_dir[2] >= 0.0:
        tzmin = (-radius[2] - origin[2]) * inv_dir[2]
        tzmax = (radius[2] - origin[2]) * inv_dir[2]
    else:
        tzmin = (radius[2] - origin[2]) * inv_dir[2]
        tzmax = (-radius[2] - origin[2]) * inv_dir[2]

    if tmin > tzmax or tzmin > tmax:
        return False, NAN, False
    if tzmin > tmin:
        tmin = tzmin
    if tzmax < tmax:
        tmax = tzmax

    if tmin >= 0.0:
        return True, tmin, False
    if tmax >= 0.0:
        return True, tmax, True
    return False, NAN, False


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

    Same contract as ``raybox.aila_wald.intersect_box``, restricted to
    rays with no zero direction component.
    """
    origin, direction, inv = to_box_space(
        center, rotation, ray_origin, ray_direction, oriented, inv_dir
    )

    hit, distance, exiting = _branched_slabs(origin, inv, radius)
    if not hit:
        return no_hit()

    normal = recover_normal(
        origin, direction, distance, exiting, inv_radius, rotation, oriented
    )
    return hit, distance, normal


@njit(cache=True, fastmath=False)
def hit_box(center, radius, ray_origin, ray_direction, inv_ray_direction) -> bool:
    """Boolean-only test against an axis-aligned box."""
    hit, _, _ = _branched_slabs(vsub(ray_origin, center), inv_ray_direction, radius)
    return hit
