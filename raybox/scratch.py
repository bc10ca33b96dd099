"""Ray-box intersection — sign-indexed slabs (Scratchapixel variant).

Numerically identical to ``raybox.williams``. Instead of branching on the
sign of each reciprocal direction component, the box bounds are stored as
a two-entry table ``(min bound, max bound)`` and a 0/1 index computed once
per axis from that sign selects the near plane; ``1 - index`` selects the
far one.

Same precondition as the Williams method: no zero direction component.

References
----------
- Scratchapixel, "Ray Tracing: Rendering Simple Shapes — Ray-Box
  Intersection."
"""

from __future__ import annotations

from numba import njit

from raybox.normals import recover_normal
from raybox.vector import NAN, no_hit, to_box_space, vneg, vsub


@njit(cache=True, fastmath=False)
def _sign_index(inv: float) -> int:
    return 1 if inv < 0.0 else 0


@njit(cache=True, fastmath=False)
def _indexed_slabs(origin, inv_dir, radius) -> tuple[bool, float, bool]:
    """Return ``(hit, distance, exiting)`` for a ray relative to a centred box.

    ``exiting`` is True when the distance is the exit parameter ``tmax``.
    """
    bounds = (vneg(radius), radius)
    sx = _sign_index(inv_dir[0])
    sy = _sign_index(inv_dir[1])
    sz = _sign_index(inv_dir[2])

    tmin = (bounds[sx][0] - origin[0]) * inv_dir[0]
    tmax = (bounds[1 - sx][0] - origin[0]) * inv_dir[0]
    tymin = (bounds[sy][1] - origin[1]) * inv_dir[1]
    tymax = (bounds[1 - sy][1] - origin[1]) * inv_dir[1]

    if tmin > tymax or tymin > tmax:
        return False, NAN, False
    if tymin > tmin:
        tmin = tymin
    if tymax < tmax:
        tmax = tymax

    tzmin = (bounds[sz][2] - origin[2]) * inv_dir[2]
    tzmax = (bounds[1 - sz][2] - origin[2]) * inv_dir[2]

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

    Same contract as ``raybox.williams.intersect_box``.
    """
    origin, direction, inv = to_box_space(
        center, rotation, ray_origin, ray_direction, oriented, inv_dir
    )

    hit, distance, exiting = _indexed_slabs(origin, inv, radius)
    if not hit:
        return no_hit()

    normal = recover_normal(
        origin, direction, distance, exiting, inv_radius, rotation, oriented
    )
    return hit, distance, normal


@njit(cache=True, fastmath=False)
def hit_box(center, radius, ray_origin, ray_direction, inv_ray_direction) -> bool:
    """Boolean-only test against an axis-aligned box."""
    hit, _, _ = _indexed_slabs(vsub(ray_origin, center), inv_ray_direction, radius)
    return hit
