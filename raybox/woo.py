"""Ray-box intersection — candidate plane method (Woo).

Phase 1 classifies the ray origin against each slab as below (-1),
within (0) or above (+1). Only the plane facing the origin on each
"outside" axis can be the entry plane, so phase 2 computes one candidate
distance per axis, keeps the largest, and validates that single plane by
checking the other two coordinates of the hit point against their slabs.

Known approximation
-------------------
An origin inside the box short-circuits with ``distance = 0`` and
``normal = -direction``. The true exit point is NOT located. This is the
published behaviour of the method and is kept so that its results can be
compared as-is against the slab family.

References
----------
- Woo, A. (1990). "Fast Ray-Box Intersection." Graphics Gems, pp. 395-396.
"""

from __future__ import annotations

from numba import njit

from raybox.vector import (
    mat_t_vec,
    no_hit,
    to_box_space,
    unit_axis,
    vneg,
    vsub,
)

_BELOW = -1.0
_WITHIN = 0.0
_ABOVE = 1.0


@njit(cache=True, fastmath=False)
def _classify(o: float, r: float) -> float:
    if o < -r:
        return _BELOW
    if o > r:
        return _ABOVE
    return _WITHIN


@njit(cache=True, fastmath=False)
def _candidate_distance(o: float, d: float, inv: float, r: float, quadrant: float) -> float:
    """Distance to the plane facing the origin, or -1 if the axis has none."""
    if quadrant == _WITHIN or d == 0.0:
        return -1.0
    return (quadrant * r - o) * inv


@njit(cache=True, fastmath=False)
def _largest_index(v) -> int:
    best = 0
    for axis in range(1, 3):
        if v[axis] > v[best]:
            best = axis
    return best


@njit(cache=True, fastmath=False)
def _candidate_plane(origin, direction, inv_dir, radius):
    """Run both phases on a ray relative to a centred box.

    Returns
    -------
    tuple
        ``(hit, inside, distance, axis, plane_sign)``. ``inside`` is True
        when phase 1 found the origin within all three slabs.
    """
    quadrant = (
        _classify(origin[0], radius[0]),
        _classify(origin[1], radius[1]),
        _classify(origin[2], radius[2]),
    )
    if quadrant[0] == _WITHIN and quadrant[1] == _WITHIN and quadrant[2] == _WITHIN:
        return True, True, 0.0, 0, 0.0

    max_t = (
        _candidate_distance(origin[0], direction[0], inv_dir[0], radius[0], quadrant[0]),
        _candidate_distance(origin[1], direction[1], inv_dir[1], radius[1], quadrant[1]),
        _candidate_distance(origin[2], direction[2], inv_dir[2], radius[2], quadrant[2]),
    )
    which = _largest_index(max_t)
    distance = max_t[which]
    if distance < 0.0:
        return False, False, distance, which, 0.0

    for axis in range(3):
        if axis == which:
            continue
        coord = origin[axis] + distance * direction[axis]
        if coord < -radius[axis] or coord > radius[axis]:
            return False, False, distance, which, 0.0

    return True, False, distance, which, quadrant[which]


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
    """Full intersection test: hit flag, distance and normal.

    Same contract as ``raybox.aila_wald.intersect_box``, except for an
    origin inside the box, which yields ``(True, 0.0, -ray_direction)``.
    ``inv_radius`` is unused; the face is known from the chosen plane.
    """
    origin, direction, inv = to_box_space(
        center, rotation, ray_origin, ray_direction, oriented, inv_dir
    )

    hit, inside, distance, axis, plane_sign = _candidate_plane(
        origin, direction, inv, radius
    )
    if not hit:
        return no_hit()
    if inside:
        return hit, distance, vneg(ray_direction)

    normal = unit_axis(axis, plane_sign)
    if oriented:
        normal = mat_t_vec(rotation, normal)
    return hit, distance, normal


@njit(cache=True, fastmath=False)
def hit_box(center, radius, ray_origin, ray_direction, inv_ray_direction) -> bool:
    """Boolean-only test against an axis-aligned box."""
    hit, _, _, _, _ = _candidate_plane(
        vsub(ray_origin, center), ray_direction, inv_ray_direction, radius
    )
    return hit
