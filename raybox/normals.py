"""Post-hoc surface normal recovery (Wald's method) — Numba JIT.

The slab-family algorithms only produce a hit distance; they never record
which face bounded the ray. The face is recovered afterwards from the hit
point: scaled by ``inv_radius``, the hit point has magnitude 1 on the
axis of the face it lies on and magnitude <= 1 on the other two.

Sign convention
---------------
The base normal faces the incoming ray (``-sign(direction)`` on the hit
axis), which is the outward normal of an entry plane. When the distance
is the exit parameter of the slab interval the plane reached faces the
other way, so the sign is flipped. That covers every origin strictly
inside the box and surface origins whose entry parameter is not taken.
Either way the returned normal is the outward normal of the face hit.
If the direction component on the hit axis is exactly zero (grazing
hit), the sign of the scaled hit component is used instead.

References
----------
- Majercik, A., Crassin, C., Shirley, P. & McGuire, M. (2018). "A
  Ray-Box Intersection Algorithm and Efficient Dynamic Voxel Rendering."
  J. Computer Graphics Techniques, 7(3), 66-81.
"""

from __future__ import annotations

from numba import njit

from raybox.vector import (
    mat_t_vec,
    max_abs_index,
    sign,
    unit_axis,
    vadd,
    vmul,
    vscale,
)


@njit(cache=True, fastmath=False)
def recover_normal(
    local_origin,
    local_direction,
    distance: float,
    exiting: bool,
    inv_radius,
    rotation,
    oriented: bool,
):
    """Outward unit normal at ``local_origin + distance * local_direction``.

    Parameters
    ----------
    local_origin : tuple
        Ray origin relative to the box centre, in box-local space.
    local_direction : tuple
        Ray direction in box-local space (world direction when the box
        is treated as axis-aligned).
    distance : float
        Hit parameter along the ray.
    exiting : bool
        True if ``distance`` is the exit parameter of the slab interval.
    inv_radius : tuple
        Reciprocals of the box half extents.
    rotation : tuple
        Box world-to-local rotation.
    oriented : bool
        If True, the normal is rotated back into world space.

    Returns
    -------
    tuple
        Unit normal on one of the six axis directions.
    """
    hit_local = vadd(local_origin, vscale(local_direction, distance))
    scaled = vmul(hit_local, inv_radius)
    axis = max_abs_index(scaled)

    s = -sign(local_direction[axis])
    if s == 0.0:
        s = sign(scaled[axis])
    elif exiting:
        s = -s

    normal = unit_axis(axis, s)
    if oriented:
        return mat_t_vec(rotation, normal)
    return normal
