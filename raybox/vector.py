"""Vector primitives for the ray-box kernels — Numba JIT.

Vectors inside the kernels are homogeneous 3-tuples of float64 and
matrices are 3-tuples of row 3-tuples. Tuples live on the stack in
compiled code, so none of the helpers below allocate.

Design Notes
------------
- **Frame convention**: ``mat_vec(rotation, v)`` maps a world-space
  vector into box-local space; ``mat_t_vec(rotation, v)`` maps a
  box-local vector back to world space. ``rotation`` is orthonormal, so
  the transpose is the inverse.
- **Safe reciprocal**: ``1/x`` for nonzero ``x`` and the finite sentinel
  ``SAFE_RCP_SENTINEL`` for ``x == 0``. A finite sentinel keeps a parallel
  axis from ever bounding the ray without generating ``0 * inf = NaN``.
- **Precision**: float64 throughout.
"""

from __future__ import annotations

import numpy as np
from numba import njit

SAFE_RCP_SENTINEL: float = 1e30
NAN: float = float("nan")


# ===================================================================
# SCALAR HELPERS
# ===================================================================


@njit(cache=True, fastmath=False)
def safe_rcp(x: float) -> float:
    """Reciprocal of ``x``, or ``SAFE_RCP_SENTINEL`` when ``x == 0``."""
    if x == 0.0:
        return SAFE_RCP_SENTINEL
    return 1.0 / x


@njit(cache=True, fastmath=False)
def sign(x: float) -> float:
    """Sign of ``x`` as -1.0, 0.0 or 1.0."""
    if x > 0.0:
        return 1.0
    if x < 0.0:
        return -1.0
    return 0.0


@njit(cache=True, fastmath=False)
def swap(a: float, b: float) -> tuple[float, float]:
    """Return ``(b, a)``."""
    return b, a


@njit(cache=True, fastmath=False)
def fmin(a: float, b: float) -> float:
    return a if a < b else b


@njit(cache=True, fastmath=False)
def fmax(a: float, b: float) -> float:
    return a if a > b else b


# ===================================================================
# COMPONENTWISE OPERATIONS
# ===================================================================


@njit(cache=True, fastmath=False)
def vadd(a, b):
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


@njit(cache=True, fastmath=False)
def vsub(a, b):
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


@njit(cache=True, fastmath=False)
def vmul(a, b):
    """Componentwise (Hadamard) product."""
    return (a[0] * b[0], a[1] * b[1], a[2] * b[2])


@njit(cache=True, fastmath=False)
def vscale(a, s: float):
    return (a[0] * s, a[1] * s, a[2] * s)


@njit(cache=True, fastmath=False)
def vneg(a):
    return (-a[0], -a[1], -a[2])


@njit(cache=True, fastmath=False)
def vmin(a, b):
    return (fmin(a[0], b[0]), fmin(a[1], b[1]), fmin(a[2], b[2]))


@njit(cache=True, fastmath=False)
def vmax(a, b):
    return (fmax(a[0], b[0]), fmax(a[1], b[1]), fmax(a[2], b[2]))


@njit(cache=True, fastmath=False)
def vabs(a):
    return (abs(a[0]), abs(a[1]), abs(a[2]))


@njit(cache=True, fastmath=False)
def vsign(a):
    return (sign(a[0]), sign(a[1]), sign(a[2]))


@njit(cache=True, fastmath=False)
def vsafe_rcp(a):
    """Componentwise safe reciprocal."""
    return (safe_rcp(a[0]), safe_rcp(a[1]), safe_rcp(a[2]))


# ===================================================================
# REDUCTIONS
# ===================================================================


@njit(cache=True, fastmath=False)
def max_component(a) -> float:
    """Value of the largest component."""
    return fmax(fmax(a[0], a[1]), a[2])


@njit(cache=True, fastmath=False)
def min_component(a) -> float:
    """Value of the smallest component."""
    return fmin(fmin(a[0], a[1]), a[2])


@njit(cache=True, fastmath=False)
def max_abs_index(a) -> int:
    """Index of the component with the largest absolute value.

    Ties resolve to the lowest index.
    """
    best = 0
    best_abs = abs(a[0])
    for axis in range(1, 3):
        value = abs(a[axis])
        if value > best_abs:
            best = axis
            best_abs = value
    return best


@njit(cache=True, fastmath=False)
def unit_axis(axis: int, s: float):
    """Vector with ``s`` on ``axis`` and zeros elsewhere."""
    if axis == 0:
        return (s, 0.0, 0.0)
    if axis == 1:
        return (0.0, s, 0.0)
    return (0.0, 0.0, s)


# ===================================================================
# FRAME TRANSFORMS
# ===================================================================


@njit(cache=True, fastmath=False)
def mat_vec(m, v):
    """``m @ v`` — world to box-local for a box rotation ``m``."""
    return (
        m[0][0] * v[0] + m[0][1] * v[1] + m[0][2] * v[2],
        m[1][0] * v[0] + m[1][1] * v[1] + m[1][2] * v[2],
        m[2][0] * v[0] + m[2][1] * v[1] + m[2][2] * v[2],
    )


@njit(cache=True, fastmath=False)
def mat_t_vec(m, v):
    """``m.T @ v`` — box-local to world for a box rotation ``m``."""
    return (
        m[0][0] * v[0] + m[1][0] * v[1] + m[2][0] * v[2],
        m[0][1] * v[0] + m[1][1] * v[1] + m[2][1] * v[2],
        m[0][2] * v[0] + m[1][2] * v[1] + m[2][2] * v[2],
    )


@njit(cache=True, fastmath=False)
def to_box_space(center, rotation, origin, direction, oriented, inv_dir):
    """Express a ray relative to a box.

    The origin is always made relative to ``center``. When ``oriented``
    is True, origin and direction are rotated into box-local space and the
    reciprocal direction is recomputed there with the safe reciprocal;
    otherwise ``inv_dir`` is passed through untouched.

    Returns
    -------
    tuple
        ``(local_origin, local_direction, local_inv_direction)``.
    """
    local_origin = vsub(origin, center)
    if oriented:
        local_origin = mat_vec(rotation, local_origin)
        local_direction = mat_vec(rotation, direction)
        return local_origin, local_direction, vsafe_rcp(local_direction)
    return local_origin, direction, inv_dir


@njit(cache=True, fastmath=False)
def no_hit():
    """Result triple for a miss. Distance and normal are NaN, not zero."""
    return False, NAN, (NAN, NAN, NAN)


@njit(cache=True, fastmath=False)
def strictly_inside(local_point, radius) -> bool:
    """True if ``|p| < radius`` on every axis (box-local coordinates)."""
    return (
        abs(local_point[0]) < radius[0]
        and abs(local_point[1]) < radius[1]
        and abs(local_point[2]) < radius[2]
    )


# ===================================================================
# PYTHON-SIDE CONVERSIONS
# ===================================================================


def as_vec3(value) -> tuple[float, float, float]:
    """Convert any 3-element sequence into a float 3-tuple.

    Raises
    ------
    ValueError
        If ``value`` does not hold exactly three elements.
    """
    arr = np.asarray(value, dtype=np.float64).reshape(-1)
    if arr.shape[0] != 3:
        raise ValueError(f"Expected 3 components, got shape {np.shape(value)}")
    return (float(arr[0]), float(arr[1]), float(arr[2]))


def as_mat3(value) -> tuple[tuple[float, float, float], ...]:
    """Convert a 3x3 array-like into a tuple of float row 3-tuples."""
    arr = np.asarray(value, dtype=np.float64)
    if arr.shape != (3, 3):
        raise ValueError(f"Expected a 3x3 matrix, got shape {arr.shape}")
    return tuple(as_vec3(row) for row in arr)
