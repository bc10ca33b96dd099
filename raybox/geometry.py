"""Box and Ray value types.

Both types are frozen dataclasses holding float tuples, so they can be
handed to the compiled kernels without conversion and never alias a
caller's mutable array.

A box is described by its centre, its half extents (``radius``) along
its own local axes, the precomputed reciprocal of those half extents and
an orthonormal ``rotation`` mapping world vectors into box-local space
(``local = rotation @ world``). Axis-aligned boxes carry the identity.
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

from raybox.vector import as_mat3, as_vec3, strictly_inside, vsafe_rcp

Vec3 = tuple[float, float, float]
Mat3 = tuple[Vec3, Vec3, Vec3]

IDENTITY: Mat3 = ((1.0, 0.0, 0.0), (0.0, 1.0, 0.0), (0.0, 0.0, 1.0))


# ---------------------------------------------------------------------------
# Rotation helpers
# ---------------------------------------------------------------------------


def rotation_from_axis_angle(axis, angle_rad: float) -> np.ndarray:
    """Build a rotation matrix from an axis and an angle (Rodrigues).

    Parameters
    ----------
    axis : array-like
        Rotation axis. Shape: (3,). Normalized internally.
    angle_rad : float
        Rotation angle in radians (right-handed).

    Returns
    -------
    np.ndarray
        Orthonormal rotation matrix. Shape: (3, 3).

    Raises
    ------
    ValueError
        If the axis has zero length.
    """
    k = np.asarray(axis, dtype=np.float64).reshape(3)
    norm = np.linalg.norm(k)
    if norm == 0.0:
        raise ValueError("Rotation axis must be non-zero.")
    k = k / norm

    kx = np.array(
        [
            [0.0, -k[2], k[1]],
            [k[2], 0.0, -k[0]],
            [-k[1], k[0], 0.0],
        ],
        dtype=np.float64,
    )
    return np.eye(3) + np.sin(angle_rad) * kx + (1.0 - np.cos(angle_rad)) * (kx @ kx)


def is_orthonormal(matrix, atol: float = 1e-9) -> bool:
    """Check ``M @ M.T == I`` within ``atol``."""
    m = np.asarray(matrix, dtype=np.float64)
    if m.shape != (3, 3):
        return False
    return bool(np.allclose(m @ m.T, np.eye(3), atol=atol))


# ---------------------------------------------------------------------------
# Value Types
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Ray:
    """A ray ``origin + t * direction``.

    Attributes
    ----------
    origin : Vec3
        Ray origin in world space.
    direction : Vec3
        Ray direction. Need not be normalized; components may be exactly
        zero.
    """

    origin: Vec3
    direction: Vec3

    @classmethod
    def create(cls, origin, direction) -> Ray:
        return cls(origin=as_vec3(origin), direction=as_vec3(direction))

    @property
    def inv_direction(self) -> Vec3:
        """Safe componentwise reciprocal of ``direction``."""
        return vsafe_rcp(self.direction)

    def at(self, t: float) -> np.ndarray:
        """Point at parameter ``t``."""
        return np.asarray(self.origin) + t * np.asarray(self.direction)


@dataclass(frozen=True)
class Box:
    """A box with arbitrary orientation.

    Use :meth:`create`, :meth:`from_corners` or :meth:`centred` rather
    than the raw constructor so that ``inv_radius`` stays consistent with
    ``radius``. None of these validate the box: a non-positive radius or a
    non-orthonormal rotation gives undefined intersection results.

    Attributes
    ----------
    center : Vec3
        Box centre in world space.
    radius : Vec3
        Half extents along the box-local axes.
    inv_radius : Vec3
        ``1 / radius`` componentwise.
    rotation : Mat3
        World-to-local rotation (rows are the box axes in world space).
    """

    center: Vec3
    radius: Vec3
    inv_radius: Vec3
    rotation: Mat3 = IDENTITY

    @classmethod
    def create(cls, center, radius, rotation=None) -> Box:
        radius_t = as_vec3(radius)
        return cls(
            center=as_vec3(center),
            radius=radius_t,
            inv_radius=(1.0 / radius_t[0], 1.0 / radius_t[1], 1.0 / radius_t[2]),
            rotation=IDENTITY if rotation is None else as_mat3(rotation),
        )

    @classmethod
    def from_corners(cls, a, b) -> Box:
        """Axis-aligned box spanning two corners (in any order)."""
        a = np.asarray(a, dtype=np.float64)
        b = np.asarray(b, dtype=np.float64)
        return cls.create((a + b) / 2.0, np.abs(b - a) / 2.0)

    @classmethod
    def centred(cls, center, size, rotation=None) -> Box:
        """Box from its centre and full edge lengths."""
        return cls.create(center, np.asarray(size, dtype=np.float64) / 2.0, rotation)

    @property
    def is_axis_aligned(self) -> bool:
        return self.rotation == IDENTITY

    def to_local(self, point) -> np.ndarray:
        """World-space point to box-local coordinates."""
        p = np.asarray(point, dtype=np.float64) - np.asarray(self.center)
        return np.asarray(self.rotation) @ p

    def to_world(self, vector) -> np.ndarray:
        """Box-local direction to world space."""
        return np.asarray(self.rotation).T @ np.asarray(vector, dtype=np.float64)

    def contains(self, point) -> bool:
        """True if ``point`` lies strictly inside the box."""
        return bool(strictly_inside(as_vec3(self.to_local(point)), self.radius))
