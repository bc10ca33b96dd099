"""raybox — ray-box intersection reference suite.

Five interchangeable ray-box intersection algorithms (Aila-Wald slabs,
Woo candidate planes, Kay-Kajiya incremental slabs, Williams sign-branched
slabs, Scratchapixel sign-indexed slabs) sharing one contract, compiled
with Numba, plus the shared vector primitives and normal recovery.
"""

from raybox.geometry import Box, Ray, rotation_from_axis_angle
from raybox.intersect import ALGORITHMS, BoxHit, get_intersector, hit, intersect

__all__ = [
    "ALGORITHMS",
    "Box",
    "BoxHit",
    "Ray",
    "get_intersector",
    "hit",
    "intersect",
    "rotation_from_axis_angle",
]
