"""
Even-odd point-in-polygon classification against a set of loops.

A single inside flag is toggled for every loop edge that a horizontal ray
from the query point crosses, across all loops together. Nested loops
therefore act as holes without inspecting winding order. Points exactly on a
boundary may be classified either way.
"""
from typing import Sequence

import numpy as np

from geometry_primitives import Vec2


def point_in_loops(x: float, y: float, loops: Sequence[Sequence[Vec2]]) -> bool:
    inside = False
    for loop in loops:
        n = len(loop)
        j = n - 1
        for i in range(n):
            xi, yi = loop[i]
            xj, yj = loop[j]
            if (yi > y) != (yj > y) and x < (xj - xi) * (y - yi) / (yj - yi) + xi:
                inside = not inside
            j = i
    return inside


def points_in_loops(points, loops: Sequence[Sequence[Vec2]]) -> np.ndarray:
    """Vectorized :func:`point_in_loops` for an (M, 2) point array.

    Evaluates the same expression edge by edge, so both functions agree
    bit-for-bit.
    """
    pts = np.asarray(points, dtype=float).reshape(-1, 2)
    px = pts[:, 0]
    py = pts[:, 1]
    inside = np.zeros(len(pts), dtype=bool)

    for loop in loops:
        verts = np.asarray(loop, dtype=float).reshape(-1, 2)
        if len(verts) == 0:
            continue
        prev = np.roll(verts, 1, axis=0)
        for (xi, yi), (xj, yj) in zip(verts, prev):
            straddles = (yi > py) != (yj > py)
            if not straddles.any():
                continue
            with np.errstate(divide="ignore", invalid="ignore"):
                x_cross = (xj - xi) * (py - yi) / (yj - yi) + xi
            inside ^= straddles & (px < x_cross)
    return inside
