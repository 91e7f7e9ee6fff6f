"""
Triangle / horizontal-plane intersection.

Each triangle edge is classified against z0 with a half-open rule: an edge
crosses when one end is at or above the plane and the other strictly below.
Comparisons against z0 are exact. A vertex that lies on the plane is reported
with its own coordinates, never re-interpolated, so the same vertex seen from
neighbouring triangles always produces the same point.
"""
import logging
import math
from typing import List, Optional, Sequence, Tuple

import numpy as np

from geometry_primitives import Segment, Vec2

logger = logging.getLogger(__name__)


def intersect_triangle(
    v0: Sequence[float],
    v1: Sequence[float],
    v2: Sequence[float],
    z0: float,
) -> List[Vec2]:
    """Return the 0-3 distinct (x, y) points where the triangle meets z = z0.

    Edges lying on the plane are skipped; the other two edges of the same
    triangle supply their end points.
    """
    points: List[Vec2] = []
    for pa, pb in ((v0, v1), (v1, v2), (v2, v0)):
        za = float(pa[2])
        zb = float(pb[2])
        if (za >= z0 and zb < z0) or (za < z0 and zb >= z0):
            if za == z0:
                pt = (float(pa[0]), float(pa[1]))
            elif zb == z0:
                pt = (float(pb[0]), float(pb[1]))
            else:
                t = (z0 - za) / (zb - za)
                pt = (
                    float(pa[0]) + t * (float(pb[0]) - float(pa[0])),
                    float(pa[1]) + t * (float(pb[1]) - float(pa[1])),
                )
        elif za == z0 and zb == z0:
            continue
        elif za == z0:
            pt = (float(pa[0]), float(pa[1]))
        else:
            continue

        if pt not in points:
            points.append(pt)
    return points


def triangle_segment(
    v0: Sequence[float],
    v1: Sequence[float],
    v2: Sequence[float],
    z0: float,
) -> Optional[Segment]:
    """Segment cut from one triangle, or None if it only touches or misses."""
    points = intersect_triangle(v0, v1, v2, z0)
    if len(points) < 2:
        return None
    return Segment(start=points[0], end=points[1], z=float(z0))


def candidate_triangles(triangles: np.ndarray, z0: float) -> np.ndarray:
    """Indices of triangles whose z-range contains z0.

    Triangles strictly above or strictly below the plane cannot produce a
    point under any rule above, so they are dropped before the Python loop.
    """
    if len(triangles) == 0:
        return np.zeros(0, dtype=np.int64)
    zs = triangles[:, :, 2]
    mask = (zs.min(axis=1) <= z0) & (zs.max(axis=1) >= z0)
    # NaN z-values fail both comparisons above; keep them so they are counted
    mask |= np.isnan(zs).any(axis=1)
    return np.flatnonzero(mask)


def collect_segments(triangles: np.ndarray, z0: float) -> Tuple[List[Segment], int]:
    """Intersect every triangle with z = z0.

    Returns:
        (segments, skipped) where ``skipped`` counts segments dropped for a
        non-finite coordinate (degenerate or corrupt triangles). The rest of
        the slice is unaffected.
    """
    segments: List[Segment] = []
    skipped = 0
    z0 = float(z0)
    for idx in candidate_triangles(triangles, z0):
        tri = triangles[idx]
        seg = triangle_segment(tri[0], tri[1], tri[2], z0)
        if seg is None:
            continue
        if not seg.is_finite():
            skipped += 1
            continue
        segments.append(seg)

    if skipped:
        logger.debug("Skipped %d non-finite segments at z=%.4f", skipped, z0)
    return segments, skipped


def crossing_points(triangles: np.ndarray, z0: float) -> List[Vec2]:
    """Unordered edge/plane crossing points of a whole triangle set.

    Only strictly crossing edges are reported (no vertex handling and no
    deduplication), so shared edges appear once per adjacent triangle.
    """
    points: List[Vec2] = []
    z0 = float(z0)
    for idx in candidate_triangles(triangles, z0):
        tri = triangles[idx]
        for pa, pb in ((tri[0], tri[1]), (tri[1], tri[2]), (tri[2], tri[0])):
            za, zb = float(pa[2]), float(pb[2])
            if (za >= z0 and zb < z0) or (za < z0 and zb >= z0):
                t = (z0 - za) / (zb - za)
                x = float(pa[0]) + t * (float(pb[0]) - float(pa[0]))
                y = float(pa[1]) + t * (float(pb[1]) - float(pa[1]))
                if math.isfinite(x) and math.isfinite(y):
                    points.append((x, y))
    return points
