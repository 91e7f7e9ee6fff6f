"""
Assemble unordered slice segments into contour loops.

Segment endpoints are first merged into shared vertices, then a greedy walk
follows unvisited segments from vertex to vertex. The walk takes the first
unvisited segment listed at the current vertex; there is no look-ahead, so at
vertices shared by more than two segments (T-junctions from coplanar
neighbours) the decomposition depends on segment order.

Two merge strategies are available:

- ``kdtree``: endpoints within ``merge_tolerance`` of each other are
  clustered with a KD-tree (transitively). Cluster ids are the smallest
  endpoint index in each cluster, so results do not depend on hashing.
- ``quantize``: endpoints are keyed by their coordinates rounded to
  ``key_precision`` decimals. Two points straddling a rounding boundary are
  never merged, however close they are.
"""
import logging
from typing import Dict, List, Optional, Sequence, Tuple

import numpy as np
from scipy.spatial import KDTree

from geometry_primitives import ContourLoop, Segment, SlicerConfig, Vec2

logger = logging.getLogger(__name__)

# adjacency entry: (segment id, far endpoint, far endpoint vertex id)
_Neighbor = Tuple[int, Vec2, int]


def vertex_key(point: Vec2, precision: int) -> Tuple[float, float]:
    """Quantized key for a 2D point. ``+ 0.0`` folds -0.0 into 0.0."""
    return (round(point[0], precision) + 0.0, round(point[1], precision) + 0.0)


def merge_endpoints(
    segments: Sequence[Segment],
    config: Optional[SlicerConfig] = None,
) -> np.ndarray:
    """Vertex id for every endpoint.

    Endpoint ``2 * i`` is ``segments[i].start`` and ``2 * i + 1`` its end.
    Returns an int array of length ``2 * len(segments)``.
    """
    if config is None:
        config = SlicerConfig()
    n_pts = 2 * len(segments)
    if n_pts == 0:
        return np.zeros(0, dtype=np.int64)

    if config.merge_strategy == "quantize":
        ids = np.empty(n_pts, dtype=np.int64)
        first_seen: Dict[Tuple[float, float], int] = {}
        for i, seg in enumerate(segments):
            for j, pt in enumerate((seg.start, seg.end)):
                key = vertex_key(pt, config.key_precision)
                ids[2 * i + j] = first_seen.setdefault(key, 2 * i + j)
        return ids

    coords = np.array(
        [pt for seg in segments for pt in (seg.start, seg.end)], dtype=float
    )
    parent = np.arange(n_pts)

    def find(a: int) -> int:
        root = a
        while parent[root] != root:
            root = parent[root]
        while parent[a] != root:
            parent[a], a = root, parent[a]
        return root

    tree = KDTree(coords)
    for a, b in sorted(tree.query_pairs(r=config.merge_tolerance)):
        ra, rb = find(a), find(b)
        if ra == rb:
            continue
        # smallest index wins so ids are reproducible
        if ra < rb:
            parent[rb] = ra
        else:
            parent[ra] = rb

    return np.array([find(i) for i in range(n_pts)], dtype=np.int64)


def build_adjacency(
    segments: Sequence[Segment],
    vertex_ids: np.ndarray,
) -> Dict[int, List[_Neighbor]]:
    """Map vertex id -> incident segments in input order."""
    adjacency: Dict[int, List[_Neighbor]] = {}
    for i, seg in enumerate(segments):
        k1 = int(vertex_ids[2 * i])
        k2 = int(vertex_ids[2 * i + 1])
        adjacency.setdefault(k1, []).append((i, seg.end, k2))
        adjacency.setdefault(k2, []).append((i, seg.start, k1))
    return adjacency


def stitch_segments(
    segments: Sequence[Segment],
    config: Optional[SlicerConfig] = None,
) -> List[ContourLoop]:
    """Chain segments into loops.

    Every segment is used exactly once. Chains shorter than
    ``config.min_loop_points`` (isolated or dangling fragments) are dropped.
    Chains that fail to return to their start are still emitted; closure is
    not enforced or repaired.
    """
    if config is None:
        config = SlicerConfig()
    if not segments:
        return []

    z = segments[0].z
    vertex_ids = merge_endpoints(segments, config)
    adjacency = build_adjacency(segments, vertex_ids)
    logger.debug(
        "Stitch graph: %d segments, %d unique vertices",
        len(segments), len(adjacency),
    )

    min_points = max(3, config.min_loop_points)
    visited = np.zeros(len(segments), dtype=bool)
    loops: List[ContourLoop] = []
    dropped = 0

    for start_id, start_seg in enumerate(segments):
        if visited[start_id]:
            continue
        visited[start_id] = True

        chain: List[Vec2] = [start_seg.start, start_seg.end]
        current = int(vertex_ids[2 * start_id + 1])

        while True:
            step = _next_unvisited(adjacency.get(current, ()), visited)
            if step is None:
                break
            seg_id, point, key = step
            visited[seg_id] = True
            chain.append(point)
            current = key

        if len(chain) >= min_points:
            loops.append(ContourLoop(points=tuple(chain), z=z))
        else:
            dropped += 1

    if dropped:
        logger.debug("Dropped %d chains shorter than %d points", dropped, min_points)
    logger.debug("Stitched %d loops", len(loops))
    return loops


def _next_unvisited(neighbors, visited: np.ndarray) -> Optional[_Neighbor]:
    for neighbor in neighbors:
        if not visited[neighbor[0]]:
            return neighbor
    return None
