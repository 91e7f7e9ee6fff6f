"""
Horizontal slicing of triangle meshes.

Ties the triangle source, plane intersector and contour stitcher together:
source -> segments at z0 -> stitched loops. Also provides evenly spaced
slice stacks for stepping through a model layer by layer.
"""
import logging
import math
from dataclasses import dataclass
from typing import List, Optional

from contour_stitching import stitch_segments
from geometry_primitives import ContourLoop, SliceResult, SlicerConfig, Vec2
from plane_intersection import collect_segments, crossing_points
from triangle_source import ArrayTriangleSource, as_triangle_source, triangle_bounds

logger = logging.getLogger(__name__)


def slice_mesh(
    source,
    z0: float,
    config: Optional[SlicerConfig] = None,
) -> SliceResult:
    """Slice ``source`` with the plane z = z0.

    Args:
        source: Anything :func:`triangle_source.as_triangle_source` accepts.
        z0: Plane height in world units. Heights outside the mesh's z-range
            give an empty loop list.
        config: Endpoint-merge settings for stitching.
    """
    if config is None:
        config = SlicerConfig()
    triangles = as_triangle_source(source).world_triangles()
    z0 = float(z0)

    bounds = triangle_bounds(triangles)
    z_range = None
    if bounds is not None:
        z_range = (float(bounds[0][2]), float(bounds[1][2]))
        if z0 < z_range[0] or z0 > z_range[1]:
            logger.warning(
                "Slice plane z=%.4f is outside the mesh z-range [%.4f, %.4f]",
                z0, z_range[0], z_range[1],
            )

    segments, skipped = collect_segments(triangles, z0)
    loops = stitch_segments(segments, config)

    logger.debug(
        "Slice z=%.4f: %d triangles, %d segments, %d loops",
        z0, len(triangles), len(segments), len(loops),
    )
    return SliceResult(
        z=z0,
        loops=loops,
        segment_count=len(segments),
        skipped_segments=skipped,
        triangle_count=len(triangles),
        z_range=z_range,
    )


def slice_contours(
    source,
    z0: float,
    config: Optional[SlicerConfig] = None,
) -> List[ContourLoop]:
    """Loops only; see :func:`slice_mesh`."""
    return slice_mesh(source, z0, config).loops


def slice_points(source, z0: float) -> List[Vec2]:
    """Raw unordered crossing points at z0, without stitching."""
    triangles = as_triangle_source(source).world_triangles()
    return crossing_points(triangles, z0)


# ─── Slice stacks ────────────────────────────────────────────────────────────

@dataclass
class LayerSettings:
    """Layer count / layer height pair for a model of a given height."""
    model_height: float
    layer_count: int

    @property
    def layer_height(self) -> float:
        return self.model_height / self.layer_count

    @classmethod
    def from_layer_count(cls, model_height: float, layer_count: int) -> "LayerSettings":
        return cls(model_height=float(model_height), layer_count=max(1, int(layer_count)))

    @classmethod
    def from_layer_height(cls, model_height: float, layer_height: float) -> "LayerSettings":
        if not math.isfinite(layer_height) or layer_height <= 0:
            return cls(model_height=float(model_height), layer_count=1)
        count = int(round(model_height / layer_height))
        return cls(model_height=float(model_height), layer_count=max(1, count))


def model_height(source) -> float:
    bounds = triangle_bounds(as_triangle_source(source).world_triangles())
    if bounds is None:
        return 0.0
    return float(bounds[1][2] - bounds[0][2])


def stack_heights(z_min: float, z_max: float, layer_count: int) -> List[float]:
    """Heights ``z_min + (i / n) * (z_max - z_min)`` for i = 1..n."""
    n = max(1, int(layer_count))
    height = z_max - z_min
    return [z_min + (i / n) * height for i in range(1, n + 1)]


def slice_stack(
    source,
    layer_count: int,
    config: Optional[SlicerConfig] = None,
) -> List[SliceResult]:
    """Slice at every layer boundary from the first layer up to the top."""
    # resolve the source once; every layer reuses the same triangle array
    src = ArrayTriangleSource(as_triangle_source(source).world_triangles())
    bounds = triangle_bounds(src.triangles)
    if bounds is None:
        logger.warning("Cannot build a slice stack for an empty mesh")
        return []
    z_min, z_max = float(bounds[0][2]), float(bounds[1][2])

    results = [slice_mesh(src, z, config) for z in stack_heights(z_min, z_max, layer_count)]
    logger.info(
        "Sliced %d layers over z=[%.4f, %.4f], %d loops total",
        len(results), z_min, z_max, sum(len(r.loops) for r in results),
    )
    return results
