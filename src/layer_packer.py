"""
Fill a solid with stacked layers of overlapping spheres.

Algorithm:
1. Read the mesh bounds (minZ, maxZ and the XY footprint).
2. Derive the vertical and horizontal steps from the radius and the overlap
   percentages: ``step = 2r * (1 - overlap / 100)``.
3. Flatten the base layer: its spheres keep the polar cap ``[0, theta]``
   from the +z pole, ``theta = pi * (1 - baseFlatten / 100)``, and are
   lowered so the flat cut face lies exactly on minZ.
4. For each layer, slice the mesh near the layer's centre height and keep the
   cells of an origin-anchored grid whose centres fall inside the contours.
5. Stop once a layer would start above maxZ, or after ``max_layers``.

The grid is anchored at the world origin (cell centres at ``(n + 1/2) * s``)
rather than at the mesh's bounding box, so every layer and every rerun with
the same parameters lands on the same lattice.
"""
import logging
import math
from typing import List, Optional, Tuple

import numpy as np

from geometry_primitives import (
    LayerSummary,
    PackingConfig,
    PackingResult,
    SpherePlacement,
)
from polygon_containment import points_in_loops
from slicer import slice_mesh
from triangle_source import ArrayTriangleSource, as_triangle_source, triangle_bounds

logger = logging.getLogger(__name__)

MAX_OVERLAP_PERCENT = 99.0


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, float(value)))


def layer_steps(
    radius: float,
    overlap_vertical_pct: float,
    overlap_horizontal_pct: float,
) -> Tuple[float, float]:
    """(vertical_step, horizontal_step) for the given radius and overlaps.

    Overlaps are clamped to ``[0, MAX_OVERLAP_PERCENT]``.
    """
    ov = clamp(overlap_vertical_pct, 0.0, MAX_OVERLAP_PERCENT)
    oh = clamp(overlap_horizontal_pct, 0.0, MAX_OVERLAP_PERCENT)
    vertical = (radius * 2) * (1 - ov / 100)
    horizontal = (radius * 2) * (1 - oh / 100)
    return vertical, horizontal


def base_cap_theta(base_flatten_pct: float) -> float:
    """Polar extent kept by base-layer spheres (pi = whole sphere)."""
    return math.pi * (1 - clamp(base_flatten_pct, 0.0, 100.0) / 100)


def base_center_z(min_z: float, radius: float, theta: float) -> float:
    """Layer-0 centre height that puts the cap's cut face on ``min_z``.

    The cut face sits ``radius * cos(theta)`` above the centre; the kept cap
    is ``radius - radius * cos(theta)`` tall.
    """
    return min_z - radius * math.cos(theta)


def grid_points_in_loops(
    loops,
    bounds_min,
    bounds_max,
    spacing: float,
) -> np.ndarray:
    """Origin-anchored grid centres inside ``loops``, as an (M, 2) array.

    Candidates are ``(n * s + s/2, m * s + s/2)`` for every n, m whose cell
    touches the XY bounding box; only those classified inside by the
    even-odd rule are returned, ordered by x then y.
    """
    if not loops:
        return np.zeros((0, 2), dtype=float)
    half = spacing / 2
    start_n = math.floor((bounds_min[0] - half) / spacing)
    end_n = math.ceil((bounds_max[0] - half) / spacing)
    start_m = math.floor((bounds_min[1] - half) / spacing)
    end_m = math.ceil((bounds_max[1] - half) / spacing)

    xs = np.arange(start_n, end_n + 1) * spacing + half
    ys = np.arange(start_m, end_m + 1) * spacing + half
    grid_x, grid_y = np.meshgrid(xs, ys, indexing="ij")
    candidates = np.column_stack([grid_x.reshape(-1), grid_y.reshape(-1)])

    mask = points_in_loops(candidates, [loop.points for loop in loops])
    return candidates[mask]


def pack_spheres(
    source,
    config: Optional[PackingConfig] = None,
) -> PackingResult:
    """Approximate the interior of ``source`` with layers of spheres.

    Never raises for geometric conditions. Bounds come from the fully finite
    triangles only; a mesh with none counts as empty. An empty mesh, a non-positive
    radius, or a run that places nothing returns an empty placement list
    with an explanatory ``status``; hitting ``max_layers`` before the top of
    the mesh sets ``truncated``.
    """
    if config is None:
        config = PackingConfig()

    radius = float(config.radius)
    if not math.isfinite(radius) or radius <= 0:
        logger.warning("Sphere radius must be positive, got %s", config.radius)
        return PackingResult(placements=[], layers=[], status="invalid_radius")

    triangles = as_triangle_source(source).world_triangles()
    bounds = triangle_bounds(triangles)
    if bounds is None:
        logger.warning("No finite triangles to pack")
        return PackingResult(placements=[], layers=[], status="empty_mesh")
    src = ArrayTriangleSource(triangles)
    bounds_min, bounds_max = bounds
    min_z, max_z = float(bounds_min[2]), float(bounds_max[2])

    vertical_step, horizontal_step = layer_steps(
        radius, config.overlap_vertical_pct, config.overlap_horizontal_pct,
    )
    theta = base_cap_theta(config.base_flatten_pct)
    center_z0 = base_center_z(min_z, radius, theta)
    margin = float(config.sample_margin)

    logger.info(
        "Packing r=%.4f overlapV=%.1f%% overlapH=%.1f%% baseFlatten=%.1f%%, "
        "centerZ0=%.4f",
        radius, config.overlap_vertical_pct, config.overlap_horizontal_pct,
        config.base_flatten_pct, center_z0,
    )

    placements: List[SpherePlacement] = []
    layers: List[LayerSummary] = []
    truncated = False
    layer_index = 0

    while True:
        center_z = center_z0 + layer_index * vertical_step
        if center_z - radius > max_z:
            break
        if layer_index >= config.max_layers:
            truncated = True
            break

        sample_z = min(max_z - margin, max(min_z + margin, center_z))
        loops = slice_mesh(src, sample_z, config.slicer).loops
        points = grid_points_in_loops(loops, bounds_min, bounds_max, horizontal_step)

        cap = theta if layer_index == 0 else None
        for x, y in points:
            placements.append(SpherePlacement(
                center=(float(x), float(y), float(center_z)),
                radius=radius,
                layer_index=layer_index,
                cap_theta=cap,
            ))

        layers.append(LayerSummary(
            layer_index=layer_index,
            center_z=float(center_z),
            sample_z=float(sample_z),
            loop_count=len(loops),
            placement_count=len(points),
        ))
        logger.debug(
            "Layer %d: centerZ=%.4f sampleZ=%.4f, %d loops, %d spheres",
            layer_index, center_z, sample_z, len(loops), len(points),
        )
        layer_index += 1

    if truncated:
        status = "truncated"
        logger.warning(
            "Layer stack truncated after %d layers (step %.6f)",
            config.max_layers, vertical_step,
        )
    elif not placements:
        status = "no_geometry"
        logger.warning("No spheres generated")
    else:
        status = "ok"

    logger.info("Placed %d spheres in %d layers", len(placements), len(layers))
    return PackingResult(
        placements=placements,
        layers=layers,
        status=status,
        vertical_step=vertical_step,
        horizontal_step=horizontal_step,
        cap_theta=theta,
        center_z0=center_z0,
        truncated=truncated,
    )
