"""
Core value types for mesh slicing and sphere packing.

Segments, contour loops and sphere placements are plain frozen dataclasses
created per call. Shapely is used only at the edges, to turn a loop set into
a fillable 2D region for area reports and cap surfaces.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from shapely.geometry import Polygon
from shapely.geometry.base import BaseGeometry

Vec2 = Tuple[float, float]
Vec3 = Tuple[float, float, float]

MERGE_STRATEGIES = ("kdtree", "quantize")


@dataclass(frozen=True)
class Segment:
    """Line fragment where one triangle crosses the plane z = ``z``.

    ``start`` and ``end`` may coincide for triangles that graze the plane.
    """
    start: Vec2
    end: Vec2
    z: float

    @property
    def is_degenerate(self) -> bool:
        return self.start == self.end

    def is_finite(self) -> bool:
        return all(math.isfinite(c) for c in (*self.start, *self.end))


@dataclass(frozen=True)
class ContourLoop:
    """Ordered chain of stitched points at one slice height.

    The chain is expected, but not guaranteed, to end where it started: meshes
    with gaps produce open chains which are still reported as loops. Use
    :meth:`closure_gap` before relying on closure.
    """
    points: Tuple[Vec2, ...]
    z: float

    def __post_init__(self):
        if len(self.points) < 3:
            raise ValueError(
                f"ContourLoop needs at least 3 points, got {len(self.points)}"
            )

    def __len__(self) -> int:
        return len(self.points)

    def __iter__(self):
        return iter(self.points)

    def __getitem__(self, idx):
        return self.points[idx]

    def closure_gap(self) -> float:
        """Distance between the first and last point."""
        (x0, y0), (x1, y1) = self.points[0], self.points[-1]
        return math.hypot(x1 - x0, y1 - y0)

    def is_closed(self, tolerance: float = 1e-6) -> bool:
        return self.closure_gap() <= tolerance

    def bounds(self) -> Tuple[float, float, float, float]:
        """(min_x, min_y, max_x, max_y)."""
        xs = [p[0] for p in self.points]
        ys = [p[1] for p in self.points]
        return (min(xs), min(ys), max(xs), max(ys))

    def to_list(self) -> List[List[float]]:
        return [[float(x), float(y)] for x, y in self.points]


@dataclass(frozen=True)
class SpherePlacement:
    """One bubble of the packed interior.

    ``cap_theta`` is only set for the base layer: the sphere keeps polar
    angles ``[0, cap_theta]`` measured from its +z pole, so the flat cut face
    lies at ``center_z + radius * cos(cap_theta)``.
    """
    center: Vec3
    radius: float
    layer_index: int
    cap_theta: Optional[float] = None

    @property
    def is_cap(self) -> bool:
        return self.cap_theta is not None

    @property
    def cut_face_z(self) -> Optional[float]:
        if self.cap_theta is None:
            return None
        return self.center[2] + self.radius * math.cos(self.cap_theta)

    def to_dict(self) -> dict:
        return {
            "center": [float(c) for c in self.center],
            "radius": float(self.radius),
            "layer_index": int(self.layer_index),
            "cap_theta": None if self.cap_theta is None else float(self.cap_theta),
        }


# ─── Configuration ───────────────────────────────────────────────────────────

@dataclass
class SlicerConfig:
    """How segment endpoints are merged while stitching.

    ``merge_tolerance`` is in model units. Endpoints closer than this are
    treated as the same vertex; clusters are transitive, so a chain of close
    points can merge over a longer distance. Too small a value leaves shared
    triangle edges unmerged (floating-point noise), too large a value merges
    genuinely distinct nearby vertices.
    """
    merge_strategy: str = "kdtree"      # "kdtree" | "quantize"
    merge_tolerance: float = 1e-5
    key_precision: int = 6              # decimals, "quantize" strategy only
    min_loop_points: int = 3

    def __post_init__(self):
        if self.merge_strategy not in MERGE_STRATEGIES:
            raise ValueError(
                f"Unknown merge strategy {self.merge_strategy!r}, "
                f"expected one of {MERGE_STRATEGIES}"
            )


@dataclass
class PackingConfig:
    """Parameters for filling a solid with layers of spheres."""
    radius: float = 0.5
    overlap_vertical_pct: float = 0.0
    overlap_horizontal_pct: float = 0.0
    base_flatten_pct: float = 50.0
    max_layers: int = 700
    sample_margin: float = 0.01
    slicer: SlicerConfig = field(default_factory=SlicerConfig)


# ─── Results ─────────────────────────────────────────────────────────────────

@dataclass
class SliceResult:
    """Contours of one slice plus the bookkeeping needed to judge them."""
    z: float
    loops: List[ContourLoop]
    segment_count: int
    skipped_segments: int
    triangle_count: int
    z_range: Optional[Tuple[float, float]]

    @property
    def in_range(self) -> bool:
        if self.z_range is None:
            return False
        return self.z_range[0] <= self.z <= self.z_range[1]

    @property
    def point_count(self) -> int:
        return sum(len(loop) for loop in self.loops)

    def open_loops(self, tolerance: float = 1e-6) -> List[int]:
        """Indices of loops whose ends do not meet."""
        return [i for i, loop in enumerate(self.loops) if not loop.is_closed(tolerance)]

    def to_dict(self) -> dict:
        return {
            "z": float(self.z),
            "loops": [loop.to_list() for loop in self.loops],
            "segment_count": self.segment_count,
            "skipped_segments": self.skipped_segments,
            "triangle_count": self.triangle_count,
            "z_range": None if self.z_range is None else list(self.z_range),
            "in_range": self.in_range,
        }


@dataclass
class LayerSummary:
    layer_index: int
    center_z: float
    sample_z: float
    loop_count: int
    placement_count: int


@dataclass
class PackingResult:
    """Output of one packing run."""
    placements: List[SpherePlacement]
    layers: List[LayerSummary]
    status: str
    vertical_step: float = 0.0
    horizontal_step: float = 0.0
    cap_theta: float = math.pi
    center_z0: float = 0.0
    truncated: bool = False

    @property
    def is_empty(self) -> bool:
        return not self.placements

    @property
    def layer_count(self) -> int:
        return len(self.layers)

    def to_dict(self) -> dict:
        return {
            "status": self.status,
            "truncated": self.truncated,
            "vertical_step": float(self.vertical_step),
            "horizontal_step": float(self.horizontal_step),
            "cap_theta": float(self.cap_theta),
            "center_z0": float(self.center_z0),
            "layers": [
                {
                    "layer_index": s.layer_index,
                    "center_z": float(s.center_z),
                    "sample_z": float(s.sample_z),
                    "loop_count": s.loop_count,
                    "placement_count": s.placement_count,
                }
                for s in self.layers
            ],
            "placements": [p.to_dict() for p in self.placements],
        }


# ─── Conversion functions ────────────────────────────────────────────────────

def loop_to_polygon(loop: Sequence[Vec2]) -> Polygon:
    """Build a Shapely polygon from a loop, repairing self-touching chains."""
    coords = list(loop)
    if len(coords) >= 2 and coords[0] == coords[-1]:
        coords = coords[:-1]
    if len(coords) < 3:
        return Polygon()
    poly = Polygon(coords)
    if not poly.is_valid:
        poly = poly.buffer(0)
    return poly


def cap_region(loops: Sequence[Sequence[Vec2]]) -> BaseGeometry:
    """Even-odd union of a loop set.

    Matches the parity rule of ``polygon_containment``: a point covered by an
    odd number of loops is inside, so nested loops become holes.
    """
    region: BaseGeometry = Polygon()
    for loop in loops:
        poly = loop_to_polygon(loop)
        if poly.is_empty:
            continue
        region = region.symmetric_difference(poly)
    return region


def cap_area(loops: Sequence[Sequence[Vec2]]) -> float:
    return float(cap_region(loops).area)
