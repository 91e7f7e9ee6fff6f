"""
World-space triangle sources.

The slicing kernel never sees a scene graph or a file format. It asks a
source for an ``(N, 3, 3)`` array of triangles already in world coordinates;
each kind of caller (loaded trimesh geometry, raw render buffers, multi-part
scenes) gets its own small adapter.
"""
from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Protocol, Tuple, runtime_checkable

import numpy as np
import trimesh

logger = logging.getLogger(__name__)


@runtime_checkable
class TriangleSource(Protocol):
    def world_triangles(self) -> np.ndarray:
        """Return an (N, 3, 3) float array of world-space triangles."""
        ...


class MeshTriangleSource:
    """Triangles of a ``trimesh.Trimesh``, optionally moved by a 4x4 matrix."""

    def __init__(self, mesh: trimesh.Trimesh, transform: Optional[np.ndarray] = None):
        self.mesh = mesh
        self.transform = _check_transform(transform)

    def world_triangles(self) -> np.ndarray:
        tris = np.asarray(self.mesh.triangles, dtype=float).reshape(-1, 3, 3)
        if self.transform is None:
            return tris
        return _apply_transform(tris, self.transform)


class BufferTriangleSource:
    """Triangles from a flat position buffer and optional index buffer.

    Mirrors how a render host stores geometry: ``positions`` is (M, 3) or a
    flat array of length 3M, ``index`` lists vertex ids three per triangle.
    Without an index, consecutive position triples form triangles. A trailing
    partial triangle is dropped.
    """

    def __init__(
        self,
        positions,
        index=None,
        transform: Optional[np.ndarray] = None,
    ):
        pos = np.asarray(positions, dtype=float)
        if pos.ndim == 1:
            if pos.size % 3 != 0:
                raise ValueError(
                    f"Flat position buffer length {pos.size} is not a multiple of 3"
                )
            pos = pos.reshape(-1, 3)
        if pos.ndim != 2 or pos.shape[1] != 3:
            raise ValueError(f"Positions must be (M, 3), got shape {pos.shape}")
        self.positions = pos

        if index is not None:
            idx = np.asarray(index, dtype=np.int64).reshape(-1)
            if idx.size and (idx.min() < 0 or idx.max() >= len(pos)):
                raise ValueError(
                    f"Index buffer references vertex outside [0, {len(pos)})"
                )
            self.index = idx
        else:
            self.index = None
        self.transform = _check_transform(transform)

    def world_triangles(self) -> np.ndarray:
        if self.index is not None:
            ids = self.index
        else:
            ids = np.arange(len(self.positions))
        usable = (len(ids) // 3) * 3
        if usable != len(ids):
            logger.debug("Dropping %d trailing vertex ids", len(ids) - usable)
        tris = self.positions[ids[:usable]].reshape(-1, 3, 3)
        if self.transform is None:
            return tris
        return _apply_transform(tris, self.transform)


class CompositeTriangleSource:
    """Concatenation of several sources, e.g. the parts of a loaded scene."""

    def __init__(self, sources: Iterable[TriangleSource]):
        self.sources: List[TriangleSource] = list(sources)

    def world_triangles(self) -> np.ndarray:
        chunks = [s.world_triangles() for s in self.sources]
        chunks = [c for c in chunks if len(c)]
        if not chunks:
            return np.zeros((0, 3, 3), dtype=float)
        return np.concatenate(chunks, axis=0)


class ArrayTriangleSource:
    """Wraps a ready-made (N, 3, 3) triangle array."""

    def __init__(self, triangles):
        tris = np.asarray(triangles, dtype=float)
        if tris.size == 0:
            tris = tris.reshape(0, 3, 3)
        if tris.ndim != 3 or tris.shape[1:] != (3, 3):
            raise ValueError(f"Triangles must be (N, 3, 3), got shape {tris.shape}")
        self.triangles = tris

    def world_triangles(self) -> np.ndarray:
        return self.triangles


def as_triangle_source(obj) -> TriangleSource:
    """Coerce a trimesh object, a triangle array or a source into a source."""
    if isinstance(obj, trimesh.Trimesh):
        return MeshTriangleSource(obj)
    if isinstance(obj, trimesh.Scene):
        parts = []
        for node_name in obj.graph.nodes_geometry:
            transform, geom_name = obj.graph[node_name]
            geom = obj.geometry.get(geom_name)
            if isinstance(geom, trimesh.Trimesh):
                parts.append(MeshTriangleSource(geom, transform))
        return CompositeTriangleSource(parts)
    if isinstance(obj, TriangleSource):
        return obj
    if isinstance(obj, (np.ndarray, list, tuple)):
        return ArrayTriangleSource(obj)
    raise TypeError(f"Cannot read triangles from {type(obj).__name__}")


def load_triangle_source(path) -> TriangleSource:
    """Load a mesh file (STL, OBJ, PLY, GLB...) as a triangle source.

    Scenes keep their node transforms, so multi-part files slice in the
    same world frame they were authored in.
    """
    loaded = trimesh.load(str(path))
    source = as_triangle_source(loaded)
    if len(source.world_triangles()) == 0:
        raise ValueError(f"No triangle geometry in {path}")
    return source


def triangle_bounds(triangles: np.ndarray) -> Optional[Tuple[np.ndarray, np.ndarray]]:
    """(min_xyz, max_xyz) over the fully finite triangles, or None if there are none.

    Triangles with a NaN or infinite coordinate are left out, the same way
    the intersector skips their segments.
    """
    if len(triangles) == 0:
        return None
    finite = np.isfinite(triangles).all(axis=(1, 2))
    if not finite.any():
        return None
    pts = triangles[finite].reshape(-1, 3)
    return pts.min(axis=0), pts.max(axis=0)


# ─── Internal helpers ────────────────────────────────────────────────────────

def _check_transform(transform) -> Optional[np.ndarray]:
    if transform is None:
        return None
    mat = np.asarray(transform, dtype=float)
    if mat.shape != (4, 4):
        raise ValueError(f"Transform must be 4x4, got shape {mat.shape}")
    return mat


def _apply_transform(tris: np.ndarray, transform: np.ndarray) -> np.ndarray:
    pts = tris.reshape(-1, 3)
    moved = trimesh.transformations.transform_points(pts, transform)
    return moved.reshape(-1, 3, 3)
