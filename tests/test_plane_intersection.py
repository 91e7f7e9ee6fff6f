"""Tests for plane_intersection module."""
import math

import numpy as np
import pytest

from plane_intersection import (
    candidate_triangles,
    collect_segments,
    crossing_points,
    intersect_triangle,
    triangle_segment,
)


class TestIntersectTriangle:
    """Half-open edge classification against z = z0."""

    def test_crossing_triangle_gives_two_points(self):
        pts = intersect_triangle((0, 0, 0), (2, 0, 2), (0, 2, 2), 1.0)
        assert pts == [(1.0, 0.0), (0.0, 1.0)]

    def test_triangle_above_plane(self):
        assert intersect_triangle((0, 0, 2), (1, 0, 3), (0, 1, 4), 1.0) == []

    def test_triangle_below_plane(self):
        assert intersect_triangle((0, 0, -2), (1, 0, -3), (0, 1, 0), 1.0) == []

    def test_vertex_on_plane_uses_exact_coordinates(self):
        """A vertex on the plane is reported as-is, not interpolated."""
        pts = intersect_triangle((0.1, 0.2, 1.0), (1, 0, 0), (0, 1, 2), 1.0)
        assert pts[0] == (0.1, 0.2)
        assert pts[1] == pytest.approx((0.5, 0.5))
        assert len(pts) == 2

    def test_touching_vertex_from_above_is_single_point(self):
        pts = intersect_triangle((0, 0, 1), (1, 0, 2), (0, 1, 2), 1.0)
        assert pts == [(0.0, 0.0)]
        assert triangle_segment((0, 0, 1), (1, 0, 2), (0, 1, 2), 1.0) is None

    def test_touching_vertex_from_below_is_deduplicated(self):
        pts = intersect_triangle((0, 0, 1), (1, 0, 0), (0, 1, 0), 1.0)
        assert pts == [(0.0, 0.0)]

    def test_edge_on_plane_only_counted_from_below(self):
        """Exactly one of two neighbours sharing an on-plane edge yields it."""
        above = intersect_triangle((0, 0, 1), (1, 0, 1), (0, 1, 2), 1.0)
        below = intersect_triangle((0, 0, 1), (1, 0, 1), (0, 1, 0), 1.0)
        assert len(above) < 2
        assert sorted(below) == [(0.0, 0.0), (1.0, 0.0)]

    def test_coplanar_triangle_is_skipped(self):
        assert intersect_triangle((0, 0, 1), (1, 0, 1), (0, 1, 1), 1.0) == []

    def test_points_are_distinct(self):
        pts = intersect_triangle((0, 0, 1), (1, 0, 0), (0, 1, 3), 1.0)
        assert len(pts) == len(set(pts))


class TestTriangleSegment:

    def test_segment_carries_plane_height(self):
        seg = triangle_segment((0, 0, 0), (2, 0, 2), (0, 2, 2), 1.0)
        assert seg is not None
        assert seg.z == 1.0
        assert seg.start == (1.0, 0.0)
        assert seg.end == (0.0, 1.0)
        assert not seg.is_degenerate


class TestCollectSegments:

    def test_cube_mid_slice(self, cube_triangles):
        segments, skipped = collect_segments(cube_triangles, 0.0)
        # two triangles on each of four side faces
        assert len(segments) == 8
        assert skipped == 0
        assert all(s.z == 0.0 for s in segments)

    def test_outside_z_range_is_empty(self, cube_triangles):
        segments, skipped = collect_segments(cube_triangles, 50.0)
        assert segments == []
        assert skipped == 0

    def test_non_finite_segment_is_counted_and_skipped(self):
        tris = np.array([
            [[math.nan, 0, 0], [1, 0, 2], [0, 1, 2]],
            [[0, 0, 0], [2, 0, 2], [0, 2, 2]],
        ], dtype=float)
        segments, skipped = collect_segments(tris, 1.0)
        assert skipped == 1
        assert len(segments) == 1
        assert segments[0].is_finite()

    def test_candidate_prefilter(self, cube_triangles):
        assert len(candidate_triangles(cube_triangles, 100.0)) == 0
        assert len(candidate_triangles(cube_triangles, 0.0)) == 8
        assert len(candidate_triangles(np.zeros((0, 3, 3)), 0.0)) == 0


class TestCrossingPoints:

    def test_shared_edges_reported_per_triangle(self, cube_triangles):
        points = crossing_points(cube_triangles, 0.0)
        assert len(points) == 16
        for x, y in points:
            assert abs(x) <= 5.0 + 1e-9
            assert abs(y) <= 5.0 + 1e-9
