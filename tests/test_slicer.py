"""Tests for slicer module: end-to-end slicing of known solids."""
import logging
import math
import random

import numpy as np
import pytest
import trimesh
from shapely.geometry import Point

from contour_stitching import stitch_segments
from geometry_primitives import SlicerConfig, cap_area, cap_region
from plane_intersection import collect_segments
from polygon_containment import point_in_loops
from slicer import (
    LayerSettings,
    model_height,
    slice_contours,
    slice_mesh,
    slice_points,
    slice_stack,
    stack_heights,
)
from triangle_source import MeshTriangleSource


class TestSliceCube:

    def test_mid_slice_is_single_square(self, cube_mesh):
        result = slice_mesh(cube_mesh, 0.0)
        assert len(result.loops) == 1
        loop = result.loops[0]
        assert loop.is_closed(1e-9)
        min_x, min_y, max_x, max_y = loop.bounds()
        assert (min_x, min_y, max_x, max_y) == pytest.approx((-5, -5, 5, 5))
        assert cap_area(result.loops) == pytest.approx(100.0)
        for corner in [(-5.0, -5.0), (5.0, -5.0), (5.0, 5.0), (-5.0, 5.0)]:
            assert corner in loop.points

    def test_mid_slice_containment(self, cube_mesh):
        loops = slice_contours(cube_mesh, 0.0)
        assert point_in_loops(0.0, 0.0, loops)
        assert not point_in_loops(6.0, 6.0, loops)

    def test_result_bookkeeping(self, cube_mesh):
        result = slice_mesh(cube_mesh, 0.0)
        assert result.segment_count == 8
        assert result.skipped_segments == 0
        assert result.triangle_count == 12
        assert result.z_range == pytest.approx((-5.0, 5.0))
        assert result.in_range
        assert result.open_loops() == []

    def test_slice_at_top_face(self, cube_mesh):
        loops = slice_contours(cube_mesh, 5.0)
        assert len(loops) == 1
        assert cap_area(loops) == pytest.approx(100.0)

    def test_slice_at_bottom_face_is_empty(self, cube_mesh):
        """Only triangles reaching below the plane contribute crossings."""
        assert slice_contours(cube_mesh, -5.0) == []

    def test_outside_range_warns(self, cube_mesh, caplog):
        with caplog.at_level(logging.WARNING, logger="slicer"):
            result = slice_mesh(cube_mesh, 20.0)
        assert result.loops == []
        assert not result.in_range
        assert "outside the mesh z-range" in caplog.text

    def test_quantize_strategy_gives_same_square(self, cube_mesh):
        result = slice_mesh(cube_mesh, 1.5, SlicerConfig(merge_strategy="quantize"))
        assert len(result.loops) == 1
        assert cap_area(result.loops) == pytest.approx(100.0)

    def test_transformed_source(self, cube_mesh):
        moved = MeshTriangleSource(
            cube_mesh, trimesh.transformations.translation_matrix([0, 0, 100])
        )
        assert slice_contours(moved, 0.0) == []
        assert len(slice_contours(moved, 100.0)) == 1

    def test_raw_points(self, cube_mesh):
        assert len(slice_points(cube_mesh, 0.0)) == 16


class TestSliceCurvedSolids:

    def test_cylinder_is_single_circle(self, cylinder_mesh):
        loops = slice_contours(cylinder_mesh, 0.0)
        assert len(loops) == 1
        assert loops[0].is_closed(1e-6)
        assert cap_area(loops) == pytest.approx(math.pi * 25, rel=0.01)

    def test_sphere_is_single_circle(self, sphere_mesh):
        loops = slice_contours(sphere_mesh, 1.0)
        assert len(loops) == 1
        assert loops[0].is_closed(1e-6)
        radius = math.sqrt(36 - 1)
        assert cap_area(loops) == pytest.approx(math.pi * radius ** 2, rel=0.02)

    def test_flat_torus_gives_nested_loops(self, flat_torus):
        loops = slice_contours(flat_torus, 0.3)
        assert len(loops) == 2
        assert all(loop.is_closed(1e-6) for loop in loops)
        assert not point_in_loops(0.0, 0.0, loops)
        assert point_in_loops(3.0, 0.0, loops)
        assert not point_in_loops(5.0, 0.0, loops)

    def test_flat_torus_region_has_hole(self, flat_torus):
        loops = slice_contours(flat_torus, 0.3)
        region = cap_region(loops)
        half_width = math.sqrt(1 - 0.3 ** 2)
        assert region.area == pytest.approx(4 * math.pi * 3.0 * half_width, rel=0.05)
        assert not region.contains(Point(0.0, 0.0))
        assert region.contains(Point(3.0, 0.0))

    def test_upright_torus_gives_two_disjoint_loops(self, upright_torus):
        loops = slice_contours(upright_torus, 0.37)
        assert len(loops) == 2
        centres = sorted(np.mean(loop.points, axis=0)[0] for loop in loops)
        assert centres[0] < 0 < centres[1]
        assert point_in_loops(3.0, 0.0, loops)
        assert point_in_loops(-3.0, 0.0, loops)
        assert not point_in_loops(0.0, 0.0, loops)

    def test_segment_count_matches_trimesh(self, flat_torus):
        result = slice_mesh(flat_torus, 0.3)
        reference = trimesh.intersections.mesh_plane(
            flat_torus, plane_normal=[0, 0, 1], plane_origin=[0, 0, 0.3],
        )
        assert result.segment_count == len(reference)


class TestSliceStack:

    def test_stack_heights(self):
        assert stack_heights(0.0, 10.0, 4) == pytest.approx([2.5, 5.0, 7.5, 10.0])
        assert stack_heights(0.0, 10.0, 0) == pytest.approx([10.0])

    def test_cube_stack(self, cube_mesh):
        results = slice_stack(cube_mesh, 4)
        assert [r.z for r in results] == pytest.approx([-2.5, 0.0, 2.5, 5.0])
        assert all(len(r.loops) == 1 for r in results)

    def test_empty_mesh_stack(self):
        assert slice_stack(np.zeros((0, 3, 3)), 5) == []

    def test_layer_settings(self):
        settings = LayerSettings.from_layer_height(10.0, 0.3)
        assert settings.layer_count == 33
        assert settings.layer_height == pytest.approx(10.0 / 33)
        assert LayerSettings.from_layer_count(10.0, 0).layer_count == 1
        assert LayerSettings.from_layer_height(10.0, 0.0).layer_count == 1
        assert LayerSettings.from_layer_height(10.0, 50.0).layer_count == 1

    def test_model_height(self, cylinder_mesh):
        assert model_height(cylinder_mesh) == pytest.approx(20.0)
        assert model_height(np.zeros((0, 3, 3))) == 0.0


class TestSliceDeterminism:

    def test_repeated_slices_are_identical(self, flat_torus):
        first = slice_contours(flat_torus, 0.3)
        second = slice_contours(flat_torus, 0.3)
        assert [loop.points for loop in first] == [loop.points for loop in second]

    def test_segment_order_does_not_change_loops(self, flat_torus):
        triangles = np.asarray(flat_torus.triangles, dtype=float)
        segments, _ = collect_segments(triangles, 0.3)
        shuffled = list(segments)
        random.Random(3).shuffle(shuffled)

        ordered_loops = stitch_segments(segments)
        shuffled_loops = stitch_segments(shuffled)

        assert len(shuffled_loops) == len(ordered_loops) == 2
        assert sorted(len(loop) for loop in shuffled_loops) == sorted(
            len(loop) for loop in ordered_loops
        )
        assert all(loop.is_closed(1e-6) for loop in shuffled_loops)
        # same rings, possibly starting elsewhere or running the other way
        for loop in ordered_loops:
            match = [
                other for other in shuffled_loops
                if np.allclose(other.bounds(), loop.bounds(), atol=1e-9)
            ]
            assert len(match) == 1
            assert cap_area([match[0]]) == pytest.approx(cap_area([loop]))
