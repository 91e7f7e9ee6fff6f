"""Tests for sphere_mesh module."""
import math

import numpy as np
import pytest

from geometry_primitives import SpherePlacement
from sphere_mesh import placements_to_mesh, sphere_cap_mesh


class TestSphereCapMesh:

    def test_hemisphere_is_closed(self):
        mesh = sphere_cap_mesh(1.0, math.pi / 2, segments=16, rings=12)
        assert mesh.is_watertight
        assert mesh.is_winding_consistent
        assert mesh.bounds[0][2] == pytest.approx(0.0, abs=1e-9)
        assert mesh.bounds[1][2] == pytest.approx(1.0)
        assert 1.8 < mesh.volume < 2.0 / 3.0 * math.pi

    def test_full_sphere(self):
        mesh = sphere_cap_mesh(2.0, math.pi, segments=12, rings=8)
        assert mesh.is_watertight
        np.testing.assert_allclose(mesh.bounds, [[-2, -2, -2], [2, 2, 2]], atol=1e-9)

    def test_outward_normals(self):
        mesh = sphere_cap_mesh(1.0, 2.0)
        assert mesh.volume > 0

    def test_flat_face_height(self):
        theta = 2.0
        mesh = sphere_cap_mesh(1.5, theta)
        assert mesh.bounds[0][2] == pytest.approx(1.5 * math.cos(theta))

    def test_zero_height_cap(self):
        assert sphere_cap_mesh(1.0, 0.0) is None

    def test_single_ring_cap(self):
        mesh = sphere_cap_mesh(1.0, 0.5, segments=8, rings=1)
        assert mesh.is_watertight
        assert len(mesh.faces) == 16


class TestPlacementsToMesh:

    def test_merges_caps_and_spheres(self):
        placements = [
            SpherePlacement(center=(0.0, 0.0, 0.0), radius=1.0, layer_index=0,
                            cap_theta=math.pi / 2),
            SpherePlacement(center=(3.0, 0.0, 0.0), radius=1.0, layer_index=0,
                            cap_theta=math.pi / 2),
            SpherePlacement(center=(0.0, 0.0, 2.0), radius=1.0, layer_index=1),
        ]
        mesh = placements_to_mesh(placements, segments=16, rings=12)
        assert mesh is not None
        np.testing.assert_allclose(mesh.bounds[0], [-1, -1, 0], atol=1e-6)
        np.testing.assert_allclose(mesh.bounds[1], [4, 1, 3], atol=1e-6)

    def test_flat_caps_skipped(self):
        placements = [
            SpherePlacement(center=(0.0, 0.0, 0.0), radius=1.0, layer_index=0, cap_theta=0.0),
        ]
        assert placements_to_mesh(placements) is None

    def test_empty(self):
        assert placements_to_mesh([]) is None
