"""
Shared test fixtures for slicing and sphere-packing tests.
"""
import sys
from pathlib import Path

import numpy as np
import pytest
import trimesh

# Add src/ to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from procedural_shapes import torus_mesh


@pytest.fixture
def cube_mesh():
    """A 10x10x10 cube centred at the origin (z in [-5, 5])."""
    return trimesh.creation.box(extents=[10, 10, 10])


@pytest.fixture
def cylinder_mesh():
    """A cylinder (radius=5, height=20) centred at the origin."""
    return trimesh.creation.cylinder(radius=5, height=20, sections=32)


@pytest.fixture
def sphere_mesh():
    """A UV sphere of radius 6 centred at the origin."""
    return trimesh.creation.uv_sphere(radius=6, count=[32, 32])


@pytest.fixture
def flat_torus():
    """Torus lying in the XY plane; horizontal slices give nested rings."""
    return torus_mesh(major_radius=3.0, minor_radius=1.0)


@pytest.fixture
def upright_torus():
    """Torus standing in the XZ plane; slices give two separate tube sections."""
    return torus_mesh(major_radius=3.0, minor_radius=1.0, upright=True)


@pytest.fixture
def cube_triangles(cube_mesh):
    """World-space triangles of the cube as an (N, 3, 3) array."""
    return np.asarray(cube_mesh.triangles, dtype=float)


@pytest.fixture
def cube_mesh_file(cube_mesh, tmp_path):
    """Write the cube mesh to a temp STL file."""
    path = tmp_path / "cube.stl"
    cube_mesh.export(str(path))
    return str(path)
