"""Procedural test solids used by the verification suite and sample models."""
import math
from typing import Dict

import numpy as np
import trimesh


def cube(size: float = 10.0) -> trimesh.Trimesh:
    """Axis-aligned cube centred at the origin."""
    return trimesh.creation.box(extents=[size, size, size])


def cylinder(radius: float = 5.0, height: float = 20.0, sections: int = 32) -> trimesh.Trimesh:
    """Z-axis cylinder centred at the origin."""
    return trimesh.creation.cylinder(radius=radius, height=height, sections=sections)


def sphere(radius: float = 6.0, count: int = 32) -> trimesh.Trimesh:
    return trimesh.creation.uv_sphere(radius=radius, count=[count, count])


def torus_mesh(
    major_radius: float = 3.0,
    minor_radius: float = 1.0,
    major_sections: int = 48,
    minor_sections: int = 16,
    upright: bool = False,
) -> trimesh.Trimesh:
    """Torus around the z axis, or around the y axis when ``upright``.

    A horizontal slice through a flat torus gives two nested circles; through
    an upright torus it gives two disjoint tube sections side by side.
    """
    u = np.arange(major_sections) * (2 * math.pi / major_sections)
    v = np.arange(minor_sections) * (2 * math.pi / minor_sections)
    uu, vv = np.meshgrid(u, v, indexing="ij")
    ring = major_radius + minor_radius * np.cos(vv)
    vertices = np.column_stack([
        (ring * np.cos(uu)).reshape(-1),
        (ring * np.sin(uu)).reshape(-1),
        (minor_radius * np.sin(vv)).reshape(-1),
    ])

    faces = []
    for i in range(major_sections):
        i_next = (i + 1) % major_sections
        for j in range(minor_sections):
            j_next = (j + 1) % minor_sections
            a = i * minor_sections + j
            b = i_next * minor_sections + j
            c = i_next * minor_sections + j_next
            d = i * minor_sections + j_next
            faces.append([a, b, c])
            faces.append([a, c, d])

    mesh = trimesh.Trimesh(vertices=vertices, faces=np.array(faces), process=False)
    if upright:
        mesh.apply_transform(
            trimesh.transformations.rotation_matrix(math.pi / 2, [1.0, 0.0, 0.0])
        )
    return mesh


def verification_models() -> Dict[str, trimesh.Trimesh]:
    return {
        "cube": cube(10.0),
        "cylinder": cylinder(5.0, 20.0, 32),
        "sphere": sphere(6.0, 32),
    }


def sample_models() -> Dict[str, trimesh.Trimesh]:
    """Models written by ``scripts/generate_models.py``."""
    return {
        "cube_simple": cube(10.0),
        "sphere_smooth": sphere(7.0, 64),
        "torus": torus_mesh(5.0, 1.5, 128, 32, upright=True),
    }
