"""
Sphere geometry for packed placements.

Builds one merged trimesh from a list of SpherePlacement values: full UV
spheres for the upper layers and closed polar caps for the flattened base
layer. Caps keep polar angles ``[0, theta]`` from the +z pole and are closed
by a flat disc, so every bubble is watertight on its own.
"""
import logging
import math
from typing import Dict, Iterable, List, Optional

import numpy as np
import trimesh

from geometry_primitives import SpherePlacement

logger = logging.getLogger(__name__)

_MIN_CAP_THETA = 1e-9


def sphere_cap_mesh(
    radius: float,
    theta: float,
    segments: int = 16,
    rings: int = 12,
) -> Optional[trimesh.Trimesh]:
    """Polar cap of a sphere centred at the origin.

    Args:
        radius: Sphere radius.
        theta: Polar extent kept, in radians from the +z pole. ``pi`` gives a
            whole sphere, ``pi / 2`` a hemisphere with its flat face on z = 0.
        segments: Vertices per ring (longitude).
        rings: Latitude bands between the pole and the cut.

    Returns:
        A closed mesh, or None when the cap has no height (theta ~ 0).
    """
    if theta <= _MIN_CAP_THETA:
        return None
    theta = min(float(theta), math.pi)
    segments = max(3, int(segments))
    full = theta >= math.pi - 1e-12
    rings = max(2 if full else 1, int(rings))

    # interior rings; a full sphere ends in a pole, a cap in its cut ring
    ring_count = rings - 1 if full else rings
    azimuth = np.arange(segments) * (2 * math.pi / segments)

    vertices: List[np.ndarray] = [np.array([[0.0, 0.0, radius]])]
    for k in range(1, ring_count + 1):
        phi = k * theta / rings
        ring = np.column_stack([
            radius * math.sin(phi) * np.cos(azimuth),
            radius * math.sin(phi) * np.sin(azimuth),
            np.full(segments, radius * math.cos(phi)),
        ])
        vertices.append(ring)
    # south pole, or the centre of the flat cut face
    vertices.append(np.array([[0.0, 0.0, radius * math.cos(theta)]]))
    verts = np.concatenate(vertices, axis=0)

    bottom = len(verts) - 1
    faces = []
    for j in range(segments):
        faces.append([0, 1 + j, 1 + (j + 1) % segments])
    for k in range(ring_count - 1):
        upper = 1 + k * segments
        lower = upper + segments
        for j in range(segments):
            jn = (j + 1) % segments
            faces.append([upper + j, lower + j, lower + jn])
            faces.append([upper + j, lower + jn, upper + jn])
    last = 1 + (ring_count - 1) * segments
    for j in range(segments):
        faces.append([last + (j + 1) % segments, last + j, bottom])

    return trimesh.Trimesh(vertices=verts, faces=np.array(faces), process=False)


def placements_to_mesh(
    placements: Iterable[SpherePlacement],
    segments: int = 16,
    rings: int = 12,
) -> Optional[trimesh.Trimesh]:
    """Merge every placement into a single mesh, or None if nothing to merge."""
    templates: Dict[tuple, Optional[trimesh.Trimesh]] = {}
    parts: List[trimesh.Trimesh] = []
    skipped = 0

    for placement in placements:
        key = (placement.radius, placement.cap_theta)
        if key not in templates:
            templates[key] = _template(placement, segments, rings)
        template = templates[key]
        if template is None:
            skipped += 1
            continue
        part = template.copy()
        part.apply_translation(placement.center)
        parts.append(part)

    if skipped:
        logger.debug("Skipped %d zero-height caps", skipped)
    if not parts:
        logger.warning("No sphere geometry to merge")
        return None

    merged = trimesh.util.concatenate(parts)
    logger.info("Merged %d spheres (%d faces)", len(parts), len(merged.faces))
    return merged


def _template(
    placement: SpherePlacement,
    segments: int,
    rings: int,
) -> Optional[trimesh.Trimesh]:
    if placement.cap_theta is None:
        return trimesh.creation.uv_sphere(
            radius=placement.radius, count=[rings, segments],
        )
    return sphere_cap_mesh(placement.radius, placement.cap_theta, segments, rings)
