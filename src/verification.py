"""
Slicer self-check on known solids.

Each model is sliced at evenly spaced heights strictly inside its z-range.
A height passes when at least one loop comes back; loops whose ends are
further apart than ``closure_tol`` are reported as possibly open.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from geometry_primitives import SlicerConfig
from procedural_shapes import verification_models
from slicer import slice_mesh
from triangle_source import ArrayTriangleSource, as_triangle_source, triangle_bounds

logger = logging.getLogger(__name__)


@dataclass
class HeightCheck:
    z: float
    loop_count: int
    point_count: int
    open_loops: List[int] = field(default_factory=list)
    max_closure_gap: float = 0.0

    @property
    def passed(self) -> bool:
        return self.loop_count > 0


@dataclass
class ModelVerification:
    name: str
    z_range: Optional[tuple]
    checks: List[HeightCheck] = field(default_factory=list)

    @property
    def passed(self) -> bool:
        return bool(self.checks) and all(c.passed for c in self.checks)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "z_range": None if self.z_range is None else list(self.z_range),
            "passed": self.passed,
            "checks": [
                {
                    "z": c.z,
                    "passed": c.passed,
                    "loop_count": c.loop_count,
                    "point_count": c.point_count,
                    "open_loops": c.open_loops,
                    "max_closure_gap": c.max_closure_gap,
                }
                for c in self.checks
            ],
        }


def verify_model(
    name: str,
    source,
    heights_per_model: int = 5,
    closure_tol: float = 0.01,
    config: Optional[SlicerConfig] = None,
) -> ModelVerification:
    """Slice one model at ``heights_per_model`` interior heights."""
    src = ArrayTriangleSource(as_triangle_source(source).world_triangles())
    bounds = triangle_bounds(src.triangles)
    if bounds is None:
        logger.warning("%s: no triangles", name)
        return ModelVerification(name=name, z_range=None)

    z_min, z_max = float(bounds[0][2]), float(bounds[1][2])
    step = (z_max - z_min) / (heights_per_model + 1)
    report = ModelVerification(name=name, z_range=(z_min, z_max))

    for i in range(1, heights_per_model + 1):
        z0 = z_min + i * step
        result = slice_mesh(src, z0, config)
        gaps = [loop.closure_gap() for loop in result.loops]
        check = HeightCheck(
            z=z0,
            loop_count=len(result.loops),
            point_count=result.point_count,
            open_loops=[idx for idx, gap in enumerate(gaps) if gap > closure_tol],
            max_closure_gap=max(gaps, default=0.0),
        )
        report.checks.append(check)

        logger.info(
            "%s z=%.2f: %s (%d loops, %d points)",
            name, z0, "PASS" if check.passed else "FAIL",
            check.loop_count, check.point_count,
        )
        for idx in check.open_loops:
            logger.warning(
                "%s z=%.2f: loop %d might not be closed (gap %.4f)",
                name, z0, idx, gaps[idx],
            )
    return report


def run_verification(
    models: Optional[Dict[str, object]] = None,
    heights_per_model: int = 5,
    closure_tol: float = 0.01,
    config: Optional[SlicerConfig] = None,
) -> List[ModelVerification]:
    """Verify every model; defaults to a cube, a cylinder and a sphere."""
    if models is None:
        models = verification_models()
    reports = [
        verify_model(name, mesh, heights_per_model, closure_tol, config)
        for name, mesh in models.items()
    ]
    passed = sum(1 for r in reports if r.passed)
    logger.info("Verification complete: %d/%d models passed", passed, len(reports))
    return reports
