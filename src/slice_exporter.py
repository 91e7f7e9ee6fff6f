"""
SVG export of slice contours.

Draws a slice the way the viewer's 2D panel does: world origin at the canvas
centre, a fixed pixels-per-unit scale, y pointing up, and every loop of the
slice in a single even-odd filled path so holes stay open.
"""
import os
from typing import List, Sequence, Tuple

import svgwrite

from geometry_primitives import SliceResult, Vec2

SLICE_STYLE = """
    .axis { stroke: #333333; stroke-width: 1; fill: none; }
    .slice { stroke: #00E5FF; stroke-width: 2; fill: rgba(0, 229, 255, 0.2); fill-rule: evenodd; }
    .label { font-size: 10px; font-family: Arial, sans-serif; fill: #666; }
"""


def loops_to_path_data(
    loops: Sequence[Sequence[Vec2]],
    scale: float,
    center: Tuple[float, float],
) -> str:
    """SVG path data for a set of loops, in canvas coordinates."""
    cx, cy = center
    commands: List[str] = []
    for loop in loops:
        if len(loop) == 0:
            continue
        for i, (x, y) in enumerate(loop):
            px = cx + x * scale
            py = cy - y * scale  # canvas y grows downward
            commands.append(f"{'M' if i == 0 else 'L'} {px:.3f} {py:.3f}")
        commands.append("Z")
    return " ".join(commands)


def slice_to_svg(
    loops: Sequence[Sequence[Vec2]],
    filepath: str,
    scale: float = 20.0,
    canvas: Tuple[float, float] = (300.0, 300.0),
    label: str = "",
) -> str:
    """
    Export one slice to SVG.

    Args:
        loops: Contour loops (ContourLoop or plain point sequences).
        filepath: Output SVG file path.
        scale: Pixels per model unit.
        canvas: (width, height) in pixels.
        label: Optional caption drawn in the top-left corner.

    Returns:
        Path to created SVG file
    """
    width, height = canvas
    dwg = svgwrite.Drawing(
        filepath,
        size=(f"{width}px", f"{height}px"),
        viewBox=f"0 0 {width} {height}",
    )
    dwg.defs.add(dwg.style(SLICE_STYLE))

    # Centre cross
    dwg.add(dwg.line(start=(width / 2, 0), end=(width / 2, height), class_="axis"))
    dwg.add(dwg.line(start=(0, height / 2), end=(width, height / 2), class_="axis"))

    path_data = loops_to_path_data(loops, scale, (width / 2, height / 2))
    if path_data:
        dwg.add(dwg.path(d=path_data, class_="slice"))

    if label:
        dwg.add(dwg.text(label, insert=(6, 14), class_="label"))

    dwg.save()
    return filepath


def stack_to_svg(
    results: Sequence[SliceResult],
    output_dir: str,
    name: str = "slice",
    scale: float = 20.0,
    canvas: Tuple[float, float] = (300.0, 300.0),
) -> List[str]:
    """
    Export every slice of a stack to its own SVG file.

    Returns:
        List of created SVG file paths
    """
    os.makedirs(output_dir, exist_ok=True)

    paths = []
    for i, result in enumerate(results):
        filepath = os.path.join(output_dir, f"{name}_{i:03d}.svg")
        slice_to_svg(
            result.loops,
            filepath,
            scale=scale,
            canvas=canvas,
            label=f"z={result.z:.3f}  loops={len(result.loops)}",
        )
        paths.append(filepath)
    return paths
