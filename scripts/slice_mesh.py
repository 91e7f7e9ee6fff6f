#!/usr/bin/env python3
"""
Slice a mesh with horizontal planes and write the contour loops.

Usage:
    python scripts/slice_mesh.py --input model.obj --z 2.5
    python scripts/slice_mesh.py --input model.stl --layers 40 --export-svg
    python scripts/slice_mesh.py --input model.obj --layer-height 0.2 --output out/
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from geometry_primitives import SlicerConfig
from slice_exporter import slice_to_svg, stack_to_svg
from slicer import LayerSettings, model_height, slice_mesh, slice_stack
from triangle_source import ArrayTriangleSource, load_triangle_source


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Slice a mesh at one height or into a stack of layers.",
    )
    parser.add_argument(
        "--input", required=True,
        help="Path to input mesh file (STL, OBJ, GLB, PLY)",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output directory (default: <input_dir>/<input_stem>_slices/)",
    )
    group = parser.add_mutually_exclusive_group(required=True)
    group.add_argument("--z", type=float, help="Single slice height")
    group.add_argument("--layers", type=int, help="Number of evenly spaced layers")
    group.add_argument("--layer-height", type=float, help="Layer height in model units")
    parser.add_argument(
        "--merge-strategy", default="kdtree", choices=["kdtree", "quantize"],
        help="How coincident segment endpoints are merged (default: kdtree)",
    )
    parser.add_argument(
        "--merge-tolerance", type=float, default=1e-5,
        help="Endpoint merge distance for the kdtree strategy (default: 1e-5)",
    )
    parser.add_argument(
        "--key-precision", type=int, default=6,
        help="Decimals kept by the quantize strategy (default: 6)",
    )
    parser.add_argument(
        "--export-svg", action="store_true",
        help="Write an SVG drawing of every slice",
    )
    parser.add_argument(
        "--svg-scale", type=float, default=20.0,
        help="SVG pixels per model unit (default: 20)",
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging",
    )
    return parser


def main(argv=None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    input_path = os.path.abspath(args.input)
    if not os.path.isfile(input_path):
        parser.error(f"Input file not found: {input_path}")

    if args.output:
        output_dir = os.path.abspath(args.output)
    else:
        stem = Path(input_path).stem
        output_dir = os.path.join(os.path.dirname(input_path), f"{stem}_slices")
    os.makedirs(output_dir, exist_ok=True)

    config = SlicerConfig(
        merge_strategy=args.merge_strategy,
        merge_tolerance=max(0.0, args.merge_tolerance),
        key_precision=max(0, args.key_precision),
    )
    source = ArrayTriangleSource(load_triangle_source(input_path).world_triangles())
    stem = Path(input_path).stem

    if args.z is not None:
        results = [slice_mesh(source, args.z, config)]
    else:
        height = model_height(source)
        if args.layers is not None:
            settings = LayerSettings.from_layer_count(height, args.layers)
        else:
            settings = LayerSettings.from_layer_height(height, args.layer_height)
        print(
            f"Layers: {settings.layer_count} "
            f"(layer height {settings.layer_height:.4f}, model height {height:.4f})"
        )
        results = slice_stack(source, settings.layer_count, config)

    slices_path = os.path.join(output_dir, f"{stem}_slices.json")
    with open(slices_path, "w", encoding="utf-8") as f:
        json.dump({"input": input_path, "slices": [r.to_dict() for r in results]}, f, indent=2)

    svg_paths = []
    if args.export_svg:
        if len(results) == 1:
            svg_path = os.path.join(output_dir, f"{stem}_z{results[0].z:.3f}.svg")
            svg_paths = [slice_to_svg(results[0].loops, svg_path, scale=args.svg_scale)]
        else:
            svg_paths = stack_to_svg(
                results, os.path.join(output_dir, "svg"), name=stem, scale=args.svg_scale,
            )

    total_loops = sum(len(r.loops) for r in results)
    open_loops = sum(len(r.open_loops(1e-6)) for r in results)
    print(f"Slices: {len(results)}")
    print(f"Loops: {total_loops} ({open_loops} open)")
    print(f"Slices JSON: {slices_path}")
    if svg_paths:
        print(f"SVG files: {len(svg_paths)}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
