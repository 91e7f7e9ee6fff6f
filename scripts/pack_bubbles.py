#!/usr/bin/env python3
"""
Fill a mesh with layers of overlapping spheres.

Writes the sphere placements as JSON and, unless --no-mesh is given, the
merged bubble geometry as a mesh file.

Usage:
    python scripts/pack_bubbles.py --input model.obj --radius 0.5
    python scripts/pack_bubbles.py --input model.stl --radius 0.4 --overlap-v 20 --overlap-h 10 --base-flatten 50
"""
import argparse
import json
import logging
import os
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from geometry_primitives import PackingConfig, SlicerConfig
from layer_packer import MAX_OVERLAP_PERCENT, clamp, pack_spheres
from sphere_mesh import placements_to_mesh
from triangle_source import load_triangle_source


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Approximate a solid with stacked layers of spheres.",
    )
    parser.add_argument(
        "--input", required=True,
        help="Path to input mesh file (STL, OBJ, GLB, PLY)",
    )
    parser.add_argument(
        "--output", default=None,
        help="Output directory (default: <input_dir>/<input_stem>_bubbles/)",
    )
    parser.add_argument(
        "--radius", type=float, default=0.5,
        help="Sphere radius in model units (default: 0.5)",
    )
    parser.add_argument(
        "--overlap-v", type=float, default=0.0,
        help=f"Vertical overlap percent, 0-{MAX_OVERLAP_PERCENT:.0f} (default: 0)",
    )
    parser.add_argument(
        "--overlap-h", type=float, default=0.0,
        help=f"Horizontal overlap percent, 0-{MAX_OVERLAP_PERCENT:.0f} (default: 0)",
    )
    parser.add_argument(
        "--base-flatten", type=float, default=50.0,
        help="Percent of the base-layer spheres cut flat, 0-100 (default: 50)",
    )
    parser.add_argument(
        "--max-layers", type=int, default=700,
        help="Safety cap on the number of layers (default: 700)",
    )
    parser.add_argument(
        "--segments", type=int, default=16,
        help="Sphere longitude segments in the exported mesh (default: 16)",
    )
    parser.add_argument(
        "--rings", type=int, default=12,
        help="Sphere latitude rings in the exported mesh (default: 12)",
    )
    parser.add_argument(
        "--mesh-format", default="stl", choices=["stl", "obj", "ply", "glb"],
        help="Format of the merged bubble mesh (default: stl)",
    )
    parser.add_argument(
        "--no-mesh", action="store_true",
        help="Only write placements, skip building the merged mesh",
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
        output_dir = os.path.join(os.path.dirname(input_path), f"{stem}_bubbles")
    os.makedirs(output_dir, exist_ok=True)

    config = PackingConfig(
        radius=args.radius,
        overlap_vertical_pct=clamp(args.overlap_v, 0.0, MAX_OVERLAP_PERCENT),
        overlap_horizontal_pct=clamp(args.overlap_h, 0.0, MAX_OVERLAP_PERCENT),
        base_flatten_pct=clamp(args.base_flatten, 0.0, 100.0),
        max_layers=max(1, args.max_layers),
        slicer=SlicerConfig(),
    )

    print(f"Packing {input_path} ...")
    result = pack_spheres(load_triangle_source(input_path), config)

    stem = Path(input_path).stem
    placements_path = os.path.join(output_dir, f"{stem}_bubbles.json")
    payload = {
        "input": input_path,
        "config": {
            "radius": config.radius,
            "overlap_vertical_pct": config.overlap_vertical_pct,
            "overlap_horizontal_pct": config.overlap_horizontal_pct,
            "base_flatten_pct": config.base_flatten_pct,
            "max_layers": config.max_layers,
        },
        **result.to_dict(),
    }
    with open(placements_path, "w", encoding="utf-8") as f:
        json.dump(payload, f, indent=2)

    mesh_path = None
    if not args.no_mesh and not result.is_empty:
        merged = placements_to_mesh(result.placements, args.segments, args.rings)
        if merged is not None:
            mesh_path = os.path.join(output_dir, f"{stem}_bubbles.{args.mesh_format}")
            merged.export(mesh_path)

    print(f"Status: {result.status.upper()}")
    print(f"Layers: {result.layer_count}")
    print(f"Spheres: {len(result.placements)}")
    if result.truncated:
        print(f"Warning: layer stack truncated at {config.max_layers} layers")
    if result.is_empty:
        print("No geometry produced")
    print(f"Placements JSON: {placements_path}")
    if mesh_path:
        print(f"Bubble mesh: {mesh_path}")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
