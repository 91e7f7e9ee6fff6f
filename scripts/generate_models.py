#!/usr/bin/env python3
"""
Write the sample test models as OBJ files.

Usage:
    python scripts/generate_models.py
    python scripts/generate_models.py --output public/models
"""
import argparse
import os
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from procedural_shapes import sample_models


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Generate sample OBJ models.")
    parser.add_argument(
        "--output", default="public/models",
        help="Output directory (default: public/models)",
    )
    args = parser.parse_args(argv)

    output_dir = os.path.abspath(args.output)
    os.makedirs(output_dir, exist_ok=True)

    for name, mesh in sample_models().items():
        path = os.path.join(output_dir, f"{name}.obj")
        mesh.export(path)
        print(f"Generated {name}.obj ({len(mesh.faces)} faces)")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
