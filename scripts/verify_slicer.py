#!/usr/bin/env python3
"""
Slice a cube, a cylinder and a sphere at several heights and report.

Exits with status 1 if any height returns no loops.

Usage:
    python scripts/verify_slicer.py
    python scripts/verify_slicer.py --heights 9 --json report.json
"""
import argparse
import json
import logging
import sys
from pathlib import Path

# Add src to path
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from verification import run_verification


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(description="Run the slicer verification suite.")
    parser.add_argument(
        "--heights", type=int, default=5,
        help="Slice heights per model (default: 5)",
    )
    parser.add_argument(
        "--closure-tol", type=float, default=0.01,
        help="Max first/last point distance for a closed loop (default: 0.01)",
    )
    parser.add_argument("--json", default=None, help="Write the report to this path")
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging",
    )
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )

    reports = run_verification(
        heights_per_model=max(1, args.heights),
        closure_tol=args.closure_tol,
    )

    for report in reports:
        print(f"{report.name}: {'PASS' if report.passed else 'FAIL'}")
        for check in report.checks:
            status = "PASS" if check.passed else "FAIL"
            print(
                f"  z={check.z:.2f}: {status} "
                f"({check.loop_count} loops, {check.point_count} points)"
            )

    if args.json:
        with open(args.json, "w", encoding="utf-8") as f:
            json.dump([r.to_dict() for r in reports], f, indent=2)

    return 0 if all(r.passed for r in reports) else 1


if __name__ == "__main__":
    raise SystemExit(main())
