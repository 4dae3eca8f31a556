"""
Command line entry point.

Usage:
    python -m cloud_viewer3d [points.xyz] [--params params.json] [--state-dir DIR]
"""

from __future__ import annotations

import argparse
import logging
from pathlib import Path

from cloud_viewer3d.params import ViewerParams
from cloud_viewer3d.utils.logging_setup import setup_logging

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="cloud_viewer3d", description="Fly through a 3D point cloud")
    parser.add_argument("points", nargs="?", default=None, help="Point file (.xyz, .txt, .csv, .npy)")
    parser.add_argument("--params", type=Path, default=None, help="JSON parameters file")
    parser.add_argument("--width", type=int, default=None, help="Window width")
    parser.add_argument("--height", type=int, default=None, help="Window height")
    parser.add_argument("--max-points", type=int, default=None, help="Subsample loaded clouds to this many points")
    parser.add_argument("--demo-points", type=int, default=None, help="Point count of the demo cloud")
    parser.add_argument("--seed", type=int, default=None, help="Demo cloud seed")
    parser.add_argument("--point-size", type=float, default=None, help="Point size in pixels")
    parser.add_argument("--state-dir", default=None, help="Folder for saved camera slots")
    parser.add_argument("--initial-state", default=None, help="Camera state JSON to start from")
    parser.add_argument("--log-level", default=None, help="DEBUG, INFO, WARNING, ...")
    parser.add_argument("--log-file", default=None, help="Also log to this rotating file")
    return parser


def params_from_args(args: argparse.Namespace) -> ViewerParams:
    params = ViewerParams.load(args.params) if args.params is not None else ViewerParams()
    overrides = {
        "points_path": args.points,
        "width": args.width,
        "height": args.height,
        "max_points": args.max_points,
        "demo_point_count": args.demo_points,
        "seed": args.seed,
        "point_size": args.point_size,
        "state_dir": args.state_dir,
        "initial_state": args.initial_state,
        "log_level": args.log_level,
        "log_file": args.log_file,
    }
    for name, value in overrides.items():
        if value is not None:
            setattr(params, name, value)
    return params.clamp()


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    params = params_from_args(args)
    setup_logging(params.log_level, params.log_file or None)

    from cloud_viewer3d.ui.app import CloudViewerApp

    CloudViewerApp(params).run()
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
