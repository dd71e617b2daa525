"""
Command line: analyse a binary STL file.

Usage:
    python -m stl_analysis <stl_file> [--bodies] [--json] [--save OUT.stl]

Examples:
    python -m stl_analysis part.stl --bodies
    python -m stl_analysis part.stl --json --config project.stl-analysis.json
    python -m stl_analysis part.stl --save clean.stl   # rewrite with fresh normals
"""

import argparse
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import List, Optional

from stl_analysis import config as cfg
from stl_analysis.analysis.session import MeshAnalysis
from stl_analysis.io.stl_codec import STLCodecError, read_stl_binary, write_stl_binary
from stl_analysis.logging_config import setup_logging
from stl_analysis.project_config import ConfigError, load_config

logger = logging.getLogger("stl_analysis.cli")


def _parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="stl-analysis",
        description="Weld a binary STL triangle soup and report area, volume and bodies.",
        epilog=__doc__,
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("stl_file", help="binary STL file to analyse")
    parser.add_argument(
        "--config",
        default=None,
        help="JSON configuration file (default: nearest .stl-analysis.json)",
    )
    parser.add_argument(
        "--bodies",
        action="store_true",
        help="also count connected bodies once the mesh is built",
    )
    parser.add_argument(
        "--json",
        action="store_true",
        help="print results as JSON instead of a text summary",
    )
    parser.add_argument(
        "--save",
        metavar="OUT",
        default=None,
        help="write the triangles back out as binary STL with recomputed normals",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="debug logging",
    )
    parser.add_argument(
        "--log-json",
        metavar="PATH",
        default=None,
        help="also write JSON-lines logs to PATH",
    )
    return parser.parse_args(argv)


def main(argv: Optional[List[str]] = None) -> int:
    args = _parse_args(argv)

    config = load_config(args.stl_file, args.config)
    try:
        config.validate()
    except ConfigError as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    setup_logging(
        level=logging.DEBUG if args.verbose else config.log_level,
        json_file=args.log_json or config.logging.json_file,
        use_colors=config.logging.use_colors,
    )

    try:
        triangles = read_stl_binary(args.stl_file)
    except STLCodecError as exc:
        print(f"Could not open file {exc.path}: {exc}", file=sys.stderr)
        return 1

    with ThreadPoolExecutor(
        max_workers=config.analysis.max_workers,
        thread_name_prefix=cfg.THREAD_NAME_PREFIX,
    ) as executor:
        analysis = MeshAnalysis(triangles, config=config, executor=executor)
        if args.bodies:
            analysis.mesh_request.wait()
            analysis.request_body_count()
        snapshot = analysis.wait().snapshot()

    if args.json:
        print(json.dumps(snapshot.to_dict(), indent=2))
    else:
        print(snapshot.summary())

    if args.save:
        try:
            write_stl_binary(args.save, triangles)
        except STLCodecError as exc:
            print(f"Could not save mesh {exc.path}: {exc}", file=sys.stderr)
            return 1
        logger.info("Saved: %s", args.save)

    return 0


if __name__ == "__main__":
    sys.exit(main())
