from __future__ import annotations

import argparse

from .pipeline_service import run_pipeline
from .weights import available_presets


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Chamfer distance map of a label image")
    parser.add_argument("--labels", required=True, help="Label image (png/tif) or .npy array")
    parser.add_argument("--out", default="out", help="Output directory")
    parser.add_argument("--config", default=None, help="Config file (json/yaml)")
    parser.add_argument(
        "--weights",
        default=None,
        help=f"Weight preset ({', '.join(available_presets())}) or comma separated values",
    )
    parser.add_argument("--no-normalize", action="store_true", help="Keep raw chamfer units")
    parser.add_argument(
        "--resolution",
        nargs=2,
        type=float,
        default=None,
        metavar=("SX", "SY"),
        help="Pixel spacing used for measurements",
    )
    parser.add_argument("--directions", type=int, choices=[2, 4], default=None, help="Crofton directions")
    parser.add_argument("--no-measure", action="store_true", help="Skip region measurements")
    parser.add_argument("--debug", action="store_true", help="Verbose logging and scan progress")
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    return run_pipeline(args)


if __name__ == "__main__":
    raise SystemExit(main())
