from __future__ import annotations

from datetime import datetime, timezone
from pathlib import Path
from typing import Any
import argparse

from . import __version__
from .config import AppConfig
from .distmap import DistanceMapResult
from .measure import RegionMeasurement
from .weights import ChamferWeights


def build_success_report(
    *,
    args: argparse.Namespace,
    cfg: AppConfig,
    run_id: str,
    weights: ChamferWeights,
    result: DistanceMapResult,
    unreached_pixels: int,
    regions: list[RegionMeasurement] | None,
    artifacts: dict[str, str],
    git_commit: str | None,
) -> dict[str, Any]:
    height, width = result.distance_map.shape
    return {
        "status": "ok",
        "run_id": run_id,
        "timestamp_utc": datetime.now(timezone.utc).isoformat(),
        "version": __version__,
        "inputs": {
            "labels": str(Path(args.labels).resolve()),
        },
        "grid": {"width": int(width), "height": int(height)},
        "distance_map": {
            "weights_name": weights.name,
            "weights": weights.to_list(),
            "normalize": cfg.transform.normalize,
            "max_value": result.max_value,
            "unreached_pixels": unreached_pixels,
        },
        "regions": [region.to_dict() for region in regions] if regions is not None else None,
        "artifacts": artifacts,
        "config": cfg.to_dict(),
        "git": {"commit": git_commit},
    }
