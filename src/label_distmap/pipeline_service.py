from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from typing import Any
import argparse
import json
import subprocess

import numpy as np

from .config import AppConfig
from .distmap import ChamferLabelTransform, as_label_grid
from .io_utils import ensure_dir, read_label_image, write_distance_map
from .logging_config import build_run_id, log_artifact, log_stage, scan_progress, setup_logging
from .measure import measure_regions
from .report import write_regions_csv, write_report
from .report_builder import build_success_report
from .visualize import save_distance_preview, save_histogram


def run_pipeline(args: argparse.Namespace) -> int:
    out_dir = ensure_dir(args.out)
    run_id = build_run_id()
    log = setup_logging(out_dir=out_dir, run_id=run_id, debug=args.debug)
    log.bind(event="pipeline.start", stage="pipeline", status="started").info("pipeline_started")

    cfg = AppConfig.from_path(args.config)
    _apply_cli_overrides(cfg, args)
    log.bind(event="config.loaded", stage="config", status="ok").info("config_loaded")

    with log_stage(log, "labels.load"):
        labels = as_label_grid(read_label_image(args.labels))
        log.bind(
            event="labels.loaded",
            stage="labels.load",
            status="ok",
            shape=list(labels.shape),
            n_labels=int(np.count_nonzero(np.unique(labels))),
        ).info("labels_loaded")

    weights = cfg.transform.chamfer_weights()
    with log_stage(log, "distmap.compute", weights=weights.name, shape=list(labels.shape)):
        engine = ChamferLabelTransform(
            weights,
            normalize=cfg.transform.normalize,
            progress=scan_progress(log, args.debug),
        )
        result = engine.distance_map(labels)
        dist_map = result.distance_map
        unreached = int(np.count_nonzero((labels != 0) & ~np.isfinite(dist_map)))
        if unreached:
            log.bind(
                event="distmap.unreached",
                stage="distmap.compute",
                status="warning",
                unreached_pixels=unreached,
            ).warning("regions_without_boundary")

    regions = None
    if cfg.measure.enabled:
        with log_stage(log, "measure.regions"):
            regions = measure_regions(labels, cfg.measure)

    artifacts: dict[str, str] = {}
    with log_stage(log, "artifacts.write"):
        if cfg.output.save_npy:
            npy_path = out_dir / "distance_map.npy"
            write_distance_map(npy_path, dist_map)
            _record_artifact(log, artifacts, "distance_map_npy", npy_path)
        if cfg.output.save_tiff:
            tif_path = out_dir / "distance_map.tif"
            write_distance_map(tif_path, dist_map)
            _record_artifact(log, artifacts, "distance_map_tif", tif_path)
        if cfg.output.save_preview:
            preview_path = out_dir / "distance_preview.png"
            save_distance_preview(preview_path, dist_map, labels, result.max_value)
            _record_artifact(log, artifacts, "distance_preview_png", preview_path)
        if cfg.output.save_histogram:
            hist_path = out_dir / "distance_hist.png"
            save_histogram(hist_path, dist_map, labels, bins=cfg.output.histogram_bins)
            _record_artifact(log, artifacts, "distance_hist_png", hist_path)
        if regions is not None:
            csv_path = out_dir / "regions.csv"
            write_regions_csv(csv_path, regions)
            _record_artifact(log, artifacts, "regions_csv", csv_path)
    artifacts["report_json"] = str((out_dir / "report.json").resolve())
    artifacts["run_log"] = str((out_dir / "run.log").resolve())
    artifacts["run_jsonl"] = str((out_dir / "run.jsonl").resolve())
    if args.debug:
        artifacts["distmap_log"] = str((out_dir / "distmap.log").resolve())

    report = build_success_report(
        args=args,
        cfg=cfg,
        run_id=run_id,
        weights=weights,
        result=result,
        unreached_pixels=unreached,
        regions=regions,
        artifacts=artifacts,
        git_commit=_git_commit(),
    )
    write_report(report, out_dir / "report.json")
    log_artifact(log, "report.write", "report_json", out_dir / "report.json")
    log.bind(
        event="pipeline.end",
        stage="pipeline",
        status="ok",
        max_value=result.max_value,
    ).info("pipeline_finished")
    print(json.dumps(report["distance_map"], indent=2, ensure_ascii=False))
    return 0


def _apply_cli_overrides(cfg: AppConfig, args: argparse.Namespace) -> None:
    transform_changes: dict[str, Any] = {}
    if args.weights is not None:
        transform_changes["weights"] = args.weights
    if args.no_normalize:
        transform_changes["normalize"] = False
    if transform_changes:
        cfg.transform = replace(cfg.transform, **transform_changes)

    measure_changes: dict[str, Any] = {}
    if args.resolution is not None:
        measure_changes["resolution"] = [float(v) for v in args.resolution]
    if args.directions is not None:
        measure_changes["directions"] = args.directions
    if args.no_measure:
        measure_changes["enabled"] = False
    if measure_changes:
        cfg.measure = replace(cfg.measure, **measure_changes)


def _record_artifact(log, artifacts: dict[str, str], name: str, path: Path) -> None:
    artifacts[name] = str(path.resolve())
    log_artifact(log, "artifacts.write", name, path)


def _git_commit() -> str | None:
    try:
        return (
            subprocess.check_output(["git", "rev-parse", "HEAD"], stderr=subprocess.DEVNULL)
            .decode("utf-8")
            .strip()
        )
    except (FileNotFoundError, OSError, subprocess.CalledProcessError):
        return None
