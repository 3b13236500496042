from __future__ import annotations

from contextlib import contextmanager
from pathlib import Path
from typing import Any, Iterator
from uuid import uuid4
import sys
import time

from loguru import logger

from .progress import ProgressCallback

DISTMAP_STAGE_PREFIX = "distmap"
SCAN_ROW_EVENT = "distmap.scan.row"


def build_run_id() -> str:
    return uuid4().hex[:12]


def is_distmap_record(record: dict[str, Any]) -> bool:
    stage = record["extra"].get("stage")
    return isinstance(stage, str) and stage.startswith(DISTMAP_STAGE_PREFIX)


def _not_scan_row(record: dict[str, Any]) -> bool:
    return record["extra"].get("event") != SCAN_ROW_EVENT


def setup_logging(out_dir: str | Path, run_id: str, debug: bool = False):
    log_dir = Path(out_dir)
    log_dir.mkdir(parents=True, exist_ok=True)
    logger.remove()
    # per-row scan records go to distmap.log only
    logger.add(sys.stderr, level="DEBUG" if debug else "INFO", filter=_not_scan_row)
    logger.add(
        log_dir / "run.log",
        level="DEBUG",
        filter=_not_scan_row,
        rotation="10 MB",
        retention="14 days",
    )
    logger.add(
        log_dir / "run.jsonl",
        level="INFO",
        rotation="10 MB",
        retention="14 days",
        serialize=True,
    )
    if debug:
        logger.add(log_dir / "distmap.log", level="DEBUG", filter=is_distmap_record, serialize=True)
    return logger.bind(run_id=run_id)


def scan_progress(log, debug: bool, every: int = 64) -> ProgressCallback | None:
    # None when scans are not traced; logs every `every` rows and at pass end
    if not debug:
        return None
    started: dict[str, float] = {}

    def _report(step: str, current: int, total: int) -> None:
        stage = f"{DISTMAP_STAGE_PREFIX}.{step}"
        if current == 0:
            started[step] = time.perf_counter()
        if current == total:
            duration_ms = round((time.perf_counter() - started.pop(step)) * 1000.0, 2)
            log.bind(event=f"{stage}.done", stage=stage, rows=total, duration_ms=duration_ms).debug("scan_done")
        elif current % every == 0:
            log.bind(event=SCAN_ROW_EVENT, stage=stage, row=current, rows=total).debug("scan_row")

    return _report


@contextmanager
def log_stage(log, stage: str, **fields: Any) -> Iterator[None]:
    stage_log = log.bind(stage=stage, **fields)
    started = time.perf_counter()
    stage_log.bind(event=f"{stage}.start", status="started").info("stage_start")
    try:
        yield
    except Exception:
        duration_ms = round((time.perf_counter() - started) * 1000.0, 2)
        stage_log.bind(
            event=f"{stage}.error",
            status="failed",
            duration_ms=duration_ms,
        ).exception("stage_failed")
        raise
    duration_ms = round((time.perf_counter() - started) * 1000.0, 2)
    stage_log.bind(
        event=f"{stage}.end",
        status="ok",
        duration_ms=duration_ms,
    ).info("stage_end")


def log_artifact(log, stage: str, artifact: str, path: str | Path) -> None:
    log.bind(
        event="artifact.write",
        stage=stage,
        status="ok",
        artifact=artifact,
        path=str(Path(path).resolve()),
    ).info("artifact_written")
