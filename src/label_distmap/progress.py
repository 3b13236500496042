from __future__ import annotations

from typing import Protocol

from loguru import logger


class ProgressCallback(Protocol):
    # invoked once per row; must not touch the distance map
    def __call__(self, step: str, current: int, total: int) -> None: ...


def log_progress(step: str, current: int, total: int) -> None:
    if current == total:
        logger.bind(event=f"distmap.{step}.done", stage=f"distmap.{step}", rows=total).debug("scan_done")
