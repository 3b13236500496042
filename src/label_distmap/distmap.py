from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol, Sequence

import numpy as np
from loguru import logger

from .masks import MASK_3X3, NeighborMask, Offset
from .progress import ProgressCallback
from .weights import ChamferWeights

UNSET = np.float32(np.inf)


@dataclass
class DistanceMapResult:
    distance_map: np.ndarray
    max_value: float

    @property
    def shape(self) -> tuple[int, int]:
        return self.distance_map.shape


class LabelDistanceTransform(Protocol):
    def distance_map(self, labels: np.ndarray) -> DistanceMapResult: ...


def as_label_grid(labels: np.ndarray | Sequence[Sequence[int]]) -> np.ndarray:
    arr = np.asarray(labels)
    if arr.ndim == 1 and arr.size == 0:
        # [] is the empty grid
        arr = arr.reshape(0, 0)
    if arr.ndim != 2:
        raise ValueError(f"Label grid must be 2-D, got shape {arr.shape}")
    if arr.dtype == np.bool_:
        return arr.astype(np.int64)
    if np.issubdtype(arr.dtype, np.floating):
        if not np.all(np.isfinite(arr)) or not np.all(arr == np.floor(arr)):
            raise ValueError("Label grid must hold integer values")
    elif not np.issubdtype(arr.dtype, np.integer):
        raise ValueError(f"Unsupported label grid dtype: {arr.dtype}")
    if arr.size and arr.min() < 0:
        raise ValueError("Label grid must not contain negative labels")
    return arr.astype(np.int64)


def initialize_distance_map(labels: np.ndarray) -> np.ndarray:
    return np.where(labels == 0, np.float32(0.0), UNSET).astype(np.float32)


def forward_pass(
    dist: np.ndarray,
    labels: np.ndarray,
    weights: ChamferWeights,
    mask: NeighborMask = MASK_3X3,
    progress: ProgressCallback | None = None,
) -> None:
    height, width = labels.shape
    _scan(
        dist,
        labels,
        weights,
        mask.forward,
        rows=range(height),
        cols=range(width),
        step="forward",
        progress=progress,
    )


def backward_pass(
    dist: np.ndarray,
    labels: np.ndarray,
    weights: ChamferWeights,
    mask: NeighborMask = MASK_3X3,
    progress: ProgressCallback | None = None,
) -> None:
    height, width = labels.shape
    _scan(
        dist,
        labels,
        weights,
        mask.backward,
        rows=range(height - 1, -1, -1),
        cols=range(width - 1, -1, -1),
        step="backward",
        progress=progress,
    )


def _scan(
    dist: np.ndarray,
    labels: np.ndarray,
    weights: ChamferWeights,
    offsets: tuple[Offset, ...],
    rows: range,
    cols: range,
    step: str,
    progress: ProgressCallback | None,
) -> None:
    height, width = labels.shape
    w32 = weights.as_float32()
    steps = [(o.dx, o.dy, w32[o.weight_index]) for o in offsets]
    label_rows = labels.tolist()

    for count, y in enumerate(rows):
        if progress is not None:
            progress(step, count, height)
        label_row = label_rows[y]
        dist_row = dist[y]
        for x in cols:
            label = label_row[x]
            if label == 0:
                continue

            current = dist_row[x]
            candidate = current
            for dx, dy, weight in steps:
                x2 = x + dx
                y2 = y + dy
                if x2 < 0 or x2 >= width or y2 < 0 or y2 >= height:
                    continue
                if label_rows[y2][x2] != label:
                    # boundary edge replaces the candidate, it is not min-combined
                    candidate = weight
                else:
                    candidate = min(candidate, dist[y2, x2] + weight)

            if candidate < current:
                dist_row[x] = candidate

    if progress is not None:
        progress(step, height, height)


def normalize_distance_map(dist: np.ndarray, labels: np.ndarray, weights: ChamferWeights) -> None:
    foreground = labels != 0
    dist[foreground] = dist[foreground] / weights.as_float32()[0]


def max_foreground_distance(dist: np.ndarray, labels: np.ndarray) -> float:
    values = dist[labels != 0]
    finite = values[np.isfinite(values)]
    if finite.size == 0:
        return 0.0
    return float(finite.max())


class ChamferLabelTransform:
    def __init__(
        self,
        weights: ChamferWeights | str | Sequence[float],
        normalize: bool = True,
        mask: NeighborMask = MASK_3X3,
        progress: ProgressCallback | None = None,
    ) -> None:
        self.weights = ChamferWeights.parse(weights)
        mask.check_weights(self.weights)
        self.mask = mask
        self.normalize = normalize
        self.progress = progress

    def distance_map(self, labels: np.ndarray) -> DistanceMapResult:
        grid = as_label_grid(labels)
        log = logger.bind(stage="distmap", mask=self.mask.name, weights=self.weights.to_list())

        log.bind(event="distmap.init").debug("initialization")
        dist = initialize_distance_map(grid)

        # two scans reach the fixed point for a 3x3 mask
        forward_pass(dist, grid, self.weights, self.mask, self.progress)
        backward_pass(dist, grid, self.weights, self.mask, self.progress)

        if self.normalize:
            log.bind(event="distmap.normalize").debug("normalization")
            normalize_distance_map(dist, grid, self.weights)

        max_value = max_foreground_distance(dist, grid)
        log.bind(event="distmap.done", shape=list(grid.shape), max_value=max_value).debug("distance_map_done")
        return DistanceMapResult(distance_map=dist, max_value=max_value)


def transform(
    labels: np.ndarray | Sequence[Sequence[int]],
    weights: ChamferWeights | str | Sequence[float],
    normalize: bool = True,
    progress: ProgressCallback | None = None,
) -> DistanceMapResult:
    return ChamferLabelTransform(weights, normalize=normalize, progress=progress).distance_map(
        np.asarray(labels)
    )
