from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Sequence
import math

import numpy as np

from .config import MeasureConfig


@dataclass
class EllipseParams:
    x_centroid: float
    y_centroid: float
    radius1: float
    radius2: float
    orientation_deg: float


@dataclass
class RegionMeasurement:
    label: int
    area: float
    perimeter: float
    circularity: float
    elongation: float
    ellipse: EllipseParams
    transition_counts: dict[str, int] | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass
class PerimeterDensity:
    area: float
    area_density: float
    perimeter: float
    perimeter_density: float
    transition_counts: dict[str, int] | None = None


def find_all_labels(labels: np.ndarray) -> np.ndarray:
    values = np.unique(labels)
    return values[values != 0]


def pixel_count(labels: np.ndarray, label_ids: Sequence[int]) -> np.ndarray:
    return np.array([int(np.count_nonzero(labels == label)) for label in label_ids], dtype=np.int64)


def area(labels: np.ndarray, label_ids: Sequence[int], resolution: Sequence[float]) -> np.ndarray:
    sx, sy = _check_resolution(resolution)
    return pixel_count(labels, label_ids).astype(np.float64) * (sx * sy)


def crofton_perimeter(
    labels: np.ndarray,
    label_ids: Sequence[int],
    resolution: Sequence[float],
    directions: int = 4,
) -> np.ndarray:
    # only tiles fully inside the image contribute: border edges are not counted
    lut = perimeter_lut(resolution, directions)
    out = np.zeros(len(label_ids), dtype=np.float64)
    if labels.shape[0] < 2 or labels.shape[1] < 2:
        return out
    for i, label in enumerate(label_ids):
        mask = (labels == label).astype(np.int64)
        index = mask[:-1, :-1] + 2 * mask[:-1, 1:] + 4 * mask[1:, :-1] + 8 * mask[1:, 1:]
        out[i] = float(np.sum(lut[index]))
    return out


def perimeter_lut(resolution: Sequence[float], directions: int = 4) -> np.ndarray:
    _check_directions(directions)
    d1, d2 = _check_resolution(resolution)
    d12 = math.hypot(d1, d2)
    pixel_area = d1 * d2
    weights = direction_weights_d4(resolution)

    lut = np.zeros(16, dtype=np.float64)
    for config in range(16):
        tile = [
            [bool(config & 1), bool(config & 2)],
            [bool(config & 4), bool(config & 8)],
        ]
        total = 0.0
        for y in range(2):
            for x in range(2):
                if not tile[y][x]:
                    continue
                # halved: intersection count -> diameter
                ke1 = 0.0 if tile[y][1 - x] else (pixel_area / d1) / 2
                ke2 = 0.0 if tile[1 - y][x] else (pixel_area / d2) / 2
                if directions == 2:
                    total += (ke1 + ke2) / 4
                else:
                    ke12 = 0.0 if tile[1 - y][1 - x] else (pixel_area / d12) / 2
                    total += (ke1 / 2) * weights[0] + (ke2 / 2) * weights[1] + ke12 * weights[2]
        lut[config] = total * math.pi
    return lut


def crofton_perimeter_d2(
    labels: np.ndarray, label_ids: Sequence[int], resolution: Sequence[float]
) -> np.ndarray:
    d1, d2 = _check_resolution(resolution)
    out = np.zeros(len(label_ids), dtype=np.float64)
    for i, label in enumerate(label_ids):
        mask = labels == label
        n1 = count_transitions(mask, "d00", count_border=True)
        n2 = count_transitions(mask, "d90", count_border=True)
        out[i] = (n1 * d2 + n2 * d1) * math.pi / 4.0
    return out


def crofton_perimeter_d4(
    labels: np.ndarray, label_ids: Sequence[int], resolution: Sequence[float]
) -> np.ndarray:
    out = np.zeros(len(label_ids), dtype=np.float64)
    for i, label in enumerate(label_ids):
        counts = _directional_counts(labels == label, count_border=True)
        out[i] = _weighted_d4_sum(counts, resolution) * math.pi / 2
    return out


def count_transitions(mask: np.ndarray, direction: str, count_border: bool = True) -> int:
    # count_border: image is surrounded by background
    m = np.pad(mask.astype(bool), 1) if count_border else mask.astype(bool)
    if m.size == 0:
        return 0
    if direction == "d00":
        diff = m[:, 1:] ^ m[:, :-1]
    elif direction == "d90":
        diff = m[1:, :] ^ m[:-1, :]
    elif direction == "d45":
        diff = m[1:, 1:] ^ m[:-1, :-1]
    elif direction == "d135":
        diff = m[:-1, 1:] ^ m[1:, :-1]
    else:
        raise ValueError(f"Unknown direction: {direction!r}")
    return int(np.count_nonzero(diff))


def direction_weights_d4(resolution: Sequence[float]) -> tuple[float, float, float, float]:
    d1, d2 = _check_resolution(resolution)
    theta = math.atan2(d2, d1)
    alpha1 = theta / math.pi
    alpha2 = (math.pi / 2.0 - theta) / math.pi
    return alpha1, alpha2, 0.25, 0.25


def perimeter_density(
    binary: np.ndarray,
    resolution: Sequence[float],
    directions: int = 4,
    include_counts: bool = False,
) -> PerimeterDensity:
    _check_directions(directions)
    d1, d2 = _check_resolution(resolution)
    mask = np.asarray(binary) != 0
    height, width = mask.shape
    pixel_area = d1 * d2

    region_area = float(np.count_nonzero(mask)) * pixel_area
    ref_area = float(width * height) * pixel_area

    counts = _directional_counts(mask, count_border=False, directions=directions)
    perim = _weighted_d4_sum(counts, resolution, per_pixel_area=True) * pixel_area * math.pi / 2

    ref_area_inner = float((width - 1) * (height - 1)) * pixel_area
    return PerimeterDensity(
        area=region_area,
        area_density=region_area / ref_area if ref_area > 0 else 0.0,
        perimeter=perim,
        perimeter_density=perim / ref_area_inner if ref_area_inner > 0 else 0.0,
        transition_counts=counts if include_counts else None,
    )


def inertia_ellipse(labels: np.ndarray, label_ids: Sequence[int] | None = None) -> list[EllipseParams]:
    if label_ids is None:
        label_ids = find_all_labels(labels)
    ys, xs = np.indices(labels.shape, dtype=np.float64)
    results: list[EllipseParams] = []
    for label in label_ids:
        mask = labels == label
        count = int(np.count_nonzero(mask))
        if count == 0:
            raise ValueError(f"Label {label} not present in image")
        px = xs[mask]
        py = ys[mask]
        cx = float(px.mean())
        cy = float(py.mean())
        dx = px - cx
        dy = py - cy
        # 1/12: second moment of a unit pixel
        xx = float(np.mean(dx * dx)) + 1.0 / 12.0
        xy = float(np.mean(dx * dy))
        yy = float(np.mean(dy * dy)) + 1.0 / 12.0

        common = math.sqrt((xx - yy) ** 2 + 4 * xy * xy)
        ra = math.sqrt(2) * math.sqrt(xx + yy + common)
        rb = math.sqrt(2) * math.sqrt(max(xx + yy - common, 0.0))
        theta = math.degrees(math.atan2(2 * xy, xx - yy) / 2)
        results.append(
            EllipseParams(
                x_centroid=cx + 0.5,
                y_centroid=cy + 0.5,
                radius1=ra,
                radius2=rb,
                orientation_deg=theta,
            )
        )
    return results


def measure_regions(labels: np.ndarray, config: MeasureConfig) -> list[RegionMeasurement]:
    grid = np.asarray(labels)
    label_ids = [int(v) for v in find_all_labels(grid)]
    if not label_ids:
        return []

    resolution = tuple(config.resolution)
    areas = area(grid, label_ids, resolution)
    if config.perimeter_method == "lut":
        perims = crofton_perimeter(grid, label_ids, resolution, config.directions)
    elif config.directions == 2:
        perims = crofton_perimeter_d2(grid, label_ids, resolution)
    else:
        perims = crofton_perimeter_d4(grid, label_ids, resolution)
    ellipses = inertia_ellipse(grid, label_ids)

    out: list[RegionMeasurement] = []
    for i, label in enumerate(label_ids):
        p = float(perims[i])
        circu = min(4 * math.pi * float(areas[i]) / (p * p), 1.0) if p > 0 else 1.0
        counts = None
        if config.include_transition_counts:
            counts = _directional_counts(grid == label, count_border=True, directions=config.directions)
        out.append(
            RegionMeasurement(
                label=label,
                area=float(areas[i]),
                perimeter=p,
                circularity=circu,
                elongation=1.0 / circu,
                ellipse=ellipses[i],
                transition_counts=counts,
            )
        )
    return out


def _directional_counts(mask: np.ndarray, count_border: bool, directions: int = 4) -> dict[str, int]:
    names = ["d00", "d90"] if directions == 2 else ["d00", "d90", "d45", "d135"]
    return {name: count_transitions(mask, name, count_border=count_border) for name in names}


def _weighted_d4_sum(
    counts: dict[str, int], resolution: Sequence[float], per_pixel_area: bool = False
) -> float:
    d1, d2 = _check_resolution(resolution)
    d12 = math.hypot(d1, d2)
    # line density: n / d for densities, n * (A / d) for absolute perimeters
    scale = 1.0 if per_pixel_area else d1 * d2
    weights = direction_weights_d4(resolution)
    total = counts["d00"] * (scale / d1) * weights[0] + counts["d90"] * (scale / d2) * weights[1]
    if "d45" in counts:
        total += counts["d45"] * (scale / d12) * weights[2]
        total += counts["d135"] * (scale / d12) * weights[3]
    return total


def _check_resolution(resolution: Sequence[float]) -> tuple[float, float]:
    if resolution is None or len(resolution) != 2:
        raise ValueError("Resolution must be a sequence of 2 spacings (x, y)")
    sx, sy = float(resolution[0]), float(resolution[1])
    if not (sx > 0 and sy > 0):
        raise ValueError(f"Resolution must be positive, got {resolution!r}")
    return sx, sy


def _check_directions(directions: int) -> None:
    if directions not in (2, 4):
        raise ValueError(f"Number of directions must be 2 or 4, got {directions!r}")
