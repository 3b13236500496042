from __future__ import annotations

from pathlib import Path

import cv2
import matplotlib

matplotlib.use("Agg")
import matplotlib.pyplot as plt
import numpy as np


def distance_preview(dist_map: np.ndarray, labels: np.ndarray, max_value: float) -> np.ndarray:
    # background and unreached pixels stay black
    foreground = (labels != 0) & np.isfinite(dist_map)
    scaled = np.zeros(dist_map.shape, dtype=np.uint8)
    if max_value > 0:
        values = np.clip(dist_map[foreground] / max_value, 0.0, 1.0)
        scaled[foreground] = np.round(values * 255.0).astype(np.uint8)
    colored = cv2.applyColorMap(scaled, cv2.COLORMAP_TURBO)
    colored[~foreground] = 0
    return colored


def save_distance_preview(
    path: str | Path, dist_map: np.ndarray, labels: np.ndarray, max_value: float
) -> None:
    _write_image_or_raise(path, distance_preview(dist_map, labels, max_value))


def save_histogram(path: str | Path, dist_map: np.ndarray, labels: np.ndarray, bins: int = 40) -> None:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    values = dist_map[(labels != 0) & np.isfinite(dist_map)]
    plt.figure(figsize=(8, 4))
    plt.hist(values, bins=bins, color="#1f77b4", edgecolor="white")
    plt.xlabel("Distance to nearest other label")
    plt.ylabel("Count")
    plt.title("Distance Distribution")
    plt.tight_layout()
    plt.savefig(out_path, dpi=150)
    plt.close()


def _write_image_or_raise(path: str | Path, image: np.ndarray) -> None:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    write_ok = cv2.imwrite(str(out_path), image)
    if not write_ok:
        raise OSError(f"Could not write image artifact: {out_path}")
