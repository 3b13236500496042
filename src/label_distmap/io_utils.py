from __future__ import annotations

from pathlib import Path

import cv2
import numpy as np


def ensure_dir(path: str | Path) -> Path:
    out = Path(path)
    out.mkdir(parents=True, exist_ok=True)
    return out


def read_label_image(path: str | Path) -> np.ndarray:
    image_path = Path(path)
    if image_path.suffix.lower() == ".npy":
        if not image_path.exists():
            raise FileNotFoundError(f"Could not load label image: {image_path}")
        labels = np.load(image_path, allow_pickle=False)
    else:
        labels = cv2.imread(str(image_path), cv2.IMREAD_UNCHANGED)
        if labels is None:
            raise FileNotFoundError(f"Could not load label image: {image_path}")
    if labels.ndim != 2:
        raise ValueError(f"Label image must be single channel, got shape {labels.shape}")
    return labels


def write_distance_map(path: str | Path, dist_map: np.ndarray) -> None:
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    if out_path.suffix.lower() == ".npy":
        np.save(out_path, dist_map.astype(np.float32))
        return
    write_ok = cv2.imwrite(str(out_path), dist_map.astype(np.float32))
    if not write_ok:
        raise OSError(f"Could not write distance map: {out_path}")
