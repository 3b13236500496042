from __future__ import annotations

from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any
import json

from .weights import ChamferWeights, InvalidConfiguration


@dataclass
class TransformConfig:
    weights: str | list[float] = "borgefors"
    normalize: bool = True

    def __post_init__(self) -> None:
        try:
            ChamferWeights.parse(self.weights)
        except InvalidConfiguration as exc:
            raise ValueError(f"transform.weights: {exc}") from exc

    def chamfer_weights(self) -> ChamferWeights:
        return ChamferWeights.parse(self.weights)


@dataclass
class MeasureConfig:
    enabled: bool = True
    resolution: list[float] = field(default_factory=lambda: [1.0, 1.0])
    directions: int = 4
    perimeter_method: str = "lut"
    include_transition_counts: bool = False

    def __post_init__(self) -> None:
        if len(self.resolution) != 2 or any(float(v) <= 0.0 for v in self.resolution):
            raise ValueError(f"measure.resolution must be two positive spacings, got {self.resolution!r}")
        if self.directions not in (2, 4):
            raise ValueError(f"measure.directions must be 2 or 4, got {self.directions!r}")
        if self.perimeter_method not in ("lut", "transitions"):
            raise ValueError(
                f"measure.perimeter_method must be 'lut' or 'transitions', got {self.perimeter_method!r}"
            )


@dataclass
class OutputConfig:
    save_npy: bool = True
    save_tiff: bool = False
    save_preview: bool = True
    save_histogram: bool = True
    histogram_bins: int = 40

    def __post_init__(self) -> None:
        if self.histogram_bins < 1:
            raise ValueError(f"output.histogram_bins must be >= 1, got {self.histogram_bins!r}")


@dataclass
class AppConfig:
    transform: TransformConfig = field(default_factory=TransformConfig)
    measure: MeasureConfig = field(default_factory=MeasureConfig)
    output: OutputConfig = field(default_factory=OutputConfig)

    @classmethod
    def from_path(cls, path: str | Path | None) -> "AppConfig":
        if path is None:
            return cls()

        cfg_path = Path(path)
        if not cfg_path.exists():
            raise FileNotFoundError(f"Config file not found: {cfg_path}")

        payload = _read_config_file(cfg_path)
        defaults = asdict(cls())
        merged = _merge_dict(defaults, payload)
        return _from_merged_dict(merged)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def _read_config_file(path: Path) -> dict[str, Any]:
    suffix = path.suffix.lower()
    if suffix in {".json"}:
        data = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(data, dict):
            raise ValueError("JSON config root must be an object")
        return data
    if suffix in {".yaml", ".yml"}:
        try:
            import yaml  # type: ignore
        except ImportError as exc:
            raise RuntimeError(
                "YAML config requested but PyYAML is not installed. "
                "Use JSON or install pyyaml."
            ) from exc
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
            if not isinstance(data, dict):
                raise ValueError("YAML config root must be a mapping")
            return data
    raise ValueError(f"Unsupported config extension: {path.suffix}")


def _merge_dict(base: dict[str, Any], override: dict[str, Any]) -> dict[str, Any]:
    merged: dict[str, Any] = dict(base)
    for key, value in override.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge_dict(merged[key], value)
        else:
            merged[key] = value
    return merged


def _from_merged_dict(merged: dict[str, Any]) -> AppConfig:
    return AppConfig(
        transform=TransformConfig(**merged.get("transform", {})),
        measure=MeasureConfig(**merged.get("measure", {})),
        output=OutputConfig(**merged.get("output", {})),
    )
