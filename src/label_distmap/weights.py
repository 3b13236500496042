from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, Sequence
import math

import numpy as np


class InvalidConfiguration(ValueError):
    pass


WEIGHT_PRESETS: dict[str, tuple[float, ...]] = {
    "chessboard": (1.0, 1.0),
    "city_block": (1.0, 2.0),
    "quasi_euclidean": (1.0, math.sqrt(2.0)),
    "borgefors": (3.0, 4.0),
    "weights_23": (2.0, 3.0),
    "weights_57": (5.0, 7.0),
    "chessknight": (5.0, 7.0, 11.0),
}

_PRESET_ALIASES = {
    "cityblock": "city_block",
    "quasieuclidean": "quasi_euclidean",
}


@dataclass(frozen=True)
class ChamferWeights:
    # 0 = orthogonal, 1 = diagonal; diagonal >= orthogonal is not checked
    values: tuple[float, ...]
    name: str = "custom"

    def __post_init__(self) -> None:
        if isinstance(self.values, (str, bytes)):
            raise InvalidConfiguration(
                f"Chamfer weights must be a sequence of numbers, got {self.values!r} "
                "(use ChamferWeights.parse for strings)"
            )
        try:
            values = tuple(float(v) for v in self.values)
        except (TypeError, ValueError) as exc:
            raise InvalidConfiguration(f"Chamfer weights must be numbers: {self.values!r}") from exc
        if len(values) < 2:
            raise InvalidConfiguration(
                f"Chamfer weights need at least 2 entries (orthogonal, diagonal), got {len(values)}"
            )
        for idx, value in enumerate(values):
            if not math.isfinite(value) or value <= 0.0:
                raise InvalidConfiguration(f"Chamfer weight #{idx} must be finite and > 0, got {value!r}")
        object.__setattr__(self, "values", values)

    @classmethod
    def from_preset(cls, name: str) -> "ChamferWeights":
        key = _preset_key(name)
        if key not in WEIGHT_PRESETS:
            raise InvalidConfiguration(
                f"Unknown chamfer weight preset: {name!r} (choose from {', '.join(available_presets())})"
            )
        return cls(WEIGHT_PRESETS[key], name=key)

    @classmethod
    def parse(cls, value: "str | Sequence[float] | ChamferWeights") -> "ChamferWeights":
        if isinstance(value, ChamferWeights):
            return value
        if isinstance(value, str):
            if "," not in value:
                return cls.from_preset(value)
            parts = [p.strip() for p in value.split(",") if p.strip()]
            try:
                numbers = tuple(float(p) for p in parts)
            except ValueError as exc:
                raise InvalidConfiguration(f"Could not parse chamfer weights: {value!r}") from exc
            return cls(numbers)
        return cls(value)

    @property
    def orthogonal(self) -> float:
        return self.values[0]

    @property
    def diagonal(self) -> float:
        return self.values[1]

    def as_float32(self) -> tuple[np.float32, ...]:
        return tuple(np.float32(v) for v in self.values)

    def to_list(self) -> list[float]:
        return list(self.values)

    def __getitem__(self, index: int) -> float:
        return self.values[index]

    def __len__(self) -> int:
        return len(self.values)

    def __iter__(self) -> Iterator[float]:
        return iter(self.values)


def available_presets() -> list[str]:
    return sorted(WEIGHT_PRESETS)


def _preset_key(name: str) -> str:
    key = name.strip().lower().replace("-", "_").replace(" ", "_")
    return _PRESET_ALIASES.get(key, key)
