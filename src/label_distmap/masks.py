from __future__ import annotations

from dataclasses import dataclass

from .weights import ChamferWeights, InvalidConfiguration


@dataclass(frozen=True)
class Offset:
    dx: int
    dy: int
    weight_index: int


@dataclass(frozen=True)
class NeighborMask:
    """Causal half-neighborhoods for the two raster scans.

    ``forward`` lists neighbors already visited in row-major order, ``backward``
    their mirror for the reverse scan. Order is significant: a neighbor with a
    different label overwrites the running candidate, so later offsets win.
    """

    name: str
    forward: tuple[Offset, ...]
    backward: tuple[Offset, ...]

    @property
    def max_weight_index(self) -> int:
        return max(o.weight_index for o in self.forward + self.backward)

    def check_weights(self, weights: ChamferWeights) -> None:
        if self.max_weight_index >= len(weights):
            raise InvalidConfiguration(
                f"Mask {self.name!r} needs {self.max_weight_index + 1} weights, got {len(weights)}"
            )


ORTHOGONAL = 0
DIAGONAL = 1

MASK_3X3 = NeighborMask(
    name="3x3",
    forward=(
        Offset(-1, -1, DIAGONAL),
        Offset(0, -1, ORTHOGONAL),
        Offset(+1, -1, DIAGONAL),
        Offset(-1, 0, ORTHOGONAL),
    ),
    backward=(
        Offset(+1, +1, DIAGONAL),
        Offset(0, +1, ORTHOGONAL),
        Offset(-1, +1, DIAGONAL),
        Offset(+1, 0, ORTHOGONAL),
    ),
)

MASKS: dict[str, NeighborMask] = {MASK_3X3.name: MASK_3X3}


def get_mask(name: str) -> NeighborMask:
    try:
        return MASKS[name]
    except KeyError as exc:
        raise InvalidConfiguration(f"Unknown neighbor mask: {name!r}") from exc
