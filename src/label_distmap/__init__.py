__version__ = "0.1.0"

from .distmap import (
    ChamferLabelTransform,
    DistanceMapResult,
    LabelDistanceTransform,
    transform,
)
from .masks import MASK_3X3, NeighborMask, Offset
from .weights import ChamferWeights, InvalidConfiguration

__all__ = [
    "ChamferLabelTransform",
    "ChamferWeights",
    "DistanceMapResult",
    "InvalidConfiguration",
    "LabelDistanceTransform",
    "MASK_3X3",
    "NeighborMask",
    "Offset",
    "transform",
    "__version__",
]
