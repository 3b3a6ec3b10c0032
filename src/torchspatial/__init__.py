"""torchspatial: incremental spatial indexing on PyTorch tensors."""

from . import (
    distance,
    space_partitioning,
)

__all__ = [
    "distance",
    "space_partitioning",
]

__version__ = "0.1.0"
