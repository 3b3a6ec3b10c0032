"""Incrementally built spatial index for exact nearest-neighbor search.

This module provides a k-d tree that grows online with:
- Bucketed leaves that split on the dimension of largest running variance
- Tight, monotonically widening bounding boxes on every node
- Exact k-nearest-neighbor queries with branch-and-bound pruning
- Squared Euclidean distances throughout (no square roots)

Note: Trees are not thread-safe for mutation. Concurrent queries against a
tree that is not being inserted into are safe.
"""

from ._bounded_candidate_set import BoundedCandidateSet
from ._bounding_box import BoundingBox, bounding_box
from ._exceptions import (
    DimensionMismatchError,
    InvariantViolationError,
    LowPrecisionWarning,
    SpacePartitioningError,
    SplitFailureError,
)
from ._incremental_kd_tree import IncrementalKdTree
from ._k_nearest_neighbors import k_nearest_neighbors
from ._point import Point
from ._spatial_node import SpatialNode

__all__ = [
    "BoundedCandidateSet",
    "BoundingBox",
    "DimensionMismatchError",
    "IncrementalKdTree",
    "InvariantViolationError",
    "LowPrecisionWarning",
    "Point",
    "SpacePartitioningError",
    "SpatialNode",
    "SplitFailureError",
    "bounding_box",
    "k_nearest_neighbors",
]
