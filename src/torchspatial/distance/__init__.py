"""Squared Euclidean distance functions for spatial search.

Functions
---------
squared_euclidean_distance
    Squared Euclidean distance between points (no square root).
squared_distance_to_box
    Lower bound on the squared distance from a point to an axis-aligned box.
"""

from ._squared_distance_to_box import squared_distance_to_box
from ._squared_euclidean_distance import squared_euclidean_distance

__all__ = [
    "squared_distance_to_box",
    "squared_euclidean_distance",
]
