"""Bounded, distance-ordered collection of nearest-neighbor candidates."""

from __future__ import annotations

import bisect
from typing import Iterator, List, Optional, Tuple

from ._point import Point


class BoundedCandidateSet:
    """At most ``k`` (point, squared distance) pairs, nearest first.

    The search uses :meth:`last` as its pruning radius once the set is full:
    a subtree whose bounding box lies farther away than the current k-th
    candidate cannot improve the result.

    Parameters
    ----------
    k : int
        Capacity. ``k == 0`` is legal and keeps the set permanently empty.

    Examples
    --------
    >>> candidates = BoundedCandidateSet(2)
    >>> candidates.insert(a, 4.0)
    >>> candidates.insert(b, 1.0)
    >>> candidates.insert(c, 9.0)  # farther than both, dropped
    >>> candidates.distances()
    [1.0, 4.0]
    """

    def __init__(self, k: int):
        if k < 0:
            raise RuntimeError(f"k must be >= 0, got {k}")

        self._k = k
        self._points: List[Point] = []
        self._distances: List[float] = []

    def insert(self, point: Point, distance: float) -> None:
        """Offer a candidate.

        The pair goes before the first held entry whose distance is greater
        than or equal to ``distance``, so earlier offers win ties. Entries
        beyond capacity are dropped from the far end.
        """
        index = bisect.bisect_left(self._distances, distance)
        if index == len(self._distances) and index >= self._k:
            return

        self._distances.insert(index, distance)
        self._points.insert(index, point)

        while len(self._distances) > self._k:
            self._distances.pop()
            self._points.pop()

    def peek(self) -> Optional[Tuple[Point, float]]:
        """The nearest candidate, or ``None`` if the set is empty."""
        if not self._points:
            return None
        return self._points[0], self._distances[0]

    def last(self) -> Optional[Tuple[Point, float]]:
        """The farthest candidate held, or ``None`` if the set is empty."""
        if not self._points:
            return None
        return self._points[-1], self._distances[-1]

    def poll(self) -> Optional[Tuple[Point, float]]:
        """Remove and return the nearest candidate."""
        if not self._points:
            return None
        return self._points.pop(0), self._distances.pop(0)

    def worst_distance(self) -> float:
        """Distance of the farthest candidate; ``inf`` when empty."""
        if not self._distances:
            return float("inf")
        return self._distances[-1]

    def is_full(self) -> bool:
        return len(self._distances) >= self._k

    def size(self) -> int:
        return len(self._points)

    def max_size(self) -> int:
        return self._k

    def nodes(self) -> List[Point]:
        """Held points in ascending distance order."""
        return list(self._points)

    def distances(self) -> List[float]:
        """Held squared distances in ascending order."""
        return list(self._distances)

    def __len__(self) -> int:
        return len(self._points)

    def __iter__(self) -> Iterator[Tuple[Point, float]]:
        return iter(zip(self._points, self._distances))

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(k={self._k}, "
            f"distances={self._distances})"
        )
