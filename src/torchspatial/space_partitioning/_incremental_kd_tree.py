"""Incrementally built k-d tree with exact k-nearest-neighbor queries."""

from __future__ import annotations

import warnings
from typing import Any, Iterable, List, Optional, Sequence, Tuple

import torch
from torch import Tensor

from ._bounding_box import BoundingBox
from ._exceptions import LowPrecisionWarning
from ._k_nearest_neighbors import k_nearest_neighbors
from ._point import Point, as_coordinates, check_coordinates
from ._spatial_node import (
    DEFAULT_BUCKET_SIZE,
    DEFAULT_MAX_SPLIT_ATTEMPTS,
    SpatialNode,
)
from ._validation import as_int


class IncrementalKdTree:
    """k-d tree that grows one point (or batch) at a time.

    Points are routed to a leaf bucket; a bucket that overflows
    ``bucket_size`` is split on the dimension with the largest variance at
    that dimension's mean. There is no bulk build and no rebalancing, so
    points can arrive in any order and queries can run between insertions.

    Parameters
    ----------
    bucket_size : int, default=10
        Maximum points per leaf before it becomes eligible to split.
    dtype : torch.dtype, default=torch.float64
        Floating dtype of stored coordinates and leaf statistics.
    generator : torch.Generator, optional
        Randomness for the fallback split used when the variance-driven
        threshold leaves one side empty. Pass a seeded generator for
        reproducible trees; a freshly seeded one is created otherwise.
    max_split_attempts : int, default=10000
        Random thresholds tried per split before raising
        :class:`SplitFailureError`.

    Notes
    -----
    The dimensionality is fixed by the first inserted point. Later points
    and queries of a different length raise :class:`DimensionMismatchError`.

    Not thread-safe: a split rewrites a node in place, so callers must not
    insert while other threads insert or query. Concurrent queries on a
    tree that is not being mutated are safe.

    Examples
    --------
    >>> tree = IncrementalKdTree(bucket_size=2)
    >>> a = tree.add([0.0, 0.0], payload="a")
    >>> b = tree.add([1.0, 0.0], payload="b")
    >>> c = tree.add([2.0, 0.0], payload="c")
    >>> [point.payload for point in tree.k_nearest([0.0, 0.0], 2)]
    ['a', 'b']
    """

    def __init__(
        self,
        bucket_size: int = DEFAULT_BUCKET_SIZE,
        *,
        dtype: torch.dtype = torch.float64,
        generator: Optional[torch.Generator] = None,
        max_split_attempts: int = DEFAULT_MAX_SPLIT_ATTEMPTS,
    ):
        bucket_size = as_int(bucket_size, "bucket_size", minimum=1)
        if not isinstance(dtype, torch.dtype) or not dtype.is_floating_point:
            raise RuntimeError(
                f"dtype must be a floating point dtype, got {dtype}"
            )
        max_split_attempts = as_int(
            max_split_attempts, "max_split_attempts", minimum=1
        )

        if dtype in (torch.float16, torch.bfloat16):
            warnings.warn(
                f"Leaf running statistics kept in {dtype} lose precision "
                f"quickly and may choose poor split dimensions. Consider "
                f"float32 or float64.",
                LowPrecisionWarning,
                stacklevel=2,
            )

        if generator is None:
            generator = torch.Generator()
            generator.seed()

        self.bucket_size = bucket_size
        self.dtype = dtype
        self.generator = generator
        self.max_split_attempts = max_split_attempts
        self.root = SpatialNode(bucket_size)
        self._dimensions: Optional[int] = None
        self._count = 0

    @property
    def dimensions(self) -> Optional[int]:
        """Dimensionality fixed by the first insertion, ``None`` if empty."""
        return self._dimensions

    @property
    def bounds(self) -> Optional[BoundingBox]:
        return self.root.bounds

    def is_empty(self) -> bool:
        return self.root.is_empty()

    def __len__(self) -> int:
        return self._count

    def __repr__(self) -> str:
        return (
            f"IncrementalKdTree(bucket_size={self.bucket_size}, "
            f"dimensions={self._dimensions}, size={self._count})"
        )

    def _check_point(self, point: Point, dimensions: Optional[int]) -> int:
        coordinates = point.coordinates
        if not isinstance(coordinates, Tensor):
            raise RuntimeError("Point coordinates must be a Tensor")
        if coordinates.dtype != self.dtype:
            raise RuntimeError(
                f"Point coordinates must have dtype {self.dtype}, "
                f"got {coordinates.dtype}"
            )
        check_coordinates(coordinates, dimensions=dimensions)
        return coordinates.numel()

    def add(self, coordinates, payload: Any = None) -> Point:
        """Insert one point and return the stored :class:`Point`."""
        point = Point(
            as_coordinates(
                coordinates, dtype=self.dtype, dimensions=self._dimensions
            ),
            payload,
        )
        self._insert([point])
        return point

    def add_all(
        self,
        coordinates,
        payloads: Optional[Sequence[Any]] = None,
    ) -> List[Point]:
        """Insert a batch of points.

        Parameters
        ----------
        coordinates : Tensor, shape (n, d), or sequence of vectors
            Coordinates of the new points.
        payloads : sequence, optional
            One payload per point. Defaults to ``None`` payloads.

        Returns
        -------
        list of Point
            The stored points, in input order.
        """
        rows = list(coordinates)
        if payloads is None:
            payloads = [None] * len(rows)
        elif len(payloads) != len(rows):
            raise RuntimeError(
                f"coordinates and payloads must have same count, "
                f"got {len(rows)} and {len(payloads)}"
            )

        dimensions = self._dimensions
        points = []
        for row, payload in zip(rows, payloads):
            values = as_coordinates(
                row, dtype=self.dtype, dimensions=dimensions
            )
            dimensions = values.numel()
            points.append(Point(values, payload))

        self._insert(points)
        return points

    def add_point(self, point: Point) -> Point:
        """Insert a pre-built :class:`Point` of the tree dtype.

        The tree stores a copy of ``point`` with its own coordinate tensor
        and returns it; results of later queries refer to that copy.
        """
        return self.add_points([point])[0]

    def add_points(self, points: Iterable[Point]) -> List[Point]:
        points = list(points)
        dimensions = self._dimensions
        for point in points:
            dimensions = self._check_point(point, dimensions)

        stored = [
            Point(point.coordinates.detach().clone(), point.payload)
            for point in points
        ]
        self._insert(stored)
        return stored

    def _insert(self, points: List[Point]) -> None:
        if not points:
            return

        if self._dimensions is None:
            self._dimensions = points[0].coordinates.numel()
        self._count += len(points)
        self.root.add_all(
            points,
            generator=self.generator,
            max_split_attempts=self.max_split_attempts,
        )

    def k_nearest(self, coordinates, k: int) -> List[Point]:
        """Return up to ``k`` stored points nearest to ``coordinates``."""
        points, _ = k_nearest_neighbors(self, coordinates, k)
        return points

    def k_nearest_with_distances(
        self, coordinates, k: int
    ) -> Tuple[List[Point], Tensor]:
        """Like :meth:`k_nearest`, also returning squared distances."""
        return k_nearest_neighbors(self, coordinates, k)
