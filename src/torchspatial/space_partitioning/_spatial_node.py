"""Self-splitting k-d tree node with variance-driven split selection."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, List, Optional, Tuple, Union

import torch
from torch import Tensor

from ._bounding_box import BoundingBox, bounding_box
from ._exceptions import InvariantViolationError, SplitFailureError
from ._point import Point
from ._validation import as_int

DEFAULT_BUCKET_SIZE = 10
DEFAULT_MAX_SPLIT_ATTEMPTS = 10_000


@dataclass
class _Leaf:
    """Bucket of points with one-pass (Welford) running statistics.

    Attributes
    ----------
    points : list of Point
        Points in insertion order.
    mean : Tensor, optional
        Running per-dimension mean, shape [d].
    sum_sq_dev : Tensor, optional
        Running per-dimension sum of squared deviations from the mean,
        shape [d]. Proportional to the variance, since every dimension
        shares the same sample count.
    singular : bool
        True while every point has the coordinates of the first one.
    """

    points: List[Point] = field(default_factory=list)
    mean: Optional[Tensor] = None
    sum_sq_dev: Optional[Tensor] = None
    singular: bool = True

    def append(self, point: Point) -> None:
        coordinates = point.coordinates
        self.points.append(point)
        count = len(self.points)

        if count == 1:
            self.mean = coordinates.clone()
            self.sum_sq_dev = torch.zeros_like(coordinates)
        else:
            delta = coordinates - self.mean
            self.mean = self.mean + delta / count
            self.sum_sq_dev = self.sum_sq_dev + delta * (
                coordinates - self.mean
            )

        if self.singular and not torch.equal(
            coordinates, self.points[0].coordinates
        ):
            self.singular = False


@dataclass
class _Internal:
    """Split rule plus the two exclusively-owned subtrees."""

    split_dim: int
    split_value: float
    left: "SpatialNode"
    right: "SpatialNode"


class SpatialNode:
    """Node of an incrementally built k-d tree.

    A node starts as a leaf holding a bucket of points. Once the bucket
    exceeds ``bucket_size`` and its points are not all identical, the node
    can be :meth:`split` into an internal node with two child trees. The
    transition happens once and is irreversible.

    Every node, leaf or internal, keeps a bounding box over all points ever
    routed through it. Points whose coordinate on ``split_dim`` is
    ``<= split_value`` live in the left subtree, the rest in the right one.

    Parameters
    ----------
    bucket_size : int, default=10
        Maximum number of points a leaf holds before it becomes eligible to
        split. Inherited by every child created by a split.

    Notes
    -----
    Nodes are not thread-safe. Splitting rewrites a node in place, so a
    tree must not be mutated while another thread inserts into or queries
    it. Concurrent queries against a tree that is not being mutated are
    safe.
    """

    def __init__(self, bucket_size: int = DEFAULT_BUCKET_SIZE):
        self.bucket_size = as_int(bucket_size, "bucket_size", minimum=1)
        self.bounds: Optional[BoundingBox] = None
        self._state: Union[_Leaf, _Internal] = _Leaf()

    def is_tree(self) -> bool:
        """Whether this node is internal (has been split)."""
        return isinstance(self._state, _Internal)

    def is_leaf(self) -> bool:
        return isinstance(self._state, _Leaf)

    def is_empty(self) -> bool:
        """Whether no point has ever been inserted into this subtree."""
        return self.bounds is None

    def is_singular(self) -> bool:
        """Whether this is a leaf whose points all share one coordinate."""
        return isinstance(self._state, _Leaf) and self._state.singular

    def dimensions(self) -> Optional[int]:
        if self.bounds is None:
            return None
        return self.bounds.min_corner.numel()

    @property
    def points(self) -> Tuple[Point, ...]:
        """Points held by a leaf in insertion order; empty when internal."""
        if isinstance(self._state, _Leaf):
            return tuple(self._state.points)
        return ()

    @property
    def mean(self) -> Optional[Tensor]:
        if isinstance(self._state, _Leaf):
            return self._state.mean
        return None

    @property
    def sum_sq_dev(self) -> Optional[Tensor]:
        if isinstance(self._state, _Leaf):
            return self._state.sum_sq_dev
        return None

    @property
    def split_dim(self) -> Optional[int]:
        if isinstance(self._state, _Internal):
            return self._state.split_dim
        return None

    @property
    def split_value(self) -> Optional[float]:
        if isinstance(self._state, _Internal):
            return self._state.split_value
        return None

    @property
    def left(self) -> Optional["SpatialNode"]:
        if isinstance(self._state, _Internal):
            return self._state.left
        return None

    @property
    def right(self) -> Optional["SpatialNode"]:
        if isinstance(self._state, _Internal):
            return self._state.right
        return None

    def walk(self) -> Iterator["SpatialNode"]:
        """Yield every node of this subtree in pre-order, left first."""
        stack = [self]
        while stack:
            node = stack.pop()
            yield node
            state = node._state
            if isinstance(state, _Internal):
                stack.append(state.right)
                stack.append(state.left)

    def leaves(self) -> List["SpatialNode"]:
        return [node for node in self.walk() if node.is_leaf()]

    def depth(self) -> int:
        """Number of edges on the longest root-to-leaf path."""
        deepest = 0
        stack = [(self, 0)]
        while stack:
            node, level = stack.pop()
            deepest = max(deepest, level)
            state = node._state
            if isinstance(state, _Internal):
                stack.append((state.left, level + 1))
                stack.append((state.right, level + 1))
        return deepest

    def size(self) -> int:
        """Number of points stored in this subtree."""
        return sum(len(leaf._state.points) for leaf in self.leaves())

    def __repr__(self) -> str:
        state = self._state
        if isinstance(state, _Internal):
            return (
                f"SpatialNode(split_dim={state.split_dim}, "
                f"split_value={state.split_value})"
            )
        return f"SpatialNode(points={len(state.points)})"

    def _include(self, coordinates: Tensor) -> None:
        if self.bounds is None:
            self.bounds = bounding_box(coordinates)
        else:
            self.bounds.include(coordinates)

    def add_no_split(self, point: Point) -> "SpatialNode":
        """Route ``point`` to a leaf without splitting anything.

        Every node on the path widens its bounding box to include the point.
        The walk is iterative, so deep trees do not grow the call stack.

        Returns
        -------
        SpatialNode
            The leaf that received the point.
        """
        coordinates = point.coordinates
        values = None
        cursor: Optional[SpatialNode] = self
        while cursor is not None:
            cursor._include(coordinates)
            state = cursor._state
            if isinstance(state, _Internal):
                if values is None:
                    values = coordinates.tolist()
                if values[state.split_dim] <= state.split_value:
                    cursor = state.left
                else:
                    cursor = state.right
            else:
                state.append(point)
                return cursor

        raise InvariantViolationError("Walked tree without adding anything.")

    def add(
        self,
        point: Point,
        *,
        generator: Optional[torch.Generator] = None,
        max_split_attempts: int = DEFAULT_MAX_SPLIT_ATTEMPTS,
    ) -> None:
        self.add_all(
            [point],
            generator=generator,
            max_split_attempts=max_split_attempts,
        )

    def add_all(
        self,
        points: Iterable[Point],
        *,
        generator: Optional[torch.Generator] = None,
        max_split_attempts: int = DEFAULT_MAX_SPLIT_ATTEMPTS,
    ) -> None:
        """Insert ``points``, then split the leaves that overflowed.

        Split decisions are deferred until every point has been routed, and
        each distinct leaf touched by the batch is considered once.
        """
        touched = {}
        for point in points:
            leaf = self.add_no_split(point)
            touched[id(leaf)] = leaf

        for leaf in touched.values():
            if leaf.should_split():
                leaf.split(
                    generator=generator,
                    max_attempts=max_split_attempts,
                )

    def should_split(self) -> bool:
        state = self._state
        return (
            isinstance(state, _Leaf)
            and len(state.points) > self.bucket_size
            and not state.singular
        )

    def split(
        self,
        *,
        generator: Optional[torch.Generator] = None,
        max_attempts: int = DEFAULT_MAX_SPLIT_ATTEMPTS,
    ) -> None:
        """Turn this leaf into an internal node with two child trees.

        The split dimension is the one with the largest sum of squared
        deviations (lowest index on ties) and the threshold is that
        dimension's running mean. If every point lands on the same side,
        random (dimension, existing point coordinate) thresholds drawn from
        ``generator`` are tried until both sides are non-empty.

        Parameters
        ----------
        generator : torch.Generator, optional
            Source of randomness for the fallback thresholds. Defaults to
            the global torch generator.
        max_attempts : int, default=10000
            Number of random thresholds tried before giving up.

        Raises
        ------
        InvariantViolationError
            If the node is internal or a singular leaf.
        SplitFailureError
            If no random threshold produced a non-degenerate partition.
        """
        state = self._state
        if isinstance(state, _Internal):
            raise InvariantViolationError("Can't split an internal node.")
        if state.singular:
            raise InvariantViolationError("Can't split singular tree.")

        points = state.points
        count = len(points)
        coordinates = torch.stack([point.coordinates for point in points])
        dimensions = coordinates.size(1)

        split_dim = int(torch.argmax(state.sum_sq_dev))
        split_value = state.mean[split_dim].item()
        mask = coordinates[:, split_dim] <= split_value

        attempts = 0
        left_count = int(mask.sum())
        while left_count == count or left_count == 0:
            if attempts >= max_attempts:
                raise SplitFailureError(attempts, count)
            attempts += 1

            split_dim = int(
                torch.randint(dimensions, (1,), generator=generator)
            )
            index = int(torch.randint(count, (1,), generator=generator))
            split_value = coordinates[index, split_dim].item()
            mask = coordinates[:, split_dim] <= split_value
            left_count = int(mask.sum())

        left_points = []
        right_points = []
        for point, is_left in zip(points, mask.tolist()):
            if is_left:
                left_points.append(point)
            else:
                right_points.append(point)

        left = SpatialNode(self.bucket_size)
        right = SpatialNode(self.bucket_size)
        left.add_all(
            left_points, generator=generator, max_split_attempts=max_attempts
        )
        right.add_all(
            right_points, generator=generator, max_split_attempts=max_attempts
        )

        self._state = _Internal(
            split_dim=split_dim,
            split_value=split_value,
            left=left,
            right=right,
        )
