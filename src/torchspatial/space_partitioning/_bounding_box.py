"""Axis-aligned bounding box over the points of a subtree."""

from __future__ import annotations

import torch
from tensordict import tensorclass
from torch import Tensor

from torchspatial.distance import squared_distance_to_box


@tensorclass
class BoundingBox:
    """Axis-aligned bounding box.

    Every node of an :class:`IncrementalKdTree` owns one of these once its
    subtree holds a point. The box only ever grows: :meth:`include` widens it
    to include new coordinates and nothing shrinks it, so it always contains
    the boxes of the node's descendants.

    Use :func:`bounding_box` to construct instances.

    Attributes
    ----------
    min_corner : Tensor
        Per-dimension minimum, shape [d].
    max_corner : Tensor
        Per-dimension maximum, shape [d].

    Examples
    --------
    >>> box = bounding_box(torch.tensor([0.0, 1.0]))
    >>> box.include(torch.tensor([2.0, -1.0]))
    >>> box.min_corner, box.max_corner
    (tensor([ 0., -1.]), tensor([2., 1.]))
    """

    min_corner: Tensor
    max_corner: Tensor

    def include(self, coordinates: Tensor) -> None:
        """Widen the box in place so that it contains ``coordinates``."""
        self.min_corner = torch.minimum(self.min_corner, coordinates)
        self.max_corner = torch.maximum(self.max_corner, coordinates)

    def encloses(self, coordinates: Tensor) -> bool:
        """Whether ``coordinates`` lies inside the box (faces inclusive)."""
        inside = (coordinates >= self.min_corner) & (
            coordinates <= self.max_corner
        )
        return bool(inside.all())

    def squared_distance_to(self, query: Tensor) -> float:
        """Lower bound on the squared distance from ``query`` to the box."""
        return squared_distance_to_box(
            query, self.min_corner, self.max_corner
        ).item()


def bounding_box(coordinates: Tensor) -> BoundingBox:
    """Build a degenerate box that contains only ``coordinates``.

    Parameters
    ----------
    coordinates : Tensor, shape [d]
        The first point of a subtree.

    Returns
    -------
    BoundingBox
        Box with ``min_corner == max_corner == coordinates``. The tensors are
        copies, so later in-place changes to ``coordinates`` do not leak in.
    """
    if coordinates.dim() != 1:
        raise RuntimeError(
            f"coordinates must be 1D (d,), got {coordinates.dim()}D"
        )

    return BoundingBox(
        min_corner=coordinates.clone(),
        max_corner=coordinates.clone(),
        batch_size=[],
    )
