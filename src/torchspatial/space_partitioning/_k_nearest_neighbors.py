"""k-nearest neighbors query with branch-and-bound tree traversal."""

from __future__ import annotations

from typing import TYPE_CHECKING, List, Tuple

import torch
from torch import Tensor

from torchspatial.distance import squared_euclidean_distance

from ._bounded_candidate_set import BoundedCandidateSet
from ._point import Point, as_coordinates
from ._spatial_node import SpatialNode
from ._validation import as_int

if TYPE_CHECKING:
    from ._incremental_kd_tree import IncrementalKdTree


def k_nearest_neighbors(
    tree: "IncrementalKdTree",
    query,
    k: int,
) -> Tuple[List[Point], Tensor]:
    """Find the k points of ``tree`` nearest to ``query``.

    Parameters
    ----------
    tree : IncrementalKdTree
        Spatial index to search.
    query : Tensor or sequence of float, shape (d,)
        Query coordinates.
    k : int
        Number of neighbors to find. ``k == 0`` returns nothing; a ``k``
        larger than the tree returns every point.

    Returns
    -------
    points : list of Point
        Up to ``k`` points, nearest first.
    distances : Tensor, shape (min(k, n),)
        Squared Euclidean distances to ``points``, ascending, in the tree
        dtype.

    Notes
    -----
    The traversal uses an explicit stack, so its depth is independent of
    the tree height. At each internal node the child on the query's side of
    the split plane is explored first; the other child is revisited later
    and skipped entirely if its bounding box is farther away than the
    current k-th best candidate. Ties between equal distances keep the
    candidate found first.

    Examples
    --------
    >>> tree = IncrementalKdTree(bucket_size=2)
    >>> tree.add_all(torch.tensor([[0.0, 0.0], [1.0, 0.0], [2.0, 0.0]]))
    >>> points, distances = k_nearest_neighbors(tree, [0.0, 0.0], k=2)
    >>> distances
    tensor([0., 1.], dtype=torch.float64)
    """
    k = as_int(k, "k", minimum=0)

    query = as_coordinates(
        query, dtype=tree.dtype, dimensions=tree.dimensions
    )

    candidates = nearest_candidates(tree.root, query, k)
    return candidates.nodes(), torch.tensor(
        candidates.distances(), dtype=tree.dtype
    )


def nearest_candidates(
    root: SpatialNode,
    query: Tensor,
    k: int,
) -> BoundedCandidateSet:
    """Run the search below ``root`` and return the final candidate set.

    ``query`` must already be a validated coordinate vector of the tree's
    dimensionality.
    """
    candidates = BoundedCandidateSet(k)
    if k == 0:
        return candidates

    values = query.tolist()

    # (node, needs_bounds_check)
    stack: List[Tuple[SpatialNode, bool]] = []
    if not root.is_empty():
        stack.append((root, False))

    while stack:
        node, needs_bounds_check = stack.pop()
        if needs_bounds_check and candidates.is_full():
            lower_bound = node.bounds.squared_distance_to(query)
            if lower_bound > candidates.worst_distance():
                continue

        if node.is_tree():
            _search_tree(node, values, stack)
        else:
            _search_leaf(node, query, candidates)

    return candidates


def _search_tree(
    node: SpatialNode,
    values: List[float],
    stack: List[Tuple[SpatialNode, bool]],
) -> None:
    near, far = node.left, node.right
    if values[node.split_dim] > node.split_value:
        near, far = far, near

    # far first, so near is popped and explored first
    if not far.is_empty():
        stack.append((far, True))
    if not near.is_empty():
        stack.append((near, False))


def _search_leaf(
    leaf: SpatialNode,
    query: Tensor,
    candidates: BoundedCandidateSet,
) -> None:
    points = leaf.points
    if not points:
        return

    if leaf.is_singular():
        distance = squared_euclidean_distance(
            points[0].coordinates, query
        ).item()
        distances = [distance] * len(points)
    else:
        coordinates = torch.stack([point.coordinates for point in points])
        distances = squared_euclidean_distance(coordinates, query).tolist()

    for point, distance in zip(points, distances):
        if not candidates.is_full() or distance < candidates.worst_distance():
            candidates.insert(point, distance)
