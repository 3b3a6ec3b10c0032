"""Test fixtures for space_partitioning tests."""

import pytest
import torch

from torchspatial.space_partitioning import IncrementalKdTree, SpatialNode


def _brute_force_k_nearest(
    points: torch.Tensor, query: torch.Tensor, k: int
) -> torch.Tensor:
    """Sorted squared distances of the k nearest rows of ``points``.

    Used as the reference for tree queries. Distances rather than indices
    are compared so that ties may resolve in any order.
    """
    if points.shape[0] == 0 or k == 0:
        return torch.empty(0, dtype=points.dtype)
    distances = ((points - query) ** 2).sum(dim=1)
    k = min(k, points.shape[0])
    return torch.topk(distances, k=k, largest=False).values


def _check_invariants(node: SpatialNode) -> None:
    """Assert the structural invariants of the subtree rooted at ``node``.

    - every point of a subtree lies inside that subtree's bounding box
    - internal nodes route ``<= split_value`` left and the rest right
    - internal nodes have two non-empty children and no leaf fields
    - only the root may be an empty leaf
    """
    for current in node.walk():
        subtree_points = [
            point for leaf in current.leaves() for point in leaf.points
        ]
        if current.is_empty():
            assert current is node
            assert not subtree_points
            continue

        for point in subtree_points:
            assert current.bounds.encloses(point.coordinates)

        if current.is_tree():
            assert current.points == ()
            assert current.mean is None
            assert current.sum_sq_dev is None
            assert not current.left.is_empty()
            assert not current.right.is_empty()
            for leaf in current.left.leaves():
                for point in leaf.points:
                    value = point.coordinates[current.split_dim].item()
                    assert value <= current.split_value
            for leaf in current.right.leaves():
                for point in leaf.points:
                    value = point.coordinates[current.split_dim].item()
                    assert value > current.split_value
        else:
            assert current.split_dim is None
            assert current.left is None and current.right is None


@pytest.fixture
def generator():
    """Seeded generator for reproducible fallback splits."""
    return torch.Generator().manual_seed(0)


@pytest.fixture(scope="session")
def brute_force_k_nearest():
    return _brute_force_k_nearest


@pytest.fixture(scope="session")
def check_invariants():
    return _check_invariants


@pytest.fixture
def clustered_tree(generator):
    """Fixture: tree over two well separated clusters of 200 points each.

    Cluster A sits around the origin and holds payloads 0-199; cluster B is
    shifted by 100 along the first axis and holds payloads 200-399.
    """
    torch.manual_seed(42)
    cluster_a = torch.randn(200, 3, dtype=torch.float64)
    cluster_b = torch.randn(200, 3, dtype=torch.float64) + torch.tensor(
        [100.0, 0.0, 0.0], dtype=torch.float64
    )
    points = torch.cat([cluster_a, cluster_b], dim=0)

    tree = IncrementalKdTree(bucket_size=8, generator=generator)
    tree.add_all(points, payloads=list(range(400)))
    return tree, points
