# tests/torchspatial/space_partitioning/test__k_nearest_neighbors.py
import pytest
import torch

import torchspatial.space_partitioning._k_nearest_neighbors as knn_module
from torchspatial.space_partitioning import (
    DimensionMismatchError,
    IncrementalKdTree,
    k_nearest_neighbors,
)


class TestKNearestNeighborsBasic:
    """Tests for k_nearest_neighbors query function."""

    def test_returns_points_and_distances(self, clustered_tree):
        """Returns a list of points and a tensor of squared distances."""
        tree, _ = clustered_tree
        points, distances = k_nearest_neighbors(tree, [0.0, 0.0, 0.0], k=5)

        assert isinstance(points, list)
        assert len(points) == 5
        assert distances.shape == (5,)

    def test_distances_preserve_dtype(self):
        """Distances use the tree dtype."""
        tree = IncrementalKdTree(dtype=torch.float32)
        tree.add_all(torch.randn(20, 2))
        _, distances = k_nearest_neighbors(tree, torch.zeros(2), k=3)
        assert distances.dtype == torch.float32

    def test_distances_are_sorted(self, clustered_tree):
        """Distances come back in ascending order."""
        tree, _ = clustered_tree
        _, distances = k_nearest_neighbors(tree, [1.0, -1.0, 0.5], k=20)
        torch.testing.assert_close(distances, torch.sort(distances)[0])

    def test_distances_match_points(self, clustered_tree):
        """Each reported distance is the squared distance to its point."""
        tree, _ = clustered_tree
        query = torch.tensor([0.5, 0.5, 0.5], dtype=torch.float64)
        points, distances = k_nearest_neighbors(tree, query, k=10)

        expected = torch.stack(
            [((point.coordinates - query) ** 2).sum() for point in points]
        )
        torch.testing.assert_close(distances, expected)

    def test_query_point_in_dataset(self, clustered_tree):
        """A stored point is its own nearest neighbor at distance 0."""
        tree, points = clustered_tree
        nearest, distances = k_nearest_neighbors(tree, points[42], k=1)

        assert nearest[0].payload == 42
        assert distances[0].item() == 0.0


class TestKNearestNeighborsCorrectness:
    """Tests for correctness against brute force."""

    @pytest.mark.parametrize("dimensions", [1, 2, 3, 7])
    @pytest.mark.parametrize("bucket_size", [1, 4, 10])
    def test_matches_brute_force(
        self, dimensions, bucket_size, generator, brute_force_k_nearest
    ):
        """Distances match brute-force top-k for k from 0 to n + 5."""
        torch.manual_seed(dimensions * 100 + bucket_size)
        points = torch.randn(60, dimensions, dtype=torch.float64)
        tree = IncrementalKdTree(bucket_size, generator=generator)
        tree.add_all(points)

        queries = torch.randn(5, dimensions, dtype=torch.float64)
        for query in queries:
            for k in range(0, points.shape[0] + 6, 7):
                result, distances = k_nearest_neighbors(tree, query, k)
                expected = brute_force_k_nearest(points, query, k)

                assert len(result) == min(k, points.shape[0])
                torch.testing.assert_close(distances, expected)

    def test_matches_brute_force_with_duplicates(
        self, generator, brute_force_k_nearest
    ):
        """Integer grids with many ties still match brute force."""
        torch.manual_seed(7)
        points = torch.randint(-3, 4, (150, 2)).to(torch.float64)
        tree = IncrementalKdTree(3, generator=generator)
        for row in points:
            tree.add(row)

        for query in torch.randint(-4, 5, (10, 2)).to(torch.float64):
            for k in (1, 5, 17, 150, 160):
                _, distances = k_nearest_neighbors(tree, query, k)
                torch.testing.assert_close(
                    distances, brute_force_k_nearest(points, query, k)
                )

    def test_matches_scipy(self, generator):
        """Nearest distances agree with scipy's cKDTree."""
        spatial = pytest.importorskip("scipy.spatial")

        torch.manual_seed(3)
        points = torch.randn(300, 4, dtype=torch.float64)
        tree = IncrementalKdTree(8, generator=generator)
        tree.add_all(points)
        reference = spatial.cKDTree(points.numpy())

        queries = torch.randn(10, 4, dtype=torch.float64)
        expected, _ = reference.query(queries.numpy(), k=6)
        for query, row in zip(queries, expected):
            _, distances = k_nearest_neighbors(tree, query, k=6)
            torch.testing.assert_close(
                distances,
                torch.tensor(row, dtype=torch.float64) ** 2,
            )

    def test_returns_all_points_when_k_exceeds_size(self):
        """k larger than the tree returns every point once."""
        tree = IncrementalKdTree(2)
        stored = tree.add_all(torch.randn(7, 3, dtype=torch.float64))
        result, _ = k_nearest_neighbors(tree, torch.zeros(3), k=50)

        assert len(result) == 7
        assert {id(p) for p in result} == {id(p) for p in stored}

    def test_tree_traversal_prunes(self, clustered_tree, monkeypatch):
        """Queries inside one cluster never scan the other cluster."""
        tree, points = clustered_tree
        scanned = []
        search_leaf = knn_module._search_leaf

        def counting_search_leaf(leaf, query, candidates):
            scanned.append(leaf)
            return search_leaf(leaf, query, candidates)

        monkeypatch.setattr(knn_module, "_search_leaf", counting_search_leaf)

        result, _ = k_nearest_neighbors(tree, points[0], k=5)

        assert all(point.payload < 200 for point in result)
        assert len(scanned) < len(tree.root.leaves())
        for leaf in scanned:
            assert all(point.payload < 200 for point in leaf.points)


class TestKNearestNeighborsEdgeCases:
    """Tests for empty trees, k == 0 and ties."""

    @pytest.mark.parametrize("k", [0, 1, 10])
    def test_empty_tree_returns_nothing(self, k):
        """Queries on an empty tree return empty results."""
        tree = IncrementalKdTree()
        points, distances = k_nearest_neighbors(tree, [1.0, 2.0], k)

        assert points == []
        assert distances.shape == (0,)

    def test_k_zero_returns_nothing(self, clustered_tree):
        """k == 0 is legal and returns nothing."""
        tree, _ = clustered_tree
        points, distances = k_nearest_neighbors(tree, [0.0, 0.0, 0.0], 0)
        assert points == []
        assert distances.numel() == 0

    def test_singular_leaf_distances(self):
        """Duplicates in a singular leaf all report the same distance."""
        tree = IncrementalKdTree(2)
        tree.add_all([[1.0, 1.0]] * 6, payloads=list(range(6)))
        points, distances = k_nearest_neighbors(tree, [0.0, 0.0], k=4)

        assert tree.root.is_singular()
        assert len(points) == 4
        torch.testing.assert_close(
            distances, torch.full((4,), 2.0, dtype=torch.float64)
        )

    def test_ties_are_cut_at_k(self):
        """Only k of several equidistant points are returned."""
        tree = IncrementalKdTree(2)
        tree.add_all([[1.0, 0.0], [-1.0, 0.0], [0.0, 1.0], [0.0, -1.0]])
        points, distances = k_nearest_neighbors(tree, [0.0, 0.0], k=3)

        assert len(points) == 3
        torch.testing.assert_close(
            distances, torch.ones(3, dtype=torch.float64)
        )


class TestKNearestNeighborsValidation:
    """Tests for input validation."""

    def test_integer_like_k(self, clustered_tree):
        """NumPy integers and 0-d integer tensors are valid k values."""
        numpy = pytest.importorskip("numpy")
        tree, _ = clustered_tree
        query = [0.0, 0.0, 0.0]
        _, expected = k_nearest_neighbors(tree, query, 3)

        for k in (numpy.int64(3), torch.tensor(3)):
            points, distances = k_nearest_neighbors(tree, query, k)
            assert len(points) == 3
            torch.testing.assert_close(distances, expected)

    @pytest.mark.parametrize("k", [-1, 1.5, True, torch.tensor(2.0)])
    def test_invalid_k_raises(self, k):
        """Raises RuntimeError for negative, bool or non-integer k."""
        tree = IncrementalKdTree()
        with pytest.raises(RuntimeError, match="k must be"):
            k_nearest_neighbors(tree, [0.0], k)

    def test_query_dimension_mismatch_raises(self, clustered_tree):
        """Raises DimensionMismatchError for wrong query length."""
        tree, _ = clustered_tree
        with pytest.raises(DimensionMismatchError) as info:
            k_nearest_neighbors(tree, [0.0, 0.0], k=1)

        assert info.value.expected == 3
        assert info.value.actual == 2

    def test_query_must_be_1d(self, clustered_tree):
        """Raises RuntimeError for a batch of queries."""
        tree, _ = clustered_tree
        with pytest.raises(RuntimeError, match="1D"):
            k_nearest_neighbors(tree, torch.zeros(2, 3), k=1)

    def test_query_must_be_finite(self, clustered_tree):
        """Raises RuntimeError for NaN coordinates."""
        tree, _ = clustered_tree
        with pytest.raises(RuntimeError, match="finite"):
            k_nearest_neighbors(tree, [float("nan"), 0.0, 0.0], k=1)
