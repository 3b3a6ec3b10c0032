"""Testing helpers for spatial index code.

Example usage:

    import hypothesis

    from torchspatial.testing.strategies import point_clouds

    @hypothesis.given(points=point_clouds(max_dimensions=3))
    def test_tree_holds_every_point(points):
        tree = IncrementalKdTree(bucket_size=4)
        tree.add_all(points)
        assert len(tree) == points.shape[0]
"""

from . import strategies

__all__ = [
    "strategies",
]
