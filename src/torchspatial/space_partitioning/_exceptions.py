"""Space partitioning exceptions and warnings."""


class SpacePartitioningError(Exception):
    """Base exception for spatial index operations."""

    pass


class InvariantViolationError(SpacePartitioningError):
    """Internal tree invariant was broken (programmer error)."""

    pass


class DimensionMismatchError(SpacePartitioningError):
    """Coordinate vector length differs from the tree dimensionality."""

    def __init__(self, expected: int, actual: int):
        super().__init__(
            f"Coordinate dimension ({actual}) must match "
            f"tree dimension ({expected})"
        )
        self.expected = expected
        self.actual = actual


class SplitFailureError(SpacePartitioningError):
    """Randomized split retries failed to find a non-degenerate partition."""

    def __init__(self, attempts: int, point_count: int):
        super().__init__(
            f"Failed to split leaf of {point_count} points after "
            f"{attempts} randomized attempts. Consider increasing "
            f"max_split_attempts."
        )
        self.attempts = attempts
        self.point_count = point_count


class LowPrecisionWarning(UserWarning):
    """Warning when running statistics are kept in reduced precision."""

    pass
