"""Hypothesis strategies for spatial index testing."""

from ._coordinates import coordinates
from ._integers_as_floats import integers_as_floats
from ._point_clouds import point_clouds
from ._real_numbers import real_numbers

__all__ = [
    # Numeric strategies
    "integers_as_floats",
    "real_numbers",
    # Tensor strategies
    "coordinates",
    "point_clouds",
]
