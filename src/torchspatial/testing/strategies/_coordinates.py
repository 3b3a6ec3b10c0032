from typing import Optional

import hypothesis.extra.numpy
import hypothesis.strategies
import numpy
import torch

from ._integers_as_floats import integers_as_floats


@hypothesis.strategies.composite
def coordinates(
    draw: hypothesis.strategies.DrawFn,
    dimensions: int,
    elements: Optional[hypothesis.strategies.SearchStrategy[float]] = None,
    dtype: torch.dtype = torch.float64,
) -> torch.Tensor:
    """Strategy for a single coordinate vector of shape (dimensions,)."""
    if elements is None:
        elements = integers_as_floats()

    arr = draw(
        hypothesis.extra.numpy.arrays(
            numpy.float64, (dimensions,), elements=elements
        )
    )
    return torch.tensor(arr, dtype=dtype)
