"""Squared Euclidean distance implementation."""

import torch
from torch import Tensor


def squared_euclidean_distance(
    x: Tensor,
    y: Tensor,
    *,
    dim: int = -1,
) -> Tensor:
    r"""Compute the squared Euclidean distance between points.

    Mathematical Definition
    -----------------------
    .. math::
        d^2(x, y) = \sum_i (x_i - y_i)^2

    No square root is taken. Squaring is monotonic on non-negative values,
    so comparisons between squared distances order points exactly as the
    Euclidean distance would.

    Parameters
    ----------
    x : Tensor
        First point (or batch of points).
    y : Tensor
        Second point (or batch of points). Broadcast against ``x``.
    dim : int, default=-1
        Dimension holding the coordinates.

    Returns
    -------
    Tensor
        Squared distances with ``dim`` reduced.

    Examples
    --------
    >>> x = torch.tensor([0.0, 0.0])
    >>> y = torch.tensor([3.0, 4.0])
    >>> squared_euclidean_distance(x, y)
    tensor(25.)

    >>> # One query against a batch of points
    >>> points = torch.tensor([[1.0, 0.0], [0.0, 2.0]])
    >>> squared_euclidean_distance(points, x)
    tensor([1., 4.])

    See Also
    --------
    squared_distance_to_box : Lower bound over an axis-aligned box.
    """
    if not isinstance(x, Tensor):
        raise TypeError(f"x must be a Tensor, got {type(x).__name__}")
    if not isinstance(y, Tensor):
        raise TypeError(f"y must be a Tensor, got {type(y).__name__}")

    if x.size(dim) != y.size(dim):
        raise ValueError(
            f"Coordinate sizes must match along dim {dim}: "
            f"x has {x.size(dim)}, y has {y.size(dim)}"
        )

    difference = x - y
    return torch.sum(difference * difference, dim=dim)
