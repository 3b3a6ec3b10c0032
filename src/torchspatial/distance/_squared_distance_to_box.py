"""Squared distance from a point to an axis-aligned box."""

import torch
from torch import Tensor


def squared_distance_to_box(
    x: Tensor,
    minimum: Tensor,
    maximum: Tensor,
    *,
    dim: int = -1,
) -> Tensor:
    r"""Compute the minimum squared Euclidean distance from ``x`` to a box.

    Mathematical Definition
    -----------------------
    .. math::
        d^2(x, B) = \sum_i \max(\text{min}_i - x_i, 0, x_i - \text{max}_i)^2

    Each coordinate that lies inside ``[minimum_i, maximum_i]`` contributes
    zero; otherwise the squared gap to the nearest face is added. The result
    is a lower bound on the squared distance from ``x`` to any point inside
    the box.

    Parameters
    ----------
    x : Tensor
        Query point (or batch of points).
    minimum : Tensor
        Lower corner of the box.
    maximum : Tensor
        Upper corner of the box.
    dim : int, default=-1
        Dimension holding the coordinates.

    Returns
    -------
    Tensor
        Squared distances with ``dim`` reduced.

    Examples
    --------
    >>> minimum = torch.tensor([0.0, 0.0])
    >>> maximum = torch.tensor([1.0, 1.0])
    >>> squared_distance_to_box(torch.tensor([0.5, 0.5]), minimum, maximum)
    tensor(0.)
    >>> squared_distance_to_box(torch.tensor([3.0, 1.5]), minimum, maximum)
    tensor(4.2500)
    """
    if not isinstance(x, Tensor):
        raise TypeError(f"x must be a Tensor, got {type(x).__name__}")
    if not isinstance(minimum, Tensor) or not isinstance(maximum, Tensor):
        raise TypeError("minimum and maximum must be Tensors")

    if minimum.shape != maximum.shape:
        raise ValueError(
            f"minimum and maximum must have the same shape, got "
            f"{tuple(minimum.shape)} and {tuple(maximum.shape)}"
        )
    if x.size(dim) != minimum.size(dim):
        raise ValueError(
            f"Coordinate sizes must match along dim {dim}: "
            f"x has {x.size(dim)}, box has {minimum.size(dim)}"
        )

    below = torch.clamp(minimum - x, min=0)
    above = torch.clamp(x - maximum, min=0)
    gap = below + above
    return torch.sum(gap * gap, dim=dim)
