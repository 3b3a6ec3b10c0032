from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

import torch
from torch import Tensor

from ._exceptions import DimensionMismatchError


@dataclass(frozen=True, eq=False)
class Point:
    """A coordinate vector with an opaque payload.

    Points compare by identity. Two points with equal coordinates and
    payloads are still distinct entries of a tree.

    Attributes
    ----------
    coordinates : Tensor
        Coordinate vector, shape [d].
    payload : Any, optional
        Caller data carried alongside the coordinates.
    """

    coordinates: Tensor
    payload: Any = None


def as_coordinates(
    values: Any,
    *,
    dtype: torch.dtype,
    dimensions: Optional[int] = None,
) -> Tensor:
    """Convert ``values`` to a validated coordinate vector.

    Parameters
    ----------
    values : Tensor or sequence of float
        Coordinates of one point.
    dtype : torch.dtype
        Floating dtype of the tree.
    dimensions : int, optional
        Established dimensionality of the tree, if any.

    Returns
    -------
    Tensor
        1D tensor of ``dtype``.

    Raises
    ------
    RuntimeError
        If ``values`` is not 1D, is empty, or has non-finite entries.
    DimensionMismatchError
        If the length differs from ``dimensions``.
    """
    if isinstance(values, Tensor):
        # Points keep their coordinates, so never alias caller storage.
        coordinates = values.detach().to(dtype=dtype, copy=True)
    else:
        coordinates = torch.as_tensor(values, dtype=dtype)
    check_coordinates(coordinates, dimensions=dimensions)
    return coordinates


def check_coordinates(
    coordinates: Tensor,
    *,
    dimensions: Optional[int] = None,
) -> None:
    """Validate an existing coordinate tensor without copying it.

    Raises the same errors as :func:`as_coordinates`.
    """
    if coordinates.dim() != 1:
        raise RuntimeError(
            f"coordinates must be 1D (d,), got {coordinates.dim()}D"
        )
    if coordinates.numel() == 0:
        raise RuntimeError("coordinates must have at least one dimension")
    if dimensions is not None and coordinates.numel() != dimensions:
        raise DimensionMismatchError(dimensions, coordinates.numel())
    if not torch.isfinite(coordinates).all():
        raise RuntimeError("coordinates must be finite")
