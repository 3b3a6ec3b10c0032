import operator
from typing import Any


def as_int(value: Any, name: str, *, minimum: int) -> int:
    """Convert an integer-like ``value`` to ``int``, checking its range.

    Accepts anything implementing ``__index__`` (Python, NumPy and 0-d
    integer torch scalars). Booleans are rejected.
    """
    kind = "positive" if minimum > 0 else "non-negative"
    message = f"{name} must be a {kind} int, got {value!r}"

    if isinstance(value, bool):
        raise RuntimeError(message)
    try:
        result = operator.index(value)
    except TypeError:
        raise RuntimeError(message) from None
    if result < minimum:
        raise RuntimeError(message)

    return result
