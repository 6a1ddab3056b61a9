"""
Merge operations used to combine a primitive contribution with field values.

Named operations map to NumPy ufuncs so merges stay vectorised over the
primitive footprint. Plain binary callables are accepted too and applied
elementwise.
"""

from enum import Enum
from typing import Callable, Union

import numpy as np

MergeFunction = Callable[[np.ndarray, np.ndarray], np.ndarray]


class MergeOperation(str, Enum):
    """Closed set of combination policies."""

    MAXIMUM = "maximum"
    MINIMUM = "minimum"
    ADD = "add"
    SUBTRACT = "subtract"
    MULTIPLY = "multiply"
    OVERWRITE = "overwrite"


def _overwrite(current: np.ndarray, contribution: np.ndarray) -> np.ndarray:
    return np.broadcast_to(contribution, np.shape(current)).astype(np.float64)


_NAMED_OPERATIONS = {
    MergeOperation.MAXIMUM: np.maximum,
    MergeOperation.MINIMUM: np.minimum,
    MergeOperation.ADD: np.add,
    MergeOperation.SUBTRACT: np.subtract,
    MergeOperation.MULTIPLY: np.multiply,
    MergeOperation.OVERWRITE: _overwrite,
}


OperationLike = Union[MergeOperation, str, Callable[[float, float], float]]


def resolve_operation(operation: OperationLike) -> MergeFunction:
    """
    Turn an operation description into an elementwise array function.

    Args:
        operation: A MergeOperation, its name, or a binary numeric function
            taking (current value, contribution)

    Returns:
        Function applying the operation to two arrays of the same shape

    Raises:
        ValueError: If the operation name is unknown
    """
    if isinstance(operation, MergeOperation):
        return _NAMED_OPERATIONS[operation]

    if isinstance(operation, str):
        try:
            return _NAMED_OPERATIONS[MergeOperation(operation.lower())]
        except ValueError:
            names = ", ".join(op.value for op in MergeOperation)
            raise ValueError(
                f"Unknown merge operation: {operation!r} (expected one of {names})"
            ) from None

    if callable(operation):
        return np.vectorize(operation, otypes=[np.float64])

    raise ValueError(f"Unsupported merge operation: {operation!r}")
