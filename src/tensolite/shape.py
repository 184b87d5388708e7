"""
Shape and Element Type Inference for Tensolite.
"""

from typing import Any, Iterator, Sequence

import numpy as np

from .config import _NUMPY_TO_ELEMENT, MAX_NDIM
from .errors import (
    InvalidShapeError,
    ShapeMismatchError,
    TypeMismatchError,
    UnsupportedElementTypeError,
)
from .types import ElementType, Shape, is_bool, is_floating, is_integral


def is_sequence(value: Any) -> bool:
    """True for the nested containers a tensor value is built from.

    Lists, tuples and ndarrays of rank >= 1; a 0-d array is a scalar.
    """
    if isinstance(value, np.ndarray):
        return value.ndim > 0
    return isinstance(value, (list, tuple))


def is_bytes_like(value: Any) -> bool:
    return isinstance(value, (bytes, bytearray, memoryview))


def num_dimensions(value: Any) -> int:
    """Return the number of dimensions of a nested value, 0 for a scalar.

    Only the first element of each sequence is followed.

    Raises
    ------
    InvalidShapeError
        If a sequence on the followed path is empty, or the value is deeper
        than ``MAX_NDIM``.
    """
    if isinstance(value, np.ndarray):
        if value.size == 0:
            raise InvalidShapeError("Array lengths cannot be 0.")
        ndim = value.ndim
    else:
        ndim = 0
        while is_sequence(value):
            if len(value) == 0:
                raise InvalidShapeError("Array lengths cannot be 0.")
            ndim += 1
            if ndim > MAX_NDIM:
                break
            value = value[0]
    if ndim > MAX_NDIM:
        raise InvalidShapeError(f"Value exceeds maximum dimensions ({MAX_NDIM})")
    return ndim


def compute_shape(value: Any) -> Shape:
    """Return the shape of a rectangular nested value, outermost first.

    Parameters
    ----------
    value : Any
        A scalar, a nested list/tuple of scalars, or an ndarray. Lists may
        hold ndarray rows at any depth.

    Returns
    -------
    list of int
        One entry per dimension; ``[]`` for a scalar.

    Raises
    ------
    InvalidShapeError
        If any sequence is empty.
    ShapeMismatchError
        If sibling sequences differ in length or nesting depth.
    """
    ndim = num_dimensions(value)
    if isinstance(value, np.ndarray):
        return list(value.shape)
    shape = [0] * ndim
    _fill_shape(value, 0, shape)
    return shape


def _fill_shape(value: Any, dim: int, shape: Shape) -> None:
    if dim == len(shape):
        if is_sequence(value):
            raise ShapeMismatchError(
                None,
                len(value),
                dim,
                message=f"Unexpected nested sequence in dimension {dim}",
            )
        return
    if not is_sequence(value):
        raise ShapeMismatchError(
            shape[dim] or None,
            None,
            dim,
            message=(
                f"Expected a sequence in dimension {dim}, "
                f"got {type(value).__name__}"
            ),
        )
    length = len(value)
    if length == 0:
        raise InvalidShapeError("Array lengths cannot be 0.")
    if shape[dim] == 0:
        shape[dim] = length
    elif shape[dim] != length:
        raise ShapeMismatchError(shape[dim], length, dim)
    for item in value:
        _fill_shape(item, dim + 1, shape)


def iter_leaves(value: Any) -> Iterator[Any]:
    """Yield scalars depth-first in index order."""
    if is_sequence(value):
        for item in value:
            yield from iter_leaves(item)
    else:
        yield value


def classify(leaf: Any) -> ElementType:
    """Map a single Python scalar to the element type it defaults to."""
    # bool is checked first: it is an int subclass.
    if is_bool(leaf):
        return ElementType.BOOL
    if is_integral(leaf):
        return ElementType.INT32
    if is_floating(leaf):
        return ElementType.FLOAT32
    if isinstance(leaf, str):
        return ElementType.STRING
    raise UnsupportedElementTypeError(
        f"DataType error: cannot resolve DataType of {type(leaf).__name__}"
    )


def infer_element_type(value: Any, strict: bool = False) -> ElementType:
    """Infer the element type of a nested value.

    By default only the first leaf is sampled, so a mixed value such as
    ``[1.0, 2]`` is reported as FLOAT32. With ``strict=True`` every leaf is
    classified and mixed kinds raise ``TypeMismatchError``.
    """
    if isinstance(value, np.ndarray):
        try:
            return _NUMPY_TO_ELEMENT[value.dtype]
        except KeyError:
            raise UnsupportedElementTypeError(
                f"DataType error: cannot resolve DataType of {value.dtype}"
            ) from None

    first = value
    while is_sequence(first):
        if len(first) == 0:
            raise InvalidShapeError("Array lengths cannot be 0.")
        first = first[0]
    element_type = classify(first)

    if strict:
        for leaf in iter_leaves(value):
            other = classify(leaf)
            if other != element_type:
                raise TypeMismatchError(
                    f"Mixed element types: {element_type.name} and {other.name}"
                )
    return element_type


def num_elements(shape: Sequence[int]) -> int:
    """Number of elements in a flattened view of ``shape``; 1 for ``[]``."""
    n = 1
    for extent in shape:
        n *= int(extent)
    return n
