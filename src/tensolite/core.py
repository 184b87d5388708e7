"""
Flattening Engine for Tensolite.

Converts nested values to row-major bytes and back.
"""

from typing import Any, Generator, Sequence, Union

import numpy as np

from .codec import BytesLike, ElementCodec, get_codec
from .config import MAX_ELEMENTS
from .errors import ByteLengthMismatchError, InvalidShapeError
from .shape import is_bytes_like, is_sequence, num_elements
from .types import ElementType


def iter_flatten(
    value: Any, element_type: ElementType, ieee_half: bool = False
) -> Generator[bytes, None, None]:
    """
    Vectored flattening: yields the encoding of every leaf in row-major order.

    Parameters
    ----------
    value : NestedArray
        Scalar, or nested lists/tuples of scalars or ndarray rows.
    element_type : ElementType
        The element type every leaf is encoded as.
    ieee_half : bool, default False
        Use IEEE-754 half precision for FLOAT16.

    Yields
    ------
    bytes
        One fixed-width chunk per leaf.
    """
    codec = get_codec(element_type, ieee_half)
    yield from _iter_leaf_bytes(value, codec)


def _iter_leaf_bytes(value: Any, codec: ElementCodec) -> Generator[bytes, None, None]:
    if is_sequence(value):
        for item in value:
            yield from _iter_leaf_bytes(item, codec)
    else:
        yield codec.encode(value)


def flatten(
    value: Any, element_type: ElementType, ieee_half: bool = False
) -> Union[bytes, bytearray, memoryview]:
    """
    Flatten a nested value into the tensor's byte layout.

    Parameters
    ----------
    value : bytes-like, np.ndarray or NestedArray
        Bytes-like values are returned unchanged. Arrays are kind-checked and
        cast to the wire dtype. Nested sequences are walked depth-first.
    element_type : ElementType
        The tensor's element type.
    ieee_half : bool, default False
        Use IEEE-754 half precision for FLOAT16.

    Returns
    -------
    bytes-like
        Row-major encoded elements.
    """
    if is_bytes_like(value):
        return value
    if isinstance(value, np.ndarray):
        return get_codec(element_type, ieee_half).encode_many(value)
    return b"".join(iter_flatten(value, element_type, ieee_half))


def _decode_array(
    data: BytesLike, shape: Sequence[int], codec: ElementCodec
) -> np.ndarray:
    count = num_elements(shape)
    if count > MAX_ELEMENTS:
        raise InvalidShapeError(
            f"Shape {list(shape)} exceeds maximum elements ({count} > {MAX_ELEMENTS})"
        )
    nbytes = memoryview(data).nbytes
    if nbytes % codec.width != 0:
        raise ByteLengthMismatchError(
            f"{nbytes} bytes is not a multiple of the "
            f"{codec.element_type.name} width ({codec.width})"
        )
    if nbytes != count * codec.width:
        raise ByteLengthMismatchError(
            f"Expected {count * codec.width} bytes for shape {list(shape)}, got {nbytes}"
        )
    return codec.decode_many(data, count).reshape(tuple(shape))


def unflatten(
    data: BytesLike,
    shape: Sequence[int],
    element_type: ElementType,
    ieee_half: bool = False,
) -> Any:
    """
    Rebuild a nested value from the tensor's byte layout.

    Parameters
    ----------
    data : bytes-like
        Encoded elements, row-major.
    shape : sequence of int
        Target shape, outermost dimension first.
    element_type : ElementType
        The tensor's element type.
    ieee_half : bool, default False
        Use IEEE-754 half precision for FLOAT16.

    Returns
    -------
    NestedArray
        Nested lists of Python scalars; a bare scalar for ``shape == []``.

    Raises
    ------
    ByteLengthMismatchError
        If ``data`` is not aligned to the element width or does not hold
        exactly ``num_elements(shape)`` elements.
    InvalidShapeError
        If ``shape`` holds more than ``MAX_ELEMENTS`` elements.
    """
    codec = get_codec(element_type, ieee_half)
    return _decode_array(data, shape, codec).tolist()


def unflatten_array(
    data: BytesLike,
    shape: Sequence[int],
    element_type: ElementType,
    ieee_half: bool = False,
    copy: bool = False,
) -> np.ndarray:
    """Like ``unflatten`` but returns an ndarray.

    Without ``copy`` the result is a read-only view over ``data`` wherever
    the wire layout allows it.
    """
    codec = get_codec(element_type, ieee_half)
    arr = _decode_array(data, shape, codec)
    if copy:
        return arr.copy()
    arr.flags.writeable = False
    return arr
