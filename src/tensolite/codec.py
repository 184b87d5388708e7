"""
Element Codec for Tensolite.

Every supported element type has one entry in ``CODECS``. An entry knows
its wire dtype (width and byte order), how to encode a single scalar, how
to decode one back, and the bulk equivalents used by the flattener.
"""

from typing import Any, Dict, Tuple, Union

import numpy as np

from .config import _IEEE_FLOAT16_DTYPE, _WIRE_DTYPES
from .errors import (
    ByteLengthMismatchError,
    TypeMismatchError,
    UnsupportedElementTypeError,
    ValueOutOfRangeError,
)
from .types import _FLOAT_TYPES, _INT_RANGES, ElementType, Scalar, _type_name

BytesLike = Union[bytes, bytearray, memoryview]


class ElementCodec:
    """Fixed-width codec for one element type."""

    def __init__(self, element_type: ElementType, dtype: np.dtype):
        self.element_type = element_type
        self.dtype = np.dtype(dtype)

    @property
    def width(self) -> int:
        return self.dtype.itemsize

    @property
    def byteorder(self) -> str:
        """'little', 'big' or 'none' for single-byte types."""
        if self.width == 1:
            return "none"
        order = self.dtype.byteorder
        if order == "=":
            order = "<" if np.little_endian else ">"
        return "little" if order == "<" else "big"

    @property
    def float_limit(self) -> float:
        """Largest finite magnitude a floating value may have on the wire."""
        dtype = self.dtype if self.dtype.kind == "f" else np.dtype("<f4")
        return float(np.finfo(dtype).max)

    def encode(self, value: Any) -> bytes:
        scalar = Scalar.of(value, self.element_type)
        if self.dtype.kind == "f":
            self._check_float(np.asarray(scalar.value))
        return np.array(scalar.value, dtype=self.dtype).tobytes()

    def decode(self, data: BytesLike, offset: int = 0) -> Tuple[Any, int]:
        self._check_available(data, offset, 1)
        value = np.frombuffer(data, dtype=self.dtype, count=1, offset=offset)[0]
        return value.item(), offset + self.width

    def encode_many(self, array: np.ndarray) -> bytes:
        """Encode a host ndarray in C order after checking its kind."""
        self._check_array(array)
        return np.ascontiguousarray(array, dtype=self.dtype).tobytes()

    def decode_many(self, data: BytesLike, count: int, offset: int = 0) -> np.ndarray:
        """Zero-copy read-only view of ``count`` elements."""
        self._check_available(data, offset, count)
        return np.frombuffer(data, dtype=self.dtype, count=count, offset=offset)

    def _check_available(self, data: BytesLike, offset: int, count: int) -> None:
        needed = offset + count * self.width
        available = memoryview(data).nbytes
        if offset < 0 or available < needed:
            raise ByteLengthMismatchError(
                f"Need {needed} bytes to decode {count} {self.element_type.name} "
                f"element(s) at offset {offset}, buffer has {available}"
            )

    def _check_array(self, array: np.ndarray) -> None:
        kind = array.dtype.kind
        if self.element_type in _FLOAT_TYPES:
            ok = kind == "f"
        elif self.element_type == ElementType.BOOL:
            ok = kind == "b"
        else:
            ok = kind in "iu"
        if not ok:
            raise TypeMismatchError(
                f"The input array is {array.dtype} "
                f"while tensor data type is {self.element_type.name}"
            )
        if self.element_type in _INT_RANGES and array.size:
            low, high = _INT_RANGES[self.element_type]
            if int(array.min()) < low or int(array.max()) > high:
                raise ValueOutOfRangeError(
                    f"Array values are out of range for {self.element_type.name}"
                )
        if self.element_type in _FLOAT_TYPES:
            self._check_float(array)

    def _check_float(self, values: np.ndarray) -> None:
        finite = np.abs(values[np.isfinite(values)])
        if finite.size and float(finite.max()) > self.float_limit:
            raise ValueOutOfRangeError(
                f"Values exceed the {self.element_type.name} range (max {self.float_limit})"
            )

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}({self.element_type.name}, "
            f"width={self.width}, byteorder={self.byteorder!r})"
        )


class TruncatedFloat16Codec(ElementCodec):
    """Float16 as stored by the runtime's legacy path.

    Not IEEE-754 half precision: a value is encoded as little-endian float32
    and only its first two bytes are kept. Decoding zero-extends the two
    bytes back to four and reads float32. The pair round-trips the stored
    bytes, not the original value.
    """

    def __init__(self):
        super().__init__(ElementType.FLOAT16, _WIRE_DTYPES[ElementType.FLOAT16])

    def encode(self, value: Any) -> bytes:
        scalar = Scalar.of(value, self.element_type)
        return np.array(scalar.value, dtype="<f4").tobytes()[:2]

    def decode(self, data: BytesLike, offset: int = 0) -> Tuple[Any, int]:
        self._check_available(data, offset, 1)
        low = np.frombuffer(data, dtype=np.uint8, count=2, offset=offset)
        raw = low.tobytes() + b"\x00\x00"
        return np.frombuffer(raw, dtype="<f4")[0].item(), offset + 2

    def encode_many(self, array: np.ndarray) -> bytes:
        self._check_array(array)
        bits = np.ascontiguousarray(array, dtype="<f4").view("<u4")
        return (bits & 0xFFFF).astype("<u2").tobytes()

    def decode_many(self, data: BytesLike, count: int, offset: int = 0) -> np.ndarray:
        low = super().decode_many(data, count, offset)
        return low.astype("<u4").view("<f4")


CODECS: Dict[ElementType, ElementCodec] = {
    element_type: ElementCodec(element_type, dtype)
    for element_type, dtype in _WIRE_DTYPES.items()
    if element_type != ElementType.FLOAT16
}
CODECS[ElementType.FLOAT16] = TruncatedFloat16Codec()

IEEE_FLOAT16 = ElementCodec(ElementType.FLOAT16, _IEEE_FLOAT16_DTYPE)


def get_codec(element_type: ElementType, ieee_half: bool = False) -> ElementCodec:
    """Look up the codec for ``element_type``.

    Parameters
    ----------
    element_type : ElementType
        The element type to encode or decode.
    ieee_half : bool, default False
        Use true IEEE-754 half precision for FLOAT16 instead of the
        truncated float32 layout.

    Returns
    -------
    ElementCodec
        The codec for the type.

    Raises
    ------
    UnsupportedElementTypeError
        If no codec exists for the type (e.g. STRING).
    """
    if ieee_half and element_type == ElementType.FLOAT16:
        return IEEE_FLOAT16
    try:
        return CODECS[element_type]
    except (KeyError, TypeError):
        raise UnsupportedElementTypeError(
            f"The data type {_type_name(element_type)} is unsupported"
        ) from None


def width(element_type: ElementType) -> int:
    """Byte width of one element of ``element_type``."""
    return get_codec(element_type).width


def encode(value: Any, element_type: ElementType, ieee_half: bool = False) -> bytes:
    """Encode one scalar into its fixed-width byte representation."""
    return get_codec(element_type, ieee_half).encode(value)


def decode(
    data: BytesLike, offset: int, element_type: ElementType, ieee_half: bool = False
) -> Tuple[Any, int]:
    """Decode one scalar at ``offset``; returns ``(value, next_offset)``."""
    return get_codec(element_type, ieee_half).decode(data, offset)
