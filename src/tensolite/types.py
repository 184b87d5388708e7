"""
Core Types for Tensolite.
"""

import math
import numbers
from enum import IntEnum
from typing import Any, List, NamedTuple, Union

import numpy as np

from .errors import TypeMismatchError, UnsupportedElementTypeError, ValueOutOfRangeError

Shape = List[int]


class ElementType(IntEnum):
    """Element type codes reported by the inference runtime."""

    NOTYPE = 0
    FLOAT32 = 1
    INT32 = 2
    UINT8 = 3
    INT64 = 4
    STRING = 5
    BOOL = 6
    INT16 = 7
    COMPLEX64 = 8
    INT8 = 9
    FLOAT16 = 10
    FLOAT64 = 11


class Status(IntEnum):
    """Return status of the runtime's copy primitives."""

    OK = 0
    ERROR = 1


class QuantizationParams(NamedTuple):
    """Affine quantization ``real = scale * (q - zero_point)``.

    ``(0.0, 0)`` is the "not quantized" sentinel, see ``NO_QUANTIZATION``.
    """

    scale: float
    zero_point: int

    @property
    def is_quantized(self) -> bool:
        return self != NO_QUANTIZATION

    def dequantize(self, q: Any) -> Any:
        """Map quantized integers (scalar or array) to real values."""
        if not self.is_quantized:
            raise ValueError("Tensor carries no quantization parameters")
        return self.scale * (np.asarray(q, dtype=np.float64) - self.zero_point)

    def quantize(self, x: Any) -> np.ndarray:
        """Map real values to (unclipped) quantized integers."""
        if not self.is_quantized:
            raise ValueError("Tensor carries no quantization parameters")
        return np.round(np.asarray(x, dtype=np.float64) / self.scale).astype(
            np.int64
        ) + self.zero_point


NO_QUANTIZATION = QuantizationParams(0.0, 0)

_FLOAT_TYPES = (ElementType.FLOAT32, ElementType.FLOAT16, ElementType.FLOAT64)

# Finite magnitude limits; inf and nan pass through. FLOAT16 is staged as
# float32 by the truncating codec, the IEEE codec narrows further.
_FLOAT_LIMITS = {
    ElementType.FLOAT32: float(np.finfo(np.float32).max),
    ElementType.FLOAT16: float(np.finfo(np.float32).max),
}

_INT_RANGES = {
    ElementType.INT8: (-(2**7), 2**7 - 1),
    ElementType.UINT8: (0, 2**8 - 1),
    ElementType.INT16: (-(2**15), 2**15 - 1),
    ElementType.INT32: (-(2**31), 2**31 - 1),
    ElementType.INT64: (-(2**63), 2**63 - 1),
}


def is_bool(value: Any) -> bool:
    return isinstance(value, (bool, np.bool_))


def is_integral(value: Any) -> bool:
    return isinstance(value, numbers.Integral) and not is_bool(value)


def is_floating(value: Any) -> bool:
    return isinstance(value, (float, np.floating))


class Scalar(NamedTuple):
    """A single element tagged with the element type it was checked against."""

    element_type: ElementType
    value: Union[float, int, bool]

    @classmethod
    def of(cls, value: Any, element_type: ElementType) -> "Scalar":
        """Check ``value`` against ``element_type`` and wrap it.

        Raises
        ------
        TypeMismatchError
            If the value's kind does not match the element type.
        ValueOutOfRangeError
            If an integer does not fit the element type, or a finite float
            exceeds the largest finite value of the element type.
        UnsupportedElementTypeError
            If the element type has no scalar representation.
        """
        if isinstance(value, Scalar):
            if value.element_type != element_type:
                raise TypeMismatchError(
                    f"The input element is {value.element_type.name} "
                    f"while tensor data type is {element_type.name}"
                )
            return value
        if element_type in _FLOAT_TYPES:
            if not is_floating(value):
                raise TypeMismatchError(
                    f"The input element is {type(value).__name__} "
                    f"while tensor data type is {element_type.name}"
                )
            value = float(value)
            limit = _FLOAT_LIMITS.get(element_type)
            if limit is not None and math.isfinite(value) and abs(value) > limit:
                raise ValueOutOfRangeError(
                    f"{value} is out of range for {element_type.name} (max {limit})"
                )
            return cls(element_type, value)
        if element_type in _INT_RANGES:
            if not is_integral(value):
                raise TypeMismatchError(
                    f"The input element is {type(value).__name__} "
                    f"while tensor data type is {element_type.name}"
                )
            low, high = _INT_RANGES[element_type]
            value = int(value)
            if not low <= value <= high:
                raise ValueOutOfRangeError(
                    f"{value} is out of range for {element_type.name} [{low}, {high}]"
                )
            return cls(element_type, value)
        if element_type == ElementType.BOOL:
            if not is_bool(value):
                raise TypeMismatchError(
                    f"The input element is {type(value).__name__} "
                    f"while tensor data type is BOOL"
                )
            return cls(element_type, bool(value))
        raise UnsupportedElementTypeError(
            f"The input data type {_type_name(element_type)} is unsupported"
        )


def _type_name(element_type: Any) -> str:
    return getattr(element_type, "name", repr(element_type))
