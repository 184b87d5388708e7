"""
Exceptions raised by Tensolite.
"""

from typing import Optional, Sequence, Union


class TensoliteError(ValueError):
    """Base class for every marshalling error."""


class InvalidShapeError(TensoliteError):
    """A value has an empty or ambiguous dimension."""


class ShapeMismatchError(TensoliteError):
    """Two shapes, or two lengths of one dimension, disagree.

    ``expected`` and ``actual`` hold the conflicting lengths (for a
    rectangularity failure) or the conflicting shapes (for a destination
    check). ``dimension`` is set when a single dimension is at fault.
    """

    def __init__(
        self,
        expected: Union[int, Sequence[int], None],
        actual: Union[int, Sequence[int], None],
        dimension: Optional[int] = None,
        message: Optional[str] = None,
    ):
        self.expected = expected
        self.actual = actual
        self.dimension = dimension
        if message is None:
            if dimension is not None:
                message = (
                    f"Mismatched lengths {expected} and {actual} in dimension {dimension}"
                )
            else:
                message = f"Shape mismatch: expected {expected}, got {actual}"
        super().__init__(message)


class UnsupportedElementTypeError(TensoliteError):
    """A scalar cannot be classified, or a type has no codec."""


class TypeMismatchError(TensoliteError, TypeError):
    """A scalar's kind disagrees with the declared element type."""


class ValueOutOfRangeError(TypeMismatchError, OverflowError):
    """An integer does not fit the declared element type."""


class SizeMismatchError(TensoliteError):
    """A byte length disagrees with the tensor's declared byte size."""

    def __init__(self, expected: int, actual: int):
        self.expected = expected
        self.actual = actual
        super().__init__(f"Tensor byte size is {expected}, got {actual} bytes")


class ByteLengthMismatchError(TensoliteError):
    """Decode input is not aligned to the element width or element count."""


class NativeCallError(TensoliteError, RuntimeError):
    """A runtime copy primitive reported a non-OK status."""
