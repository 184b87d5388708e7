"""
Tensor Facade for Tensolite.
"""

import logging
from typing import Any, Optional

import numpy as np

from . import buffer, config
from .buffer import Allocator, TensorHandle
from .core import flatten, unflatten, unflatten_array
from .errors import (
    ShapeMismatchError,
    SizeMismatchError,
    TypeMismatchError,
    ValueOutOfRangeError,
)
from .shape import compute_shape, is_bytes_like, num_elements
from .types import NO_QUANTIZATION, ElementType, QuantizationParams, Shape

logger = logging.getLogger(__name__)


class Tensor:
    """
    A runtime tensor seen through typed, shape-aware accessors.

    The tensor owns no memory. Every accessor reads the runtime handle, so
    metadata always reflects the runtime's current state.

    Parameters
    ----------
    handle : TensorHandle
        The runtime tensor. Must not be None.
    allocator : Allocator, optional
        Scratch memory provider for copies; defaults to host memory.
    ieee_half : bool, optional
        Encode FLOAT16 as IEEE-754 half precision instead of truncated
        float32. Defaults to ``config.IEEE_HALF_PRECISION``.
    """

    def __init__(
        self,
        handle: TensorHandle,
        allocator: Optional[Allocator] = None,
        ieee_half: Optional[bool] = None,
    ):
        if handle is None:
            raise ValueError("Tensor handle must not be None")
        self._handle = handle
        self._allocator = allocator
        self._ieee_half = config.IEEE_HALF_PRECISION if ieee_half is None else ieee_half

    @property
    def handle(self) -> TensorHandle:
        return self._handle

    @property
    def name(self) -> str:
        return self._handle.name() or ""

    @property
    def type(self) -> ElementType:
        return ElementType(self._handle.type())

    @property
    def shape(self) -> Shape:
        return [self._handle.dim(i) for i in range(self._handle.num_dims())]

    @property
    def data(self) -> Optional[memoryview]:
        """Read-only view of the native buffer, None if it has no data yet."""
        return buffer.read_view(self._handle)

    @data.setter
    def data(self, value: Any) -> None:
        buffer.write_from(self._handle, value, self._allocator)

    @property
    def params(self) -> QuantizationParams:
        """Quantization parameters; ``NO_QUANTIZATION`` when absent."""
        raw = self._handle.quantization_params()
        if raw is None:
            return NO_QUANTIZATION
        scale, zero_point = raw
        return QuantizationParams(float(scale), int(zero_point))

    def num_dimensions(self) -> int:
        return self._handle.num_dims()

    def num_bytes(self) -> int:
        return self._handle.byte_size()

    def num_elements(self) -> int:
        return num_elements(self.shape)

    def set_to(self, value: Any) -> None:
        """
        Encode ``value`` and overwrite the tensor's buffer with it.

        Parameters
        ----------
        value : bytes-like, np.ndarray or NestedArray
            Bytes-like values are written as-is.

        Raises
        ------
        SizeMismatchError
            If the encoded value is not exactly ``num_bytes()`` long. The
            buffer is left untouched.
        TypeMismatchError
            If a leaf does not match the tensor's element type.
        """
        data = flatten(value, self.type, self._ieee_half)
        buffer.write_from(self._handle, data, self._allocator)

    def copy_to(self, destination: Any = None) -> Any:
        """
        Copy the tensor's contents out, optionally into ``destination``.

        Parameters
        ----------
        destination : optional
            ``None`` or ``bytes``: nothing is written.
            ``bytearray`` or writable ``memoryview``: receives the raw bytes.
            ``list``: shape-checked, then its slots are overwritten.
            ``np.ndarray``: shape-checked, then filled with ``np.copyto``;
            values that do not fit its dtype are refused.

        Returns
        -------
        Any
            Raw bytes for byte-buffer destinations, otherwise the decoded
            nested value.

        Raises
        ------
        ShapeMismatchError
            If a list or array destination does not match the tensor's shape.
        SizeMismatchError
            If a byte-buffer destination is not exactly ``num_bytes()`` long.
        ValueOutOfRangeError
            If decoded values do not fit an array destination's dtype. The
            destination is left untouched.
        """
        raw = buffer.copy_out(self._handle, self._allocator)

        if is_bytes_like(destination):
            obj = raw
        else:
            obj = unflatten(raw, self.shape, self.type, self._ieee_half)

        # The decoded value is complete before the buffer is refreshed.
        self.data = raw

        if isinstance(destination, (bytearray, memoryview)):
            target = memoryview(destination).cast("B")
            if target.readonly:
                raise TypeError("Destination buffer is read-only")
            if target.nbytes != len(raw):
                raise SizeMismatchError(len(raw), target.nbytes)
            target[:] = raw
        elif isinstance(destination, list):
            self._duplicate_list(obj, destination)
        elif isinstance(destination, np.ndarray):
            if list(destination.shape) != self.shape:
                raise ShapeMismatchError(
                    self.shape,
                    list(destination.shape),
                    message=self._mismatch_message(self.shape, list(destination.shape)),
                )
            self._fill_array(np.asarray(obj), destination)
        return obj

    @staticmethod
    def _fill_array(source: np.ndarray, destination: np.ndarray) -> None:
        if not np.can_cast(source.dtype, destination.dtype, casting="same_kind"):
            raise TypeMismatchError(
                f"Cannot copy {source.dtype} values into a {destination.dtype} array"
            )
        if source.size and destination.dtype.kind in "iu":
            info = np.iinfo(destination.dtype)
            if int(source.min()) < info.min or int(source.max()) > info.max:
                raise ValueOutOfRangeError(
                    f"Values do not fit a {destination.dtype} array [{info.min}, {info.max}]"
                )
        elif source.size and destination.dtype.kind == "f" and source.dtype.kind == "f":
            finite = np.abs(source[np.isfinite(source)])
            limit = float(np.finfo(destination.dtype).max)
            if finite.size and float(finite.max()) > limit:
                raise ValueOutOfRangeError(f"Values do not fit a {destination.dtype} array")
        np.copyto(destination, source, casting="same_kind")

    def _duplicate_list(self, obj: Any, destination: list) -> None:
        obj_shape = compute_shape(obj) if isinstance(obj, list) else []
        dst_shape = compute_shape(destination)
        if obj_shape != dst_shape:
            raise ShapeMismatchError(
                obj_shape, dst_shape, message=self._mismatch_message(obj_shape, dst_shape)
            )
        for i, item in enumerate(obj):
            destination[i] = item

    @staticmethod
    def _mismatch_message(source: Shape, destination: Shape) -> str:
        return (
            f"Output object shape mismatch, interpreter returned output of shape: "
            f"{source} while shape of output provided as argument in run is: "
            f"{destination}"
        )

    def get_input_shape_if_different(self, value: Any) -> Optional[Shape]:
        """
        Shape the tensor must be resized to before ``value`` can be written.

        Returns None for None, for bytes-like values, and when the inferred
        shape already equals the tensor's shape.
        """
        if value is None or is_bytes_like(value):
            return None
        input_shape = compute_shape(value)
        if input_shape == self.shape:
            return None
        logger.debug(
            "Input shape %s differs from tensor %r shape %s",
            input_shape,
            self.name,
            self.shape,
        )
        return input_shape

    def numpy(self, copy: bool = False) -> Optional[np.ndarray]:
        """Decoded ndarray over the native buffer, None if it has no data."""
        view = self.data
        if view is None:
            return None
        return unflatten_array(view, self.shape, self.type, self._ieee_half, copy=copy)

    def checksum(self) -> Optional[int]:
        """XXH3-64 digest of the current contents, None if it has no data."""
        return buffer.checksum(self._handle)

    def __repr__(self) -> str:
        view = self.data
        size = "None" if view is None else str(view.nbytes)
        return (
            f"Tensor(name={self.name!r}, type={self.type.name}, "
            f"shape={self.shape}, data={size})"
        )
