"""
Host Memory Collaborators for Tensolite.

A numpy-backed tensor handle and a scratch allocator that satisfy the
runtime contracts in ``tensolite.buffer``. They let the marshalling layer
run without a native runtime attached.
"""

import logging
from typing import Any, Dict, Optional, Sequence, Tuple

import numpy as np

from .codec import get_codec
from .shape import infer_element_type, num_elements
from .types import NO_QUANTIZATION, ElementType, QuantizationParams, Status

logger = logging.getLogger(__name__)


class HostAllocator:
    """Zero-filled host scratch memory with outstanding-allocation tracking."""

    def __init__(self):
        self._live: Dict[int, int] = {}
        self.allocations = 0

    @property
    def outstanding(self) -> int:
        """Number of buffers allocated and not yet freed."""
        return len(self._live)

    def allocate(self, size: int) -> np.ndarray:
        buf = np.zeros(size, dtype=np.uint8)
        self._live[id(buf)] = size
        self.allocations += 1
        return buf

    def free(self, buf: Any) -> None:
        if self._live.pop(id(buf), None) is None:
            raise RuntimeError("Freeing a buffer that is not allocated")


class HostTensorHandle:
    """Tensor handle whose buffer lives in a host numpy array.

    Parameters
    ----------
    name : str
        Tensor name.
    element_type : ElementType
        Element type; decides the byte size for a shape.
    shape : sequence of int
        Dimensions, outermost first.
    data : bytes-like, optional
        Initial contents; must match the byte size.
    quantization : QuantizationParams, optional
        Reported quantization; None means the runtime reports none.
    allocated : bool, default True
        False models a tensor with no backing memory yet.
    """

    def __init__(
        self,
        name: str,
        element_type: ElementType,
        shape: Sequence[int],
        data: Any = None,
        quantization: Optional[QuantizationParams] = None,
        allocated: bool = True,
    ):
        self._name = name
        self._type = ElementType(element_type)
        self._shape = [int(d) for d in shape]
        self._quantization = quantization
        self._buffer: Optional[np.ndarray] = None
        self.fail_copies = False
        if allocated:
            self._allocate()
        if data is not None:
            src = np.frombuffer(data, dtype=np.uint8)
            if self._buffer is None or src.size != self._buffer.size:
                raise ValueError(
                    f"Initial data is {src.size} bytes, tensor needs {self.byte_size()}"
                )
            self._buffer[:] = src

    def _allocate(self) -> None:
        self._buffer = np.zeros(self.byte_size(), dtype=np.uint8)

    def name(self) -> str:
        return self._name

    def type(self) -> ElementType:
        return self._type

    def num_dims(self) -> int:
        return len(self._shape)

    def dim(self, index: int) -> int:
        return self._shape[index]

    def byte_size(self) -> int:
        return num_elements(self._shape) * get_codec(self._type).width

    def data(self) -> Optional[np.ndarray]:
        return self._buffer

    def quantization_params(self) -> Optional[Tuple[float, int]]:
        return self._quantization

    def resize(self, shape: Sequence[int]) -> None:
        """Reshape and reallocate; previous contents are discarded."""
        self._shape = [int(d) for d in shape]
        self._allocate()
        logger.debug("Resized host tensor %r to %s", self._name, self._shape)

    def copy_from_buffer(self, src: Any, size: int) -> Status:
        if self.fail_copies or self._buffer is None or size != self._buffer.size:
            return Status.ERROR
        self._buffer[:] = np.frombuffer(src, dtype=np.uint8, count=size)
        return Status.OK

    def copy_to_buffer(self, dst: Any, size: int) -> Status:
        if self.fail_copies or self._buffer is None or size != self._buffer.size:
            return Status.ERROR
        np.frombuffer(dst, dtype=np.uint8, count=size)[:] = self._buffer
        return Status.OK

    def __repr__(self) -> str:
        return f"HostTensorHandle({self._name!r}, {self._type.name}, {self._shape})"


def host_tensor_from_array(
    name: str,
    array: np.ndarray,
    element_type: Optional[ElementType] = None,
    quantization: QuantizationParams = NO_QUANTIZATION,
) -> HostTensorHandle:
    """Build a host handle holding ``array`` in the wire layout of its type."""
    array = np.asarray(array)
    if element_type is None:
        element_type = infer_element_type(array)
    body = get_codec(element_type).encode_many(array)
    quant = quantization if quantization.is_quantized else None
    return HostTensorHandle(name, element_type, array.shape, body, quant)
