"""
Native Buffer Access for Tensolite.

The runtime owns tensor memory. This module reads it through zero-copy
views and writes it only through the runtime's copy primitives, staging
data in scratch memory that never outlives the call that acquired it.
"""

import ctypes
import logging
from contextlib import contextmanager
from typing import Any, Generator, Optional, Protocol, Tuple, Union

import numpy as np
import xxhash

from .errors import NativeCallError, SizeMismatchError
from .host import HostAllocator
from .types import ElementType, Status

logger = logging.getLogger(__name__)

BufferLike = Any  # any object exporting the buffer protocol


class TensorHandle(Protocol):
    """Opaque runtime tensor as seen by the marshalling layer."""

    def name(self) -> str: ...

    def type(self) -> ElementType: ...

    def num_dims(self) -> int: ...

    def dim(self, index: int) -> int: ...

    def byte_size(self) -> int: ...

    def data(self) -> Union[BufferLike, int, None]:
        """Backing memory: a buffer object, a raw address, or None if unset."""
        ...

    def quantization_params(self) -> Optional[Tuple[float, int]]: ...

    def copy_from_buffer(self, src: BufferLike, size: int) -> Status: ...

    def copy_to_buffer(self, dst: BufferLike, size: int) -> Status: ...


class Allocator(Protocol):
    """Scratch memory provider."""

    def allocate(self, size: int) -> BufferLike: ...

    def free(self, buf: BufferLike) -> None: ...


@contextmanager
def scratch(allocator: Allocator, size: int) -> Generator[BufferLike, None, None]:
    """Acquire ``size`` bytes of scratch memory, released on every exit path."""
    buf = allocator.allocate(size)
    logger.debug("Acquired %d bytes of scratch memory", size)
    try:
        yield buf
    finally:
        allocator.free(buf)
        logger.debug("Released %d bytes of scratch memory", size)


def _default_allocator() -> Allocator:
    return HostAllocator()


def _as_uint8(buf: BufferLike, size: int) -> np.ndarray:
    return np.frombuffer(buf, dtype=np.uint8, count=size)


def read_view(handle: TensorHandle) -> Optional[memoryview]:
    """
    Zero-copy, read-only view of a tensor's native buffer.

    Parameters
    ----------
    handle : TensorHandle
        The runtime tensor.

    Returns
    -------
    memoryview or None
        ``byte_size`` bytes of the native buffer, or None when the runtime
        has not attached any memory yet. An empty view is valid data of
        length zero; None means there is no data at all.
    """
    ptr = handle.data()
    if ptr is None or (isinstance(ptr, int) and ptr == 0):
        return None
    size = handle.byte_size()
    if isinstance(ptr, int):
        ptr = (ctypes.c_ubyte * size).from_address(ptr)
    view = _as_uint8(ptr, size)
    view.flags.writeable = False
    return memoryview(view)


def write_from(
    handle: TensorHandle, data: BufferLike, allocator: Optional[Allocator] = None
) -> None:
    """
    Overwrite a tensor's native buffer with ``data``.

    The length is validated before any memory is touched, so a failed call
    leaves the native buffer unchanged.

    Parameters
    ----------
    handle : TensorHandle
        The runtime tensor.
    data : bytes-like
        Exactly ``byte_size`` bytes.
    allocator : Allocator, optional
        Scratch provider; defaults to host memory.

    Raises
    ------
    SizeMismatchError
        If ``len(data)`` differs from the tensor's byte size.
    NativeCallError
        If the runtime's copy-in primitive fails.
    """
    size = handle.byte_size()
    nbytes = memoryview(data).nbytes
    if nbytes != size:
        raise SizeMismatchError(size, nbytes)

    if allocator is None:
        allocator = _default_allocator()
    with scratch(allocator, size) as buf:
        _as_uint8(buf, size)[:] = _as_uint8(data, size)
        status = handle.copy_from_buffer(buf, size)
    if status != Status.OK:
        raise NativeCallError(f"Copy into tensor '{handle.name()}' failed ({status!r})")
    logger.debug("Wrote %d bytes into tensor %r", size, handle.name())


def copy_out(handle: TensorHandle, allocator: Optional[Allocator] = None) -> bytes:
    """
    Copy a tensor's native buffer into caller-owned bytes.

    The runtime fills a scratch buffer which is cloned before it is
    released; the scratch memory is freed even when the copy fails.

    Raises
    ------
    NativeCallError
        If the runtime's copy-out primitive fails.
    """
    size = handle.byte_size()
    if allocator is None:
        allocator = _default_allocator()
    with scratch(allocator, size) as buf:
        status = handle.copy_to_buffer(buf, size)
        if status != Status.OK:
            raise NativeCallError(
                f"Copy out of tensor '{handle.name()}' failed ({status!r})"
            )
        # The scratch contents are undefined once freed.
        result = _as_uint8(buf, size).tobytes()
    logger.debug("Copied %d bytes out of tensor %r", size, handle.name())
    return result


def checksum(handle: TensorHandle) -> Optional[int]:
    """XXH3-64 digest of the tensor's current contents, None if unset."""
    view = read_view(handle)
    if view is None:
        return None
    return xxhash.xxh3_64_intdigest(view)
