import pytest

from tensolite import ElementType, HostAllocator, HostTensorHandle, Tensor


@pytest.fixture
def allocator():
    """Scratch allocator that records outstanding buffers."""
    return HostAllocator()


@pytest.fixture
def make_tensor(allocator):
    """Factory for host-backed tensors sharing the tracking allocator."""

    def _make(shape, element_type=ElementType.FLOAT32, name="input", **kwargs):
        ieee_half = kwargs.pop("ieee_half", None)
        handle = HostTensorHandle(name, element_type, shape, **kwargs)
        return Tensor(handle, allocator=allocator, ieee_half=ieee_half)

    return _make
