import struct

import numpy as np
import pytest

import tensolite
from tensolite import ElementType, HostTensorHandle, QuantizationParams, Tensor

# --- Metadata ---


def test_metadata(make_tensor):
    tensor = make_tensor([2, 3], ElementType.INT16, name="logits")
    assert tensor.name == "logits"
    assert tensor.type == ElementType.INT16
    assert tensor.shape == [2, 3]
    assert tensor.num_dimensions() == 2
    assert tensor.num_elements() == 6
    assert tensor.num_bytes() == 12
    assert tensor.data.nbytes == 12
    assert "logits" in repr(tensor) and "INT16" in repr(tensor)


def test_handle_required():
    with pytest.raises(ValueError):
        Tensor(None)


def test_quantization_sentinel(make_tensor):
    """Absent quantization is reported as the (0.0, 0) sentinel."""
    tensor = make_tensor([1], ElementType.UINT8)
    assert tensor.params == (0.0, 0)
    assert tensor.params == tensolite.NO_QUANTIZATION
    assert not tensor.params.is_quantized
    with pytest.raises(ValueError):
        tensor.params.dequantize(3)


def test_quantization_params(make_tensor):
    tensor = make_tensor(
        [2], ElementType.UINT8, quantization=QuantizationParams(0.5, 128)
    )
    params = tensor.params
    assert params.is_quantized
    assert params.scale == 0.5 and params.zero_point == 128
    tensor.set_to([130, 124])
    assert params.dequantize(tensor.numpy()).tolist() == [1.0, -2.0]
    assert params.quantize([1.0, -2.0]).tolist() == [130, 124]


def test_data_is_none_without_memory(make_tensor):
    tensor = make_tensor([2], allocated=False)
    assert tensor.data is None
    assert tensor.numpy() is None
    assert "data=None" in repr(tensor)


# --- set_to / copy_to ---


def test_set_to_and_copy_to(make_tensor, allocator):
    tensor = make_tensor([2, 3])
    value = [[1.0, 2.0, 3.0], [-4.0, 0.5, 6.25]]
    tensor.set_to(value)
    assert bytes(tensor.data) == struct.pack("<6f", 1.0, 2.0, 3.0, -4.0, 0.5, 6.25)
    assert tensor.copy_to() == value
    assert allocator.outstanding == 0


def test_set_to_raw_bytes(make_tensor):
    tensor = make_tensor([2], ElementType.INT64)
    tensor.set_to(struct.pack(">2q", 7, -7))
    assert tensor.copy_to() == [7, -7]


def test_set_to_ndarray(make_tensor):
    tensor = make_tensor([2, 2], ElementType.INT32)
    tensor.set_to(np.array([[1, 2], [3, 4]]))
    assert tensor.numpy().tolist() == [[1, 2], [3, 4]]


def test_set_to_size_mismatch_leaves_buffer(make_tensor, allocator):
    """A wrong-shaped value fails and the previous contents survive."""
    tensor = make_tensor([2, 2], ElementType.INT32)
    tensor.set_to([[1, 2], [3, 4]])
    before = tensor.checksum()
    with pytest.raises(tensolite.SizeMismatchError):
        tensor.set_to([[1, 2, 3], [4, 5, 6]])
    assert tensor.checksum() == before
    assert tensor.copy_to() == [[1, 2], [3, 4]]
    assert allocator.outstanding == 0


def test_set_to_type_mismatch_leaves_buffer(make_tensor):
    tensor = make_tensor([2], ElementType.INT32)
    tensor.set_to([1, 2])
    with pytest.raises(tensolite.TypeMismatchError):
        tensor.set_to([1, 2.0])
    assert tensor.copy_to() == [1, 2]


def test_data_setter(make_tensor):
    tensor = make_tensor([1], ElementType.INT32)
    tensor.data = struct.pack("<i", 99)
    assert tensor.copy_to() == [99]
    with pytest.raises(tensolite.SizeMismatchError):
        tensor.data = b"\x00"


def test_copy_to_list_destination(make_tensor):
    tensor = make_tensor([2, 3], ElementType.INT32)
    tensor.set_to([[1, 2, 3], [4, 5, 6]])
    destination = [[0, 0, 0], [0, 0, 0]]
    result = tensor.copy_to(destination)
    assert destination == [[1, 2, 3], [4, 5, 6]]
    assert result == destination


def test_copy_to_destination_shape_mismatch(make_tensor, allocator):
    """Destination [2, 3] against a [3, 2] tensor names both shapes."""
    tensor = make_tensor([3, 2], ElementType.INT32)
    tensor.set_to([[1, 2], [3, 4], [5, 6]])
    destination = [[0, 0, 0], [0, 0, 0]]
    with pytest.raises(tensolite.ShapeMismatchError) as exc:
        tensor.copy_to(destination)
    assert exc.value.expected == [3, 2]
    assert exc.value.actual == [2, 3]
    assert "[3, 2]" in str(exc.value) and "[2, 3]" in str(exc.value)
    assert destination == [[0, 0, 0], [0, 0, 0]]
    assert allocator.outstanding == 0


def test_copy_to_bytearray_destination(make_tensor):
    tensor = make_tensor([2], ElementType.INT16)
    tensor.set_to([-1, 258])
    destination = bytearray(4)
    result = tensor.copy_to(destination)
    assert destination == struct.pack("<2h", -1, 258)
    assert result == bytes(destination)

    with pytest.raises(tensolite.SizeMismatchError):
        tensor.copy_to(bytearray(3))


def test_copy_to_bytes_returns_raw(make_tensor):
    tensor = make_tensor([1], ElementType.INT8)
    tensor.set_to([-5])
    assert tensor.copy_to(b"") == b"\xfb"


def test_copy_to_ndarray_destination(make_tensor):
    tensor = make_tensor([2, 2])
    tensor.set_to([[0.5, 1.5], [2.5, 3.5]])
    destination = np.zeros((2, 2), dtype=np.float32)
    tensor.copy_to(destination)
    assert destination.tolist() == [[0.5, 1.5], [2.5, 3.5]]
    with pytest.raises(tensolite.ShapeMismatchError):
        tensor.copy_to(np.zeros((4,), dtype=np.float32))


def test_copy_to_ndarray_refuses_narrowing(make_tensor):
    """Values that do not fit the destination dtype never wrap silently."""
    tensor = make_tensor([2], ElementType.INT64)
    tensor.set_to([2**40, -1])
    destination = np.zeros(2, dtype=np.int32)
    with pytest.raises(tensolite.ValueOutOfRangeError):
        tensor.copy_to(destination)
    assert destination.tolist() == [0, 0]

    wide = np.zeros(2, dtype=np.int64)
    tensor.copy_to(wide)
    assert wide.tolist() == [2**40, -1]


def test_copy_to_ndarray_narrowing_within_range(make_tensor):
    tensor = make_tensor([3], ElementType.INT64)
    tensor.set_to([1, -2, 3])
    destination = np.zeros(3, dtype=np.int8)
    tensor.copy_to(destination)
    assert destination.tolist() == [1, -2, 3]


def test_copy_to_ndarray_float_overflow(make_tensor):
    tensor = make_tensor([2], ElementType.FLOAT64)
    tensor.set_to([1e300, 0.5])
    destination = np.zeros(2, dtype=np.float32)
    with pytest.raises(tensolite.ValueOutOfRangeError):
        tensor.copy_to(destination)
    assert destination.tolist() == [0.0, 0.0]


def test_copy_to_ndarray_kind_mismatch(make_tensor):
    tensor = make_tensor([2])
    tensor.set_to([0.5, 1.5])
    with pytest.raises(tensolite.TypeMismatchError):
        tensor.copy_to(np.zeros(2, dtype=np.int32))


def test_set_to_list_of_array_rows(make_tensor):
    tensor = make_tensor([2, 2])
    tensor.set_to([np.array([1.0, 2.0]), np.array([3.0, 4.0])])
    assert tensor.copy_to() == [[1.0, 2.0], [3.0, 4.0]]


def test_copy_to_native_failure_releases_scratch(make_tensor, allocator):
    tensor = make_tensor([4], ElementType.INT32)
    tensor.handle.fail_copies = True
    with pytest.raises(tensolite.NativeCallError):
        tensor.copy_to()
    assert allocator.allocations == 1
    assert allocator.outstanding == 0


def test_copy_to_refreshes_own_buffer(make_tensor):
    tensor = make_tensor([3], ElementType.UINT8)
    tensor.set_to([1, 2, 3])
    before = tensor.checksum()
    assert tensor.copy_to() == [1, 2, 3]
    assert tensor.checksum() == before


def test_scalar_tensor(make_tensor):
    tensor = make_tensor([], ElementType.FLOAT32)
    tensor.set_to(2.5)
    assert tensor.copy_to() == 2.5
    with pytest.raises(tensolite.ShapeMismatchError):
        tensor.copy_to([0.0])


# --- Float16 ---


def test_float16_tensor_default_truncates(make_tensor):
    tensor = make_tensor([1], ElementType.FLOAT16)
    tensor.set_to([1.1])
    assert bytes(tensor.data) == struct.pack("<f", 1.1)[:2]


def test_float16_tensor_ieee(make_tensor):
    tensor = make_tensor([2], ElementType.FLOAT16, ieee_half=True)
    tensor.set_to([1.5, -0.25])
    assert bytes(tensor.data) == struct.pack("<2e", 1.5, -0.25)
    assert tensor.copy_to() == [1.5, -0.25]


# --- Resizing ---


def test_get_input_shape_if_different(make_tensor):
    tensor = make_tensor([2, 3])
    assert tensor.get_input_shape_if_different(None) is None
    assert tensor.get_input_shape_if_different(b"\x00" * 24) is None
    assert tensor.get_input_shape_if_different(bytearray(4)) is None
    assert tensor.get_input_shape_if_different([[0.0] * 3] * 2) is None
    assert tensor.get_input_shape_if_different([[0.0] * 2] * 3) == [3, 2]
    assert tensor.get_input_shape_if_different(np.zeros((1, 2, 3))) == [1, 2, 3]


def test_resize_then_write(make_tensor):
    tensor = make_tensor([1, 2])
    value = [[1.0, 2.0], [3.0, 4.0]]
    new_shape = tensor.get_input_shape_if_different(value)
    tensor.handle.resize(new_shape)
    tensor.set_to(value)
    assert tensor.shape == [2, 2]
    assert tensor.copy_to() == value


def test_host_tensor_from_array():
    handle = tensolite.host_tensor_from_array("w", np.array([[1, -1]], dtype=np.int64))
    tensor = Tensor(handle)
    assert tensor.type == ElementType.INT32
    assert tensor.copy_to() == [[1, -1]]

    handle = tensolite.host_tensor_from_array(
        "q",
        np.array([3], dtype=np.uint8),
        quantization=QuantizationParams(0.1, 0),
    )
    assert Tensor(handle).params == (0.1, 0)


def test_host_handle_rejects_wrong_initial_data():
    with pytest.raises(ValueError):
        HostTensorHandle("t", ElementType.INT32, [2], data=b"\x00" * 4)
