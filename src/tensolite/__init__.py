import logging

from .buffer import checksum, copy_out, read_view, scratch, write_from
from .codec import CODECS, IEEE_FLOAT16, decode, encode, get_codec, width
from .core import flatten, iter_flatten, unflatten, unflatten_array
from .errors import (
    ByteLengthMismatchError,
    InvalidShapeError,
    NativeCallError,
    ShapeMismatchError,
    SizeMismatchError,
    TensoliteError,
    TypeMismatchError,
    UnsupportedElementTypeError,
    ValueOutOfRangeError,
)
from .host import HostAllocator, HostTensorHandle, host_tensor_from_array
from .shape import compute_shape, infer_element_type, num_dimensions, num_elements
from .tensor import Tensor
from .types import NO_QUANTIZATION, ElementType, QuantizationParams, Scalar, Status

logging.getLogger(__name__).addHandler(logging.NullHandler())

__all__ = [
    "Tensor",
    "ElementType", "QuantizationParams", "NO_QUANTIZATION", "Scalar", "Status",
    "compute_shape", "infer_element_type", "num_dimensions", "num_elements",
    "encode", "decode", "get_codec", "width", "CODECS", "IEEE_FLOAT16",
    "flatten", "iter_flatten", "unflatten", "unflatten_array",
    "read_view", "write_from", "copy_out", "checksum", "scratch",
    "HostAllocator", "HostTensorHandle", "host_tensor_from_array",
    "TensoliteError", "InvalidShapeError", "ShapeMismatchError",
    "UnsupportedElementTypeError", "TypeMismatchError", "ValueOutOfRangeError",
    "SizeMismatchError", "ByteLengthMismatchError", "NativeCallError",
]
