"""
Configuration and Runtime Constants for Tensolite.
"""

import numpy as np

from .types import ElementType

# --- Safety Limits ---
MAX_NDIM = 32  #: Maximum dimensions accepted from caller values
MAX_ELEMENTS = 10**9  #: Maximum elements decoded from a single buffer

# --- Float16 ---
IEEE_HALF_PRECISION = False  #: Default float16 path (False = truncated float32)

# --- Wire Dtypes ---
# Byte order is explicit per type. INT64 is big-endian on the wire, every
# other multi-byte type is little-endian.
_WIRE_DTYPES = {
    ElementType.FLOAT32: np.dtype("<f4"),
    ElementType.INT32: np.dtype("<i4"),
    ElementType.UINT8: np.dtype("u1"),
    ElementType.INT64: np.dtype(">i8"),
    ElementType.BOOL: np.dtype("?"),
    ElementType.INT16: np.dtype("<i2"),
    ElementType.INT8: np.dtype("i1"),
    ElementType.FLOAT16: np.dtype("<u2"),
    ElementType.FLOAT64: np.dtype("<f8"),
}

_IEEE_FLOAT16_DTYPE = np.dtype("<f2")

# Host ndarray dtype -> element type, used when inferring from arrays.
_NUMPY_TO_ELEMENT = {
    np.dtype("float32"): ElementType.FLOAT32,
    np.dtype("float64"): ElementType.FLOAT32,
    np.dtype("float16"): ElementType.FLOAT16,
    np.dtype("int32"): ElementType.INT32,
    np.dtype("int64"): ElementType.INT32,
    np.dtype("int16"): ElementType.INT16,
    np.dtype("int8"): ElementType.INT8,
    np.dtype("uint8"): ElementType.UINT8,
    np.dtype("bool"): ElementType.BOOL,
}
