import numpy as np
import tensolite
from tensolite import ElementType, HostTensorHandle, Tensor

# A host-backed tensor standing in for a runtime input
tensor = Tensor(HostTensorHandle("input", ElementType.FLOAT32, [1, 3]))

batch = [[0.1, 0.2, 0.3], [0.4, 0.5, 0.6]]

# Resize when the caller's value has a different shape
new_shape = tensor.get_input_shape_if_different(batch)
if new_shape is not None:
    print(f"Resizing {tensor.name}: {tensor.shape} -> {new_shape}")
    tensor.handle.resize(new_shape)

# Encode and write (all-or-nothing)
tensor.set_to(batch)
print(tensor)

# Copy out into a caller-owned destination
output = [[0.0] * 3, [0.0] * 3]
tensor.copy_to(output)
print(f"Copied: {output}")

# Zero-copy numpy view over the buffer
print(f"Mean: {tensor.numpy().mean():.4f}")

# Size mismatches never touch the buffer
try:
    tensor.set_to([1.0, 2.0])
except tensolite.SizeMismatchError as e:
    print(f"Rejected: {e}")

# int64 is big-endian on the wire
ids = Tensor(HostTensorHandle("ids", ElementType.INT64, [2]))
ids.set_to(np.array([1, 2]))
print(f"int64 bytes: {bytes(ids.data).hex()}")
