import argparse
import time

import numpy as np

import tensolite
from tensolite import ElementType, HostTensorHandle, Tensor

# --- BENCHMARK HELPERS ---


def timed(func, iterations):
    func()  # warmup
    t0 = time.perf_counter()
    for _ in range(iterations):
        func()
    return ((time.perf_counter() - t0) / iterations) * 1000


def make_data(shape, element_type):
    if element_type == ElementType.INT32:
        return np.random.randint(-1000, 1000, size=shape).astype(np.int32)
    if element_type == ElementType.UINT8:
        return np.random.randint(0, 255, size=shape).astype(np.uint8)
    return np.random.rand(*shape).astype(np.float32)


# --- BENCHMARK RUNNERS ---


def run_marshalling():
    print("\n" + "=" * 80)
    print("BENCHMARK 1: SET_TO / COPY_TO (Nested Lists vs ndarray vs Raw Bytes)")
    print("=" * 80)

    SCENARIOS = [
        {"name": "API Vector", "shape": (1536,), "type": ElementType.FLOAT32},
        {"name": "Token Batch", "shape": (8, 512), "type": ElementType.INT32},
        {"name": "CV Image", "shape": (1, 224, 224, 3), "type": ElementType.UINT8},
    ]

    print(f"{'SCENARIO':<15} | {'INPUT':<12} | {'SIZE':<10} | {'SET_TO':<10} | {'COPY_TO':<10}")
    print("-" * 75)

    for scen in SCENARIOS:
        data = make_data(scen["shape"], scen["type"])
        tensor = Tensor(HostTensorHandle("bench", scen["type"], scen["shape"]))
        inputs = {
            "Nested list": data.tolist(),
            "ndarray": data,
            "Raw bytes": tensolite.flatten(data, scen["type"]),
        }
        iterations = 3 if data.size > 100_000 else 20
        size_str = f"{tensor.num_bytes() / 1024:.2f} KB"

        for name, value in inputs.items():
            t_set = timed(lambda: tensor.set_to(value), iterations)
            dest = bytearray(tensor.num_bytes()) if name == "Raw bytes" else None
            t_copy = timed(lambda: tensor.copy_to(dest), iterations)
            print(f"{scen['name']:<15} | {name:<12} | {size_str:<10} | {t_set:>7.3f} ms | {t_copy:>7.3f} ms")
        print("-" * 75)


def run_codec():
    print("\n" + "=" * 80)
    print("BENCHMARK 2: ELEMENT CODEC (Scalar Path vs Bulk Path)")
    print("=" * 80)

    data = np.random.rand(100_000).astype(np.float32)
    values = data.tolist()
    print(f"{'TYPE':<10} | {'SCALAR (ms)':<12} | {'BULK (ms)':<10}")
    print("-" * 40)

    for element_type in (ElementType.FLOAT32, ElementType.FLOAT16):
        codec = tensolite.get_codec(element_type)
        t_scalar = timed(lambda: b"".join(codec.encode(v) for v in values), 3)
        t_bulk = timed(lambda: codec.encode_many(data), 3)
        print(f"{element_type.name:<10} | {t_scalar:>12.2f} | {t_bulk:>10.2f}")


# --- MAIN ---

if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Tensolite Benchmarks")
    parser.add_argument("mode", nargs="?", choices=["all", "tensor", "codec"], default="all",
                        help="Benchmark mode: tensor (set_to/copy_to), codec (element codec)")

    args = parser.parse_args()

    if args.mode in ["all", "tensor"]: run_marshalling()
    if args.mode in ["all", "codec"]: run_codec()
