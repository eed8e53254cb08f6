"""Benchmark circuit building and step execution."""

import time
from typing import Dict

import torch

import quditflow as qf
from quditflow.backend.statevector import apply, apply_controlled, zero_state
from quditflow.gates import Fd, Xd


def benchmark_gate_application(
    n_qudits: int,
    dim: int = 2,
    n_gates: int = 1000,
    dtype: torch.dtype = torch.complex128,
) -> Dict[str, float]:
    """Benchmark single-qudit and controlled kernels on a state vector.

    Args:
        n_qudits: Number of qudits.
        dim: Qudit dimension.
        n_gates: Number of gates to apply.
        dtype: Data type.

    Returns:
        Dictionary with timing results.
    """
    state = zero_state(n_qudits, dim, dtype=dtype)
    fourier = Fd(dim, dtype=dtype)
    shift = Xd(dim, dtype=dtype)

    # Warmup
    for _ in range(10):
        apply(state, fourier, [0], dim)

    start = time.perf_counter()
    for i in range(n_gates):
        q = i % n_qudits
        if i % 2 == 0:
            state = apply(state, fourier, [q], dim)
        else:
            state = apply_controlled(state, shift, [q], [(q + 1) % n_qudits], dim)
    end = time.perf_counter()

    total_time = end - start
    return {
        "n_qudits": n_qudits,
        "dim": dim,
        "n_gates": n_gates,
        "total_time_sec": total_time,
        "time_per_gate_sec": total_time / n_gates,
        "gates_per_sec": n_gates / total_time,
    }


def benchmark_engine_run(
    n_qudits: int,
    dim: int = 2,
    depth: int = 20,
    n_runs: int = 10,
) -> Dict[str, float]:
    """Benchmark building a layered circuit and running it end to end.

    Args:
        n_qudits: Number of qudits.
        dim: Qudit dimension.
        depth: Number of Fourier plus controlled-shift layers.
        n_runs: Number of engine runs to time.

    Returns:
        Dictionary with timing results.
    """
    start = time.perf_counter()
    circuit = qf.QuditCircuit(n_qudits, n_qudits, dim=dim, name="layers")
    for _ in range(depth):
        circuit.gate_fan(Fd(dim))
        for q in range(n_qudits - 1):
            circuit.ctrl(Xd(dim), q, q + 1)
    for q in range(n_qudits):
        circuit.measure_z(q, q)
    build_time = time.perf_counter() - start

    start = time.perf_counter()
    for seed in range(n_runs):
        qf.QuditEngine(circuit, config=qf.EngineConfig(seed=seed)).run()
    run_time = time.perf_counter() - start

    return {
        "n_qudits": n_qudits,
        "dim": dim,
        "n_steps": circuit.step_count,
        "build_time_sec": build_time,
        "time_per_run_sec": run_time / n_runs,
        "steps_per_sec": circuit.step_count * n_runs / run_time,
    }


if __name__ == "__main__":
    print("Benchmarking gate application...")

    results = benchmark_gate_application(n_qudits=8, dim=2, n_gates=1000)
    print("Qubits (8 qudits, dim=2, 1000 gates):")
    print(f"  Time per gate: {results['time_per_gate_sec']*1e6:.2f} us")
    print(f"  Gates per second: {results['gates_per_sec']:.0f}")

    results = benchmark_gate_application(n_qudits=5, dim=3, n_gates=1000)
    print("\nQutrits (5 qudits, dim=3, 1000 gates):")
    print(f"  Time per gate: {results['time_per_gate_sec']*1e6:.2f} us")
    print(f"  Gates per second: {results['gates_per_sec']:.0f}")

    results = benchmark_engine_run(n_qudits=6, dim=3, depth=20, n_runs=10)
    print(f"\nEngine run (6 qutrits, {results['n_steps']} steps):")
    print(f"  Build time: {results['build_time_sec']*1e3:.2f} ms")
    print(f"  Time per run: {results['time_per_run_sec']*1e3:.2f} ms")
    print(f"  Steps per second: {results['steps_per_sec']:.0f}")
