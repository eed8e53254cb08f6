"""Quantum teleportation with classically controlled corrections.

Qubit 0 holds an arbitrary state which is moved to qubit 2 through a Bell
pair shared between qubits 1 and 2. The two measurement results are written
to dits 0 and 1 and drive the X and Z corrections on qubit 2.
"""

from __future__ import annotations

import torch

import quditflow as qf
from quditflow.gates import CNOT, H, T, X, Z


def build_circuit() -> qf.QuditCircuit:
    """Teleport T H |0> from qubit 0 to qubit 2."""
    circuit = qf.QuditCircuit(3, 2, name="teleport")

    # state to send
    circuit.gate(H(), 0).gate(T(), 0)

    # Bell pair on qubits 1 and 2
    circuit.gate(H(), 1).gate(CNOT(), 1, 2)

    # Bell measurement of qubits 0 and 1
    circuit.gate(CNOT(), 0, 1).gate(H(), 0)
    circuit.measure_z(0, 0).measure_z(1, 1)

    # corrections
    circuit.cctrl(X(), 1, 2).cctrl(Z(), 0, 2)
    return circuit


def main() -> None:
    """Run the teleportation circuit for a few seeds and check the result."""
    circuit = build_circuit()
    print(circuit)
    print()

    expected = T() @ H() @ torch.tensor([1.0, 0.0], dtype=torch.complex128)

    for seed in range(4):
        engine = qf.QuditEngine(circuit, config=qf.EngineConfig(seed=seed)).run()
        received = engine.state
        fidelity = torch.abs(torch.vdot(expected, received)).item() ** 2
        print(f"seed {seed}: dits = {engine.dits}, fidelity = {fidelity:.6f}")

    print("\nTeleportation finished")


if __name__ == "__main__":
    main()
