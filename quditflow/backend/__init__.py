"""Numeric state vector backend."""

from .statevector import (
    StatevectorBackend,
    apply,
    apply_controlled,
    kraus_branches,
    measure,
    measure_probs,
    measure_sequential,
    num_qudits,
    power,
    sample_index,
    tensor_power,
    zero_state,
)

__all__ = [
    "StatevectorBackend",
    "zero_state",
    "num_qudits",
    "apply",
    "apply_controlled",
    "kraus_branches",
    "measure",
    "measure_probs",
    "measure_sequential",
    "power",
    "sample_index",
    "tensor_power",
]
