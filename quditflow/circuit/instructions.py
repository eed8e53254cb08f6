"""Instruction records stored by :class:`~quditflow.circuit.core.QuditCircuit`."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class StepKind(Enum):
    """Tag of one entry in a circuit's global step order."""

    NONE = "NONE"
    GATE = "GATE"
    MEASUREMENT = "MEASUREMENT"

    def __str__(self) -> str:
        return self.value


class GateKind(Enum):
    """How a gate operand is applied to its qudits."""

    NONE = "NONE"
    SINGLE = "SINGLE"
    TWO = "TWO"
    THREE = "THREE"
    CUSTOM = "CUSTOM"
    FAN = "FAN"
    QFT = "QFT"
    TFQ = "TFQ"
    SINGLE_CTRL_SINGLE_TARGET = "SINGLE_CTRL_SINGLE_TARGET"
    SINGLE_CTRL_MULTIPLE_TARGET = "SINGLE_CTRL_MULTIPLE_TARGET"
    MULTIPLE_CTRL_SINGLE_TARGET = "MULTIPLE_CTRL_SINGLE_TARGET"
    MULTIPLE_CTRL_MULTIPLE_TARGET = "MULTIPLE_CTRL_MULTIPLE_TARGET"
    CUSTOM_CTRL = "CUSTOM_CTRL"
    SINGLE_CCTRL_SINGLE_TARGET = "SINGLE_cCTRL_SINGLE_TARGET"
    SINGLE_CCTRL_MULTIPLE_TARGET = "SINGLE_cCTRL_MULTIPLE_TARGET"
    MULTIPLE_CCTRL_SINGLE_TARGET = "MULTIPLE_cCTRL_SINGLE_TARGET"
    MULTIPLE_CCTRL_MULTIPLE_TARGET = "MULTIPLE_cCTRL_MULTIPLE_TARGET"
    CUSTOM_CCTRL = "CUSTOM_cCTRL"

    @property
    def is_quantum_controlled(self) -> bool:
        return self in _QUANTUM_CONTROLLED

    @property
    def is_classically_controlled(self) -> bool:
        return self in _CLASSICALLY_CONTROLLED

    def __str__(self) -> str:
        return self.value


_QUANTUM_CONTROLLED = frozenset(
    {
        GateKind.SINGLE_CTRL_SINGLE_TARGET,
        GateKind.SINGLE_CTRL_MULTIPLE_TARGET,
        GateKind.MULTIPLE_CTRL_SINGLE_TARGET,
        GateKind.MULTIPLE_CTRL_MULTIPLE_TARGET,
        GateKind.CUSTOM_CTRL,
    }
)

_CLASSICALLY_CONTROLLED = frozenset(
    {
        GateKind.SINGLE_CCTRL_SINGLE_TARGET,
        GateKind.SINGLE_CCTRL_MULTIPLE_TARGET,
        GateKind.MULTIPLE_CCTRL_SINGLE_TARGET,
        GateKind.MULTIPLE_CCTRL_MULTIPLE_TARGET,
        GateKind.CUSTOM_CCTRL,
    }
)


class MeasureKind(Enum):
    """How a measurement acts on its target qudits."""

    NONE = "NONE"
    MEASURE_Z = "MEASURE_Z"
    MEASURE_V = "MEASURE_V"
    MEASURE_V_MANY = "MEASURE_V_MANY"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class GateStep:
    """
    One recorded gate.

    ``controls`` holds qudit indices for quantum-controlled kinds, dit indices
    for classically-controlled kinds, and is empty otherwise.
    """

    kind: GateKind
    operand_hash: int
    controls: tuple[int, ...]
    targets: tuple[int, ...]
    name: str


@dataclass(frozen=True)
class MeasureStep:
    """
    One recorded measurement writing its outcome into dit ``dit``.

    ``operand_hashes`` is empty for computational-basis measurements.
    """

    kind: MeasureKind
    operand_hashes: tuple[int, ...]
    targets: tuple[int, ...]
    dit: int
    name: str


__all__ = ["StepKind", "GateKind", "MeasureKind", "GateStep", "MeasureStep"]
