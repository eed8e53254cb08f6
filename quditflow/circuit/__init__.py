"""Circuit representation: instruction records, builder and step iterator."""

from .core import Namer, QuditCircuit
from .instructions import GateKind, GateStep, MeasureKind, MeasureStep, StepKind
from .iterator import StepIterator, StepView
from .operands import OperandTable, as_operator, content_hash, matrices_equal

__all__ = [
    "QuditCircuit",
    "Namer",
    "StepKind",
    "GateKind",
    "MeasureKind",
    "GateStep",
    "MeasureStep",
    "StepIterator",
    "StepView",
    "OperandTable",
    "as_operator",
    "content_hash",
    "matrices_equal",
]
