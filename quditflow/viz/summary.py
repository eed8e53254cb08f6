"""Plain-text rendering of circuits and engines."""

from __future__ import annotations

import sys
from typing import IO, TYPE_CHECKING, Dict, Optional

from ..circuit.core import QuditCircuit
from ..circuit.instructions import StepKind
from ..circuit.iterator import StepView

if TYPE_CHECKING:
    from ..engine.core import QuditEngine


def format_step(view: StepView, width: int = 0) -> str:
    """
    One line describing a step.

    Gates read ``<ip>: <TYPE>, [controls = [...], ]targets = [...], name = "..."``;
    measurements are prefixed with ``|> `` and also show the dit written to.
    """
    record = view.step
    ip = str(view.ip).rjust(width)
    if view.kind is StepKind.GATE:
        parts = [f"{ip}: {record.kind}"]
        if record.controls:
            label = "ctrl_dits" if record.kind.is_classically_controlled else "controls"
            parts.append(f"{label} = {list(record.controls)}")
        parts.append(f"targets = {list(record.targets)}")
        parts.append(f'name = "{record.name}"')
        return ", ".join(parts)
    return (
        f"|> {ip}: {record.kind}, targets = {list(record.targets)}, "
        f'dit = {record.dit}, name = "{record.name}"'
    )


def circuit_summary(circuit: QuditCircuit) -> Dict[str, object]:
    """
    Summary counters of a circuit.

    Returns
    -------
    Dict[str, object]
        ``n_qudits``, ``n_dits``, ``dim``, ``n_steps``, ``gate_count``,
        ``measurement_count``, ``gate_counts`` (per name),
        ``measurement_counts`` (per name) and ``n_operands``.
    """
    return {
        "n_qudits": circuit.n_qudits,
        "n_dits": circuit.n_dits,
        "dim": circuit.dim,
        "n_steps": circuit.step_count,
        "gate_count": circuit.gate_count(),
        "measurement_count": circuit.measurement_count(),
        "gate_counts": circuit.gate_name_counts,
        "measurement_counts": circuit.measurement_name_counts,
        "n_operands": len(circuit.operand_table),
    }


def format_circuit(circuit: QuditCircuit) -> str:
    """Multi-line listing: header, one line per step, then the counters."""
    width = len(str(max(circuit.step_count - 1, 0)))
    lines = [
        f"n_qudits = {circuit.n_qudits}, n_dits = {circuit.n_dits}, "
        f'dim = {circuit.dim}, name = "{circuit.name}"'
    ]
    lines.extend(format_step(view, width) for view in circuit)
    lines.append(f"gate count: {circuit.gate_count()}")
    lines.append(f"measurement count: {circuit.measurement_count()}")
    lines.append(f"measured positions: {circuit.get_measured()}")
    lines.append(f"non-measured positions: {circuit.get_non_measured()}")
    return "\n".join(lines)


def format_engine(engine: "QuditEngine") -> str:
    """Measured qudits, dit values and outcome probabilities of an engine."""
    lines = [
        f"measured: {engine.get_measured()}",
        f"dits: {engine.dits}",
        "probs: [" + ", ".join(f"{p:.6g}" for p in engine.probs) + "]",
    ]
    noise_results = getattr(engine, "noise_results", None)
    if noise_results is not None:
        lines.append(f"noise results: {noise_results}")
    return "\n".join(lines)


def print_circuit(circuit: QuditCircuit, file: Optional[IO[str]] = None) -> None:
    """
    Print :func:`format_circuit` to stdout or a file.

    Parameters
    ----------
    circuit:
        Circuit to print.
    file:
        File-like object to write to. If None, writes to sys.stdout.
    """
    if file is None:
        file = sys.stdout
    print(format_circuit(circuit), file=file)


def print_engine(engine: "QuditEngine", file: Optional[IO[str]] = None) -> None:
    """Print :func:`format_engine` to stdout or a file."""
    if file is None:
        file = sys.stdout
    print(format_engine(engine), file=file)


__all__ = [
    "format_step",
    "format_circuit",
    "format_engine",
    "circuit_summary",
    "print_circuit",
    "print_engine",
]
