"""Structured (JSON-ready) reports for circuits and engines.

:func:`circuit_to_json` describes a circuit's shape, every step and the
aggregate counters. With ``include_operands=True`` the operator matrices are
embedded as well and :func:`json_to_circuit` can rebuild an equivalent
circuit from the report.

See schema.py for the report layout.
"""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any, Dict, Optional

import torch

from ..circuit.core import QuditCircuit
from ..circuit.instructions import GateKind, MeasureKind, StepKind
from .schema import REPORT_VERSION, validate_circuit_report

if TYPE_CHECKING:
    from ..engine.core import QuditEngine


def _operand_id(key: int) -> str:
    return f"{key:016x}"


def _encode_matrix(matrix: torch.Tensor) -> dict:
    flat = matrix.reshape(-1)
    return {
        "shape": list(matrix.shape),
        "real": flat.real.tolist(),
        "imag": flat.imag.tolist(),
    }


def _decode_matrix(obj: dict) -> torch.Tensor:
    real = torch.tensor(obj["real"], dtype=torch.float64)
    imag = torch.tensor(obj["imag"], dtype=torch.float64)
    return torch.complex(real, imag).reshape(obj["shape"])


def circuit_to_json(
    circuit: QuditCircuit,
    metadata: Optional[dict] = None,
    include_operands: bool = False,
) -> dict:
    """
    Convert a QuditCircuit to a structured report.

    Parameters
    ----------
    circuit : QuditCircuit
        Circuit to describe.
    metadata : dict, optional
        Extra JSON-serializable information stored under ``"metadata"``.
    include_operands : bool
        Embed operator matrices so the circuit can be rebuilt.

    Returns
    -------
    dict
        Report following the layout described in schema.py.
    """
    steps = []
    for view in circuit:
        record = view.step
        entry: Dict[str, Any] = {"step": view.ip, "type": str(record.kind)}
        if view.kind is StepKind.GATE:
            if record.controls:
                entry["controls"] = list(record.controls)
            entry["targets"] = list(record.targets)
            if include_operands:
                entry["operand"] = _operand_id(record.operand_hash)
        else:
            entry["targets"] = list(record.targets)
            entry["dit"] = record.dit
            if include_operands and record.operand_hashes:
                entry["operand"] = _operand_id(record.operand_hashes[0])
        entry["name"] = record.name
        steps.append(entry)

    result: Dict[str, Any] = {
        "version": REPORT_VERSION,
        "n_qudits": circuit.n_qudits,
        "n_dits": circuit.n_dits,
        "dim": circuit.dim,
        "name": circuit.name,
        "steps": steps,
        "gate_count": circuit.gate_count(),
        "measurement_count": circuit.measurement_count(),
        "measured": circuit.get_measured(),
        "non_measured": circuit.get_non_measured(),
    }

    if include_operands:
        table = circuit.operand_table
        result["operands"] = {
            _operand_id(key): _encode_matrix(table[key]) for key in table
        }

    if metadata:
        result["metadata"] = metadata

    result["endian"] = "little"
    return result


def json_to_circuit(obj: dict) -> QuditCircuit:
    """
    Rebuild a QuditCircuit from a report produced with
    ``include_operands=True``.

    Every step is replayed through the ordinary builder methods, so the
    rebuilt circuit is validated exactly like a hand-built one.

    Raises
    ------
    ValueError
        If the report is malformed or lacks embedded operands.
    """
    validate_circuit_report(obj)
    if "operands" not in obj:
        raise ValueError("report has no 'operands'; export with include_operands=True")

    operands = {key: _decode_matrix(value) for key, value in obj["operands"].items()}
    circuit = QuditCircuit(obj["n_qudits"], obj["n_dits"], obj["dim"], obj.get("name", ""))

    for entry in obj["steps"]:
        kind_name = entry["type"]
        targets = entry["targets"]
        name = entry["name"]
        matrix = operands.get(entry.get("operand", ""))

        if "dit" in entry:
            kind = MeasureKind(kind_name)
            if kind is MeasureKind.MEASURE_Z:
                circuit.measure_z(targets[0], entry["dit"], name)
            elif kind is MeasureKind.MEASURE_V:
                circuit.measure_v(_require(matrix, entry), targets[0], entry["dit"], name)
            elif kind is MeasureKind.MEASURE_V_MANY:
                circuit.measure_v(_require(matrix, entry), targets, entry["dit"], name)
            else:
                raise ValueError(f"Step {entry['step']}: cannot rebuild measurement {kind_name}")
            continue

        kind = GateKind(kind_name)
        controls = entry.get("controls", [])
        U = _require(matrix, entry)
        if kind in (GateKind.SINGLE, GateKind.TWO, GateKind.THREE):
            circuit.gate(U, *targets, name=name)
        elif kind is GateKind.CUSTOM:
            circuit.gate_custom(U, targets, name)
        elif kind is GateKind.FAN:
            circuit.gate_fan(U, targets, name)
        elif kind is GateKind.SINGLE_CTRL_SINGLE_TARGET:
            circuit.ctrl(U, controls[0], targets[0], name)
        elif kind is GateKind.SINGLE_CTRL_MULTIPLE_TARGET:
            circuit.ctrl(U, controls[0], targets, name)
        elif kind is GateKind.MULTIPLE_CTRL_SINGLE_TARGET:
            circuit.ctrl(U, controls, targets[0], name)
        elif kind is GateKind.MULTIPLE_CTRL_MULTIPLE_TARGET:
            circuit.ctrl(U, controls, targets, name)
        elif kind is GateKind.CUSTOM_CTRL:
            circuit.ctrl_custom(U, controls, targets, name)
        elif kind is GateKind.SINGLE_CCTRL_SINGLE_TARGET:
            circuit.cctrl(U, controls[0], targets[0], name)
        elif kind is GateKind.SINGLE_CCTRL_MULTIPLE_TARGET:
            circuit.cctrl(U, controls[0], targets, name)
        elif kind is GateKind.MULTIPLE_CCTRL_SINGLE_TARGET:
            circuit.cctrl(U, controls, targets[0], name)
        elif kind is GateKind.MULTIPLE_CCTRL_MULTIPLE_TARGET:
            circuit.cctrl(U, controls, targets, name)
        elif kind is GateKind.CUSTOM_CCTRL:
            circuit.cctrl_custom(U, controls, targets, name)
        else:
            raise ValueError(f"Step {entry['step']}: cannot rebuild gate {kind_name}")

    return circuit


def _require(matrix: Optional[torch.Tensor], entry: dict) -> torch.Tensor:
    if matrix is None:
        raise ValueError(f"Step {entry['step']}: missing or unknown operand")
    return matrix


def engine_to_json(engine: "QuditEngine") -> dict:
    """
    Describe an engine's classical results.

    Returns
    -------
    dict
        ``{"measured", "dits", "probs"}`` plus ``"noise_results"`` for a
        noisy engine.
    """
    result: Dict[str, Any] = {
        "measured": engine.get_measured(),
        "dits": engine.dits,
        "probs": engine.probs,
    }
    noise_results = getattr(engine, "noise_results", None)
    if noise_results is not None:
        result["noise_results"] = noise_results
    return result


def dump_json(obj: dict, path: str) -> None:
    """Write a report to ``path`` as indented JSON."""
    with open(path, "w", encoding="utf-8") as f:
        json.dump(obj, f, indent=2, ensure_ascii=False)


def dump_json_circuit(circuit: QuditCircuit, path: str) -> None:
    """Write a circuit, operands included, to a JSON file."""
    dump_json(circuit_to_json(circuit, include_operands=True), path)


def load_json_circuit(path: str) -> QuditCircuit:
    """
    Load a circuit written by :func:`dump_json_circuit`.

    Raises
    ------
    ValueError
        If the file is not valid JSON or not a valid report.
    FileNotFoundError
        If the file does not exist.
    """
    try:
        with open(path, "r", encoding="utf-8") as f:
            obj = json.load(f)
    except FileNotFoundError:
        raise FileNotFoundError(f"JSON circuit file not found: {path}")
    except json.JSONDecodeError as e:
        raise ValueError(f"Invalid JSON in file {path}: {e}")

    return json_to_circuit(obj)


__all__ = [
    "circuit_to_json",
    "json_to_circuit",
    "engine_to_json",
    "dump_json",
    "dump_json_circuit",
    "load_json_circuit",
]
