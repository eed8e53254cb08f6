"""Layout and validation of circuit reports.

Report structure:
    {
        "version": "quditflow-json-1.0",
        "n_qudits": <integer >= 1>,
        "n_dits": <integer >= 0>,
        "dim": <integer >= 2>,
        "name": <string>,
        "steps": [
            {
                "step": <integer>,             # global step index
                "type": <string>,              # GateKind / MeasureKind value
                "controls": [<integer>, ...],  # only for controlled gates
                "targets": [<integer>, ...],
                "dit": <integer>,              # only for measurements
                "operand": <string>,           # only with embedded operands
                "name": <string>,
            },
            ...
        ],
        "gate_count": <integer>,
        "measurement_count": <integer>,
        "measured": [<integer>, ...],
        "non_measured": [<integer>, ...],
        "operands": {<string>: {"shape", "real", "imag"}},  # optional
        "metadata": {...},                                     # optional
        "endian": "little"                                     # optional
    }

Qudit ordering convention: qudit 0 is the least significant digit of the
basis index, matching the state vector backend.
"""

from __future__ import annotations

from typing import Any

REPORT_VERSION = "quditflow-json-1.0"

_REQUIRED_INTS = {"n_qudits": 1, "n_dits": 0, "dim": 2, "gate_count": 0, "measurement_count": 0}


def _check_index_list(value: Any, where: str, field: str, bound: int) -> None:
    if not isinstance(value, list):
        raise ValueError(f"{where}: field '{field}' must be a list.")
    for j, q in enumerate(value):
        if not isinstance(q, int) or isinstance(q, bool):
            raise ValueError(
                f"{where}: {field}[{j}] must be an integer, got {type(q).__name__}."
            )
        if q < 0 or q >= bound:
            raise ValueError(f"{where}: {field}[{j}] = {q} is out of range [0, {bound}).")


def validate_circuit_report(obj: dict) -> None:
    """
    Validate a circuit report.

    Checks required fields, their types and index ranges. Raises ValueError
    with a descriptive message on the first problem found.

    Parameters
    ----------
    obj : dict
        Report to validate.

    Raises
    ------
    ValueError
        If the report does not follow the layout.
    """
    if not isinstance(obj, dict):
        raise ValueError("Circuit report must be a dictionary object.")

    if "version" not in obj:
        raise ValueError("Circuit report missing required field 'version'.")
    if obj["version"] != REPORT_VERSION:
        raise ValueError(
            f"Unsupported report version {obj['version']!r}, expected {REPORT_VERSION!r}."
        )

    for field, minimum in _REQUIRED_INTS.items():
        if field not in obj:
            raise ValueError(f"Circuit report missing required field '{field}'.")
        value = obj[field]
        if not isinstance(value, int) or isinstance(value, bool):
            raise ValueError(f"Field '{field}' must be an integer.")
        if value < minimum:
            raise ValueError(f"Field '{field}' must be >= {minimum}, got {value}.")

    if not isinstance(obj.get("name", ""), str):
        raise ValueError("Field 'name' must be a string.")

    n_qudits = obj["n_qudits"]
    n_dits = obj["n_dits"]

    if "steps" not in obj:
        raise ValueError("Circuit report missing required field 'steps'.")
    if not isinstance(obj["steps"], list):
        raise ValueError("Field 'steps' must be a list.")

    for i, entry in enumerate(obj["steps"]):
        where = f"Step at index {i}"
        if not isinstance(entry, dict):
            raise ValueError(f"{where} must be a dictionary object.")
        for field in ("step", "type", "targets", "name"):
            if field not in entry:
                raise ValueError(f"{where} missing required field '{field}'.")
        if entry["step"] != i:
            raise ValueError(f"{where}: field 'step' must be {i}, got {entry['step']}.")
        if not isinstance(entry["type"], str):
            raise ValueError(f"{where}: field 'type' must be a string.")
        if not isinstance(entry["name"], str):
            raise ValueError(f"{where}: field 'name' must be a string.")
        _check_index_list(entry["targets"], where, "targets", n_qudits)

        if "dit" in entry:
            dit = entry["dit"]
            if not isinstance(dit, int) or dit < 0 or dit >= n_dits:
                raise ValueError(f"{where}: field 'dit' = {dit!r} is out of range [0, {n_dits}).")
        if "controls" in entry:
            # classically controlled gates list dits, the others list qudits
            bound = n_dits if "cCTRL" in entry["type"] else n_qudits
            _check_index_list(entry["controls"], where, "controls", bound)
        if "operand" in entry and not isinstance(entry["operand"], str):
            raise ValueError(f"{where}: field 'operand' must be a string.")

    for field in ("measured", "non_measured"):
        if field not in obj:
            raise ValueError(f"Circuit report missing required field '{field}'.")
        _check_index_list(obj[field], "Circuit report", field, n_qudits)

    if "operands" in obj:
        if not isinstance(obj["operands"], dict):
            raise ValueError("Field 'operands' must be a dictionary.")
        for key, value in obj["operands"].items():
            if not isinstance(value, dict) or not {"shape", "real", "imag"} <= set(value):
                raise ValueError(
                    f"Operand {key!r} must have fields 'shape', 'real' and 'imag'."
                )

    if "metadata" in obj and not isinstance(obj["metadata"], dict):
        raise ValueError("Field 'metadata' must be a dictionary.")

    if "endian" in obj and obj["endian"] not in ("little", "big"):
        raise ValueError(f"Field 'endian' must be 'little' or 'big', got {obj['endian']!r}.")


__all__ = ["REPORT_VERSION", "validate_circuit_report"]
