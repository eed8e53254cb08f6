"""Structured reports and JSON import/export."""

from .json_ir import (
    circuit_to_json,
    dump_json,
    dump_json_circuit,
    engine_to_json,
    json_to_circuit,
    load_json_circuit,
)
from .schema import REPORT_VERSION, validate_circuit_report

__all__ = [
    "REPORT_VERSION",
    "circuit_to_json",
    "json_to_circuit",
    "engine_to_json",
    "dump_json",
    "dump_json_circuit",
    "load_json_circuit",
    "validate_circuit_report",
]
