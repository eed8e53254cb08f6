"""Text rendering utilities."""

from .summary import (
    circuit_summary,
    format_circuit,
    format_engine,
    format_step,
    print_circuit,
    print_engine,
)

__all__ = [
    "format_step",
    "format_circuit",
    "format_engine",
    "circuit_summary",
    "print_circuit",
    "print_engine",
]
