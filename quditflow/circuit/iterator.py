"""Forward cursor over a circuit's interleaved gate and measurement steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING, Optional, Union

from ..errors import InvalidCursorError
from .instructions import GateStep, MeasureStep, StepKind

if TYPE_CHECKING:
    from .core import QuditCircuit


@dataclass(frozen=True)
class StepView:
    """Read-only view of one circuit step as seen by a :class:`StepIterator`."""

    circuit: "QuditCircuit"
    kind: StepKind
    ip: int
    step: Union[GateStep, MeasureStep]

    @property
    def is_gate(self) -> bool:
        return self.kind is StepKind.GATE

    @property
    def is_measurement(self) -> bool:
        return self.kind is StepKind.MEASUREMENT


class StepIterator:
    """
    Bounds-checked forward cursor over a :class:`QuditCircuit`.

    The cursor tracks the global instruction pointer ``ip`` plus one cursor
    per step list; ``kind`` tells which list the current step comes from.
    Two iterators compare equal when their ``(kind, ip, gate_cursor,
    measure_cursor)`` positions match.

    A ``StepIterator(None)`` is unattached: it compares and copies like any
    other iterator but cannot be advanced or dereferenced.

    The Python iterator protocol yields :class:`StepView` objects from the
    current position to the end.
    """

    def __init__(self, circuit: Optional["QuditCircuit"] = None) -> None:
        self._circuit = circuit
        self._ip = 0
        self._gate_cursor = 0
        self._measure_cursor = 0
        if circuit is not None and circuit.step_count > 0:
            self._kind = circuit._kind_at(0)
        else:
            self._kind = StepKind.NONE

    @classmethod
    def begin(cls, circuit: "QuditCircuit") -> "StepIterator":
        """Iterator positioned on the first step of ``circuit``."""
        return cls(circuit)

    @classmethod
    def end(cls, circuit: "QuditCircuit") -> "StepIterator":
        """Iterator positioned one past the last step of ``circuit``."""
        it = cls(circuit)
        it._ip = circuit.step_count
        it._gate_cursor = len(circuit.gate_steps)
        it._measure_cursor = len(circuit.measure_steps)
        it._kind = StepKind.NONE
        return it

    @property
    def circuit(self) -> Optional["QuditCircuit"]:
        return self._circuit

    @property
    def ip(self) -> int:
        return self._ip

    @property
    def kind(self) -> StepKind:
        self._refresh_kind()
        return self._kind

    @property
    def gate_cursor(self) -> int:
        return self._gate_cursor

    @property
    def measure_cursor(self) -> int:
        return self._measure_cursor

    @property
    def at_end(self) -> bool:
        return self._circuit is None or self._ip >= self._circuit.step_count

    def _refresh_kind(self) -> None:
        # Steps appended after the iterator was created land at or past ip.
        circuit = self._circuit
        if (
            circuit is not None
            and self._kind is StepKind.NONE
            and self._ip < circuit.step_count
        ):
            self._kind = circuit._kind_at(self._ip)

    def _position(self) -> tuple[StepKind, int, int, int]:
        self._refresh_kind()
        return (self._kind, self._ip, self._gate_cursor, self._measure_cursor)

    def advance(self) -> "StepIterator":
        """
        Move to the next step.

        Raises:
            InvalidCursorError: If the iterator is unattached, the circuit
                has no steps, or the iterator is already at the end.
        """
        circuit = self._circuit
        if circuit is None:
            raise InvalidCursorError("cannot advance an unattached iterator", operation="advance")
        if circuit.step_count == 0:
            raise InvalidCursorError("cannot advance over an empty circuit", operation="advance")
        if self._ip >= circuit.step_count:
            raise InvalidCursorError(
                "cannot advance past the end", operation="advance", step=self._ip
            )

        self._refresh_kind()
        if self._kind is StepKind.GATE:
            self._gate_cursor += 1
        elif self._kind is StepKind.MEASUREMENT:
            self._measure_cursor += 1

        self._ip += 1
        if self._ip < circuit.step_count:
            self._kind = circuit._kind_at(self._ip)
        else:
            self._kind = StepKind.NONE
        return self

    def deref(self) -> StepView:
        """
        Return a view of the current step.

        Raises:
            InvalidCursorError: If the iterator is unattached or at the end.
        """
        circuit = self._circuit
        if circuit is None:
            raise InvalidCursorError(
                "cannot dereference an unattached iterator", operation="deref"
            )
        if self._ip >= circuit.step_count:
            raise InvalidCursorError(
                "cannot dereference past the end", operation="deref", step=self._ip
            )

        self._refresh_kind()
        step: Union[GateStep, MeasureStep]
        if self._kind is StepKind.GATE:
            step = circuit._gate_at(self._gate_cursor)
        elif self._kind is StepKind.MEASUREMENT:
            step = circuit._measure_at(self._measure_cursor)
        else:
            raise InvalidCursorError(
                f"cannot dereference a step of kind {self._kind}",
                operation="deref",
                step=self._ip,
            )
        return StepView(circuit=circuit, kind=self._kind, ip=self._ip, step=step)

    @property
    def value(self) -> StepView:
        return self.deref()

    def copy(self) -> "StepIterator":
        """Return an independent iterator at the same position."""
        other = StepIterator.__new__(StepIterator)
        other._circuit = self._circuit
        other._ip = self._ip
        other._gate_cursor = self._gate_cursor
        other._measure_cursor = self._measure_cursor
        other._kind = self._kind
        return other

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, StepIterator):
            return NotImplemented
        return self._position() == other._position()

    def __hash__(self) -> int:
        return hash(self._position())

    def __iter__(self) -> "StepIterator":
        return self

    def __next__(self) -> StepView:
        if self.at_end:
            raise StopIteration
        view = self.deref()
        self.advance()
        return view

    def __repr__(self) -> str:
        return (
            f"StepIterator(kind={self._kind}, ip={self._ip}, "
            f"gate_cursor={self._gate_cursor}, measure_cursor={self._measure_cursor})"
        )


__all__ = ["StepIterator", "StepView"]
