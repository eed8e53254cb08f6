"""Tests for StepIterator and StepView."""

from __future__ import annotations

import pytest

from quditflow.circuit import GateKind, MeasureKind, QuditCircuit, StepIterator, StepKind
from quditflow.errors import InvalidCursorError
from quditflow.gates import CNOT, H, X


def _mixed_circuit() -> QuditCircuit:
    qc = QuditCircuit(3, 2)
    qc.gate(H(), 0)
    qc.measure_z(2, 0)
    qc.gate(CNOT(), 0, 1)
    qc.gate(X(), 1)
    qc.measure_z(1, 1)
    return qc


def test_iteration_yields_steps_in_append_order() -> None:
    qc = _mixed_circuit()
    views = list(qc)

    assert [v.ip for v in views] == [0, 1, 2, 3, 4]
    assert [v.kind for v in views] == list(qc.step_kinds)
    assert views[0].step.kind is GateKind.SINGLE
    assert views[1].step.kind is MeasureKind.MEASURE_Z
    assert views[2].step.targets == (0, 1)
    assert views[4].step.dit == 1
    assert views[1].is_measurement and not views[1].is_gate
    assert all(v.circuit is qc for v in views)


def test_begin_advanced_step_count_times_equals_end() -> None:
    qc = _mixed_circuit()
    it = qc.begin()
    for _ in range(qc.step_count):
        assert it != qc.end()
        it.advance()
    assert it == qc.end()
    assert it.at_end
    assert it.kind is StepKind.NONE
    assert it.gate_cursor == len(qc.gate_steps)
    assert it.measure_cursor == len(qc.measure_steps)


def test_cursors_track_each_list() -> None:
    qc = _mixed_circuit()
    it = qc.begin()
    positions = []
    while not it.at_end:
        positions.append((it.kind, it.gate_cursor, it.measure_cursor))
        it.advance()
    assert positions == [
        (StepKind.GATE, 0, 0),
        (StepKind.MEASUREMENT, 1, 0),
        (StepKind.GATE, 1, 1),
        (StepKind.GATE, 2, 1),
        (StepKind.MEASUREMENT, 3, 1),
    ]


def test_advance_past_end_raises() -> None:
    qc = _mixed_circuit()
    it = qc.end()
    with pytest.raises(InvalidCursorError, match="past the end"):
        it.advance()


def test_deref_at_end_raises() -> None:
    qc = _mixed_circuit()
    with pytest.raises(InvalidCursorError):
        qc.end().deref()


def test_empty_circuit() -> None:
    qc = QuditCircuit(1)
    assert qc.begin() == qc.end()
    assert list(qc) == []
    with pytest.raises(InvalidCursorError, match="empty circuit"):
        qc.begin().advance()


def test_unattached_iterator() -> None:
    it = StepIterator()
    assert it.circuit is None
    assert it.at_end
    with pytest.raises(InvalidCursorError, match="unattached"):
        it.advance()
    with pytest.raises(InvalidCursorError, match="unattached"):
        it.deref()
    assert it == StepIterator(None)


def test_copy_is_independent() -> None:
    qc = _mixed_circuit()
    it = qc.begin()
    it.advance()
    other = it.copy()
    other.advance()
    assert it.ip == 1
    assert other.ip == 2
    assert it != other
    assert it.copy() == it
    assert hash(it.copy()) == hash(it)


def test_value_matches_deref() -> None:
    qc = _mixed_circuit()
    it = qc.begin().advance()
    assert it.value == it.deref()
    assert it.value.step is qc.measure_steps[0]


def test_iterator_sees_later_appends() -> None:
    """Appends after an iterator was created are still reachable from it."""
    qc = QuditCircuit(2)
    qc.gate(H(), 0)
    it = qc.begin()
    qc.gate(X(), 1)
    it.advance()
    assert not it.at_end
    assert it.deref().step.name == "X"


def test_begin_on_empty_circuit_sees_later_appends() -> None:
    """An iterator taken before any append walks the steps added later."""
    qc = QuditCircuit(2, 1)
    it = qc.begin()
    assert it.kind is StepKind.NONE
    qc.gate(H(), 0)
    qc.measure_z(1, 0)
    qc.gate(X(), 0)

    assert it.kind is StepKind.GATE
    views = list(it)
    assert [v.kind for v in views] == [StepKind.GATE, StepKind.MEASUREMENT, StepKind.GATE]
    assert views[0].step is qc.gate_steps[0]
    assert views[1].step is qc.measure_steps[0]
    assert views[2].step is qc.gate_steps[1]
    assert it == qc.end()


def test_begin_on_empty_circuit_with_only_gates() -> None:
    qc = QuditCircuit(2)
    it = qc.begin()
    qc.gate(H(), 0)
    qc.gate(X(), 1)
    assert [v.step.name for v in it] == ["H", "X"]
    assert (it.gate_cursor, it.measure_cursor) == (2, 0)
