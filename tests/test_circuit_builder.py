"""Tests for the QuditCircuit builder and its queries."""

from __future__ import annotations

import pytest
import torch

from quditflow.circuit import GateKind, MeasureKind, QuditCircuit, StepKind
from quditflow.errors import (
    AlreadyMeasuredError,
    DuplicateIndexError,
    EmptyTargetSetError,
    IntegrityViolationError,
    InvalidIndexError,
    ShapeMismatchError,
    UnsupportedOperationError,
)
from quditflow.gates import CNOT, H, TOFFOLI, X, Xd, Z, Zd


class TestConstruction:
    def test_defaults(self) -> None:
        qc = QuditCircuit(3)
        assert qc.n_qudits == 3
        assert qc.n_dits == 0
        assert qc.dim == 2
        assert qc.name == ""
        assert qc.step_count == 0
        assert len(qc) == 0

    def test_zero_qudits_rejected(self) -> None:
        with pytest.raises(InvalidIndexError, match="n_qudits"):
            QuditCircuit(0)

    def test_dimension_below_two_rejected(self) -> None:
        with pytest.raises(ShapeMismatchError, match="dim"):
            QuditCircuit(2, 0, 1)

    def test_negative_dits_rejected(self) -> None:
        with pytest.raises(InvalidIndexError, match="n_dits"):
            QuditCircuit(2, -1)


class TestAppendGates:
    def test_step_count_is_sum_of_gates_and_measurements(self) -> None:
        """step_count equals the number of gate plus measurement records."""
        qc = QuditCircuit(3, 2)
        qc.gate(H(), 0).gate(CNOT(), 0, 1).measure_z(1, 0).gate(X(), 2).measure_z(0, 1)

        assert qc.step_count == len(qc.gate_steps) + len(qc.measure_steps)
        assert qc.step_count == 5
        assert qc.step_kinds == (
            StepKind.GATE,
            StepKind.GATE,
            StepKind.MEASUREMENT,
            StepKind.GATE,
            StepKind.MEASUREMENT,
        )

    def test_gate_kind_follows_target_count(self) -> None:
        qc = QuditCircuit(3)
        qc.gate(H(), 0).gate(CNOT(), 0, 1).gate(TOFFOLI(), 0, 1, 2)
        assert [g.kind for g in qc.gate_steps] == [GateKind.SINGLE, GateKind.TWO, GateKind.THREE]

    def test_gate_rejects_wrong_number_of_targets(self) -> None:
        qc = QuditCircuit(5)
        with pytest.raises(TypeError, match="gate_custom"):
            qc.gate(torch.eye(16), 0, 1, 2, 3)

    def test_gate_without_targets_is_empty_target_set(self) -> None:
        qc = QuditCircuit(2)
        qc.gate(H(), 0)
        with pytest.raises(EmptyTargetSetError, match="target list is empty") as excinfo:
            qc.gate(H())
        assert excinfo.value.operation == "gate"
        assert excinfo.value.step == 1
        assert qc.step_count == 1

    def test_out_of_range_target_leaves_circuit_unchanged(self) -> None:
        qc = QuditCircuit(2)
        qc.gate(H(), 0)
        with pytest.raises(InvalidIndexError, match="out of range") as excinfo:
            qc.gate(H(), 2)
        assert excinfo.value.step == 1
        assert excinfo.value.operation == "gate"
        assert "At step 1" in str(excinfo.value)
        assert qc.step_count == 1
        assert qc.gate_count() == 1

    def test_negative_target_rejected(self) -> None:
        qc = QuditCircuit(2)
        with pytest.raises(InvalidIndexError):
            qc.gate(H(), -1)

    def test_duplicate_targets_rejected(self) -> None:
        qc = QuditCircuit(2)
        with pytest.raises(DuplicateIndexError):
            qc.gate(CNOT(), 1, 1)
        assert qc.step_count == 0

    def test_wrong_operator_size_rejected(self) -> None:
        qc = QuditCircuit(2)
        with pytest.raises(ShapeMismatchError, match="4x4"):
            qc.gate(H(), 0, 1)

    def test_non_square_operator_rejected(self) -> None:
        qc = QuditCircuit(2)
        with pytest.raises(ShapeMismatchError, match="square"):
            qc.gate(torch.zeros(2, 3), 0)

    def test_qutrit_gate_needs_qutrit_operator(self) -> None:
        qc = QuditCircuit(2, dim=3)
        with pytest.raises(ShapeMismatchError):
            qc.gate(X(), 0)
        qc.gate(Xd(3), 0)
        assert qc.gate_count() == 1

    def test_operator_given_as_nested_list(self) -> None:
        qc = QuditCircuit(1)
        qc.gate([[0, 1], [1, 0]], 0)
        assert qc.gate_steps[0].name == "X"

    def test_gate_custom(self) -> None:
        qc = QuditCircuit(4)
        qc.gate_custom(torch.eye(16), [3, 0, 2, 1], name="I4")
        step = qc.gate_steps[0]
        assert step.kind is GateKind.CUSTOM
        assert step.targets == (3, 0, 2, 1)
        assert qc.gate_count("I4") == 1

    def test_gate_custom_empty_targets(self) -> None:
        qc = QuditCircuit(2)
        with pytest.raises(EmptyTargetSetError):
            qc.gate_custom(torch.eye(1), [])


class TestFanOut:
    def test_counter_grows_by_number_of_targets(self) -> None:
        qc = QuditCircuit(4)
        qc.gate_fan(H(), [0, 2, 3])
        assert qc.step_count == 1
        assert qc.gate_count() == 3
        assert qc.gate_count("H") == 3
        assert qc.gate_steps[0].kind is GateKind.FAN

    def test_no_targets_means_all_non_measured(self) -> None:
        qc = QuditCircuit(3, 1)
        qc.measure_z(1, 0)
        qc.gate_fan(X())
        assert qc.gate_steps[0].targets == (0, 2)
        assert qc.gate_count("X") == 2

    def test_duplicate_target_rejected(self) -> None:
        qc = QuditCircuit(3)
        with pytest.raises(DuplicateIndexError):
            qc.gate_fan(H(), [0, 1, 0])
        assert qc.step_count == 0

    def test_empty_target_list_rejected(self) -> None:
        qc = QuditCircuit(3)
        with pytest.raises(EmptyTargetSetError):
            qc.gate_fan(H(), [])
        assert qc.step_count == 0

    def test_fan_operator_must_be_single_qudit(self) -> None:
        qc = QuditCircuit(3)
        with pytest.raises(ShapeMismatchError):
            qc.gate_fan(CNOT(), [0, 1])


class TestControlled:
    @pytest.mark.parametrize(
        "ctrl, target, kind",
        [
            (0, 1, GateKind.SINGLE_CTRL_SINGLE_TARGET),
            (0, [1, 2], GateKind.SINGLE_CTRL_MULTIPLE_TARGET),
            ([0, 1], 2, GateKind.MULTIPLE_CTRL_SINGLE_TARGET),
            ([0, 1], [2, 3], GateKind.MULTIPLE_CTRL_MULTIPLE_TARGET),
        ],
    )
    def test_kind_follows_argument_shape(self, ctrl, target, kind) -> None:
        qc = QuditCircuit(4)
        qc.ctrl(X(), ctrl, target)
        step = qc.gate_steps[0]
        assert step.kind is kind
        assert step.kind.is_quantum_controlled
        assert not step.kind.is_classically_controlled

    def test_multiple_targets_are_all_recorded(self) -> None:
        qc = QuditCircuit(4)
        qc.ctrl(X(), [0, 1], [2, 3])
        step = qc.gate_steps[0]
        assert step.controls == (0, 1)
        assert step.targets == (2, 3)

    def test_control_target_overlap_rejected(self) -> None:
        qc = QuditCircuit(3)
        with pytest.raises(InvalidIndexError, match="both control and target"):
            qc.ctrl(X(), [0, 1], [1, 2])

    def test_duplicate_controls_rejected(self) -> None:
        qc = QuditCircuit(3)
        with pytest.raises(DuplicateIndexError):
            qc.ctrl(X(), [0, 0], 2)

    def test_empty_controls_rejected(self) -> None:
        qc = QuditCircuit(3)
        with pytest.raises(EmptyTargetSetError):
            qc.ctrl(X(), [], 2)

    def test_ctrl_custom(self) -> None:
        qc = QuditCircuit(3)
        qc.ctrl_custom(CNOT(), [0], [1, 2])
        step = qc.gate_steps[0]
        assert step.kind is GateKind.CUSTOM_CTRL
        assert step.name == "CTRL-CNOT"

    def test_ctrl_custom_operator_size(self) -> None:
        qc = QuditCircuit(3)
        with pytest.raises(ShapeMismatchError):
            qc.ctrl_custom(X(), [0], [1, 2])


class TestClassicallyControlled:
    def test_kinds(self) -> None:
        qc = QuditCircuit(3, 2)
        qc.cctrl(X(), 0, 1)
        qc.cctrl(X(), 0, [1, 2])
        qc.cctrl(X(), [0, 1], 1)
        qc.cctrl(X(), [0, 1], [1, 2])
        qc.cctrl_custom(CNOT(), [1], [2, 0])
        kinds = [g.kind for g in qc.gate_steps]
        assert kinds == [
            GateKind.SINGLE_CCTRL_SINGLE_TARGET,
            GateKind.SINGLE_CCTRL_MULTIPLE_TARGET,
            GateKind.MULTIPLE_CCTRL_SINGLE_TARGET,
            GateKind.MULTIPLE_CCTRL_MULTIPLE_TARGET,
            GateKind.CUSTOM_CCTRL,
        ]
        assert all(k.is_classically_controlled for k in kinds)
        assert str(kinds[0]) == "SINGLE_cCTRL_SINGLE_TARGET"

    def test_dit_index_out_of_range(self) -> None:
        qc = QuditCircuit(2, 1)
        with pytest.raises(InvalidIndexError, match="dit 1"):
            qc.cctrl(X(), 1, 0)

    def test_dit_and_qudit_indices_may_coincide(self) -> None:
        """Dit indices and qudit indices live in separate index spaces."""
        qc = QuditCircuit(2, 2)
        qc.cctrl(X(), 0, 0)
        assert qc.gate_steps[0].controls == (0,)
        assert qc.gate_steps[0].targets == (0,)

    def test_no_dits_allows_empty_control_list(self) -> None:
        qc = QuditCircuit(1)
        qc.cctrl(X(), [], 0)
        assert qc.gate_steps[0].controls == ()


class TestMeasurements:
    def test_measure_z_marks_qudit(self) -> None:
        qc = QuditCircuit(3, 1)
        qc.measure_z(1, 0)
        step = qc.measure_steps[0]
        assert step.kind is MeasureKind.MEASURE_Z
        assert step.operand_hashes == ()
        assert step.dit == 0
        assert qc.get_measured(1) is True
        assert qc.get_measured() == [1]
        assert qc.get_non_measured() == [0, 2]

    def test_measured_lists_are_ascending(self) -> None:
        qc = QuditCircuit(4, 3)
        qc.measure_z(3, 0).measure_z(0, 1).measure_z(2, 2)
        assert qc.get_measured() == [0, 2, 3]
        assert qc.get_non_measured() == [1]

    def test_measure_v_single_and_many(self) -> None:
        qc = QuditCircuit(3, 2)
        qc.measure_v(H(), 0, 0)
        qc.measure_v(torch.eye(4), [2, 1], 1, name="joint")
        assert qc.measure_steps[0].kind is MeasureKind.MEASURE_V
        assert qc.measure_steps[1].kind is MeasureKind.MEASURE_V_MANY
        assert qc.measure_steps[1].targets == (2, 1)
        assert qc.get_measured() == [0, 1, 2]
        assert qc.measurement_count() == 2
        assert qc.measurement_count("joint") == 1

    def test_measure_v_registers_basis(self) -> None:
        qc = QuditCircuit(1, 1)
        qc.measure_v(H(), 0, 0)
        key = qc.measure_steps[0].operand_hashes[0]
        assert key in qc.operand_table
        assert torch.allclose(qc.operand(key), H())

    def test_measure_v_requires_square_basis(self) -> None:
        qc = QuditCircuit(1, 1)
        with pytest.raises(ShapeMismatchError):
            qc.measure_v(torch.ones(2, 1), 0, 0)

    def test_dit_out_of_range(self) -> None:
        qc = QuditCircuit(2, 1)
        with pytest.raises(InvalidIndexError, match="dit 1"):
            qc.measure_z(0, 1)
        assert qc.get_measured() == []

    def test_gate_on_measured_qudit_rejected(self) -> None:
        qc = QuditCircuit(2, 2)
        qc.measure_z(0, 0)
        with pytest.raises(AlreadyMeasuredError):
            qc.gate(H(), 0)
        with pytest.raises(AlreadyMeasuredError):
            qc.ctrl(X(), 0, 1)
        with pytest.raises(AlreadyMeasuredError):
            qc.cctrl(X(), 0, 0)
        with pytest.raises(AlreadyMeasuredError):
            qc.measure_z(0, 1)
        with pytest.raises(AlreadyMeasuredError):
            qc.measure_v(H(), 0, 1)
        assert qc.step_count == 1

    def test_get_measured_out_of_range(self) -> None:
        qc = QuditCircuit(2)
        with pytest.raises(InvalidIndexError):
            qc.get_measured(2)


class TestNames:
    def test_default_gate_names(self) -> None:
        qc = QuditCircuit(3, 1)
        qc.gate(H(), 0)
        qc.gate(1j * X(), 1)
        qc.ctrl(X(), 0, 1)
        qc.ctrl(1j * X(), 0, 1)
        qc.cctrl(Z(), 0, 2)
        qc.cctrl(1j * X(), 0, 2)
        qc.measure_z(0, 0)
        names = [g.name for g in qc.gate_steps]
        assert names == ["H", "", "CTRL-X", "CTRL", "cCTRL-Z", "cCTRL"]
        assert qc.measure_steps[0].name == "Z"

    def test_explicit_name_wins(self) -> None:
        qc = QuditCircuit(2, 1)
        qc.gate(H(), 0, name="hadamard")
        qc.measure_z(0, 0, name="readout")
        assert qc.gate_count("hadamard") == 1
        assert qc.measurement_count("readout") == 1

    def test_qutrit_default_names(self) -> None:
        qc = QuditCircuit(2, dim=3)
        qc.gate(Xd(3), 0).gate(Zd(3), 1).ctrl(Xd(3), 0, 1)
        assert [g.name for g in qc.gate_steps] == ["Xd", "Zd", "CTRL-Xd"]

    def test_custom_namer_is_used(self) -> None:
        class FixedNamer:
            def default_name(self, matrix: torch.Tensor) -> str:
                return "U"

        qc = QuditCircuit(2, namer=FixedNamer())
        qc.gate(H(), 0).ctrl(X(), 0, 1)
        assert [g.name for g in qc.gate_steps] == ["U", "CTRL-U"]


class TestCounts:
    def test_counts_by_name(self) -> None:
        qc = QuditCircuit(2, 2)
        qc.gate(H(), 0).gate(H(), 1).gate(CNOT(), 0, 1).measure_z(0, 0).measure_z(1, 1)
        assert qc.gate_count() == 3
        assert qc.gate_count("H") == 2
        assert qc.gate_count("CNOT") == 1
        assert qc.measurement_count() == 2
        assert qc.measurement_count("Z") == 2
        assert qc.gate_name_counts == {"H": 2, "CNOT": 1}

    def test_unknown_name_raises_key_error(self) -> None:
        qc = QuditCircuit(1)
        qc.gate(H(), 0)
        with pytest.raises(KeyError):
            qc.gate_count("T")
        with pytest.raises(KeyError):
            qc.measurement_count("Z")

    def test_gate_depth_is_unsupported(self) -> None:
        qc = QuditCircuit(1)
        qc.gate(H(), 0)
        with pytest.raises(UnsupportedOperationError):
            qc.gate_depth()
        with pytest.raises(NotImplementedError):
            qc.gate_depth("H")

    @pytest.mark.parametrize("method", ["qft", "tfq"])
    def test_fourier_placeholders_are_unsupported(self, method: str) -> None:
        qc = QuditCircuit(3)
        with pytest.raises(UnsupportedOperationError):
            getattr(qc, method)([0, 1, 2])
        assert qc.step_count == 0


class TestOperandDeduplication:
    def test_same_operator_stored_once(self) -> None:
        qc = QuditCircuit(3)
        qc.gate(H(), 0).gate(H(), 1).gate_fan(H(), [2])
        assert len(qc.operand_table) == 1
        hashes = {g.operand_hash for g in qc.gate_steps}
        assert len(hashes) == 1

    def test_stored_operator_is_a_private_copy(self) -> None:
        qc = QuditCircuit(1)
        mat = H()
        qc.gate(mat, 0)
        mat[0, 0] = 42.0
        stored = qc.operand(qc.gate_steps[0].operand_hash)
        assert torch.allclose(stored, H())

    def test_hash_collision_is_fatal_and_leaves_circuit_unchanged(self) -> None:
        qc = QuditCircuit(2, hash_fn=lambda matrix: 7)
        qc.gate(H(), 0)
        qc.gate(H(), 1)
        with pytest.raises(IntegrityViolationError, match="collision") as excinfo:
            qc.gate(X(), 0)
        assert excinfo.value.step == 2
        assert qc.step_count == 2
        assert len(qc.operand_table) == 1
        assert qc.gate_count() == 2
