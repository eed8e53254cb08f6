"""Append-only qudit circuit builder.

A :class:`QuditCircuit` records gates and measurements in execution order.
Every append validates its arguments against the circuit's shape (qudit
count, dit count, dimension) before anything is stored, so a rejected append
leaves the circuit exactly as it was. Operators are stored once per distinct
matrix in an :class:`~quditflow.circuit.operands.OperandTable`.
"""

from __future__ import annotations

import numbers
import operator
from typing import Iterable, Optional, Protocol, Sequence, Type, Union

import torch

from ..errors import (
    AlreadyMeasuredError,
    DuplicateIndexError,
    EmptyTargetSetError,
    IntegrityViolationError,
    InvalidIndexError,
    QuditflowError,
    ShapeMismatchError,
    UnsupportedOperationError,
)
from ..gates.naming import GateLibrary
from ..logging import get_logger
from .instructions import GateKind, GateStep, MeasureKind, MeasureStep, StepKind
from .iterator import StepIterator
from .operands import HashFn, OperandTable, OperatorLike, as_operator

logger = get_logger(__name__)

IndexArg = Union[int, Sequence[int]]


class Namer(Protocol):
    """Source of default display names for operators."""

    def default_name(self, matrix: torch.Tensor) -> str:
        ...


class QuditCircuit:
    """
    Ordered log of gate and measurement steps over ``n_qudits`` qudits of
    dimension ``dim`` and ``n_dits`` classical registers.

    Builder methods return ``self`` so appends can be chained:

    >>> from quditflow.gates import H, CNOT
    >>> qc = QuditCircuit(2, 2, name="bell")
    >>> qc.gate(H(), 0).gate(CNOT(), 0, 1).measure_z(0, 0).measure_z(1, 1)
    QuditCircuit(n_qudits=2, n_dits=2, dim=2, name='bell', steps=4)

    Args:
        n_qudits: Number of qudits. Must be >= 1.
        n_dits: Number of classical registers.
        dim: Qudit dimension. Must be >= 2.
        name: Circuit name used in reports.
        namer: Provider of default operator names. Defaults to a
            :class:`~quditflow.gates.naming.GateLibrary` for ``dim``.
        hash_fn: Content hash used for operator deduplication.

    Raises:
        InvalidIndexError: If ``n_qudits < 1`` or ``n_dits < 0``.
        ShapeMismatchError: If ``dim < 2``.
    """

    def __init__(
        self,
        n_qudits: int,
        n_dits: int = 0,
        dim: int = 2,
        name: str = "",
        *,
        namer: Optional[Namer] = None,
        hash_fn: Optional[HashFn] = None,
    ) -> None:
        if n_qudits < 1:
            raise InvalidIndexError(
                f"n_qudits must be >= 1, got {n_qudits}", operation="QuditCircuit"
            )
        if n_dits < 0:
            raise InvalidIndexError(
                f"n_dits must be >= 0, got {n_dits}", operation="QuditCircuit"
            )
        if dim < 2:
            raise ShapeMismatchError(
                f"dim must be >= 2, got {dim}", operation="QuditCircuit"
            )

        self._n_qudits = int(n_qudits)
        self._n_dits = int(n_dits)
        self._dim = int(dim)
        self._name = name
        self._namer: Namer = namer if namer is not None else GateLibrary(self._dim)
        self._operands = OperandTable(hash_fn)

        self._gate_steps: list[GateStep] = []
        self._measure_steps: list[MeasureStep] = []
        self._step_kinds: list[StepKind] = []
        self._gate_counts: dict[str, int] = {}
        self._measurement_counts: dict[str, int] = {}
        self._measured: list[bool] = [False] * self._n_qudits

    # ------------------------------------------------------------------
    # Shape and contents
    # ------------------------------------------------------------------

    @property
    def n_qudits(self) -> int:
        return self._n_qudits

    @property
    def n_dits(self) -> int:
        return self._n_dits

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def name(self) -> str:
        return self._name

    @property
    def namer(self) -> Namer:
        return self._namer

    @property
    def gate_steps(self) -> tuple[GateStep, ...]:
        return tuple(self._gate_steps)

    @property
    def measure_steps(self) -> tuple[MeasureStep, ...]:
        return tuple(self._measure_steps)

    @property
    def step_kinds(self) -> tuple[StepKind, ...]:
        return tuple(self._step_kinds)

    @property
    def operand_table(self) -> OperandTable:
        return self._operands

    def operand(self, key: int) -> torch.Tensor:
        """Return the operator stored under ``key``."""
        return self._operands[key]

    # Positional access used by StepIterator; avoids copying the step lists.
    def _gate_at(self, cursor: int) -> GateStep:
        return self._gate_steps[cursor]

    def _measure_at(self, cursor: int) -> MeasureStep:
        return self._measure_steps[cursor]

    def _kind_at(self, ip: int) -> StepKind:
        return self._step_kinds[ip]

    # ------------------------------------------------------------------
    # Validation helpers. Each returns the exception so callers can
    # ``raise self._error(...)``.
    # ------------------------------------------------------------------

    def _error(
        self, exc_type: Type[QuditflowError], message: str, operation: str
    ) -> QuditflowError:
        logger.debug(
            "rejected %s at step %d of circuit %r: %s",
            operation,
            self.step_count,
            self._name,
            message,
        )
        return exc_type(message, operation=operation, step=self.step_count)

    def _indices(self, values: Iterable[int], operation: str) -> tuple[int, ...]:
        try:
            return tuple(operator.index(v) for v in values)
        except TypeError as exc:
            raise self._error(
                InvalidIndexError, f"indices must be integers: {exc}", operation
            ) from exc

    def _require_nonempty(self, indices: Sequence[int], role: str, operation: str) -> None:
        if len(indices) == 0:
            raise self._error(EmptyTargetSetError, f"{role} list is empty", operation)

    def _check_qudit_range(self, indices: Sequence[int], role: str, operation: str) -> None:
        for i in indices:
            if i < 0 or i >= self._n_qudits:
                raise self._error(
                    InvalidIndexError,
                    f"{role} qudit {i} out of range [0, {self._n_qudits})",
                    operation,
                )

    def _check_dit_range(self, indices: Sequence[int], operation: str) -> None:
        for i in indices:
            if i < 0 or i >= self._n_dits:
                raise self._error(
                    InvalidIndexError,
                    f"dit {i} out of range [0, {self._n_dits})",
                    operation,
                )

    def _check_not_measured(self, indices: Sequence[int], operation: str) -> None:
        for i in indices:
            if self._measured[i]:
                raise self._error(
                    AlreadyMeasuredError, f"qudit {i} was already measured", operation
                )

    def _check_distinct(self, indices: Sequence[int], role: str, operation: str) -> None:
        if len(set(indices)) != len(indices):
            raise self._error(
                DuplicateIndexError,
                f"{role} list {list(indices)} contains duplicates",
                operation,
            )

    def _check_disjoint(
        self, controls: Sequence[int], targets: Sequence[int], operation: str
    ) -> None:
        shared = sorted(set(controls) & set(targets))
        if shared:
            raise self._error(
                InvalidIndexError,
                f"qudits {shared} used as both control and target",
                operation,
            )

    def _check_operator(
        self, matrix: OperatorLike, n_acted: int, operation: str
    ) -> tuple[torch.Tensor, int]:
        """Convert and shape-check an operator, then resolve its table key."""
        try:
            tensor = as_operator(matrix)
        except TypeError as exc:
            raise self._error(ShapeMismatchError, str(exc), operation) from exc
        expected = self._dim**n_acted
        if tensor.dim() != 2 or tensor.shape[0] != tensor.shape[1]:
            raise self._error(
                ShapeMismatchError,
                f"operator must be a square matrix, got shape {tuple(tensor.shape)}",
                operation,
            )
        if tensor.shape[0] != expected:
            raise self._error(
                ShapeMismatchError,
                f"operator acting on {n_acted} qudit(s) of dimension {self._dim} must be "
                f"{expected}x{expected}, got {tuple(tensor.shape)}",
                operation,
            )
        try:
            key = self._operands.key_for(tensor)
        except IntegrityViolationError as exc:
            raise self._error(IntegrityViolationError, str(exc), operation) from exc
        return tensor, key

    def _validate_quantum(
        self,
        controls: tuple[int, ...],
        targets: tuple[int, ...],
        operation: str,
    ) -> None:
        """Range, measured, duplicate and overlap checks over qudit indices."""
        self._check_qudit_range(controls, "control", operation)
        self._check_qudit_range(targets, "target", operation)
        self._check_not_measured(controls + targets, operation)
        self._check_distinct(controls, "control", operation)
        self._check_distinct(targets, "target", operation)
        self._check_disjoint(controls, targets, operation)

    # ------------------------------------------------------------------
    # Commit helpers: called only after validation succeeded.
    # ------------------------------------------------------------------

    def _commit_gate(
        self,
        kind: GateKind,
        matrix: torch.Tensor,
        controls: tuple[int, ...],
        targets: tuple[int, ...],
        name: str,
        increment: int = 1,
    ) -> "QuditCircuit":
        key = self._operands.register(matrix)
        self._gate_steps.append(GateStep(kind, key, controls, targets, name))
        self._step_kinds.append(StepKind.GATE)
        self._gate_counts[name] = self._gate_counts.get(name, 0) + increment
        logger.debug(
            "step %d: %s %r controls=%s targets=%s",
            len(self._step_kinds) - 1,
            kind,
            name,
            list(controls),
            list(targets),
        )
        return self

    def _commit_measurement(
        self,
        kind: MeasureKind,
        matrix: Optional[torch.Tensor],
        targets: tuple[int, ...],
        dit: int,
        name: str,
    ) -> "QuditCircuit":
        hashes: tuple[int, ...] = ()
        if matrix is not None:
            hashes = (self._operands.register(matrix),)
        for t in targets:
            self._measured[t] = True
        self._measure_steps.append(MeasureStep(kind, hashes, targets, dit, name))
        self._step_kinds.append(StepKind.MEASUREMENT)
        self._measurement_counts[name] = self._measurement_counts.get(name, 0) + 1
        logger.debug(
            "step %d: %s %r targets=%s -> dit %d",
            len(self._step_kinds) - 1,
            kind,
            name,
            list(targets),
            dit,
        )
        return self

    def _default_name(self, matrix: torch.Tensor, name: str) -> str:
        return name if name else self._namer.default_name(matrix)

    def _controlled_name(self, matrix: torch.Tensor, name: str, prefix: str) -> str:
        if name:
            return name
        base = self._namer.default_name(matrix)
        return f"{prefix}-{base}" if base else prefix

    # ------------------------------------------------------------------
    # Gates
    # ------------------------------------------------------------------

    def gate(self, matrix: OperatorLike, *targets: int, name: str = "") -> "QuditCircuit":
        """
        Apply a one, two or three qudit gate.

        The first target is the most significant digit of the operator's row
        index. Use :meth:`gate_custom` for more than three targets.

        Raises:
            EmptyTargetSetError: If no target is given.
            TypeError: If more than three targets are given.
        """
        operation = "gate"
        if not targets:
            raise self._error(EmptyTargetSetError, "target list is empty", operation)
        if len(targets) > 3:
            raise TypeError(
                f"gate() takes 1 to 3 target qudits, got {len(targets)}; "
                "use gate_custom() for more"
            )
        kind = (GateKind.SINGLE, GateKind.TWO, GateKind.THREE)[len(targets) - 1]
        idx = self._indices(targets, operation)
        self._validate_quantum((), idx, operation)
        tensor, _ = self._check_operator(matrix, len(idx), operation)
        return self._commit_gate(kind, tensor, (), idx, self._default_name(tensor, name))

    def gate_fan(
        self,
        matrix: OperatorLike,
        targets: Optional[Sequence[int]] = None,
        name: str = "",
    ) -> "QuditCircuit":
        """
        Apply the same single-qudit gate to every qudit in ``targets``.

        With ``targets=None`` the gate is applied to every qudit not yet
        measured. The gate counter grows by the number of targets.
        """
        operation = "gate_fan"
        if targets is None:
            idx = tuple(self.get_non_measured())
        else:
            idx = self._indices(targets, operation)
        self._require_nonempty(idx, "target", operation)
        self._validate_quantum((), idx, operation)
        tensor, _ = self._check_operator(matrix, 1, operation)
        return self._commit_gate(
            GateKind.FAN,
            tensor,
            (),
            idx,
            self._default_name(tensor, name),
            increment=len(idx),
        )

    def gate_custom(
        self, matrix: OperatorLike, targets: Sequence[int], name: str = ""
    ) -> "QuditCircuit":
        """Jointly apply a ``len(targets)``-qudit gate."""
        operation = "gate_custom"
        idx = self._indices(targets, operation)
        self._require_nonempty(idx, "target", operation)
        self._validate_quantum((), idx, operation)
        tensor, _ = self._check_operator(matrix, len(idx), operation)
        return self._commit_gate(
            GateKind.CUSTOM, tensor, (), idx, self._default_name(tensor, name)
        )

    def qft(self, targets: Sequence[int], swap: bool = True) -> "QuditCircuit":
        """Quantum Fourier transform. Reserved; always raises."""
        raise self._error(
            UnsupportedOperationError, "qft is not implemented", "qft"
        )

    def tfq(self, targets: Sequence[int], swap: bool = True) -> "QuditCircuit":
        """Inverse quantum Fourier transform. Reserved; always raises."""
        raise self._error(
            UnsupportedOperationError, "tfq is not implemented", "tfq"
        )

    def ctrl(
        self,
        matrix: OperatorLike,
        ctrl: IndexArg,
        target: IndexArg,
        name: str = "",
    ) -> "QuditCircuit":
        """
        Apply a single-qudit gate controlled on one or more qudits.

        ``ctrl`` and ``target`` each accept an index or a list of indices.
        With several targets the gate acts on each of them. For a control
        register in ``|k>`` on every control qudit the gate is raised to the
        power ``k``.
        """
        operation = "ctrl"
        single_ctrl = isinstance(ctrl, numbers.Integral)
        single_target = isinstance(target, numbers.Integral)
        controls = self._indices([ctrl] if single_ctrl else ctrl, operation)  # type: ignore[list-item, arg-type]
        targets = self._indices([target] if single_target else target, operation)  # type: ignore[list-item, arg-type]
        if single_ctrl:
            kind = (
                GateKind.SINGLE_CTRL_SINGLE_TARGET
                if single_target
                else GateKind.SINGLE_CTRL_MULTIPLE_TARGET
            )
        else:
            kind = (
                GateKind.MULTIPLE_CTRL_SINGLE_TARGET
                if single_target
                else GateKind.MULTIPLE_CTRL_MULTIPLE_TARGET
            )

        self._require_nonempty(controls, "control", operation)
        self._require_nonempty(targets, "target", operation)
        self._validate_quantum(controls, targets, operation)
        tensor, _ = self._check_operator(matrix, 1, operation)
        return self._commit_gate(
            kind, tensor, controls, targets, self._controlled_name(tensor, name, "CTRL")
        )

    def ctrl_custom(
        self,
        matrix: OperatorLike,
        ctrls: Sequence[int],
        targets: Sequence[int],
        name: str = "",
    ) -> "QuditCircuit":
        """Jointly apply a multi-qudit gate on ``targets``, controlled on ``ctrls``."""
        operation = "ctrl_custom"
        controls = self._indices(ctrls, operation)
        idx = self._indices(targets, operation)
        self._require_nonempty(controls, "control", operation)
        self._require_nonempty(idx, "target", operation)
        self._validate_quantum(controls, idx, operation)
        tensor, _ = self._check_operator(matrix, len(idx), operation)
        return self._commit_gate(
            GateKind.CUSTOM_CTRL,
            tensor,
            controls,
            idx,
            self._controlled_name(tensor, name, "CTRL"),
        )

    def cctrl(
        self,
        matrix: OperatorLike,
        ctrl_dits: IndexArg,
        target: IndexArg,
        name: str = "",
    ) -> "QuditCircuit":
        """
        Apply a single-qudit gate controlled on classical dits.

        At run time, if the named dits all hold the same value ``v`` the gate
        is applied raised to the power ``v``; if they disagree nothing is
        applied. An empty dit list applies the gate unconditionally.
        """
        operation = "cctrl"
        single_ctrl = isinstance(ctrl_dits, numbers.Integral)
        single_target = isinstance(target, numbers.Integral)
        dits = self._indices([ctrl_dits] if single_ctrl else ctrl_dits, operation)  # type: ignore[list-item, arg-type]
        targets = self._indices([target] if single_target else target, operation)  # type: ignore[list-item, arg-type]
        if single_ctrl:
            kind = (
                GateKind.SINGLE_CCTRL_SINGLE_TARGET
                if single_target
                else GateKind.SINGLE_CCTRL_MULTIPLE_TARGET
            )
        else:
            kind = (
                GateKind.MULTIPLE_CCTRL_SINGLE_TARGET
                if single_target
                else GateKind.MULTIPLE_CCTRL_MULTIPLE_TARGET
            )

        self._require_nonempty(targets, "target", operation)
        self._validate_classical(dits, targets, operation)
        tensor, _ = self._check_operator(matrix, 1, operation)
        return self._commit_gate(
            kind, tensor, dits, targets, self._controlled_name(tensor, name, "cCTRL")
        )

    def cctrl_custom(
        self,
        matrix: OperatorLike,
        ctrl_dits: Sequence[int],
        targets: Sequence[int],
        name: str = "",
    ) -> "QuditCircuit":
        """Jointly apply a multi-qudit gate on ``targets``, controlled on dits."""
        operation = "cctrl_custom"
        dits = self._indices(ctrl_dits, operation)
        idx = self._indices(targets, operation)
        self._require_nonempty(idx, "target", operation)
        self._validate_classical(dits, idx, operation)
        tensor, _ = self._check_operator(matrix, len(idx), operation)
        return self._commit_gate(
            GateKind.CUSTOM_CCTRL,
            tensor,
            dits,
            idx,
            self._controlled_name(tensor, name, "cCTRL"),
        )

    def _validate_classical(
        self, dits: tuple[int, ...], targets: tuple[int, ...], operation: str
    ) -> None:
        self._check_dit_range(dits, operation)
        self._check_qudit_range(targets, "target", operation)
        self._check_not_measured(targets, operation)
        self._check_distinct(dits, "dit", operation)
        self._check_distinct(targets, "target", operation)

    # ------------------------------------------------------------------
    # Measurements
    # ------------------------------------------------------------------

    def measure_z(self, target: int, dit: int, name: str = "") -> "QuditCircuit":
        """Measure ``target`` in the computational basis into dit ``dit``."""
        operation = "measure_z"
        idx = self._indices([target], operation)
        (dit_idx,) = self._indices([dit], operation)
        self._check_qudit_range(idx, "target", operation)
        self._check_dit_range((dit_idx,), operation)
        self._check_not_measured(idx, operation)
        return self._commit_measurement(
            MeasureKind.MEASURE_Z, None, idx, dit_idx, name or "Z"
        )

    def measure_v(
        self,
        basis: OperatorLike,
        target: IndexArg,
        dit: int,
        name: str = "",
    ) -> "QuditCircuit":
        """
        Measure in the basis given by the columns of ``basis``.

        With a single target the basis spans one qudit; with a list of targets
        the qudits are measured jointly and ``basis`` spans all of them.
        """
        operation = "measure_v"
        single = isinstance(target, numbers.Integral)
        idx = self._indices([target] if single else target, operation)  # type: ignore[list-item, arg-type]
        (dit_idx,) = self._indices([dit], operation)
        self._require_nonempty(idx, "target", operation)
        self._check_qudit_range(idx, "target", operation)
        self._check_dit_range((dit_idx,), operation)
        self._check_not_measured(idx, operation)
        self._check_distinct(idx, "target", operation)
        tensor, _ = self._check_operator(basis, len(idx), operation)
        kind = MeasureKind.MEASURE_V if single else MeasureKind.MEASURE_V_MANY
        return self._commit_measurement(
            kind, tensor, idx, dit_idx, self._default_name(tensor, name)
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    @property
    def step_count(self) -> int:
        return len(self._step_kinds)

    def __len__(self) -> int:
        return self.step_count

    def gate_count(self, name: Optional[str] = None) -> int:
        """
        Total number of gate applications, or the count for one name.

        Raises:
            KeyError: If ``name`` was never used.
        """
        if name is None:
            return sum(self._gate_counts.values())
        return self._gate_counts[name]

    def measurement_count(self, name: Optional[str] = None) -> int:
        """
        Total number of measurements, or the count for one name.

        Raises:
            KeyError: If ``name`` was never used.
        """
        if name is None:
            return sum(self._measurement_counts.values())
        return self._measurement_counts[name]

    @property
    def gate_name_counts(self) -> dict[str, int]:
        return dict(self._gate_counts)

    @property
    def measurement_name_counts(self) -> dict[str, int]:
        return dict(self._measurement_counts)

    def gate_depth(self, name: Optional[str] = None) -> int:
        """Logical gate depth. Not implemented."""
        raise UnsupportedOperationError(
            "gate depth is not implemented", operation="gate_depth"
        )

    def get_measured(self, i: Optional[int] = None) -> Union[bool, list[int]]:
        """
        Without an argument, return the measured qudit indices in ascending
        order. With ``i``, return whether qudit ``i`` is measured.
        """
        if i is None:
            return [q for q, flag in enumerate(self._measured) if flag]
        if i < 0 or i >= self._n_qudits:
            raise InvalidIndexError(
                f"qudit {i} out of range [0, {self._n_qudits})",
                operation="get_measured",
            )
        return self._measured[i]

    def get_non_measured(self) -> list[int]:
        """Return the qudit indices not yet measured, in ascending order."""
        return [q for q, flag in enumerate(self._measured) if not flag]

    # ------------------------------------------------------------------
    # Traversal and display
    # ------------------------------------------------------------------

    def begin(self) -> StepIterator:
        return StepIterator.begin(self)

    def end(self) -> StepIterator:
        return StepIterator.end(self)

    def __iter__(self) -> StepIterator:
        return StepIterator.begin(self)

    def to_dict(self) -> dict:
        """Structured report; see :func:`quditflow.io.circuit_to_json`."""
        from ..io.json_ir import circuit_to_json

        return circuit_to_json(self)

    def __str__(self) -> str:
        from ..viz.summary import format_circuit

        return format_circuit(self)

    def __repr__(self) -> str:
        return (
            f"QuditCircuit(n_qudits={self._n_qudits}, n_dits={self._n_dits}, "
            f"dim={self._dim}, name={self._name!r}, steps={self.step_count})"
        )


__all__ = ["QuditCircuit", "Namer"]
