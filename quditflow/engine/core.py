"""Step-by-step execution of a :class:`~quditflow.circuit.QuditCircuit`."""

from __future__ import annotations

from typing import Callable, Optional, Sequence, Union, cast

import torch

from ..backend.statevector import StatevectorBackend, tensor_power
from ..circuit.core import QuditCircuit
from ..circuit.instructions import GateKind, GateStep, MeasureKind, MeasureStep, StepKind
from ..circuit.iterator import StepIterator, StepView
from ..config import EngineConfig
from ..diagnostics import assert_normalized
from ..errors import (
    BoundMismatchError,
    InvalidCursorError,
    InvalidIndexError,
    UnsupportedOperationError,
)
from ..logging import get_logger
from .layout import QuditLayout

logger = get_logger(__name__)

PreStepHook = Callable[[torch.Tensor, StepView, Sequence[int]], torch.Tensor]
"""Called before each step with the current state, the step and the live
physical positions; returns the state the step is applied to."""

_GATE_HANDLERS: dict[GateKind, str] = {
    GateKind.NONE: "_gate_none",
    GateKind.SINGLE: "_gate_plain",
    GateKind.TWO: "_gate_plain",
    GateKind.THREE: "_gate_plain",
    GateKind.CUSTOM: "_gate_plain",
    GateKind.FAN: "_gate_fan",
    GateKind.QFT: "_gate_unsupported",
    GateKind.TFQ: "_gate_unsupported",
    GateKind.SINGLE_CTRL_SINGLE_TARGET: "_gate_ctrl",
    GateKind.SINGLE_CTRL_MULTIPLE_TARGET: "_gate_ctrl_each",
    GateKind.MULTIPLE_CTRL_SINGLE_TARGET: "_gate_ctrl",
    GateKind.MULTIPLE_CTRL_MULTIPLE_TARGET: "_gate_ctrl_each",
    GateKind.CUSTOM_CTRL: "_gate_ctrl",
    GateKind.SINGLE_CCTRL_SINGLE_TARGET: "_gate_cctrl",
    GateKind.SINGLE_CCTRL_MULTIPLE_TARGET: "_gate_cctrl_each",
    GateKind.MULTIPLE_CCTRL_SINGLE_TARGET: "_gate_cctrl",
    GateKind.MULTIPLE_CCTRL_MULTIPLE_TARGET: "_gate_cctrl_each",
    GateKind.CUSTOM_CCTRL: "_gate_cctrl",
}

_MEASURE_HANDLERS: dict[MeasureKind, str] = {
    MeasureKind.NONE: "_measure_none",
    MeasureKind.MEASURE_Z: "_measure_z",
    MeasureKind.MEASURE_V: "_measure_v",
    MeasureKind.MEASURE_V_MANY: "_measure_v",
}


class QuditEngine:
    """
    Executes a circuit against a live state vector.

    The engine starts in ``|0...0>`` with every dit and outcome probability
    at zero. Each call to :meth:`execute` applies one step; :meth:`run`
    applies all of them. Measured qudits are removed from the state and the
    engine's :class:`~quditflow.engine.layout.QuditLayout` keeps track of
    where the remaining qudits now live.

    Parameters
    ----------
    circuit:
        Circuit the engine is bound to. It is never modified.
    backend:
        Numeric kernels. Defaults to a :class:`StatevectorBackend` built from
        ``config``.
    config:
        Engine settings. Defaults to ``EngineConfig()``.
    pre_step:
        Optional hook run before every step, after the step's qudits were
        resolved.
    """

    def __init__(
        self,
        circuit: QuditCircuit,
        backend: Optional[StatevectorBackend] = None,
        *,
        config: Optional[EngineConfig] = None,
        pre_step: Optional[PreStepHook] = None,
    ) -> None:
        self._circuit = circuit
        self._config = config if config is not None else EngineConfig()
        self._backend = (
            backend if backend is not None else StatevectorBackend.from_config(self._config)
        )
        self._pre_step = pre_step
        self._layout = QuditLayout(circuit.n_qudits)
        self._state = self._backend.zero_state(circuit.n_qudits, circuit.dim)
        self._dits: list[int] = [0] * circuit.n_dits
        self._probs: list[float] = [0.0] * circuit.n_dits

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def circuit(self) -> QuditCircuit:
        return self._circuit

    @property
    def backend(self) -> StatevectorBackend:
        return self._backend

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def state(self) -> torch.Tensor:
        """Copy of the live state vector over the qudits not yet measured."""
        return self._state.clone()

    @property
    def dits(self) -> list[int]:
        return list(self._dits)

    @property
    def probs(self) -> list[float]:
        return list(self._probs)

    def _check_dit(self, i: int, operation: str) -> None:
        if i < 0 or i >= len(self._dits):
            raise InvalidIndexError(
                f"dit {i} out of range [0, {len(self._dits)})", operation=operation
            )

    def get_dit(self, i: int) -> int:
        self._check_dit(i, "get_dit")
        return self._dits[i]

    def set_dit(self, i: int, value: int) -> "QuditEngine":
        """Overwrite dit ``i``, e.g. to seed classical control before a run."""
        self._check_dit(i, "set_dit")
        if value < 0:
            raise ValueError(f"dit value must be non-negative, got {value}")
        self._dits[i] = int(value)
        return self

    def get_measured(self, i: Optional[int] = None) -> Union[bool, list[int]]:
        """
        Without an argument, the qudits measured so far in ascending order.
        With ``i``, whether qudit ``i`` has been measured by this engine.
        """
        if i is None:
            return self._layout.measured()
        return self._layout.is_measured(i)

    def get_non_measured(self) -> list[int]:
        return self._layout.live()

    def physical_index(self, i: int) -> Optional[int]:
        """Current position of logical qudit ``i`` in the state, or None."""
        return self._layout.position(i)

    def reset(self) -> "QuditEngine":
        """Return to ``|0...0>`` with zeroed dits and the identity layout."""
        self._state = self._backend.zero_state(self._circuit.n_qudits, self._circuit.dim)
        self._dits = [0] * self._circuit.n_dits
        self._probs = [0.0] * self._circuit.n_dits
        self._layout.reset()
        logger.debug("engine reset for circuit %r", self._circuit.name)
        return self

    # ------------------------------------------------------------------
    # Execution
    # ------------------------------------------------------------------

    def _view_of(self, step: Union[StepView, StepIterator]) -> StepView:
        if isinstance(step, StepIterator):
            if step.circuit is not None and step.circuit is not self._circuit:
                raise BoundMismatchError(
                    "iterator belongs to a different circuit",
                    operation="execute",
                    step=step.ip,
                )
            return step.deref()
        if step.circuit is not self._circuit:
            raise BoundMismatchError(
                "step belongs to a different circuit", operation="execute", step=step.ip
            )
        return step

    def execute(self, step: Union[StepView, StepIterator]) -> "QuditEngine":
        """
        Apply a single step.

        Every qudit the step refers to is resolved to its physical position
        before the state is touched, so a failing step leaves the engine
        unchanged.

        Raises:
            BoundMismatchError: If the step comes from another circuit.
            InvalidCursorError: If an iterator is unattached or exhausted.
            AlreadyMeasuredError: If the step touches a measured qudit.
            UnsupportedOperationError: For reserved gate kinds.
        """
        view = self._view_of(step)
        record = view.step

        if view.kind is StepKind.GATE:
            gate_step = cast(GateStep, record)
            if gate_step.kind in (GateKind.QFT, GateKind.TFQ):
                raise UnsupportedOperationError(
                    f"{gate_step.kind} is not implemented", operation="execute", step=view.ip
                )
            targets = self._layout.resolve(gate_step.targets, view.ip)
            controls = (
                self._layout.resolve(gate_step.controls, view.ip)
                if gate_step.kind.is_quantum_controlled
                else list(gate_step.controls)
            )
            handler = getattr(self, _GATE_HANDLERS[gate_step.kind])
        elif view.kind is StepKind.MEASUREMENT:
            measure_step = cast(MeasureStep, record)
            targets = self._layout.resolve(measure_step.targets, view.ip)
            controls = []
            handler = getattr(self, _MEASURE_HANDLERS[measure_step.kind])
        else:
            raise InvalidCursorError(
                f"cannot execute a step of kind {view.kind}", operation="execute", step=view.ip
            )

        if self._pre_step is not None:
            self._state = self._pre_step(self._state, view, self._layout.live_positions())

        logger.debug("executing step %d: %s %r", view.ip, record.kind, record.name)
        handler(view, controls, targets)

        if self._config.check_normalization:
            assert_normalized(self._state)
        return self

    def run(self) -> "QuditEngine":
        """Execute every step of the circuit in order."""
        for view in self._circuit:
            self.execute(view)
        return self

    # ------------------------------------------------------------------
    # Gate handlers
    # ------------------------------------------------------------------

    def _operand(self, view: StepView) -> torch.Tensor:
        return self._circuit.operand(cast(GateStep, view.step).operand_hash)

    def _gate_none(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        pass

    def _gate_plain(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        op = self._operand(view)
        self._state = self._backend.apply(self._state, op, targets, self._circuit.dim)

    def _gate_fan(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        op = self._operand(view)
        for t in targets:
            self._state = self._backend.apply(self._state, op, [t], self._circuit.dim)

    def _gate_unsupported(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        raise UnsupportedOperationError(
            f"{view.step.kind} is not implemented", operation="execute", step=view.ip
        )

    def _gate_ctrl(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        op = self._operand(view)
        self._state = self._backend.apply_controlled(
            self._state, op, controls, targets, self._circuit.dim
        )

    def _gate_ctrl_each(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        op = tensor_power(self._operand(view), len(targets))
        self._state = self._backend.apply_controlled(
            self._state, op, controls, targets, self._circuit.dim
        )

    def _classical(self, op: torch.Tensor, view: StepView, dits: list[int], targets: list[int]) -> None:
        if dits:
            values = {self._dits[i] for i in dits}
            if len(values) != 1:
                logger.debug(
                    "step %d skipped: control dits %s disagree", view.ip, [self._dits[i] for i in dits]
                )
                return
            op = self._backend.power(op, values.pop())
        self._state = self._backend.apply(self._state, op, targets, self._circuit.dim)

    def _gate_cctrl(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        self._classical(self._operand(view), view, controls, targets)

    def _gate_cctrl_each(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        op = tensor_power(self._operand(view), len(targets))
        self._classical(op, view, controls, targets)

    # ------------------------------------------------------------------
    # Measurement handlers
    # ------------------------------------------------------------------

    def _retire(self, view: StepView) -> None:
        for q in view.step.targets:
            self._layout.retire(q, view.ip)

    def _measure_none(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        pass

    def _measure_z(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        record = cast(MeasureStep, view.step)
        outcomes, prob, state = self._backend.measure_sequential(
            self._state, targets, self._circuit.dim
        )
        self._state = state
        self._dits[record.dit] = outcomes[0]
        self._probs[record.dit] = prob
        self._retire(view)
        logger.debug("step %d: qudit %s -> %d (p=%.6g)", view.ip, record.targets, outcomes[0], prob)

    def _measure_v(self, view: StepView, controls: list[int], targets: list[int]) -> None:
        record = cast(MeasureStep, view.step)
        basis = self._circuit.operand(record.operand_hashes[0])
        outcome, probs, states = self._backend.measure(
            self._state, basis, targets, self._circuit.dim
        )
        self._state = states[outcome]
        self._dits[record.dit] = outcome
        self._probs[record.dit] = probs[outcome]
        self._retire(view)
        logger.debug(
            "step %d: qudits %s -> %d (p=%.6g)", view.ip, list(record.targets), outcome, probs[outcome]
        )

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def to_dict(self) -> dict:
        """Structured report; see :func:`quditflow.io.engine_to_json`."""
        from ..io.json_ir import engine_to_json

        return engine_to_json(self)

    def __str__(self) -> str:
        from ..viz.summary import format_engine

        return format_engine(self)

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(circuit={self._circuit.name!r}, "
            f"measured={self._layout.measured()}, dits={self._dits})"
        )


__all__ = ["QuditEngine", "PreStepHook"]
