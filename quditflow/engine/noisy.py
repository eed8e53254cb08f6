"""Engine that applies a noise model to every live qudit before each step."""

from __future__ import annotations

import copy
from typing import Optional, Sequence

import torch

from ..backend.statevector import StatevectorBackend
from ..circuit.core import QuditCircuit
from ..circuit.iterator import StepView
from ..config import EngineConfig
from ..errors import ShapeMismatchError
from ..logging import get_logger
from ..noise.base import NoiseModel
from .core import QuditEngine

logger = get_logger(__name__)


class NoisyQuditEngine(QuditEngine):
    """
    :class:`QuditEngine` with noise injected before every step.

    Before a step is applied, ``noise`` acts on each live qudit in ascending
    physical order and the branch it picked is appended to
    ``noise_results[ip]``. The step itself then runs through the ordinary
    dispatch; the noise is installed as the engine's pre-step hook rather
    than by overriding :meth:`execute`.

    Raises:
        ShapeMismatchError: If the noise model's dimension differs from the
            circuit's.
    """

    def __init__(
        self,
        circuit: QuditCircuit,
        noise: NoiseModel,
        backend: Optional[StatevectorBackend] = None,
        *,
        config: Optional[EngineConfig] = None,
    ) -> None:
        if noise.dim != circuit.dim:
            raise ShapeMismatchError(
                f"noise dimension {noise.dim} does not match circuit dimension {circuit.dim}",
                operation="NoisyQuditEngine",
            )
        self._noise = noise
        self._noise_results: list[list[int]] = [[] for _ in range(circuit.step_count)]
        super().__init__(circuit, backend, config=config, pre_step=self._inject_noise)

    @property
    def noise(self) -> NoiseModel:
        return self._noise

    @property
    def noise_results(self) -> list[list[int]]:
        """Branch indices per step, one entry per live qudit."""
        return copy.deepcopy(self._noise_results)

    def _inject_noise(
        self, state: torch.Tensor, view: StepView, positions: Sequence[int]
    ) -> torch.Tensor:
        while len(self._noise_results) <= view.ip:
            self._noise_results.append([])
        record = self._noise_results[view.ip]
        for position in positions:
            state = self._noise.apply(state, position)
            record.append(self._noise.last_branch)
        logger.debug("step %d: noise branches %s", view.ip, record)
        return state

    def reset(self) -> "NoisyQuditEngine":
        """Reset the engine and clear the recorded noise branches."""
        super().reset()
        self._noise_results = [[] for _ in range(self._circuit.step_count)]
        return self


__all__ = ["NoisyQuditEngine"]
