"""Quantum-trajectory unravelling of Kraus channels on pure states."""

from __future__ import annotations

from typing import Optional

import torch

from ..backend.statevector import kraus_branches, sample_index
from ..logging import get_logger
from .base import NoiseModel
from .kraus import KrausChannel

logger = get_logger(__name__)


class KrausNoise(NoiseModel):
    """
    Apply a :class:`KrausChannel` to a pure state by sampling one Kraus
    branch.

    Branch ``i`` is chosen with probability ``p_i = ||K_i psi||**2`` and the
    state becomes ``K_i psi / sqrt(p_i)``. Averaged over runs this reproduces
    the channel's action on the density matrix.

    Parameters
    ----------
    channel:
        The channel to unravel.
    generator:
        Random generator used for branch sampling. Pass a seeded generator
        for reproducible runs.
    """

    def __init__(
        self,
        channel: KrausChannel,
        generator: Optional[torch.Generator] = None,
    ) -> None:
        self.channel = channel
        self.generator = generator
        self._last_branch = 0
        self._last_probs: list[float] = []

    @property
    def dim(self) -> int:
        return self.channel.dim

    @property
    def name(self) -> str:
        return self.channel.name

    @property
    def last_branch(self) -> int:
        return self._last_branch

    @property
    def last_probs(self) -> list[float]:
        """Branch probabilities computed by the most recent :meth:`apply`."""
        return list(self._last_probs)

    def apply(self, state: torch.Tensor, position: int) -> torch.Tensor:
        branches = kraus_branches(state, self.channel.kraus_ops, position, self.dim)
        probs = [float(torch.sum(torch.abs(b) ** 2)) for b in branches]
        branch = sample_index(probs, self.generator)
        self._last_branch = branch
        self._last_probs = probs
        logger.debug(
            "%s on position %d: branch %d (p=%.6g)", self.name, position, branch, probs[branch]
        )
        return branches[branch] / probs[branch] ** 0.5

    def __repr__(self) -> str:
        return f"KrausNoise({self.name!r}, dim={self.dim})"


__all__ = ["KrausNoise"]
