"""Base class for per-qudit noise models used by the noisy engine."""

from __future__ import annotations

from abc import ABC, abstractmethod

import torch


class NoiseModel(ABC):
    """
    A stochastic single-qudit noise process.

    Each call to :meth:`apply` acts on one qudit of a pure state, picks one
    of the model's internal branches and records which one in
    :attr:`last_branch`.
    """

    @property
    @abstractmethod
    def dim(self) -> int:
        """Qudit dimension the model acts on."""

    @property
    @abstractmethod
    def last_branch(self) -> int:
        """Index of the branch chosen by the most recent :meth:`apply`."""

    @abstractmethod
    def apply(self, state: torch.Tensor, position: int) -> torch.Tensor:
        """
        Apply the noise to the qudit at physical ``position`` of ``state``.

        Args:
            state: Normalized state vector of shape ``(dim ** n,)``.
            position: Physical qudit position.

        Returns:
            The new, normalized state vector.
        """


__all__ = ["NoiseModel"]
