"""Logical-to-physical qudit index bookkeeping.

Measured qudits are removed from the live state vector, so the physical
position of a qudit changes as earlier qudits are measured. ``QuditLayout``
keeps the stable logical index of every qudit mapped to its current
position, with ``None`` marking a measured qudit. Live positions always form
the dense range ``0..k-1`` in ascending logical order.
"""

from __future__ import annotations

from typing import Optional, Sequence

from ..errors import AlreadyMeasuredError, InvalidIndexError


class QuditLayout:
    """Array-backed map from logical qudit index to physical position."""

    def __init__(self, n_qudits: int) -> None:
        if n_qudits < 1:
            raise ValueError(f"n_qudits must be >= 1, got {n_qudits}")
        self._positions: list[Optional[int]] = list(range(n_qudits))

    def __len__(self) -> int:
        return len(self._positions)

    def _check(self, i: int, operation: str) -> None:
        if i < 0 or i >= len(self._positions):
            raise InvalidIndexError(
                f"qudit {i} out of range [0, {len(self._positions)})",
                operation=operation,
            )

    def position(self, i: int) -> Optional[int]:
        """Physical position of logical qudit ``i``, or None if measured."""
        self._check(i, "position")
        return self._positions[i]

    def is_measured(self, i: int) -> bool:
        self._check(i, "is_measured")
        return self._positions[i] is None

    def resolve(self, indices: Sequence[int], step: Optional[int] = None) -> list[int]:
        """
        Map logical indices to physical positions.

        Raises:
            AlreadyMeasuredError: If any of the qudits was measured.
        """
        resolved = []
        for i in indices:
            self._check(i, "resolve")
            pos = self._positions[i]
            if pos is None:
                raise AlreadyMeasuredError(
                    f"qudit {i} was already measured", operation="resolve", step=step
                )
            resolved.append(pos)
        return resolved

    def retire(self, i: int, step: Optional[int] = None) -> None:
        """
        Mark logical qudit ``i`` measured and shift every later live qudit
        down by one position.

        Raises:
            AlreadyMeasuredError: If ``i`` is already measured.
        """
        self._check(i, "retire")
        if self._positions[i] is None:
            raise AlreadyMeasuredError(
                f"qudit {i} was already measured", operation="retire", step=step
            )
        self._positions[i] = None
        for j in range(i + 1, len(self._positions)):
            pos = self._positions[j]
            if pos is not None:
                self._positions[j] = pos - 1

    def measured(self) -> list[int]:
        return [i for i, pos in enumerate(self._positions) if pos is None]

    def live(self) -> list[int]:
        return [i for i, pos in enumerate(self._positions) if pos is not None]

    def live_positions(self) -> list[int]:
        """Physical positions of the live qudits, ascending."""
        return sorted(pos for pos in self._positions if pos is not None)

    def reset(self) -> None:
        self._positions = list(range(len(self._positions)))

    def as_list(self) -> list[Optional[int]]:
        return list(self._positions)


__all__ = ["QuditLayout"]
