"""Content-addressed storage for operator matrices.

Circuits store every operator once, keyed by a hash of its contents. Two
different matrices that map to the same key are a data-integrity failure and
are never silently overwritten.
"""

from __future__ import annotations

import hashlib
from typing import Callable, Iterator, Sequence, Union

import numpy as np
import torch

from ..errors import IntegrityViolationError

OperatorLike = Union[torch.Tensor, np.ndarray, Sequence[Sequence[complex]]]
HashFn = Callable[[torch.Tensor], int]


def as_operator(matrix: OperatorLike) -> torch.Tensor:
    """
    Convert ``matrix`` to a detached complex128 CPU tensor.

    The result is a private copy, so later in-place edits to the caller's
    tensor do not affect stored operators.

    Raises:
        TypeError: If ``matrix`` cannot be interpreted as a numeric array.
    """
    if isinstance(matrix, torch.Tensor):
        tensor = matrix.detach().to(device="cpu")
    else:
        try:
            tensor = torch.as_tensor(np.asarray(matrix))
        except (TypeError, ValueError) as exc:
            raise TypeError(f"cannot convert {type(matrix).__name__} to an operator") from exc
    return tensor.to(dtype=torch.complex128).clone().contiguous()


def content_hash(matrix: torch.Tensor) -> int:
    """
    Deterministic 64-bit fingerprint of an operator's shape and values.

    Equal matrices always give equal hashes; the converse is checked by
    :class:`OperandTable` with :func:`matrices_equal`.
    """
    array = np.ascontiguousarray(as_operator(matrix).numpy())
    digest = hashlib.sha256()
    digest.update(repr(array.shape).encode("ascii"))
    digest.update(array.tobytes())
    return int.from_bytes(digest.digest()[:8], "little")


def matrices_equal(a: torch.Tensor, b: torch.Tensor) -> bool:
    """Exact equality of shape and every entry."""
    return a.shape == b.shape and bool(torch.equal(a, b))


class OperandTable:
    """
    Append-only mapping from content hash to operator matrix.

    Parameters
    ----------
    hash_fn:
        Function producing the key of a matrix. Defaults to
        :func:`content_hash`.
    """

    def __init__(self, hash_fn: HashFn | None = None) -> None:
        self._hash_fn: HashFn = hash_fn if hash_fn is not None else content_hash
        self._store: dict[int, torch.Tensor] = {}

    def key_for(self, matrix: torch.Tensor) -> int:
        """
        Return the key ``matrix`` would be stored under without storing it.

        Raises:
            IntegrityViolationError: If the key already maps to a different
                matrix.
        """
        key = self._hash_fn(matrix)
        existing = self._store.get(key)
        if existing is not None and not matrices_equal(existing, matrix):
            raise IntegrityViolationError(
                f"operand hash collision: key {key:#x} already maps to a different "
                f"matrix of shape {tuple(existing.shape)}"
            )
        return key

    def register(self, matrix: torch.Tensor) -> int:
        """
        Store ``matrix`` and return its key. Registering an equal matrix
        again returns the same key and stores nothing new.
        """
        key = self.key_for(matrix)
        if key not in self._store:
            self._store[key] = matrix
        return key

    def __getitem__(self, key: int) -> torch.Tensor:
        return self._store[key]

    def __contains__(self, key: object) -> bool:
        return key in self._store

    def __len__(self) -> int:
        return len(self._store)

    def __iter__(self) -> Iterator[int]:
        return iter(self._store)


__all__ = [
    "OperatorLike",
    "HashFn",
    "as_operator",
    "content_hash",
    "matrices_equal",
    "OperandTable",
]
