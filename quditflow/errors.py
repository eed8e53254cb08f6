"""Exception hierarchy for quditflow.

Every error carries the name of the operation that failed and, where one
exists, the index of the circuit step at which it was raised. The concrete
classes also inherit from the matching builtin (``ValueError``,
``RuntimeError``, ``NotImplementedError``) so plain ``except ValueError``
handlers keep working.
"""

from __future__ import annotations

from typing import Optional


class QuditflowError(Exception):
    """Base class for all quditflow errors.

    Args:
        message: Human readable description of the failure.
        operation: Name of the operation that failed, e.g. ``"gate_fan"``.
        step: Step index the failure refers to, if any.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: Optional[str] = None,
        step: Optional[int] = None,
    ) -> None:
        if step is not None:
            message = f"At step {step}: {message}"
        if operation is not None:
            message = f"{message} [{operation}]"
        super().__init__(message)
        self.operation = operation
        self.step = step


class InvalidIndexError(QuditflowError, ValueError):
    """A qudit or dit index is out of range, or used in two roles at once."""


class DuplicateIndexError(QuditflowError, ValueError):
    """An index list contains the same index more than once."""


class EmptyTargetSetError(QuditflowError, ValueError):
    """An index list that must be non-empty is empty."""


class AlreadyMeasuredError(QuditflowError, ValueError):
    """A qudit that has already been measured is referenced again."""


class ShapeMismatchError(QuditflowError, ValueError):
    """An operator does not have the shape its action requires."""


class IntegrityViolationError(QuditflowError, RuntimeError):
    """Two distinct operators map to the same content hash."""


class UnsupportedOperationError(QuditflowError, NotImplementedError):
    """The operation is reserved but not implemented."""


class InvalidCursorError(QuditflowError, RuntimeError):
    """A step iterator was advanced or dereferenced in an invalid position."""


class BoundMismatchError(QuditflowError, ValueError):
    """A step from one circuit was handed to an engine bound to another."""


__all__ = [
    "QuditflowError",
    "InvalidIndexError",
    "DuplicateIndexError",
    "EmptyTargetSetError",
    "AlreadyMeasuredError",
    "ShapeMismatchError",
    "IntegrityViolationError",
    "UnsupportedOperationError",
    "InvalidCursorError",
    "BoundMismatchError",
]
