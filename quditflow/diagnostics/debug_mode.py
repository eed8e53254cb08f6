"""Debug mode management for quditflow.

When debug mode is on, the state vector kernels check that every state they
return is normalized.
"""

from __future__ import annotations

import os
from contextlib import contextmanager
from typing import Iterator

DEBUG_ENV_VAR = "QUDITFLOW_DEBUG"
_TRUTHY = ("1", "true", "yes", "on")


def env_flag(name: str) -> bool:
    """Return True if the environment variable ``name`` holds a truthy value."""
    return os.getenv(name, "0").lower() in _TRUTHY


_debug_enabled: bool = env_flag(DEBUG_ENV_VAR)


def is_debug_enabled() -> bool:
    """
    Return whether quditflow debug mode is currently enabled.

    Debug mode can be toggled via set_debug_enabled(...) or the
    QUDITFLOW_DEBUG environment variable.

    Returns
    -------
    bool
        True if debug mode is enabled, False otherwise.
    """
    return _debug_enabled


def set_debug_enabled(enabled: bool) -> None:
    """
    Globally enable or disable quditflow debug mode.

    Parameters
    ----------
    enabled:
        Whether to enable debug mode.
    """
    global _debug_enabled
    _debug_enabled = bool(enabled)


@contextmanager
def debug_context(enabled: bool = True) -> Iterator[None]:
    """
    Context manager to temporarily enable or disable debug mode.

    Example
    -------
    >>> with debug_context(True):
    ...     engine.run()
    """
    global _debug_enabled
    prev = _debug_enabled
    _debug_enabled = bool(enabled)
    try:
        yield
    finally:
        _debug_enabled = prev


__all__ = [
    "DEBUG_ENV_VAR",
    "env_flag",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
]
