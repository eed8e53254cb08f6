"""Diagnostics and debugging utilities for quditflow."""

from .core import assert_normalized, state_norm
from .debug_mode import (
    DEBUG_ENV_VAR,
    debug_context,
    env_flag,
    is_debug_enabled,
    set_debug_enabled,
)

__all__ = [
    "state_norm",
    "assert_normalized",
    "DEBUG_ENV_VAR",
    "env_flag",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
]
