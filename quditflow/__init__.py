"""quditflow - a PyTorch-native qudit circuit builder and execution engine."""

__version__ = "0.1.0"

from .backend import StatevectorBackend, zero_state
from .circuit import (
    GateKind,
    GateStep,
    MeasureKind,
    MeasureStep,
    QuditCircuit,
    StepIterator,
    StepKind,
    StepView,
)
from .config import EngineConfig
from .core import Device, default_device, device
from .diagnostics import (
    assert_normalized,
    debug_context,
    is_debug_enabled,
    set_debug_enabled,
    state_norm,
)
from .engine import NoisyQuditEngine, QuditEngine, QuditLayout
from .errors import (
    AlreadyMeasuredError,
    BoundMismatchError,
    DuplicateIndexError,
    EmptyTargetSetError,
    IntegrityViolationError,
    InvalidCursorError,
    InvalidIndexError,
    QuditflowError,
    ShapeMismatchError,
    UnsupportedOperationError,
)
from .gates import GateLibrary
from .io import circuit_to_json, engine_to_json
from .logging import configure_logging, get_logger, set_log_level
from .noise import KrausChannel, KrausNoise, NoiseModel

__all__ = [
    "__version__",
    # Circuit
    "QuditCircuit",
    "StepIterator",
    "StepView",
    "StepKind",
    "GateKind",
    "MeasureKind",
    "GateStep",
    "MeasureStep",
    # Engines
    "QuditEngine",
    "NoisyQuditEngine",
    "QuditLayout",
    "EngineConfig",
    "StatevectorBackend",
    "zero_state",
    # Devices
    "Device",
    "device",
    "default_device",
    # Gates and noise
    "GateLibrary",
    "NoiseModel",
    "KrausNoise",
    "KrausChannel",
    # Reports
    "circuit_to_json",
    "engine_to_json",
    # Diagnostics
    "state_norm",
    "assert_normalized",
    "is_debug_enabled",
    "set_debug_enabled",
    "debug_context",
    # Logging
    "get_logger",
    "set_log_level",
    "configure_logging",
    # Errors
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
