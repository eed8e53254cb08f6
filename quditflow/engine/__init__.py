"""Circuit execution engines."""

from .core import PreStepHook, QuditEngine
from .layout import QuditLayout
from .noisy import NoisyQuditEngine

__all__ = ["QuditEngine", "NoisyQuditEngine", "QuditLayout", "PreStepHook"]
