"""Engine configuration."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

import torch

from .core.device import Device, device as device_factory
from .diagnostics.debug_mode import DEBUG_ENV_VAR, env_flag

DEVICE_ENV_VAR = "QUDITFLOW_DEVICE"
SEED_ENV_VAR = "QUDITFLOW_SEED"


@dataclass(frozen=True)
class EngineConfig:
    """
    Settings an engine uses to build its default state vector backend.

    Attributes
    ----------
    device:
        Device name, "cpu" or "cuda".
    dtype:
        Complex dtype of the state vector.
    seed:
        Seed for the engine's random generator. None seeds from entropy.
    check_normalization:
        Check that the state stays normalized after every step, in addition
        to the global debug mode.
    """

    device: str = "cpu"
    dtype: torch.dtype = torch.complex128
    seed: Optional[int] = None
    check_normalization: bool = False

    def __post_init__(self) -> None:
        """Validate config values."""
        if self.device not in ("cpu", "cuda"):
            raise ValueError(
                f"device must be 'cpu' or 'cuda', got {self.device!r}"
            )
        if self.dtype not in (torch.complex64, torch.complex128):
            raise ValueError(
                f"dtype must be torch.complex64 or torch.complex128, got {self.dtype}"
            )
        if self.seed is not None and self.seed < 0:
            raise ValueError(f"seed must be non-negative, got {self.seed}")

    @classmethod
    def from_env(cls, **overrides: object) -> "EngineConfig":
        """
        Build a config from QUDITFLOW_DEVICE, QUDITFLOW_SEED and
        QUDITFLOW_DEBUG, then apply keyword overrides.
        """
        values: dict[str, object] = {}
        env_device = os.getenv(DEVICE_ENV_VAR)
        if env_device:
            values["device"] = env_device.lower()
        env_seed = os.getenv(SEED_ENV_VAR)
        if env_seed:
            try:
                values["seed"] = int(env_seed)
            except ValueError as exc:
                raise ValueError(
                    f"{SEED_ENV_VAR} must be an integer, got {env_seed!r}"
                ) from exc
        if env_flag(DEBUG_ENV_VAR):
            values["check_normalization"] = True
        values.update(overrides)
        return cls(**values)  # type: ignore[arg-type]

    def make_device(self) -> Device:
        """Return the Device described by this config."""
        return device_factory(self.device, complex_dtype=self.dtype)

    def make_generator(self) -> torch.Generator:
        """Return a fresh torch.Generator seeded from this config."""
        generator = torch.Generator(device="cpu")
        if self.seed is None:
            generator.seed()
        else:
            generator.manual_seed(self.seed)
        return generator


__all__ = ["EngineConfig", "DEVICE_ENV_VAR", "SEED_ENV_VAR"]
