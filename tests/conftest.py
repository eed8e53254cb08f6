"""Pytest configuration and shared fixtures for quditflow tests.

This module provides:
- Deterministic RNG fixtures for numpy and torch
- A seeded engine config and a small Bell-pair circuit
"""

import os

import numpy as np
import pytest
import torch

from quditflow.circuit import QuditCircuit
from quditflow.config import EngineConfig
from quditflow.gates import CNOT, H


def _seed() -> int:
    return int(os.environ.get("TEST_RNG_SEED", "0"))


@pytest.fixture(scope="function")
def rng() -> np.random.Generator:
    """Provide a deterministic numpy RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    return np.random.default_rng(_seed())


@pytest.fixture(scope="function")
def torch_rng() -> torch.Generator:
    """Provide a deterministic CPU torch RNG for tests.

    Uses seed from TEST_RNG_SEED environment variable (default: 0).
    """
    generator = torch.Generator(device="cpu")
    generator.manual_seed(_seed())
    return generator


@pytest.fixture(scope="function", autouse=True)
def set_random_seeds() -> None:
    """Auto-use fixture to set global random seeds for reproducibility."""
    np.random.seed(_seed())
    torch.manual_seed(_seed())
    if torch.cuda.is_available():
        torch.cuda.manual_seed_all(_seed())


@pytest.fixture(scope="function")
def config() -> EngineConfig:
    """Engine config with a fixed seed."""
    return EngineConfig(seed=_seed())


@pytest.fixture(scope="function")
def bell_circuit() -> QuditCircuit:
    """H on qudit 0, CNOT 0 -> 1, then both qudits measured into dits 0 and 1."""
    qc = QuditCircuit(2, 2, name="bell")
    qc.gate(H(), 0)
    qc.gate(CNOT(), 0, 1)
    qc.measure_z(1, 0)
    qc.measure_z(0, 1)
    return qc
