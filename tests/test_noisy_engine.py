"""Tests for NoisyQuditEngine."""

from __future__ import annotations

import pytest
import torch

from quditflow.circuit import QuditCircuit
from quditflow.config import EngineConfig
from quditflow.engine import NoisyQuditEngine, QuditEngine
from quditflow.errors import ShapeMismatchError
from quditflow.gates import H, X
from quditflow.noise import (
    KrausNoise,
    NoiseModel,
    bit_flip_channel,
    depolarizing_channel,
    qudit_depolarizing_channel,
)


class RecordingNoise(NoiseModel):
    """Leaves the state alone and reports the position it was applied to."""

    def __init__(self, dim: int = 2) -> None:
        self._dim = dim
        self._last = 0
        self.calls: list[int] = []

    @property
    def dim(self) -> int:
        return self._dim

    @property
    def last_branch(self) -> int:
        return self._last

    def apply(self, state: torch.Tensor, position: int) -> torch.Tensor:
        self._last = position
        self.calls.append(position)
        return state


def test_dimension_mismatch_rejected() -> None:
    qc = QuditCircuit(2)
    with pytest.raises(ShapeMismatchError, match="noise dimension 3"):
        NoisyQuditEngine(qc, KrausNoise(qudit_depolarizing_channel(0.1, 3)))


def test_noise_results_shape(bell_circuit: QuditCircuit, config: EngineConfig) -> None:
    """One entry per live qudit, recorded before the step runs."""
    engine = NoisyQuditEngine(bell_circuit, KrausNoise(depolarizing_channel(0.2)), config=config)
    assert engine.noise_results == [[], [], [], []]
    engine.run()
    results = engine.noise_results
    assert [len(r) for r in results] == [2, 2, 2, 1]
    assert all(branch in range(4) for r in results for branch in r)


def test_noise_applied_in_physical_order(config: EngineConfig) -> None:
    qc = QuditCircuit(3, 1)
    qc.gate(H(), 0)
    qc.measure_z(1, 0)
    qc.gate(X(), 2)
    noise = RecordingNoise()
    engine = NoisyQuditEngine(qc, noise, config=config).run()
    assert engine.noise_results == [[0, 1, 2], [0, 1, 2], [0, 1]]
    assert noise.calls == [0, 1, 2, 0, 1, 2, 0, 1]


def test_zero_noise_matches_ideal_engine(bell_circuit: QuditCircuit) -> None:
    for seed in range(4):
        config = EngineConfig(seed=seed)
        noisy = NoisyQuditEngine(bell_circuit, KrausNoise(bit_flip_channel(0.0)), config=config)
        ideal = QuditEngine(bell_circuit, config=config)
        noisy.run()
        ideal.run()
        assert noisy.dits == ideal.dits
        assert noisy.noise_results == [[0, 0], [0, 0], [0, 0], [0]]


def test_certain_flip_before_measurement(config: EngineConfig) -> None:
    qc = QuditCircuit(1, 1)
    qc.measure_z(0, 0)
    engine = NoisyQuditEngine(qc, KrausNoise(bit_flip_channel(1.0)), config=config).run()
    assert engine.dits == [1]
    assert engine.noise_results == [[1]]


def test_noise_results_are_a_copy(bell_circuit: QuditCircuit, config: EngineConfig) -> None:
    engine = NoisyQuditEngine(bell_circuit, RecordingNoise(), config=config).run()
    results = engine.noise_results
    results[0].append(99)
    assert engine.noise_results[0] == [0, 1]


def test_reset_clears_noise_results(bell_circuit: QuditCircuit, config: EngineConfig) -> None:
    engine = NoisyQuditEngine(bell_circuit, RecordingNoise(), config=config).run()
    engine.reset()
    assert engine.noise_results == [[], [], [], []]
    assert engine.get_measured() == []
    engine.run()
    assert engine.noise_results[3] == [0]


def test_step_by_step_execution(bell_circuit: QuditCircuit, config: EngineConfig) -> None:
    engine = NoisyQuditEngine(bell_circuit, RecordingNoise(), config=config)
    engine.execute(bell_circuit.begin())
    assert engine.noise_results == [[0, 1], [], [], []]


def test_steps_appended_after_construction(config: EngineConfig) -> None:
    qc = QuditCircuit(1, 1)
    qc.gate(H(), 0)
    engine = NoisyQuditEngine(qc, RecordingNoise(), config=config)
    qc.measure_z(0, 0)
    engine.run()
    assert engine.noise_results == [[0], [0]]


def test_report_includes_noise(bell_circuit: QuditCircuit, config: EngineConfig) -> None:
    engine = NoisyQuditEngine(bell_circuit, RecordingNoise(), config=config).run()
    report = engine.to_dict()
    assert report["noise_results"] == engine.noise_results
    assert "noise results:" in str(engine)
    assert isinstance(engine.noise, RecordingNoise)
