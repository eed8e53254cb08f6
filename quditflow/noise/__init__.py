"""Noise models for the noisy engine.

Channels are textbook single-qudit Kraus channels; :class:`KrausNoise`
applies one to a pure state by sampling a Kraus branch.
"""

from .base import NoiseModel
from .kraus import (
    KrausChannel,
    amplitude_damping_channel,
    bit_flip_channel,
    bit_phase_flip_channel,
    depolarizing_channel,
    phase_damping_channel,
    phase_flip_channel,
    qudit_dephasing_channel,
    qudit_depolarizing_channel,
)
from .trajectory import KrausNoise

__all__ = [
    "NoiseModel",
    "KrausNoise",
    "KrausChannel",
    "bit_flip_channel",
    "phase_flip_channel",
    "bit_phase_flip_channel",
    "depolarizing_channel",
    "amplitude_damping_channel",
    "phase_damping_channel",
    "qudit_depolarizing_channel",
    "qudit_dephasing_channel",
]
