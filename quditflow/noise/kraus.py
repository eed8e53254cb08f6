"""Single-qudit Kraus channels.

A channel is described by operators ``K_i`` with ``sum_i K_i^dagger K_i = I``:

    E(rho) = sum_i K_i rho K_i^dagger.

The qubit channels are the textbook ones; the qudit channels use the Weyl
operators ``Xd^a Zd^b``.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

import torch

from ..gates.standard import I, X, Xd, Y, Z, Zd


@dataclass(frozen=True)
class KrausChannel:
    """
    Trace-preserving single-qudit channel in Kraus form.

    The operators are converted to complex128 CPU tensors at construction and
    the trace-preserving condition is checked.
    """

    name: str
    kraus_ops: tuple[torch.Tensor, ...]
    dim: int = 2

    def __post_init__(self) -> None:
        """Validate KrausChannel invariants."""
        if self.dim < 2:
            raise ValueError(f"dim must be at least 2, got {self.dim}")

        if len(self.kraus_ops) == 0:
            raise ValueError("kraus_ops must contain at least one operator.")

        normalized = []
        for i, K in enumerate(self.kraus_ops):
            if not isinstance(K, torch.Tensor):
                raise ValueError(f"Kraus operator {i} must be a torch.Tensor, got {type(K)}")
            if K.dim() != 2:
                raise ValueError(f"Kraus operator {i} must be 2D, got {K.dim()} dimensions")
            if K.shape != (self.dim, self.dim):
                raise ValueError(
                    f"Kraus operator {i} must have shape ({self.dim}, {self.dim}), got {tuple(K.shape)}"
                )
            normalized.append(K.detach().to(device="cpu", dtype=torch.complex128))

        object.__setattr__(self, "kraus_ops", tuple(normalized))

        max_diff = self._trace_deviation()
        if max_diff > 1e-7:
            raise ValueError(
                f"Kraus operators do not define a trace-preserving channel "
                f"(sum K^dagger K != I). Max difference: {max_diff:.2e}"
            )

    def _trace_deviation(self) -> float:
        identity = torch.eye(self.dim, dtype=torch.complex128)
        total = torch.zeros((self.dim, self.dim), dtype=torch.complex128)
        for K in self.kraus_ops:
            total = total + K.conj().T @ K
        return float(torch.max(torch.abs(total - identity)))

    def is_trace_preserving(self, atol: float = 1e-7) -> bool:
        """Check ``sum_i K_i^dagger K_i ~ I`` within ``atol``."""
        return self._trace_deviation() <= atol

    def __len__(self) -> int:
        return len(self.kraus_ops)


def _check_probability(value: float, label: str) -> None:
    if value < 0.0 or value > 1.0:
        raise ValueError(f"{label} must be in [0, 1], got {value}")


def bit_flip_channel(p: float) -> KrausChannel:
    """
    Qubit bit-flip channel: ``K0 = sqrt(1 - p) I``, ``K1 = sqrt(p) X``.

    Raises
    ------
    ValueError
        If p is not in [0, 1].
    """
    _check_probability(p, "Bit-flip probability p")
    return KrausChannel(
        name=f"bit_flip(p={p})",
        kraus_ops=(math.sqrt(1.0 - p) * I(), math.sqrt(p) * X()),
    )


def phase_flip_channel(p: float) -> KrausChannel:
    """Qubit phase-flip channel: ``K0 = sqrt(1 - p) I``, ``K1 = sqrt(p) Z``."""
    _check_probability(p, "Phase-flip probability p")
    return KrausChannel(
        name=f"phase_flip(p={p})",
        kraus_ops=(math.sqrt(1.0 - p) * I(), math.sqrt(p) * Z()),
    )


def bit_phase_flip_channel(p: float) -> KrausChannel:
    """Qubit bit-phase-flip channel: ``K0 = sqrt(1 - p) I``, ``K1 = sqrt(p) Y``."""
    _check_probability(p, "Bit-phase-flip probability p")
    return KrausChannel(
        name=f"bit_phase_flip(p={p})",
        kraus_ops=(math.sqrt(1.0 - p) * I(), math.sqrt(p) * Y()),
    )


def depolarizing_channel(p: float) -> KrausChannel:
    """
    Qubit depolarizing channel:

        E(rho) = (1 - p) rho + (p / 3) (X rho X + Y rho Y + Z rho Z).
    """
    _check_probability(p, "Depolarizing probability p")
    s = math.sqrt(p / 3.0)
    return KrausChannel(
        name=f"depolarizing(p={p})",
        kraus_ops=(math.sqrt(1.0 - p) * I(), s * X(), s * Y(), s * Z()),
    )


def amplitude_damping_channel(gamma: float) -> KrausChannel:
    """
    Qubit amplitude damping (|1> decays to |0> with probability gamma):

        K0 = [[1, 0], [0, sqrt(1 - gamma)]],
        K1 = [[0, sqrt(gamma)], [0, 0]].
    """
    _check_probability(gamma, "Damping parameter gamma")
    k0 = torch.tensor([[1.0, 0.0], [0.0, math.sqrt(1.0 - gamma)]], dtype=torch.complex128)
    k1 = torch.tensor([[0.0, math.sqrt(gamma)], [0.0, 0.0]], dtype=torch.complex128)
    return KrausChannel(name=f"amplitude_damping(gamma={gamma})", kraus_ops=(k0, k1))


def phase_damping_channel(gamma: float) -> KrausChannel:
    """
    Qubit phase damping; damps coherences without changing populations:

        K0 = [[1, 0], [0, sqrt(1 - gamma)]],
        K1 = [[0, 0], [0, sqrt(gamma)]].
    """
    _check_probability(gamma, "Damping parameter gamma")
    k0 = torch.tensor([[1.0, 0.0], [0.0, math.sqrt(1.0 - gamma)]], dtype=torch.complex128)
    k1 = torch.tensor([[0.0, 0.0], [0.0, math.sqrt(gamma)]], dtype=torch.complex128)
    return KrausChannel(name=f"phase_damping(gamma={gamma})", kraus_ops=(k0, k1))


def qudit_depolarizing_channel(p: float, dim: int) -> KrausChannel:
    """
    Qudit depolarizing channel built from the ``dim**2 - 1`` non-trivial
    Weyl operators ``Xd^a Zd^b``:

        K_00 = sqrt(1 - p) I,   K_ab = sqrt(p / (dim**2 - 1)) Xd^a Zd^b.
    """
    _check_probability(p, "Depolarizing probability p")
    x = Xd(dim)
    z = Zd(dim)
    weight = math.sqrt(p / (dim * dim - 1))
    ops = [math.sqrt(1.0 - p) * torch.eye(dim, dtype=torch.complex128)]
    for a in range(dim):
        for b in range(dim):
            if a == 0 and b == 0:
                continue
            weyl = torch.linalg.matrix_power(x, a) @ torch.linalg.matrix_power(z, b)
            ops.append(weight * weyl)
    return KrausChannel(name=f"qudit_depolarizing(p={p}, d={dim})", kraus_ops=tuple(ops), dim=dim)


def qudit_dephasing_channel(p: float, dim: int) -> KrausChannel:
    """
    Qudit dephasing channel from the clock operator powers:

        K_0 = sqrt(1 - p) I,   K_b = sqrt(p / (dim - 1)) Zd^b,  b = 1..dim-1.
    """
    _check_probability(p, "Dephasing probability p")
    z = Zd(dim)
    weight = math.sqrt(p / (dim - 1))
    ops = [math.sqrt(1.0 - p) * torch.eye(dim, dtype=torch.complex128)]
    ops.extend(weight * torch.linalg.matrix_power(z, b) for b in range(1, dim))
    return KrausChannel(name=f"qudit_dephasing(p={p}, d={dim})", kraus_ops=tuple(ops), dim=dim)


__all__ = [
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
