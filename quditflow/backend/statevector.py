"""State vector kernels for qudit registers.

Convention: qudit 0 is the least significant digit of the basis index. For a
3-qutrit state the amplitude of ``|q2 q1 q0>`` sits at index
``q2 * 9 + q1 * 3 + q0``. An operator acting on positions ``(t0, t1, ...)``
reads ``t0`` as the most significant digit of its own row index, so
``CNOT`` on ``(c, t)`` uses ``c`` as control whatever the relative order of
``c`` and ``t`` in the register.

All kernels are out of place: they return a new tensor and leave their
input untouched.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Optional, Sequence

import torch

from ..core.device import Device, default_device, resolve_device
from ..diagnostics import assert_normalized, is_debug_enabled

if TYPE_CHECKING:
    from ..config import EngineConfig


def zero_state(
    n_qudits: int,
    dim: int = 2,
    device: Device | torch.device | str | None = None,
    dtype: torch.dtype | None = None,
) -> torch.Tensor:
    """
    Create the all-zero basis state ``|0...0>`` of ``n_qudits`` qudits.

    Args:
        n_qudits: Number of qudits. ``0`` gives the one-amplitude state
            ``[1]`` of an empty register.
        dim: Qudit dimension, at least 2.
        device: Device specification. Can be Device, str, torch.device, or None.
        dtype: Complex dtype. Defaults to the device's complex dtype.

    Returns:
        A complex tensor of shape ``(dim ** n_qudits,)``.

    Raises:
        ValueError: If ``n_qudits < 0`` or ``dim < 2``.
    """
    if n_qudits < 0:
        raise ValueError(f"n_qudits must be >= 0, got {n_qudits}")
    if dim < 2:
        raise ValueError(f"dim must be >= 2, got {dim}")

    qdevice = resolve_device(device)
    if dtype is None:
        dtype = qdevice.complex_dtype

    state = torch.zeros(dim**n_qudits, dtype=dtype, device=qdevice.as_torch_device())
    state[0] = 1.0 + 0.0j
    return state


def num_qudits(state: torch.Tensor, dim: int) -> int:
    """
    Number of qudits of dimension ``dim`` held by a 1-D ``state``.

    Raises:
        ValueError: If ``state`` is not a complex vector whose length is a
            power of ``dim``.
    """
    if state.dim() != 1:
        raise ValueError(f"state must be a 1-D tensor, got shape {tuple(state.shape)}")
    if not torch.is_complex(state):
        raise ValueError(f"state must be complex dtype, got {state.dtype}")
    size = state.shape[0]
    n = 0
    total = 1
    while total < size:
        total *= dim
        n += 1
    if total != size:
        raise ValueError(f"state length {size} is not a power of dim={dim}")
    return n


def _check_positions(positions: Sequence[int], n: int, role: str) -> None:
    for p in positions:
        if p < 0 or p >= n:
            raise ValueError(f"{role} position {p} out of range [0, {n})")
    if len(set(positions)) != len(positions):
        raise ValueError(f"{role} positions {list(positions)} contain duplicates")


def _axes(positions: Sequence[int], n: int) -> list[int]:
    # qudit p lives on tensor axis n - 1 - p (last axis is least significant)
    return [n - 1 - p for p in positions]


def _checked(state: torch.Tensor) -> torch.Tensor:
    if is_debug_enabled():
        assert_normalized(state)
    return state


def power(op: torch.Tensor, exponent: int) -> torch.Tensor:
    """
    Integer matrix power. ``exponent == 0`` gives the identity.

    Raises:
        ValueError: If ``op`` is not square or ``exponent`` is negative.
    """
    if op.dim() != 2 or op.shape[0] != op.shape[1]:
        raise ValueError(f"op must be a square matrix, got shape {tuple(op.shape)}")
    if exponent < 0:
        raise ValueError(f"exponent must be >= 0, got {exponent}")
    return torch.linalg.matrix_power(op, int(exponent))


def tensor_power(op: torch.Tensor, n: int) -> torch.Tensor:
    """Kronecker product of ``n`` copies of ``op``."""
    if n < 1:
        raise ValueError(f"n must be >= 1, got {n}")
    result = op
    for _ in range(n - 1):
        result = torch.kron(result, op)
    return result


def apply(
    state: torch.Tensor,
    op: torch.Tensor,
    targets: Sequence[int],
    dim: int,
) -> torch.Tensor:
    """
    Apply a ``dim**k x dim**k`` operator to ``k`` target positions.

    Args:
        state: State vector of shape ``(dim ** n,)``.
        op: Operator matrix.
        targets: Physical positions the operator acts on, most significant
            first.
        dim: Qudit dimension.

    Returns:
        The transformed state.

    Raises:
        ValueError: On out-of-range or duplicate positions, or an operator
            whose size does not match ``len(targets)``.
    """
    n = num_qudits(state, dim)
    k = len(targets)
    if k == 0:
        raise ValueError("targets must be non-empty")
    _check_positions(targets, n, "target")
    block = dim**k
    if op.shape != (block, block):
        raise ValueError(f"op must have shape ({block}, {block}), got {tuple(op.shape)}")

    op = op.to(device=state.device, dtype=state.dtype)
    axes = _axes(targets, n)
    front = list(range(k))

    tensor = torch.movedim(state.reshape((dim,) * n), axes, front)
    moved_shape = tensor.shape
    flat = op @ tensor.reshape(block, -1)
    tensor = torch.movedim(flat.reshape(moved_shape), front, axes)
    return _checked(tensor.reshape(-1).contiguous())


def apply_controlled(
    state: torch.Tensor,
    op: torch.Tensor,
    controls: Sequence[int],
    targets: Sequence[int],
    dim: int,
) -> torch.Tensor:
    """
    Apply ``op`` on ``targets`` conditioned on the ``controls``.

    On the subspace where every control qudit is in ``|k>`` the operator
    ``op ** k`` is applied; everywhere else the state is left unchanged. For
    qubits this is the usual controlled gate.

    With no controls the operator is applied unconditionally.
    """
    if len(controls) == 0:
        return apply(state, op, targets, dim)

    n = num_qudits(state, dim)
    m = len(controls)
    k = len(targets)
    if k == 0:
        raise ValueError("targets must be non-empty")
    _check_positions(controls, n, "control")
    _check_positions(targets, n, "target")
    if set(controls) & set(targets):
        raise ValueError(
            f"control positions {list(controls)} overlap target positions {list(targets)}"
        )
    block = dim**k
    if op.shape != (block, block):
        raise ValueError(f"op must have shape ({block}, {block}), got {tuple(op.shape)}")

    op = op.to(device=state.device, dtype=state.dtype)
    axes = _axes(list(controls) + list(targets), n)
    front = list(range(m + k))

    tensor = torch.movedim(state.reshape((dim,) * n), axes, front)
    moved_shape = tensor.shape
    tensor = tensor.reshape((dim,) * m + (block, -1))
    out = tensor.clone()
    for value in range(1, dim):
        index = (value,) * m
        out[index] = power(op, value) @ tensor[index]
    out = torch.movedim(out.reshape(moved_shape), front, axes)
    return _checked(out.reshape(-1).contiguous())


def kraus_branches(
    state: torch.Tensor,
    kraus_ops: Sequence[torch.Tensor],
    position: int,
    dim: int,
) -> list[torch.Tensor]:
    """
    Unnormalized branches ``K_i |psi>`` for single-qudit Kraus operators
    acting on ``position``. The squared norm of branch ``i`` is the
    probability of that branch.
    """
    n = num_qudits(state, dim)
    _check_positions([position], n, "target")
    axis = n - 1 - position

    tensor = torch.movedim(state.reshape((dim,) * n), axis, 0)
    moved_shape = tensor.shape
    flat = tensor.reshape(dim, -1)
    branches = []
    for K in kraus_ops:
        if K.shape != (dim, dim):
            raise ValueError(f"Kraus operator must have shape ({dim}, {dim}), got {tuple(K.shape)}")
        out = K.to(device=state.device, dtype=state.dtype) @ flat
        out = torch.movedim(out.reshape(moved_shape), 0, axis)
        branches.append(out.reshape(-1).contiguous())
    return branches


def measure_probs(state: torch.Tensor) -> torch.Tensor:
    """Probability of every computational basis state, ``|state[i]|**2``."""
    if not torch.is_complex(state):
        raise ValueError(f"state must be complex dtype, got {state.dtype}")
    return (torch.abs(state) ** 2).contiguous()


def sample_index(
    weights: torch.Tensor | Sequence[float],
    generator: Optional[torch.Generator] = None,
) -> int:
    """
    Draw an index with probability proportional to ``weights``.

    Raises:
        ValueError: If the weights are negative, non-finite or all zero.
    """
    w = torch.as_tensor(weights, dtype=torch.float64).detach().to("cpu").reshape(-1)
    if w.numel() == 0:
        raise ValueError("cannot sample from an empty distribution")
    if not torch.all(torch.isfinite(w)) or torch.any(w < 0):
        raise ValueError(f"weights must be finite and non-negative, got {w.tolist()}")
    total = float(w.sum())
    if total <= 0.0:
        raise ValueError("cannot sample from an all-zero distribution")
    return int(torch.multinomial(w / total, 1, generator=generator).item())


def _measure_one(
    state: torch.Tensor,
    position: int,
    n: int,
    dim: int,
    generator: Optional[torch.Generator],
) -> tuple[int, float, torch.Tensor]:
    axis = n - 1 - position
    tensor = torch.movedim(state.reshape((dim,) * n), axis, 0).reshape(dim, -1)
    probs = (torch.abs(tensor) ** 2).sum(dim=1)
    outcome = sample_index(probs, generator)
    prob = float(probs[outcome])
    collapsed = tensor[outcome] / prob**0.5
    return outcome, prob, collapsed.contiguous()


def measure_sequential(
    state: torch.Tensor,
    targets: Sequence[int],
    dim: int,
    generator: Optional[torch.Generator] = None,
) -> tuple[list[int], float, torch.Tensor]:
    """
    Measure ``targets`` one after another in the computational basis.

    Each measured qudit is removed from the returned state, which therefore
    holds ``n - len(targets)`` qudits.

    Returns:
        ``(outcomes, probability, collapsed)`` where ``outcomes`` follows the
        order of ``targets`` and ``probability`` is the joint probability of
        the observed outcomes.
    """
    n = num_qudits(state, dim)
    if len(targets) == 0:
        raise ValueError("targets must be non-empty")
    _check_positions(targets, n, "target")

    remaining = list(targets)
    outcomes: list[int] = []
    probability = 1.0
    current = state
    for i in range(len(remaining)):
        position = remaining[i]
        outcome, prob, current = _measure_one(current, position, n, dim, generator)
        outcomes.append(outcome)
        probability *= prob
        n -= 1
        for j in range(i + 1, len(remaining)):
            if remaining[j] > position:
                remaining[j] -= 1
    return outcomes, probability, _checked(current)


def measure(
    state: torch.Tensor,
    basis: torch.Tensor,
    targets: Sequence[int],
    dim: int,
    generator: Optional[torch.Generator] = None,
) -> tuple[int, list[float], list[torch.Tensor]]:
    """
    Measure ``targets`` jointly in the basis given by the columns of
    ``basis`` (orthonormal vectors or rank-1 projectors).

    Branch ``i`` is ``<v_i| psi``, where ``v_i`` is column ``i`` of ``basis``
    acting on the target qudits. Every branch state has the measured qudits
    removed and is normalized; a branch of probability zero is the zero
    vector.

    Returns:
        ``(outcome, probabilities, states)`` with ``outcome`` sampled from
        ``probabilities``.
    """
    n = num_qudits(state, dim)
    k = len(targets)
    if k == 0:
        raise ValueError("targets must be non-empty")
    _check_positions(targets, n, "target")
    block = dim**k
    if basis.dim() != 2 or basis.shape[0] != block:
        raise ValueError(
            f"basis must have {block} rows, got shape {tuple(basis.shape)}"
        )

    basis = basis.to(device=state.device, dtype=state.dtype)
    axes = _axes(targets, n)
    tensor = torch.movedim(state.reshape((dim,) * n), axes, list(range(k)))
    flat = tensor.reshape(block, -1)
    branches = basis.conj().T @ flat

    probs: list[float] = []
    states: list[torch.Tensor] = []
    for branch in branches:
        prob = float(torch.sum(torch.abs(branch) ** 2))
        probs.append(prob)
        if prob > 0.0:
            states.append((branch / prob**0.5).contiguous())
        else:
            states.append(torch.zeros_like(branch))

    outcome = sample_index(probs, generator)
    _checked(states[outcome])
    return outcome, probs, states


@dataclass
class StatevectorBackend:
    """
    The numeric collaborator an engine executes against.

    Bundles the device, the complex dtype (taken from the device) and the
    random generator used for sampling, and forwards to the module-level
    kernels.
    """

    device: Device = field(default_factory=default_device)
    generator: Optional[torch.Generator] = None

    @classmethod
    def from_config(cls, config: "EngineConfig") -> "StatevectorBackend":
        return cls(device=config.make_device(), generator=config.make_generator())

    @property
    def dtype(self) -> torch.dtype:
        return self.device.complex_dtype

    def zero_state(self, n_qudits: int, dim: int) -> torch.Tensor:
        return zero_state(n_qudits, dim, device=self.device, dtype=self.dtype)

    def apply(self, state: torch.Tensor, op: torch.Tensor, targets: Sequence[int], dim: int) -> torch.Tensor:
        return apply(state, op, targets, dim)

    def apply_controlled(
        self,
        state: torch.Tensor,
        op: torch.Tensor,
        controls: Sequence[int],
        targets: Sequence[int],
        dim: int,
    ) -> torch.Tensor:
        return apply_controlled(state, op, controls, targets, dim)

    def measure_sequential(
        self, state: torch.Tensor, targets: Sequence[int], dim: int
    ) -> tuple[list[int], float, torch.Tensor]:
        return measure_sequential(state, targets, dim, self.generator)

    def measure(
        self, state: torch.Tensor, basis: torch.Tensor, targets: Sequence[int], dim: int
    ) -> tuple[int, list[float], list[torch.Tensor]]:
        return measure(state, basis, targets, dim, self.generator)

    def power(self, op: torch.Tensor, exponent: int) -> torch.Tensor:
        return power(op, exponent)


__all__ = [
    "zero_state",
    "num_qudits",
    "power",
    "tensor_power",
    "apply",
    "apply_controlled",
    "kraus_branches",
    "measure_probs",
    "sample_index",
    "measure_sequential",
    "measure",
    "StatevectorBackend",
]
