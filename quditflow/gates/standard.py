"""Standard qubit and qudit gate matrices.

Multi-qudit matrices are ordered so that the first qudit an operator acts on
is the most significant digit of its row index. ``CNOT`` therefore uses its
first qubit as control.
"""

from __future__ import annotations

import cmath
import math

import torch


def _resolve(
    dtype: torch.dtype | None, device: torch.device | None
) -> tuple[torch.dtype, torch.device]:
    if dtype is None:
        dtype = torch.complex128
    if device is None:
        device = torch.device("cpu")
    return dtype, device


def I(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    Identity gate (single-qubit).

    Args:
        dtype: Complex dtype for the gate matrix. Defaults to torch.complex128.
        device: PyTorch device. Defaults to torch.device("cpu").

    Returns:
        A (2, 2) complex tensor.
    """
    dtype, device = _resolve(dtype, device)
    return torch.eye(2, dtype=dtype, device=device)


def X(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-X gate (bit-flip, NOT gate)."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[0.0, 1.0], [1.0, 0.0]], dtype=dtype, device=device)


def Y(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Y gate."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[0.0, -1.0j], [1.0j, 0.0]], dtype=dtype, device=device)


def Z(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Pauli-Z gate (phase-flip)."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[1.0, 0.0], [0.0, -1.0]], dtype=dtype, device=device)


def H(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Hadamard gate."""
    dtype, device = _resolve(dtype, device)
    sqrt2_inv = 1.0 / math.sqrt(2.0)
    return torch.tensor(
        [[sqrt2_inv, sqrt2_inv], [sqrt2_inv, -sqrt2_inv]], dtype=dtype, device=device
    )


def S(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """S gate (phase gate, sqrt(Z))."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor([[1.0, 0.0], [0.0, 1.0j]], dtype=dtype, device=device)


def T(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """T gate (pi/8 gate, sqrt(S))."""
    dtype, device = _resolve(dtype, device)
    exp_i_pi_4 = cmath.exp(1.0j * math.pi / 4.0)
    return torch.tensor([[1.0, 0.0], [0.0, exp_i_pi_4]], dtype=dtype, device=device)


def CNOT(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    CNOT gate with the first qubit as control.

    Returns:
        A (4, 4) complex tensor ordered |00>, |01>, |10>, |11>.
    """
    dtype, device = _resolve(dtype, device)
    return torch.tensor(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
            [0.0, 0.0, 1.0, 0.0],
        ],
        dtype=dtype,
        device=device,
    )


def CZ(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Controlled-Z gate."""
    dtype, device = _resolve(dtype, device)
    return torch.diag(torch.tensor([1.0, 1.0, 1.0, -1.0], dtype=dtype, device=device))


def SWAP(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """SWAP gate."""
    dtype, device = _resolve(dtype, device)
    return torch.tensor(
        [
            [1.0, 0.0, 0.0, 0.0],
            [0.0, 0.0, 1.0, 0.0],
            [0.0, 1.0, 0.0, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ],
        dtype=dtype,
        device=device,
    )


def TOFFOLI(dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Toffoli gate with the first two qubits as controls."""
    dtype, device = _resolve(dtype, device)
    mat = torch.eye(8, dtype=dtype, device=device)
    mat[[6, 7]] = mat[[7, 6]]
    return mat


def Id(dim: int, dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """Identity on a single qudit of dimension ``dim``."""
    _check_dim(dim)
    dtype, device = _resolve(dtype, device)
    return torch.eye(dim, dtype=dtype, device=device)


def Xd(dim: int, dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    Generalized Pauli X (shift) gate, ``Xd |j> = |j + 1 mod d>``.

    For ``dim == 2`` this equals :func:`X`.
    """
    _check_dim(dim)
    dtype, device = _resolve(dtype, device)
    return torch.roll(torch.eye(dim, dtype=dtype, device=device), shifts=1, dims=0)


def Zd(dim: int, dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    Generalized Pauli Z (clock) gate, ``Zd |j> = w^j |j>`` with
    ``w = exp(2 pi i / d)``.
    """
    _check_dim(dim)
    dtype, device = _resolve(dtype, device)
    omega = cmath.exp(2.0j * math.pi / dim)
    phases = [omega**j for j in range(dim)]
    return torch.diag(torch.tensor(phases, dtype=dtype, device=device))


def Fd(dim: int, dtype: torch.dtype | None = None, device: torch.device | None = None) -> torch.Tensor:
    """
    Qudit Fourier gate, ``Fd[j, k] = w^(j k) / sqrt(d)``.

    For ``dim == 2`` this equals :func:`H`.
    """
    _check_dim(dim)
    dtype, device = _resolve(dtype, device)
    omega = cmath.exp(2.0j * math.pi / dim)
    norm = 1.0 / math.sqrt(dim)
    rows = [[norm * omega ** (j * k) for k in range(dim)] for j in range(dim)]
    return torch.tensor(rows, dtype=dtype, device=device)


def _check_dim(dim: int) -> None:
    if dim < 2:
        raise ValueError(f"qudit dimension must be >= 2, got {dim}")


def is_unitary(matrix: torch.Tensor, atol: float = 1e-8) -> bool:
    """
    Check if a square matrix is unitary within a given tolerance.

    Args:
        matrix: Tensor of shape (n, n).
        atol: Absolute tolerance for the check.

    Returns:
        True if ``U^dagger U = I`` within tolerance, False otherwise.
    """
    if matrix.dim() != 2 or matrix.shape[-1] != matrix.shape[-2]:
        return False

    product = matrix.conj().transpose(-1, -2) @ matrix
    identity = torch.eye(matrix.shape[-1], dtype=matrix.dtype, device=matrix.device)
    return torch.allclose(product, identity, atol=atol, rtol=0.0)


__all__ = [
    "I",
    "X",
    "Y",
    "Z",
    "H",
    "S",
    "T",
    "CNOT",
    "CZ",
    "SWAP",
    "TOFFOLI",
    "Id",
    "Xd",
    "Zd",
    "Fd",
    "is_unitary",
]
