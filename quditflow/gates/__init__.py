"""Gate matrices and default naming."""

from .naming import GateLibrary
from .standard import (
    CNOT,
    CZ,
    SWAP,
    TOFFOLI,
    Fd,
    H,
    I,
    Id,
    S,
    T,
    X,
    Xd,
    Y,
    Z,
    Zd,
    is_unitary,
)

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
    "GateLibrary",
]
