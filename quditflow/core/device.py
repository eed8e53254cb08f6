"""Device abstraction for qudit state vectors."""

from __future__ import annotations

import torch


class Device:
    """
    A logical simulation device: a PyTorch device plus the complex dtype used
    for state vectors and operators.

    Attributes should not be modified after construction.
    """

    def __init__(
        self,
        name: str,
        torch_device: torch.device,
        complex_dtype: torch.dtype = torch.complex128,
    ) -> None:
        """
        Initialize a Device.

        Args:
            name: Logical device name ("cpu" or "cuda").
            torch_device: Underlying PyTorch device.
            complex_dtype: Complex dtype for states and operators.
        """
        if not complex_dtype.is_complex:
            raise ValueError(f"complex_dtype must be a complex dtype, got {complex_dtype}")
        self.name = name
        self.torch_device = torch_device
        self.complex_dtype = complex_dtype

    def __repr__(self) -> str:
        return (
            f"Device(name={self.name!r}, torch_device={self.torch_device}, "
            f"complex_dtype={self.complex_dtype})"
        )

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Device):
            return NotImplemented
        return (
            self.torch_device == other.torch_device
            and self.complex_dtype == other.complex_dtype
        )

    def __hash__(self) -> int:
        return hash((str(self.torch_device), self.complex_dtype))

    def as_torch_device(self) -> torch.device:
        """Return the underlying PyTorch device."""
        return self.torch_device


def device(name: str, complex_dtype: torch.dtype = torch.complex128) -> Device:
    """
    Create a Device instance from a device name.

    Supported device names:
        - "cpu": CPU state vectors
        - "cuda": CUDA state vectors (only if CUDA is available)

    Args:
        name: Device name string.
        complex_dtype: Complex dtype for the device.

    Returns:
        A Device instance.

    Raises:
        RuntimeError: If "cuda" is requested but CUDA is not available.
        ValueError: If the device name is not supported.
    """
    if name == "cpu":
        return Device("cpu", torch.device("cpu"), complex_dtype)
    elif name == "cuda":
        if not torch.cuda.is_available():
            raise RuntimeError(
                "CUDA device requested but torch.cuda.is_available() is False"
            )
        return Device("cuda", torch.device("cuda"), complex_dtype)
    else:
        supported = ["cpu", "cuda"]
        raise ValueError(
            f"Unsupported device name: {name!r}. Supported devices: {supported}"
        )


def default_device() -> Device:
    """Return the default device (CPU, complex128)."""
    return device("cpu")


def resolve_device(spec: Device | torch.device | str | None) -> Device:
    """
    Turn any accepted device specification into a Device.

    Args:
        spec: A Device, a device name, a torch.device, or None for the default.

    Returns:
        The resolved Device.

    Raises:
        TypeError: If spec has an unsupported type.
        ValueError: If a torch.device of an unsupported type is given.
    """
    if spec is None:
        return default_device()
    if isinstance(spec, Device):
        return spec
    if isinstance(spec, str):
        return device(spec)
    if isinstance(spec, torch.device):
        if spec.type not in ("cpu", "cuda"):
            raise ValueError(
                f"Unsupported torch.device type: {spec.type}. "
                "Only 'cpu' and 'cuda' are supported."
            )
        return device(spec.type)
    raise TypeError(
        f"device must be Device, str, torch.device, or None, got {type(spec)}"
    )


__all__ = ["Device", "device", "default_device", "resolve_device"]
