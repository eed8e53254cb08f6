"""Core abstractions for devices."""

from .device import Device, default_device, device, resolve_device

__all__ = ["Device", "device", "default_device", "resolve_device"]
