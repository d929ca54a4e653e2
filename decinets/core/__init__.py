"""Core numerical primitives for decinets."""

from . import activations, arithmetic, network, types

__all__ = ["activations", "arithmetic", "network", "types"]
