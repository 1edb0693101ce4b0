"""Exception types raised by the planning engine."""

from __future__ import annotations


class EnergyModelError(ValueError):
    """A physical input is out of range (efficiency > 1, rte ≤ 0, u2 < u1, …)."""


class GraphConstructionError(RuntimeError):
    """The augmented graph violates an invariant the builder guarantees."""


class LabelCodecError(ValueError):
    """A node id or label field cannot be represented in the packed format."""
