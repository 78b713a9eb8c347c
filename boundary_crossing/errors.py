"""Error taxonomy for the boundary-crossing solver.

Every error is local to one solve call; nothing is retried. The classes also
derive from the builtin that best describes them so callers can keep catching
``ValueError`` / ``ArithmeticError``.
"""

from __future__ import annotations


class BoundaryCrossingError(Exception):
    """Base class for all solver errors."""


class ConfigurationError(BoundaryCrossingError, ValueError):
    """Invalid configuration (n, T, gamma, target interval, tags, ...)."""


class BoundaryError(BoundaryCrossingError, ValueError):
    """Boundaries do not form a non-empty corridor at some grid time."""

    def __init__(self, message: str, *, time_index: int):
        super().__init__(f"{message} (time index {time_index})")
        self.time_index = int(time_index)


class NumericalInstabilityError(BoundaryCrossingError, ArithmeticError):
    """Too much transition mass had to be clipped: the grid is too coarse for mu/sigma."""

    def __init__(self, message: str, *, time_index: int, node_index: int):
        super().__init__(f"{message} (time index {time_index}, node {node_index})")
        self.time_index = int(time_index)
        self.node_index = int(node_index)


class NumericalOverflowError(BoundaryCrossingError, ArithmeticError):
    """Potential weighting or bridge correction produced a non-finite value."""

    def __init__(self, message: str, *, time_index: int):
        super().__init__(f"{message} (time index {time_index})")
        self.time_index = int(time_index)
