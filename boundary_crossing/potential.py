"""Feynman-Kac potential discount exp(-V dt)."""

from __future__ import annotations

import numpy as np

from .config import Configuration, evaluate_field
from .errors import NumericalOverflowError
from .grid import GridLevel


def potential_discount(config: Configuration, k: int, level: GridLevel) -> np.ndarray:
    """Per-node discount exp(-V(t_k, x) * dt) for the step leaving ``level``.

    Stays float64 for real V; a complex V yields complex128 and the rest of the
    pipeline follows.
    """
    V = evaluate_field(config.V, level.t, level.nodes)
    with np.errstate(over="ignore", invalid="ignore"):
        disc = np.exp(-V * config.dt)
    if not np.all(np.isfinite(disc)):
        raise NumericalOverflowError("Potential discount exp(-V dt) is not finite", time_index=k)
    return disc
