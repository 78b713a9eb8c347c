"""Space-time lattice construction.

Every level k is the slice of the lattice ``x0 + j*h_k`` (j integer) that lies
strictly inside the corridor (g-(t_k), g+(t_k)). Anchoring at x0 keeps the
start point on level 0 and lines levels with equal steps up node-for-node.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass
from typing import List

import numpy as np

from .config import BoundaryFn, Configuration
from .errors import BoundaryError, ConfigurationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class GridLevel:
    """Nodes at one time level: ``nodes == x0 + offsets * h``."""

    t: float
    h: float
    offsets: np.ndarray
    nodes: np.ndarray
    lower: float
    upper: float

    @property
    def size(self) -> int:
        return int(self.nodes.size)

    @property
    def j_min(self) -> int:
        return int(self.offsets[0])

    @property
    def j_max(self) -> int:
        return int(self.offsets[-1])


@dataclass(frozen=True)
class SpaceTimeGrid:
    x0: float
    dt: float
    levels: List[GridLevel]

    @property
    def n(self) -> int:
        return len(self.levels) - 1

    @property
    def times(self) -> np.ndarray:
        return np.array([lvl.t for lvl in self.levels])

    def start_index(self) -> int:
        """Index of the node nearest x0 at level 0."""
        return int(np.argmin(np.abs(self.levels[0].nodes - self.x0)))


def space_step(config: Configuration, k: int) -> float:
    dt = config.dt
    if k >= config.n:
        return config.gamma * dt ** config.pn
    return config.gamma * dt ** (0.5 + config.delta)


def _lattice_offsets(x0: float, h: float, lower: float, upper: float) -> np.ndarray:
    # Strict inequalities on both sides.
    j_lo = math.floor((lower - x0) / h) + 1
    j_hi = math.ceil((upper - x0) / h) - 1
    offsets = np.arange(j_lo, j_hi + 1, dtype=np.int64)
    nodes = x0 + offsets * h
    return offsets[(nodes > lower) & (nodes < upper)]


def build_grid(config: Configuration, g_minus: BoundaryFn, g_plus: BoundaryFn) -> SpaceTimeGrid:
    """Build the lattice for ``config`` between ``g_minus`` and ``g_plus``."""
    if config.n < 1:
        raise ConfigurationError("n must be >= 1")
    if config.T <= 0.0:
        raise ConfigurationError("T must be > 0")
    if config.gamma <= 0.0:
        raise ConfigurationError("gamma must be > 0")

    x0 = config.x0
    levels: List[GridLevel] = []
    for k, t in enumerate(config.times):
        lower = float(g_minus(float(t)))
        upper = float(g_plus(float(t)))
        if not (np.isfinite(lower) and np.isfinite(upper)):
            raise BoundaryError("Boundary values must be finite", time_index=k)
        if lower >= upper:
            raise BoundaryError(f"g-(t)={lower} is not below g+(t)={upper}", time_index=k)
        if k == 0:
            if config.one_sided and upper <= x0:
                raise BoundaryError(f"One-sided boundary g+(0)={upper} does not lie above x0={x0}", time_index=0)
            if not (lower < x0 < upper):
                raise BoundaryError(f"x0={x0} is not strictly inside ({lower}, {upper})", time_index=0)

        h = space_step(config, k)
        offsets = _lattice_offsets(x0, h, lower, upper)
        refinements = 0
        while offsets.size == 0:
            if refinements >= config.max_refinements:
                raise BoundaryError("Empty admissible interior after refinement", time_index=k)
            h *= 0.5
            refinements += 1
            offsets = _lattice_offsets(x0, h, lower, upper)
        if refinements:
            logger.debug("Level %d: corridor width %.3e needed %d step halvings", k, upper - lower, refinements)

        levels.append(GridLevel(t=float(t), h=h, offsets=offsets, nodes=x0 + offsets * h, lower=lower, upper=upper))

    logger.debug(
        "Built grid: n=%d, max nodes=%d, h=%.3e, terminal h=%.3e",
        config.n,
        max(lvl.size for lvl in levels),
        levels[0].h,
        levels[-1].h,
    )
    return SpaceTimeGrid(x0=x0, dt=config.dt, levels=levels)


def edge_slope(values: np.ndarray, level: GridLevel, side: str) -> complex | float:
    """One-sided difference of ``values`` at the upper or lower edge of ``level``.

    The killed quantity is zero on the boundary itself, so the slope is taken
    between the boundary and the outermost node, over their actual distance.
    Both v and the taboo density have zero curvature at a flat absorbing
    wall, which makes this difference second order.
    """
    side = str(side).lower().strip()
    if side not in ("upper", "lower"):
        raise ValueError("side must be 'upper' or 'lower'")
    if side == "upper":
        return -values[-1] / (level.upper - level.nodes[-1])
    return values[0] / (level.nodes[0] - level.lower)
