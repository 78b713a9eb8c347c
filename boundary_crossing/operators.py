"""Composite weighted-transition operators.

One sparse matrix per step k -> k+1. Row i lists the weights from node i at
level k to its destinations at level k+1 (raw probability x bridge factor x
potential discount). Destinations that fall off the level k+1 lattice are
dropped: that mass is absorbed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List

import numpy as np
from scipy import sparse

from .bridge import bridge_survival
from .config import Configuration
from .errors import NumericalOverflowError
from .grid import SpaceTimeGrid
from .potential import potential_discount
from .transitions import trinomial_weights

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WeightedTransition:
    time_index: int
    weights: sparse.csr_matrix

    @property
    def shape(self) -> tuple[int, int]:
        return self.weights.shape

    def row_sums(self) -> np.ndarray:
        return np.asarray(self.weights.sum(axis=1)).ravel()

    def forward(self, mass: np.ndarray) -> np.ndarray:
        """Push a level-k mass vector to level k+1."""
        return self.weights.T @ mass

    def backward(self, values: np.ndarray) -> np.ndarray:
        """Pull level-(k+1) values back to level k."""
        return self.weights @ values


def build_step(config: Configuration, grid: SpaceTimeGrid, k: int) -> WeightedTransition:
    level = grid.levels[k]
    nxt = grid.levels[k + 1]
    stencil = trinomial_weights(config, k, level, nxt)

    m_src, width = stencil.offsets.shape
    cols = stencil.offsets - nxt.j_min
    valid = (stencil.offsets >= nxt.j_min) & (stencil.offsets <= nxt.j_max)

    x = np.repeat(level.nodes[:, None], width, axis=1)
    y = config.x0 + stencil.offsets * nxt.h
    var = np.repeat((stencil.sigma * stencil.sigma * config.dt)[:, None], width, axis=1)

    factor = np.zeros(stencil.probs.shape)
    factor[valid] = bridge_survival(
        x[valid],
        y[valid],
        var[valid],
        lower=(level.lower, nxt.lower),
        upper=(level.upper, nxt.upper),
        one_sided=config.one_sided,
        mode=config.bridge_mode,
    )
    if not np.all(np.isfinite(factor)):
        raise NumericalOverflowError("Bridge correction produced a non-finite factor", time_index=k)

    disc = potential_discount(config, k, level)
    w = stencil.probs * factor * disc[:, None]

    rows = np.repeat(np.arange(m_src), width).reshape(m_src, width)
    mat = sparse.csr_matrix((w[valid], (rows[valid], cols[valid])), shape=(m_src, nxt.size), dtype=w.dtype)
    return WeightedTransition(time_index=k, weights=mat)


def build_operators(config: Configuration, grid: SpaceTimeGrid) -> List[WeightedTransition]:
    """All step operators 0 -> 1, ..., n-1 -> n."""
    ops = [build_step(config, grid, k) for k in range(grid.n)]
    logger.debug("Built %d transition operators (nnz=%d)", len(ops), sum(op.weights.nnz for op in ops))
    return ops
