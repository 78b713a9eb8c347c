"""Forward Kolmogorov propagation: taboo transition density and non-crossing probability."""

from __future__ import annotations

import logging
from typing import List, Sequence

import numpy as np

from .config import BoundaryFn, Configuration, evaluate_field
from .grid import SpaceTimeGrid, build_grid, edge_slope
from .operators import WeightedTransition, build_operators

logger = logging.getLogger(__name__)


def target_indicator(config: Configuration, nodes: np.ndarray) -> np.ndarray:
    a, b = config.target_interval
    return ((nodes >= a) & (nodes <= b)).astype(float)


def _as_scalar(z) -> float | complex:
    z = complex(z)
    return z if z.imag != 0.0 else z.real


def propagate_forward(
    config: Configuration,
    grid: SpaceTimeGrid,
    operators: Sequence[WeightedTransition],
    retain_history: bool = False,
) -> tuple[List[np.ndarray] | np.ndarray, float | complex]:
    """Run the forward recursion p_{k+1} = W_k^T p_k from a unit mass at x0."""
    mass = np.zeros(grid.levels[0].size)
    mass[grid.start_index()] = 1.0

    history: List[np.ndarray] = [mass] if retain_history else []
    for op in operators:
        mass = op.forward(mass)
        if retain_history:
            history.append(mass)

    if config.target_flag:
        mass = mass * target_indicator(config, grid.levels[-1].nodes)
        if retain_history:
            history[-1] = mass

    prob = _as_scalar(mass.sum())
    logger.debug("Forward solve: %d steps, surviving mass %s", len(operators), prob)
    return (history if retain_history else mass), prob


def forward_solve(
    config: Configuration,
    g_minus: BoundaryFn,
    g_plus: BoundaryFn,
    retain_history: bool = False,
) -> tuple[List[np.ndarray] | np.ndarray, float | complex]:
    """Taboo mass history (or terminal vector) and the non-crossing probability.

    Entry k of the history is the surviving mass on the nodes of grid level k
    (see :func:`build_grid` for the node positions); :func:`taboo_density`
    turns it into a density.
    """
    grid = build_grid(config, g_minus, g_plus)
    operators = build_operators(config, grid)
    return propagate_forward(config, grid, operators, retain_history)


def crossing_probability(non_crossing: float | complex) -> float | complex:
    return 1.0 - non_crossing


def taboo_density(grid: SpaceTimeGrid, history: Sequence[np.ndarray]) -> List[np.ndarray]:
    """Convert per-node masses to densities (mass / h_k) level by level."""
    if len(history) != len(grid.levels):
        raise ValueError("history must hold one vector per grid level")
    return [np.asarray(m) / lvl.h for m, lvl in zip(history, grid.levels)]


def first_passage_density(
    config: Configuration,
    grid: SpaceTimeGrid,
    history: Sequence[np.ndarray],
    side: str = "upper",
) -> np.ndarray:
    """First-passage density through one boundary, f(t_k) = -/+ sigma^2/2 * dp/dx.

    The taboo density vanishes on the boundary, so the outflux is proportional
    to its slope there (negative at the upper edge, positive at the lower).
    """
    side = str(side).lower().strip()
    sign = -1.0 if side == "upper" else 1.0
    dens = taboo_density(grid, history)
    out = []
    for p, lvl in zip(dens, grid.levels):
        g = lvl.upper if side == "upper" else lvl.lower
        sig = evaluate_field(config.sigma, lvl.t, np.array([g]))[0]
        out.append(sign * 0.5 * sig * sig * edge_slope(p, lvl, side))
    return np.array(out)
