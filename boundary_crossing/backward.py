"""Backward Kolmogorov propagation: value function v(t, x) and its boundary slope."""

from __future__ import annotations

import logging
from typing import Callable, Dict, List, Optional, Sequence

import numpy as np

from .config import BoundaryFn, Configuration
from .forward import _as_scalar, target_indicator
from .grid import SpaceTimeGrid, build_grid, edge_slope
from .operators import WeightedTransition, build_operators

logger = logging.getLogger(__name__)


def terminal_values(
    config: Configuration,
    grid: SpaceTimeGrid,
    terminal: Optional[Callable[[np.ndarray], np.ndarray]] = None,
) -> np.ndarray:
    nodes = grid.levels[-1].nodes
    if terminal is None:
        psi = np.ones(nodes.shape)
    else:
        psi = np.broadcast_to(np.asarray(terminal(nodes)), nodes.shape)
        psi = psi.astype(complex if np.iscomplexobj(psi) else float)
    if config.target_flag:
        psi = psi * target_indicator(config, nodes)
    return psi


def propagate_backward(
    config: Configuration,
    grid: SpaceTimeGrid,
    operators: Sequence[WeightedTransition],
    retain_history: bool = False,
    *,
    terminal: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    return_boundary_derivative: bool = False,
):
    """Run v_k = W_k v_{k+1} from the terminal functional down to level 0.

    Nodes outside the corridor never appear on the lattice and no surviving
    weight leads there, so the zero Dirichlet condition holds without any
    post-hoc truncation.
    """
    values = terminal_values(config, grid, terminal)
    n = grid.n

    history: List[np.ndarray] = [values] if retain_history else []
    deriv_upper = np.zeros(n + 1, dtype=complex)
    deriv_lower = np.zeros(n + 1, dtype=complex)
    if return_boundary_derivative:
        deriv_upper[n] = edge_slope(values, grid.levels[n], "upper")
        deriv_lower[n] = edge_slope(values, grid.levels[n], "lower")

    for k in range(n - 1, -1, -1):
        values = operators[k].backward(values)
        if retain_history:
            history.append(values)
        if return_boundary_derivative:
            deriv_upper[k] = edge_slope(values, grid.levels[k], "upper")
            deriv_lower[k] = edge_slope(values, grid.levels[k], "lower")

    prob = _as_scalar(values[grid.start_index()])
    logger.debug("Backward solve: %d steps, v(0, x0) = %s", n, prob)

    if retain_history:
        history.reverse()
    out = (prob, history if retain_history else values)
    if not return_boundary_derivative:
        return out

    derivs: Dict[str, np.ndarray] = {}
    for key, arr in (("upper", deriv_upper), ("lower", deriv_lower)):
        derivs[key] = arr if np.any(arr.imag != 0.0) else arr.real
    return out + (derivs,)


def backward_solve(
    config: Configuration,
    g_minus: BoundaryFn,
    g_plus: BoundaryFn,
    retain_history: bool = False,
    *,
    terminal: Optional[Callable[[np.ndarray], np.ndarray]] = None,
    return_boundary_derivative: bool = False,
):
    """Non-crossing probability v(0, x0) and the value grid (or level-0 vector).

    Parameters
    ----------
    terminal:
        Terminal functional psi(x) on the level-n nodes; defaults to 1.
    return_boundary_derivative:
        Also return ``{"upper": ..., "lower": ...}``, the one-sided slope of v
        at each edge for every level 0..n.
    """
    grid = build_grid(config, g_minus, g_plus)
    operators = build_operators(config, grid)
    return propagate_backward(
        config,
        grid,
        operators,
        retain_history,
        terminal=terminal,
        return_boundary_derivative=return_boundary_derivative,
    )
