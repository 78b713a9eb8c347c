"""Locally consistent trinomial transition weights.

From node x at level k the chain moves to three nodes of the level k+1
lattice (destination step h): ``y_c - L_down*h``, ``y_c`` and
``y_c + L_up*h``. ``y_c`` is the node nearest the Euler mean
m = x + mu*dt. The jump multiples bracket sqrt(3*sigma^2*dt)/h, the jump
that also matches the Gaussian fourth moment. They take the floor on one
side and the ceiling on the other, swapped with the parity of the centre
offset, so the chain is not confined to a sub-lattice and carries no net
skew. With z_i the destination offsets from m, the probabilities

    p_i = (v + z_j z_k) / ((z_i - z_j)(z_i - z_k)),   v = sigma^2 dt,

reproduce mass, mean and variance exactly.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

import numpy as np

from .config import Configuration, evaluate_field
from .errors import ConfigurationError, NumericalInstabilityError
from .grid import GridLevel

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TrinomialStencil:
    """Raw one-step weights for every node of a level.

    ``offsets[i]`` are the destination lattice offsets (down, stay, up) and
    ``probs[i]`` the matching probabilities.
    """

    offsets: np.ndarray
    probs: np.ndarray
    sigma: np.ndarray
    clipped: np.ndarray


def _jump_multiples(var: np.ndarray, h: float, centre: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
    r = np.sqrt(3.0 * var) / h
    lo = np.maximum(np.floor(r), 1.0).astype(np.int64)
    hi = np.maximum(np.ceil(r), 1.0).astype(np.int64)
    odd = (centre % 2) == 1
    down = np.where(odd, hi, lo)
    up = np.where(odd, lo, hi)
    return down, up


def trinomial_weights(
    config: Configuration,
    k: int,
    level: GridLevel,
    next_level: GridLevel,
) -> TrinomialStencil:
    """Moment-matched (down, stay, up) probabilities from ``level`` to ``next_level``."""
    dt = config.dt
    x = level.nodes
    mu = evaluate_field(config.mu, level.t, x)
    sigma = evaluate_field(config.sigma, level.t, x)
    if np.iscomplexobj(mu) or np.iscomplexobj(sigma):
        raise ConfigurationError("mu and sigma must be real valued")

    h = next_level.h
    var = sigma * sigma * dt
    mean = x + mu * dt

    centre = np.rint((mean - config.x0) / h).astype(np.int64)
    down, up = _jump_multiples(var, h, centre)
    offsets = np.column_stack([centre - down, centre, centre + up])

    z = (config.x0 + offsets * h) - mean[:, None]
    z1, z2, z3 = z[:, 0], z[:, 1], z[:, 2]
    p_down = (var + z2 * z3) / ((z1 - z2) * (z1 - z3))
    p_stay = (var + z1 * z3) / ((z2 - z1) * (z2 - z3))
    p_up = (var + z1 * z2) / ((z3 - z1) * (z3 - z2))
    probs = np.column_stack([p_down, p_stay, p_up])

    negative = np.where(probs < 0.0, -probs, 0.0).sum(axis=1)
    worst = int(np.argmax(negative))
    if negative[worst] > config.clip_tol:
        raise NumericalInstabilityError(
            f"Clipped transition mass {negative[worst]:.3e} exceeds tolerance {config.clip_tol:.1e}; "
            "refine the grid (smaller gamma or larger n)",
            time_index=k,
            node_index=worst,
        )
    if np.any(negative > 0.0):
        probs = np.clip(probs, 0.0, None)
        probs /= probs.sum(axis=1, keepdims=True)
        logger.debug("Step %d: clipped %.3e of transition mass", k, float(negative.sum()))

    return TrinomialStencil(offsets=offsets, probs=probs, sigma=sigma, clipped=negative)
