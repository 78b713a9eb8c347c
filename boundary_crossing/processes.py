"""Drift/diffusion presets in the (t, x) callable convention."""

from __future__ import annotations

from typing import Tuple

import numpy as np

from .config import FieldFn


def brownian_motion(drift: float = 0.0, vol: float = 1.0) -> Tuple[FieldFn, FieldFn]:
    """Arithmetic Brownian motion dX = drift dt + vol dW."""
    drift = float(drift)
    vol = float(vol)
    if vol < 0.0:
        raise ValueError("vol must be >= 0")

    def mu(t: float, x: np.ndarray) -> np.ndarray:
        return np.full_like(x, drift, dtype=float)

    def sigma(t: float, x: np.ndarray) -> np.ndarray:
        return np.full_like(x, vol, dtype=float)

    return mu, sigma


def ornstein_uhlenbeck(kappa: float, theta: float, vol: float) -> Tuple[FieldFn, FieldFn]:
    """Mean-reverting dX = kappa (theta - X) dt + vol dW."""
    kappa = float(kappa)
    theta = float(theta)
    vol = float(vol)
    if vol < 0.0:
        raise ValueError("vol must be >= 0")

    def mu(t: float, x: np.ndarray) -> np.ndarray:
        return kappa * (theta - np.asarray(x, dtype=float))

    def sigma(t: float, x: np.ndarray) -> np.ndarray:
        return np.full_like(x, vol, dtype=float)

    return mu, sigma


def no_potential(t: float, x: np.ndarray) -> np.ndarray:
    return np.zeros_like(x, dtype=float)
