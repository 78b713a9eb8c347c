"""Solver configuration record."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Tuple

import numpy as np

from .errors import ConfigurationError

# Field callables take (t, x) with x a numpy array and may return a scalar.
FieldFn = Callable[[float, np.ndarray], "np.ndarray | float | complex"]
BoundaryFn = Callable[[float], float]

BRIDGE_MODES = ("brownian",)
INTEGRATION_SCHEMES = ("trapezoidal",)


@dataclass(frozen=True, slots=True, kw_only=True)
class Configuration:
    """Immutable description of one boundary-crossing problem.

    Parameters
    ----------
    x0, T:
        Start point and horizon (T > 0).
    mu, sigma, V:
        Drift, diffusion and killing potential as callables of (t, x).
        ``V`` may be complex valued.
    target_flag, target_interval:
        If set, only paths ending in [a, b] count at T.
    bridge_mode:
        Bridge-correction family. Only ``"brownian"`` exists.
    one_sided:
        Kill at the upper boundary only; g- then just truncates the lattice.
    n, delta, pn, gamma:
        Time steps, space-step exponent offset, terminal space-step power and
        space scale: h_k = gamma * dt**(1/2 + delta) for k < n and
        h_n = gamma * dt**pn.
    integration_scheme:
        Quadrature tag, currently ``"trapezoidal"``.
    clip_tol:
        Largest per-row negative transition mass that may be clipped silently.
    max_refinements:
        Number of step halvings allowed when a level holds no node.
    """

    x0: float
    T: float
    mu: FieldFn
    sigma: FieldFn
    V: FieldFn
    target_flag: bool
    target_interval: Tuple[float, float]
    bridge_mode: str
    one_sided: bool
    n: int
    delta: float
    pn: float
    gamma: float
    integration_scheme: str
    clip_tol: float = 1e-10
    max_refinements: int = 40

    def __post_init__(self) -> None:
        if isinstance(self.n, bool) or not isinstance(self.n, (int, np.integer)) or self.n < 1:
            raise ConfigurationError(f"n must be an integer >= 1, got {self.n!r}")
        x0 = float(self.x0)
        T = float(self.T)
        if not np.isfinite(x0):
            raise ConfigurationError("x0 must be finite")
        if not np.isfinite(T) or T <= 0.0:
            raise ConfigurationError(f"T must be finite and > 0, got {self.T!r}")
        if not np.isfinite(self.gamma) or self.gamma <= 0.0:
            raise ConfigurationError(f"gamma must be finite and > 0, got {self.gamma!r}")
        if not np.isfinite(self.delta) or self.delta < 0.0:
            raise ConfigurationError(f"delta must be finite and >= 0, got {self.delta!r}")
        if not np.isfinite(self.pn) or self.pn <= 0.0:
            raise ConfigurationError(f"pn must be finite and > 0, got {self.pn!r}")
        if not np.isfinite(self.clip_tol) or self.clip_tol < 0.0:
            raise ConfigurationError("clip_tol must be finite and >= 0")
        if int(self.max_refinements) < 0:
            raise ConfigurationError("max_refinements must be >= 0")

        for name in ("mu", "sigma", "V"):
            if not callable(getattr(self, name)):
                raise ConfigurationError(f"{name} must be a callable of (t, x)")

        try:
            a, b = (float(v) for v in self.target_interval)
        except (TypeError, ValueError) as exc:
            raise ConfigurationError("target_interval must be a pair (a, b)") from exc
        if self.target_flag and not (np.isfinite(a) and np.isfinite(b) and a < b):
            raise ConfigurationError(f"target_interval must satisfy a < b, got ({a}, {b})")

        bridge_mode = str(self.bridge_mode).lower().strip()
        if bridge_mode not in BRIDGE_MODES:
            raise ConfigurationError(f"bridge_mode must be one of {BRIDGE_MODES}, got {self.bridge_mode!r}")
        scheme = str(self.integration_scheme).lower().strip()
        if scheme not in INTEGRATION_SCHEMES:
            raise ConfigurationError(
                f"integration_scheme must be one of {INTEGRATION_SCHEMES}, got {self.integration_scheme!r}"
            )

        object.__setattr__(self, "x0", x0)
        object.__setattr__(self, "T", T)
        object.__setattr__(self, "n", int(self.n))
        object.__setattr__(self, "target_interval", (a, b))
        object.__setattr__(self, "bridge_mode", bridge_mode)
        object.__setattr__(self, "integration_scheme", scheme)

    @property
    def dt(self) -> float:
        return self.T / self.n

    @property
    def times(self) -> np.ndarray:
        return np.linspace(0.0, self.T, self.n + 1)


def evaluate_field(fn: FieldFn, t: float, x: np.ndarray) -> np.ndarray:
    """Evaluate mu/sigma/V on a node array, broadcasting scalar returns.

    Real results come back as float64 and complex results as complex128.
    """
    x = np.asarray(x, dtype=float)
    out = np.asarray(fn(float(t), x))
    dtype = complex if np.iscomplexobj(out) else float
    return np.broadcast_to(out, x.shape).astype(dtype)
