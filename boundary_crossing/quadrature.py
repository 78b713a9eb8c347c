"""Quadrature over the time grid and the boundary sensitivity formula."""

from __future__ import annotations

from typing import Callable, Iterable, Optional, Sequence, Tuple

import numpy as np

from .config import Configuration


def _unpack(pairs: Iterable[Tuple[float, float | complex]]) -> tuple[np.ndarray, np.ndarray]:
    pairs = list(pairs)
    if len(pairs) < 2:
        raise ValueError("Need at least two integration nodes")
    t = np.array([float(p[0]) for p in pairs])
    vals = np.asarray([p[1] for p in pairs])
    if np.any(np.diff(t) <= 0.0):
        raise ValueError("Integration times must be strictly increasing")
    return t, vals


def trapezoidal(pairs: Iterable[Tuple[float, float | complex]]) -> float | complex:
    """Trapezoidal rule over ordered (t, value) pairs; complex values allowed."""
    t, vals = _unpack(pairs)
    out = np.trapezoid(vals, t)
    return complex(out) if np.iscomplexobj(out) else float(out)


_SCHEMES: dict[str, Callable[[Iterable[Tuple[float, float | complex]]], float | complex]] = {
    "trapezoidal": trapezoidal,
}


def integrate(pairs: Iterable[Tuple[float, float | complex]], scheme: str = "trapezoidal") -> float | complex:
    key = str(scheme).lower().strip()
    if key not in _SCHEMES:
        raise ValueError(f"Unknown integration scheme: {scheme!r}")
    return _SCHEMES[key](pairs)


def boundary_sensitivity(
    config: Configuration,
    times: Sequence[float],
    f_tau: Sequence[float],
    v_prime: Sequence[float | complex],
    zeta: Optional[Callable[[float], float]] = None,
) -> float | complex:
    """Gateaux derivative of the non-crossing probability along ``zeta``.

    For a perturbation g -> g + eps*zeta of one boundary,

        dP/deps = -int_0^T zeta(t) f_tau(t) v'(t, g(t)) dt,

    with f_tau the first-passage density through that boundary and v' the
    spatial slope of the value function there. v' blows up like
    (T - t)^(-1/2), so the terminal level is never sampled: the configured
    scheme covers [t_0, t_{n-1}] and the last interval is integrated
    exactly against that singularity,

        int_{t_{n-1}}^T c (T - t_{n-1})^(1/2) (T - t)^(-1/2) dt = 2 c (T - t_{n-1}),

    with c the integrand at t_{n-1}.
    """
    times = np.asarray(times, dtype=float)
    f_tau = np.asarray(f_tau)
    v_prime = np.asarray(v_prime)
    if not (times.shape == f_tau.shape == v_prime.shape):
        raise ValueError("times, f_tau and v_prime must have the same length")
    if times.size < 3:
        raise ValueError("Need at least three time levels")
    weight = np.ones(times.shape) if zeta is None else np.array([float(zeta(t)) for t in times])
    integrand = -weight * f_tau * v_prime
    body = integrate(zip(times[:-1], integrand[:-1]), config.integration_scheme)
    tail = 2.0 * (times[-1] - times[-2]) * integrand[-2]
    out = complex(body + tail)
    return out if out.imag != 0.0 else out.real
