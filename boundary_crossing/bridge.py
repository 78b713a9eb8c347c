"""Brownian-bridge crossing correction.

Given both endpoints of a step, the probability that the continuous path
stayed inside the corridor is known in closed form for straight-line
boundaries. The boundaries are replaced on [t_k, t_{k+1}] by the chords
through their endpoint values. Subtracting a linear function of time from a
bridge leaves a bridge, so only endpoint distances enter:

one-sided (upper line u)::

    1 - exp(-2 (u0 - x)(u1 - y) / v)

two-sided (strip of width w0 -> w1 above the lower line l, a = x - l0,
b = y - l1), the method of images::

    sum_k exp(-2 k^2 w0 w1 / v - k (w0 + w1)(b - a) / v)
        - exp(-2 (a + k w0)(b + k w1) / v)

with v = sigma(t_k, x)^2 dt. For parallel lines the series is exact. Its
k = 0 and k = -1 reflection terms are the exact one-sided lower and upper
factors.
"""

from __future__ import annotations

import numpy as np

SERIES_TERMS = 4


def _exp_capped(z: np.ndarray) -> np.ndarray:
    return np.exp(np.minimum(z, 0.0))


def bridge_survival_one_sided(x: np.ndarray, y: np.ndarray, u0: float, u1: float, var: np.ndarray) -> np.ndarray:
    """P(bridge from x to y stays below the chord u0 -> u1)."""
    x, y, var = np.broadcast_arrays(np.asarray(x, float), np.asarray(y, float), np.asarray(var, float))
    d0 = u0 - x
    d1 = u1 - y
    out = np.zeros(x.shape)
    inside = (d0 > 0.0) & (d1 > 0.0)
    diffusive = inside & (var > 0.0)
    out[inside & ~diffusive] = 1.0
    out[diffusive] = 1.0 - _exp_capped(-2.0 * d0[diffusive] * d1[diffusive] / var[diffusive])
    return out


def bridge_survival_two_sided(
    x: np.ndarray,
    y: np.ndarray,
    l0: float,
    l1: float,
    u0: float,
    u1: float,
    var: np.ndarray,
    terms: int | None = None,
) -> np.ndarray:
    """P(bridge from x to y stays strictly between the chords l and u).

    By default the image series is extended until the omitted terms are
    negligible; only strips narrow against sqrt(v) need more than a few.
    """
    x, y, var = np.broadcast_arrays(np.asarray(x, float), np.asarray(y, float), np.asarray(var, float))
    a = x - l0
    b = y - l1
    w0 = u0 - l0
    w1 = u1 - l1
    out = np.zeros(x.shape)
    inside = (a > 0.0) & (a < w0) & (b > 0.0) & (b < w1)
    diffusive = inside & (var > 0.0)
    out[inside & ~diffusive] = 1.0

    a_d, b_d, v_d = a[diffusive], b[diffusive], var[diffusive]
    if a_d.size == 0:
        return out
    if terms is None:
        reach = 5.0 * np.sqrt(v_d.max()) / min(w0, w1)
        terms = max(SERIES_TERMS, min(int(np.ceil(reach)), 1000))
    total = np.zeros(a_d.shape)
    for k in range(-terms, terms + 1):
        total += _exp_capped(-(2.0 * k * k * w0 * w1 + k * (w0 + w1) * (b_d - a_d)) / v_d)
        total -= _exp_capped(-2.0 * (a_d + k * w0) * (b_d + k * w1) / v_d)
    out[diffusive] = np.clip(total, 0.0, 1.0)
    return out


def bridge_survival(
    x: np.ndarray,
    y: np.ndarray,
    var: np.ndarray,
    *,
    lower: tuple[float, float],
    upper: tuple[float, float],
    one_sided: bool,
    mode: str = "brownian",
) -> np.ndarray:
    """Dispatch to the one- or two-sided bridge factor for ``mode``."""
    if mode != "brownian":
        raise ValueError(f"Unsupported bridge mode: {mode!r}")
    if one_sided:
        return bridge_survival_one_sided(x, y, upper[0], upper[1], var)
    return bridge_survival_two_sided(x, y, lower[0], lower[1], upper[0], upper[1], var)
