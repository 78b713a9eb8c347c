import math

import numpy as np
import pytest

from boundary_crossing import (
    backward_solve,
    build_grid,
    crossing_probability,
    forward_solve,
    ornstein_uhlenbeck,
    taboo_density,
)


def _norm_cdf(x: float) -> float:
    return 0.5 * (1.0 + math.erf(x / math.sqrt(2.0)))


def daniels(t: float) -> float:
    if t <= 0.0:
        return 0.5
    return 0.5 - t * math.log(0.25 * (1.0 + math.sqrt(1.0 + 8.0 * math.exp(-1.0 / t))))


def _far(t: float) -> float:
    return 30.0


def _far_neg(t: float) -> float:
    return -30.0


def test_mass_conserved_without_absorption(make_config) -> None:
    cfg = make_config(n=20)
    terminal, prob = forward_solve(cfg, _far_neg, _far, retain_history=False)
    assert isinstance(prob, float)
    assert prob == pytest.approx(1.0, abs=1e-12)
    assert terminal.shape == (build_grid(cfg, _far_neg, _far).levels[-1].size,)


def test_mass_conserved_with_mean_reversion(make_config) -> None:
    mu, sigma = ornstein_uhlenbeck(kappa=2.0, theta=0.5, vol=0.7)
    cfg = make_config(mu=mu, sigma=sigma, n=30, gamma=0.3)
    _, prob = forward_solve(cfg, _far_neg, _far)
    assert prob == pytest.approx(1.0, abs=1e-12)


def daniels_survival(T: float = 1.0) -> float:
    # The boundary is the zero line of phi_t(x) - phi_t(x - 1)/2 - phi_t(x - 2)/2.
    g = daniels(T)
    s = math.sqrt(T)
    return _norm_cdf(g / s) - 0.5 * _norm_cdf((g - 1.0) / s) - 0.5 * _norm_cdf((g - 2.0) / s)


def _daniels_run(make_config, n: int) -> float:
    cfg = make_config(n=n, one_sided=True, gamma=0.25, delta=0.0, pn=1.0)
    _, prob = forward_solve(cfg, lambda t: -3.75, daniels)
    return prob


def test_daniels_reference_values() -> None:
    # 0.4798 is the probability of crossing by T = 1.
    assert daniels_survival() == pytest.approx(0.52025, abs=5e-5)
    assert 1.0 - daniels_survival() == pytest.approx(0.4798, abs=1e-4)


def test_daniels_reference_scenario(make_config) -> None:
    prob = _daniels_run(make_config, 80)
    assert complex(prob).imag == pytest.approx(0.0, abs=1e-12)
    assert crossing_probability(prob) == pytest.approx(0.4798, abs=1e-2)
    assert prob == pytest.approx(daniels_survival(), abs=1e-2)


def test_daniels_error_shrinks_with_n(make_config) -> None:
    exact = daniels_survival()
    errors = [abs(_daniels_run(make_config, n) - exact) for n in (40, 80, 160)]
    assert errors[0] > errors[1] > errors[2]
    assert errors[0] < 1.5e-2
    assert errors[2] < 5e-3


def test_flat_barrier_matches_reflection_principle(make_config) -> None:
    cfg = make_config(n=40, one_sided=True, gamma=0.25)
    _, prob = forward_solve(cfg, lambda t: -6.0, lambda t: 1.0)
    exact = 2.0 * _norm_cdf(1.0) - 1.0
    assert abs(prob - exact) < 1e-2


def test_forward_backward_duality(make_config) -> None:
    cfg = make_config(n=30, gamma=0.3)
    lower = lambda t: -1.0 - 0.2 * t  # noqa: E731
    upper = lambda t: 1.2 - 0.5 * t * t  # noqa: E731
    _, p_fwd = forward_solve(cfg, lower, upper)
    p_bwd, v0 = backward_solve(cfg, lower, upper)
    assert p_fwd == pytest.approx(p_bwd, rel=1e-10)
    assert v0.shape == (build_grid(cfg, lower, upper).levels[0].size,)
    assert 0.0 < p_fwd < 1.0


def test_constant_potential_discounts_exactly(make_config) -> None:
    lower = lambda t: -1.5  # noqa: E731
    upper = lambda t: 1.5  # noqa: E731
    _, p0 = forward_solve(make_config(n=20), lower, upper)
    _, pk = forward_solve(make_config(n=20, V=lambda t, x: 0.7), lower, upper)
    assert pk == pytest.approx(math.exp(-0.7) * p0, rel=1e-12)


def test_narrower_corridor_lowers_probability(make_config) -> None:
    cfg = make_config(n=30, gamma=0.3, one_sided=True)
    probs = []
    for level in (2.0, 1.5, 1.0, 0.75, 0.5):
        _, p = forward_solve(cfg, lambda t: -5.0, lambda t, b=level: b + 0.2 * t)
        probs.append(p)
    assert np.all(np.diff(probs) <= 1e-14)

    cfg2 = make_config(n=30, gamma=0.3)
    probs2 = []
    for lo in (-2.0, -1.5, -1.0, -0.5):
        _, p = forward_solve(cfg2, lambda t, a=lo: a, lambda t: 1.0)
        probs2.append(p)
    assert np.all(np.diff(probs2) <= 1e-14)


def test_complex_potential(make_config) -> None:
    cfg = make_config(n=20, V=lambda t, x: 1j * x ** 2)
    upper = lambda t: 4.0 - t * t  # noqa: E731
    lower = lambda t: -4.0 + t * t  # noqa: E731
    v0, values = backward_solve(cfg, lower, upper)
    assert isinstance(v0, complex)
    assert abs(v0.imag) > 0.05
    assert abs(v0) <= 1.0
    assert np.iscomplexobj(values)

    _, p_fwd = forward_solve(cfg, lower, upper)
    assert p_fwd == pytest.approx(v0, rel=1e-10)


def test_forward_is_idempotent(make_config) -> None:
    cfg = make_config(n=25, one_sided=True)
    h1, p1 = forward_solve(cfg, lambda t: -4.0, daniels, retain_history=True)
    h2, p2 = forward_solve(cfg, lambda t: -4.0, daniels, retain_history=True)
    assert p1 == p2
    assert len(h1) == len(h2) == cfg.n + 1
    for a, b in zip(h1, h2):
        np.testing.assert_array_equal(a, b)


def test_history_shapes_and_taboo_density(make_config) -> None:
    cfg = make_config(n=12)
    lower = lambda t: -1.0  # noqa: E731
    upper = lambda t: 1.0  # noqa: E731
    grid = build_grid(cfg, lower, upper)
    history, prob = forward_solve(cfg, lower, upper, retain_history=True)
    assert [h.size for h in history] == [lvl.size for lvl in grid.levels]
    assert history[0][grid.start_index()] == 1.0
    assert history[0].sum() == 1.0
    # Surviving mass only decreases.
    totals = [h.sum() for h in history]
    assert np.all(np.diff(totals) <= 1e-12)
    assert totals[-1] == pytest.approx(prob)

    dens = taboo_density(grid, history)
    for d, h, lvl in zip(dens, history, grid.levels):
        np.testing.assert_allclose(d * lvl.h, h)
    with pytest.raises(ValueError):
        taboo_density(grid, history[:-1])


def test_backward_history_matches_grid(make_config) -> None:
    cfg = make_config(n=12)
    lower = lambda t: -1.0  # noqa: E731
    upper = lambda t: 1.0  # noqa: E731
    grid = build_grid(cfg, lower, upper)
    prob, values = backward_solve(cfg, lower, upper, retain_history=True)
    assert len(values) == cfg.n + 1
    assert [v.size for v in values] == [lvl.size for lvl in grid.levels]
    np.testing.assert_array_equal(values[-1], np.ones(grid.levels[-1].size))
    assert values[0][grid.start_index()] == pytest.approx(prob)
    assert np.all(values[0] >= 0.0) and np.all(values[0] <= 1.0 + 1e-12)


def test_target_interval(make_config) -> None:
    cfg = make_config(n=40, gamma=0.25, target_flag=True, target_interval=(-0.5, 0.5))
    _, p_fwd = forward_solve(cfg, _far_neg, _far)
    p_bwd, _ = backward_solve(cfg, _far_neg, _far)
    assert p_fwd == pytest.approx(p_bwd, rel=1e-10)
    exact = 2.0 * _norm_cdf(0.5) - 1.0
    assert abs(p_fwd - exact) < 2e-2


def test_terminal_functional_second_moment(make_config) -> None:
    # Variance is matched step by step, so E[X_T^2] = T on the chain.
    cfg = make_config(n=20, T=2.0)
    v0, _ = backward_solve(cfg, _far_neg, _far, terminal=lambda x: x ** 2)
    assert v0 == pytest.approx(2.0, rel=1e-10)
