import dataclasses

import pytest

from boundary_crossing import Configuration, ConfigurationError, build_grid


def test_valid_config_normalises_fields(make_config) -> None:
    cfg = make_config(n=10, target_interval=[-0.5, 2], bridge_mode=" Brownian ")
    assert cfg.target_interval == (-0.5, 2.0)
    assert cfg.bridge_mode == "brownian"
    assert cfg.dt == pytest.approx(0.1)
    assert cfg.times.shape == (11,)


@pytest.mark.parametrize(
    "overrides",
    [
        {"n": 0},
        {"n": 2.5},
        {"n": True},
        {"T": 0.0},
        {"T": -1.0},
        {"gamma": 0.0},
        {"delta": -0.1},
        {"pn": 0.0},
        {"target_flag": True, "target_interval": (1.0, 1.0)},
        {"target_flag": True, "target_interval": (2.0, 1.0)},
        {"bridge_mode": "reflected"},
        {"integration_scheme": "simpson"},
        {"mu": 0.0},
        {"clip_tol": -1.0},
    ],
)
def test_invalid_config_rejected(make_config, overrides) -> None:
    with pytest.raises(ConfigurationError):
        make_config(**overrides)


def test_target_interval_ignored_without_flag(make_config) -> None:
    cfg = make_config(target_flag=False, target_interval=(3.0, -3.0))
    assert cfg.target_interval == (3.0, -3.0)


def test_config_is_immutable(make_config) -> None:
    cfg = make_config()
    with pytest.raises(dataclasses.FrozenInstanceError):
        cfg.n = 5  # type: ignore[misc]


def test_all_fields_required() -> None:
    with pytest.raises(TypeError):
        Configuration(x0=0.0, T=1.0)  # type: ignore[call-arg]


def test_grid_builder_rechecks_config(make_config) -> None:
    cfg = make_config()
    # Bypass __post_init__ the way a careless caller could.
    object.__setattr__(cfg, "gamma", -1.0)
    with pytest.raises(ConfigurationError):
        build_grid(cfg, lambda t: -1.0, lambda t: 1.0)
