import os
import sys

import pytest

# Ensure repo root is on sys.path so tests can import the local `boundary_crossing` package
# regardless of pytest's import mode / rootdir heuristics.
_REPO_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), os.pardir))
if _REPO_ROOT not in sys.path:
    sys.path.insert(0, _REPO_ROOT)

from boundary_crossing import Configuration, brownian_motion, no_potential  # noqa: E402


@pytest.fixture
def make_config():
    """Factory for a standard-Brownian-motion configuration with overrides."""

    def _make(**overrides) -> Configuration:
        mu, sigma = brownian_motion()
        fields = dict(
            x0=0.0,
            T=1.0,
            mu=mu,
            sigma=sigma,
            V=no_potential,
            target_flag=False,
            target_interval=(-1.0, 1.0),
            bridge_mode="brownian",
            one_sided=False,
            n=20,
            delta=0.0,
            pn=1.0,
            gamma=0.5,
            integration_scheme="trapezoidal",
        )
        fields.update(overrides)
        return Configuration(**fields)

    return _make
