"""Boundary-crossing probabilities for one-dimensional diffusions.

Markov-chain approximation with a Brownian-bridge crossing correction,
forward (taboo density) and backward (value function) propagation.
"""

from .config import Configuration
from .errors import (
    BoundaryCrossingError,
    BoundaryError,
    ConfigurationError,
    NumericalInstabilityError,
    NumericalOverflowError,
)
from .grid import GridLevel, SpaceTimeGrid, build_grid
from .operators import WeightedTransition, build_operators
from .forward import (
    crossing_probability,
    first_passage_density,
    forward_solve,
    propagate_forward,
    taboo_density,
)
from .backward import backward_solve, propagate_backward
from .quadrature import boundary_sensitivity, integrate, trapezoidal
from .processes import brownian_motion, no_potential, ornstein_uhlenbeck

__all__ = [
    # Configuration / errors
    "Configuration",
    "BoundaryCrossingError",
    "BoundaryError",
    "ConfigurationError",
    "NumericalInstabilityError",
    "NumericalOverflowError",
    # Lattice and operators
    "GridLevel",
    "SpaceTimeGrid",
    "build_grid",
    "WeightedTransition",
    "build_operators",
    # Solvers
    "forward_solve",
    "propagate_forward",
    "backward_solve",
    "propagate_backward",
    "crossing_probability",
    "taboo_density",
    "first_passage_density",
    # Quadrature
    "trapezoidal",
    "integrate",
    "boundary_sensitivity",
    # Presets
    "brownian_motion",
    "ornstein_uhlenbeck",
    "no_potential",
]
