"""
statestep: fixed-step explicit integration for simulations of stateful entities.
"""

__version__ = "0.1.0"

from statestep.core.collection import StateCollection
from statestep.core.config import SimulationConfig
from statestep.core.errors import KeyMismatchError, UnrecognizedSolverError
from statestep.core.stateful import Stateful
from statestep.core.system import Simulation
from statestep.physics.integrators import Solver

__all__ = [
    "__version__",
    "Simulation",
    "SimulationConfig",
    "Solver",
    "StateCollection",
    "Stateful",
    "KeyMismatchError",
    "UnrecognizedSolverError",
]
