"""Core: collezioni di stato, contratto Stateful e orchestratore della simulazione."""

from statestep.core.collection import StateCollection
from statestep.core.config import SimulationConfig
from statestep.core.errors import IntegrationError, KeyMismatchError, UnrecognizedSolverError
from statestep.core.history import StateHistory
from statestep.core.state import StateAlgebra, as_array
from statestep.core.stateful import Stateful
from statestep.core.system import Simulation, StepResult

__all__ = [
    "StateCollection",
    "StateAlgebra",
    "as_array",
    "Stateful",
    "SimulationConfig",
    "StateHistory",
    "Simulation",
    "StepResult",
    "IntegrationError",
    "KeyMismatchError",
    "UnrecognizedSolverError",
]
