"""
Explicit fixed-step integrators: x_{n+1} = step(evaluate, x_n, t_n, dt).

Pure numerical level: no dependency on Stateful or on the simulation loop.
``evaluate(x, t)`` returns dx/dt at (x, t); x may be a StateCollection, a numpy
array or a float, since only ``+`` and scalar ``*`` are used.
"""

from enum import Enum
from typing import Any, Callable, Dict, Union

from statestep.core.errors import UnrecognizedSolverError

# Derivative source: (x, t) -> dx/dt
Evaluate = Callable[[Any, float], Any]


def _check_dt(dt: float) -> float:
    dt = float(dt)
    if dt < 0.0:
        raise ValueError(f"dt must be >= 0, got {dt}")
    return dt


def euler_step(evaluate: Evaluate, x: Any, t: float, dt: float) -> Any:
    """Explicit Euler, order 1: x_{n+1} = x_n + f(x_n, t_n) * dt."""
    dt = _check_dt(dt)
    if dt == 0.0:
        return x
    d1 = evaluate(x, t)
    return x + d1 * dt


def heun_step(evaluate: Evaluate, x: Any, t: float, dt: float) -> Any:
    """Heun (improved Euler), order 2: Euler predictor + trapezoidal corrector."""
    dt = _check_dt(dt)
    if dt == 0.0:
        return x
    d1 = evaluate(x, t)
    d2 = evaluate(x + d1 * dt, t + dt)
    return x + (d1 + d2) * (dt / 2.0)


def midpoint_step(evaluate: Evaluate, x: Any, t: float, dt: float) -> Any:
    """Midpoint (RK2): evaluation at interval center."""
    dt = _check_dt(dt)
    if dt == 0.0:
        return x
    d1 = evaluate(x, t)
    d2 = evaluate(x + d1 * (dt / 2.0), t + dt / 2.0)
    return x + d2 * dt


def rk4_step(evaluate: Evaluate, x: Any, t: float, dt: float) -> Any:
    """Runge-Kutta 4, order 4."""
    dt = _check_dt(dt)
    if dt == 0.0:
        return x
    half = dt / 2.0
    d1 = evaluate(x, t)
    d2 = evaluate(x + d1 * half, t + half)
    d3 = evaluate(x + d2 * half, t + half)
    d4 = evaluate(x + d3 * dt, t + dt)
    return x + (d1 + d2 * 2.0 + d3 * 2.0 + d4) * (dt / 6.0)


class EulerIntegrator:
    """Explicit Euler integrator, order 1."""

    @staticmethod
    def step(evaluate: Evaluate, x: Any, t: float, dt: float) -> Any:
        return euler_step(evaluate, x, t, dt)


class HeunIntegrator:
    """Heun integrator, order 2."""

    @staticmethod
    def step(evaluate: Evaluate, x: Any, t: float, dt: float) -> Any:
        return heun_step(evaluate, x, t, dt)


class MidpointIntegrator:
    """Midpoint integrator (RK2)."""

    @staticmethod
    def step(evaluate: Evaluate, x: Any, t: float, dt: float) -> Any:
        return midpoint_step(evaluate, x, t, dt)


class RK4Integrator:
    """Runge-Kutta 4 integrator, order 4."""

    @staticmethod
    def step(evaluate: Evaluate, x: Any, t: float, dt: float) -> Any:
        return rk4_step(evaluate, x, t, dt)


class Solver(str, Enum):
    """Solver selection. Values are the names accepted in configuration files."""

    EULER = "euler"
    HEUN = "heun"
    MIDPOINT = "midpoint"
    RK4 = "rk4"

    @classmethod
    def parse(cls, value: Union["Solver", str]) -> "Solver":
        """Solver from an enum member or a case-insensitive name."""
        if isinstance(value, Solver):
            return value
        if isinstance(value, str):
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        raise UnrecognizedSolverError(value, tuple(s.value for s in cls))

    @property
    def order(self) -> int:
        """Order of accuracy in dt."""
        return _ORDER[self]

    @property
    def evaluations(self) -> int:
        """Derivative evaluations per step."""
        return _EVALUATIONS[self]


_ORDER: Dict[Solver, int] = {Solver.EULER: 1, Solver.HEUN: 2, Solver.MIDPOINT: 2, Solver.RK4: 4}
_EVALUATIONS: Dict[Solver, int] = {Solver.EULER: 1, Solver.HEUN: 2, Solver.MIDPOINT: 2, Solver.RK4: 4}

_INTEGRATORS: Dict[Solver, Any] = {
    Solver.EULER: EulerIntegrator(),
    Solver.HEUN: HeunIntegrator(),
    Solver.MIDPOINT: MidpointIntegrator(),
    Solver.RK4: RK4Integrator(),
}


def get_integrator(solver: Union[Solver, str]) -> Any:
    """Integrator object (with a step(evaluate, x, t, dt) method) for a selection."""
    return _INTEGRATORS[Solver.parse(solver)]
