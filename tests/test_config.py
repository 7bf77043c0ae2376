"""SimulationConfig validation and JSON persistence."""

import pytest

from statestep.core.config import SimulationConfig
from statestep.core.errors import UnrecognizedSolverError
from statestep.io import load_config, save_config
from statestep.physics.integrators import Solver


def test_defaults() -> None:
    config = SimulationConfig()
    assert config.solver is Solver.RK4
    assert config.dt == 0.002
    assert config.t0 == 0.0


def test_solver_from_string() -> None:
    assert SimulationConfig(solver="Heun").solver is Solver.HEUN


def test_unrecognized_solver_fails_at_construction() -> None:
    with pytest.raises(UnrecognizedSolverError):
        SimulationConfig(solver="verlet")


@pytest.mark.parametrize("dt", [0.0, -0.01, float("nan"), float("inf")])
def test_invalid_dt(dt: float) -> None:
    with pytest.raises(ValueError):
        SimulationConfig(dt=dt)


def test_save_and_load(tmp_path) -> None:
    path = tmp_path / "sim" / "config.json"
    config = SimulationConfig(solver=Solver.MIDPOINT, dt=0.01, t0=2.0)
    config.save(path)
    assert load_config(path) == {"solver": "midpoint", "dt": 0.01, "t0": 2.0}
    assert SimulationConfig.load(path) == config


def test_load_rejects_bad_values(tmp_path) -> None:
    path = tmp_path / "config.json"
    save_config({"solver": "rk45", "dt": 0.01}, path)
    with pytest.raises(UnrecognizedSolverError):
        SimulationConfig.load(path)
    save_config({"solver": "rk4", "step": 0.01}, path)
    with pytest.raises(ValueError):
        SimulationConfig.load(path)
