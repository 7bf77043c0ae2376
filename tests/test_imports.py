"""Verify that main modules are importable."""

import pytest


def test_import_statestep() -> None:
    import statestep
    assert statestep.__version__ == "0.1.0"


def test_import_core() -> None:
    from statestep.core import Simulation, SimulationConfig, StateCollection, StateHistory, Stateful
    assert Simulation is not None
    assert SimulationConfig is not None
    assert StateCollection is not None
    assert StateHistory is not None
    assert Stateful is not None


def test_import_physics() -> None:
    from statestep.physics import (
        DerivativeEvaluator,
        EulerIntegrator,
        HeunIntegrator,
        Joint,
        MidpointIntegrator,
        PhysicsSchedule,
        RK4Integrator,
        Solver,
    )
    assert DerivativeEvaluator is not None
    assert PhysicsSchedule is not None
    assert Joint is not None
    assert {s.value for s in Solver} == {"euler", "heun", "midpoint", "rk4"}
    for integrator in (EulerIntegrator, HeunIntegrator, MidpointIntegrator, RK4Integrator):
        assert callable(integrator.step)


def test_import_io() -> None:
    from statestep.io import load_config, load_snapshot, save_config, save_snapshot
    assert save_config is not None
    assert load_config is not None
    assert save_snapshot is not None
    assert load_snapshot is not None


def test_stateful_is_abstract() -> None:
    from statestep.core import Stateful
    with pytest.raises(TypeError):
        Stateful()
