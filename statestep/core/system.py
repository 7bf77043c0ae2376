"""Simulation orchestrator: fixed-step time loop over a set of Stateful entities."""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Hashable, Mapping, Optional, Union

import numpy as np
from loguru import logger

from statestep.core.collection import StateCollection
from statestep.core.config import SimulationConfig
from statestep.core.errors import KeyMismatchError
from statestep.core.history import StateHistory
from statestep.core.state import StateAlgebra, copy_state, state_like
from statestep.core.stateful import Stateful
from statestep.io.serializers import load_snapshot, save_snapshot
from statestep.physics.evaluator import DerivativeEvaluator, PhysicsFn
from statestep.physics.integrators import Solver, get_integrator


@dataclass
class StepResult:
    """
    Result of one simulation step. state and dstate are copies, independent of
    the live simulation and of any history.

    dstate is read from the entities after the final state has been written
    back, with no further physics call. Components an entity derives from its
    own state (a Joint's velocity) therefore match state, while components
    filled in by the physics callback (a Joint's acceleration) still hold the
    value from the last derivative evaluation of the step, e.g. (t + dt/2) for
    Midpoint or the last stage of RK4.
    """

    time: float
    state: StateCollection
    dstate: StateCollection
    solver: Solver
    dt: float


class Simulation:
    """
    Fixed-step orchestrator.

    Owns the live state collection. Each step reads it as s0, runs the selected
    integrator (which calls the physics callback through a DerivativeEvaluator
    one to four times), replaces it with the result and writes the result back
    onto every entity. A step is all-or-nothing: on error the live state, the
    time and the entities are left as they were at the start of the step.
    """

    def __init__(
        self,
        physics: PhysicsFn,
        entities: Optional[Mapping[Hashable, Stateful]] = None,
        config: Optional[SimulationConfig] = None,
        *,
        solver: Optional[Union[Solver, str]] = None,
        dt: Optional[float] = None,
    ) -> None:
        """
        Args:
            physics: callback physics(entities, t), run once per derivative evaluation.
            entities: entity id -> Stateful entity (more can be added later).
            config: solver, step size and start time (default: RK4, dt=0.002, t0=0).
            solver: overrides config.solver.
            dt: overrides config.dt.
        """
        config = config or SimulationConfig()
        if solver is not None or dt is not None:
            config = SimulationConfig(
                solver=solver if solver is not None else config.solver,
                dt=dt if dt is not None else config.dt,
                t0=config.t0,
            )
        self.config = config
        self.entities: Dict[Hashable, Stateful] = dict(entities or {})
        self._evaluator = DerivativeEvaluator(self.entities, physics)
        self._solver: Solver = config.solver  # type: ignore[assignment]
        self._state: Optional[StateCollection] = None
        self._dstate: Optional[StateCollection] = None
        self._time: float = config.t0
        self._steps = 0
        self._initialized = False

    # --- Setup ---

    def add_entity(self, key: Hashable, entity: Stateful) -> None:
        """Register an entity. Allowed between steps; seeded immediately if initialized."""
        if key in self.entities:
            raise ValueError(f"entity {key!r} already registered")
        if not isinstance(entity, Stateful):
            raise TypeError(f"entity {key!r} does not implement Stateful")
        state = entity.get_state()
        _check_algebra(key, state)
        self.entities[key] = entity
        if self._initialized:
            self._state = StateCollection({**self._state, key: copy_state(state)})
            self._dstate = StateCollection({**self._dstate, key: copy_state(entity.get_dstate())})

    def remove_entity(self, key: Hashable) -> Stateful:
        """Unregister an entity between steps and return it."""
        if key not in self.entities:
            raise KeyError(key)
        entity = self.entities.pop(key)
        if self._initialized:
            self._state = StateCollection({k: v for k, v in self._state.items() if k != key})
            self._dstate = StateCollection({k: v for k, v in self._dstate.items() if k != key})
        return entity

    def initialize(self) -> None:
        """Seed the live state and derivative collections from every entity."""
        for key, entity in self.entities.items():
            if not isinstance(entity, Stateful):
                raise TypeError(f"entity {key!r} does not implement Stateful")
        self._state = self._evaluator.collect_state()
        for key, value in self._state.items():
            _check_algebra(key, value)
        self._dstate = self._evaluator.collect_dstate()
        self._time = self.config.t0
        self._steps = 0
        self._initialized = True
        logger.info(
            "Simulation initialized: {} entities, solver={}, dt={}",
            len(self.entities),
            self._solver.value,
            self.config.dt,
        )

    # --- Stepping ---

    def step(self, dt: Optional[float] = None) -> StepResult:
        """
        Advance every entity by one step of size dt (default: config.dt).

        Returns:
            StepResult with the new time, state and derivative collections.
        """
        if not self._initialized or self._state is None:
            raise RuntimeError("Simulation not initialized: call initialize() before step().")
        h = self.config.dt if dt is None else float(dt)
        if not math.isfinite(h) or h < 0.0:
            raise ValueError(f"dt must be >= 0 and finite, got {h}")

        s0 = self._state
        t0 = self._time
        solver = self._solver
        logger.debug("step {} t={} solver={} dt={}", self._steps, t0, solver.value, h)
        try:
            s1 = get_integrator(solver).step(self._evaluator.evaluate, s0, t0, h)
            # Entities may still hold the last intermediate evaluation point.
            self._evaluator.stage(s1, "step")
            d1 = self._evaluator.collect_dstate()
        except Exception:
            logger.error("step {} failed at t={} (solver={}, dt={})", self._steps, t0, solver.value, h)
            self._restore(s0)
            raise

        bad = s1.non_finite_keys()
        if bad:
            logger.warning("non-finite state at t={} for entities: {}", t0 + h, sorted(map(str, bad)))

        self._state = s1
        self._dstate = d1
        self._time = t0 + h
        self._steps += 1
        return StepResult(time=self._time, state=s1.copy(), dstate=d1.copy(), solver=solver, dt=h)

    def run(
        self,
        n_steps: int,
        history: Optional[StateHistory] = None,
        dt: Optional[float] = None,
    ) -> Optional[StepResult]:
        """
        Run n_steps steps. If history is given it receives a record after each
        step, preceded by the current state when it is still empty.
        """
        if n_steps < 0:
            raise ValueError(f"n_steps must be >= 0, got {n_steps}")
        if not self._initialized:
            raise RuntimeError("Simulation not initialized: call initialize() before run().")
        if history is not None and len(history) == 0:
            history.record(self._time, self._state, self._dstate)
        result = None
        for _ in range(n_steps):
            result = self.step(dt)
            if history is not None:
                history.record(result.time, result.state, result.dstate)
        return result

    def _restore(self, s0: StateCollection) -> None:
        for key, entity in self.entities.items():
            if key in s0:
                entity.set_state(copy_state(s0[key]))

    # --- Properties ---

    @property
    def solver(self) -> Solver:
        return self._solver

    @solver.setter
    def solver(self, value: Union[Solver, str]) -> None:
        solver = Solver.parse(value)
        if solver is not self._solver:
            logger.info("solver changed: {} -> {}", self._solver.value, solver.value)
        self._solver = solver

    @property
    def state(self) -> Optional[StateCollection]:
        """Live state collection (None before initialize)."""
        return self._state.copy() if self._state is not None else None

    @property
    def dstate(self) -> Optional[StateCollection]:
        """Derivatives read from the entities after the latest step (see StepResult)."""
        return self._dstate.copy() if self._dstate is not None else None

    @property
    def time(self) -> float:
        """Current simulated time."""
        return self._time

    @property
    def steps(self) -> int:
        return self._steps

    # --- Checkpointing ---

    def state_dict(self) -> Dict[str, Any]:
        """Full simulation state for checkpointing."""
        if not self._initialized:
            raise RuntimeError("Simulation not initialized: nothing to checkpoint.")
        return {
            "time": self._time,
            "steps": self._steps,
            "solver": self._solver.value,
            "dt": self.config.dt,
            "state": self._state.to_arrays(),
            "dstate": self._dstate.to_arrays(),
        }

    def load_state_dict(self, data: Mapping[str, Any]) -> None:
        """
        Restore a checkpoint produced by state_dict(). Entity keys must match the
        registered entities; values are rebuilt with the live state types.
        """
        if not self._initialized:
            self.initialize()
        state = StateCollection(data["state"])
        dstate = StateCollection(data.get("dstate", {}))
        state.check_keys(self.entities.keys(), "load_state_dict")
        new_state = StateCollection({k: state_like(self._state[k], v) for k, v in state.items()})
        new_dstate = StateCollection(
            {k: state_like(self._dstate[k], v) for k, v in dstate.items() if k in self._dstate}
        )
        self._evaluator.stage(new_state, "load_state_dict")
        for key, value in new_dstate.items():
            try:
                self.entities[key].set_dstate(copy_state(value))
            except NotImplementedError:
                logger.debug("entity {!r} has no set_dstate, derivative not restored", key)
        self._state = new_state
        self._dstate = self._evaluator.collect_dstate()
        self._time = float(data.get("time", self._time))
        self._steps = int(data.get("steps", self._steps))
        if "solver" in data:
            self.solver = data["solver"]

    def save_checkpoint(self, path: Union[str, Path]) -> None:
        """Write state_dict() to <path>.npz + <path>.meta.json (arrays named "<kind>.<str(key)>")."""
        data = self.state_dict()
        flat: Dict[str, Any] = {k: v for k, v in data.items() if k not in ("state", "dstate")}
        for kind in ("state", "dstate"):
            for key, arr in data[kind].items():
                flat[f"{kind}.{key}"] = np.asarray(arr)
        save_snapshot(flat, path)

    def load_checkpoint(self, path: Union[str, Path]) -> None:
        """Load a checkpoint written by save_checkpoint()."""
        flat = load_snapshot(path)
        by_name = {str(key): key for key in self.entities}
        data: Dict[str, Any] = {"state": {}, "dstate": {}}
        for name, value in flat.items():
            kind, sep, entity_name = name.partition(".")
            if sep and kind in ("state", "dstate"):
                if entity_name not in by_name:
                    raise KeyMismatchError(entity_name, "load_checkpoint", "not registered")
                data[kind][by_name[entity_name]] = value
            else:
                data[name] = value
        self.load_state_dict(data)


def _check_algebra(key: Hashable, state: Any) -> None:
    if not isinstance(state, StateAlgebra):
        raise TypeError(f"state of entity {key!r} does not support + and scalar *")
