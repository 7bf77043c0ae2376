"""Shared fixtures: quiet logger, small entity types for the core tests."""

from typing import Any, Dict, List

import numpy as np
import pytest
from loguru import logger

from statestep.core.stateful import Stateful


@pytest.fixture(autouse=True)
def silence_logger():
    logger.remove()
    logger.add(lambda msg: None, level="WARNING")
    yield


class Decay(Stateful[float]):
    """Scalar state x with dx/dt = -rate * x (rate written by the physics callback)."""

    def __init__(self, x: float = 1.0) -> None:
        self.x = float(x)
        self.rate = 0.0
        self.resets = 0

    def get_state(self) -> float:
        return self.x

    def set_state(self, state: float) -> None:
        self.x = state

    def get_dstate(self) -> float:
        return self.rate

    def reset(self) -> None:
        self.rate = 0.0
        self.resets += 1


def decay_physics(k: float = 1.0):
    def physics(entities, t: float) -> None:
        for e in entities.values():
            e.rate = -k * e.x

    return physics


class Body(Stateful[np.ndarray]):
    """Array-state entity whose derivative is set by the physics callback."""

    def __init__(self, state) -> None:
        self.state = np.asarray(state, dtype=float)
        self.derivative = np.zeros_like(self.state)

    def get_state(self) -> np.ndarray:
        return self.state.copy()

    def set_state(self, state: np.ndarray) -> None:
        self.state = np.array(state, dtype=float)

    def get_dstate(self) -> np.ndarray:
        return self.derivative.copy()

    def set_dstate(self, dstate: np.ndarray) -> None:
        self.derivative = np.array(dstate, dtype=float)

    def reset(self) -> None:
        self.derivative = np.zeros_like(self.state)


class Recorder:
    """Physics callback wrapper recording the time and staged states of each call."""

    def __init__(self, physics) -> None:
        self.physics = physics
        self.calls: List[Dict[str, Any]] = []

    def __call__(self, entities, t: float) -> None:
        self.calls.append({"t": t, "states": {k: e.get_state() for k, e in entities.items()}})
        self.physics(entities, t)

    @property
    def times(self) -> List[float]:
        return [c["t"] for c in self.calls]
