"""Simulation configuration: solver selection, fixed step size, start time."""

import math
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Union

from statestep.io.serializers import load_config, save_config
from statestep.physics.integrators import Solver


@dataclass
class SimulationConfig:
    """Validated settings for a Simulation. Invalid values fail at construction."""

    solver: Union[Solver, str] = Solver.RK4
    dt: float = 0.002
    t0: float = 0.0

    def __post_init__(self) -> None:
        self.solver = Solver.parse(self.solver)
        self.dt = float(self.dt)
        self.t0 = float(self.t0)
        if not math.isfinite(self.dt) or self.dt <= 0.0:
            raise ValueError(f"dt must be positive and finite, got {self.dt}")
        if not math.isfinite(self.t0):
            raise ValueError(f"t0 must be finite, got {self.t0}")

    def to_dict(self) -> Dict[str, Any]:
        return {"solver": self.solver.value, "dt": self.dt, "t0": self.t0}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SimulationConfig":
        unknown = set(data) - {"solver", "dt", "t0"}
        if unknown:
            raise ValueError(f"unknown configuration keys: {sorted(unknown)}")
        return cls(**data)

    def save(self, path: Union[str, Path]) -> None:
        save_config(self.to_dict(), path)

    @classmethod
    def load(cls, path: Union[str, Path]) -> "SimulationConfig":
        return cls.from_dict(load_config(path))
