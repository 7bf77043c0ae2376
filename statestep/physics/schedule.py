"""
Staged physics callback.

Systems are grouped in three stages run in order on every evaluation:
``initialize`` (prepare entities), ``physics`` (accumulate forces, any order)
and ``finalize`` (turn accumulated effects into derivatives). The schedule is
itself a valid physics callback for DerivativeEvaluator.
"""

from typing import Any, Callable, Dict, List, Mapping

System = Callable[[Mapping[Any, Any], float], None]

STAGES = ("initialize", "physics", "finalize")


class PhysicsSchedule:
    """Ordered container of physics systems."""

    def __init__(self, physics=(), initialize=(), finalize=()) -> None:
        """
        Args:
            physics: systems accumulating forces/effects.
            initialize: systems run before the physics stage.
            finalize: systems run last (e.g. force -> acceleration).
        """
        self._stages: Dict[str, List[System]] = {name: [] for name in STAGES}
        self.add("initialize", *initialize)
        self.add("physics", *physics)
        self.add("finalize", *finalize)

    def add(self, stage: str, *systems: System) -> "PhysicsSchedule":
        if stage not in self._stages:
            raise ValueError(f"unknown stage {stage!r}, expected one of {STAGES}")
        for system in systems:
            if not callable(system):
                raise TypeError(f"system {system!r} is not callable")
            self._stages[stage].append(system)
        return self

    def systems(self, stage: str) -> List[System]:
        if stage not in self._stages:
            raise ValueError(f"unknown stage {stage!r}, expected one of {STAGES}")
        return list(self._stages[stage])

    def __call__(self, entities: Mapping[Any, Any], t: float) -> None:
        for stage in STAGES:
            for system in self._stages[stage]:
                system(entities, t)

    def __len__(self) -> int:
        return sum(len(systems) for systems in self._stages.values())
