"""Derivative evaluation: stage a snapshot, run physics once, harvest derivatives."""

from typing import Any, Callable, Generic, Hashable, Mapping, TypeVar

from statestep.core.collection import StateCollection
from statestep.core.state import copy_state
from statestep.core.stateful import Stateful

K = TypeVar("K", bound=Hashable)
S = TypeVar("S")

# Physics callback: runs once against the staged entity state and leaves each
# entity's derivative-bearing fields updated.
PhysicsFn = Callable[[Mapping[Any, Stateful], float], None]


class DerivativeEvaluator(Generic[K, S]):
    """
    Round-trip between the numeric core and the physics callback.

    The evaluator only borrows the entity mapping; it keeps no state of its own
    between calls, so evaluate() is idempotent for a given snapshot.
    """

    def __init__(self, entities: Mapping[K, Stateful[S]], physics: PhysicsFn) -> None:
        """
        Args:
            entities: entity id -> Stateful entity (owned by the caller).
            physics: callback physics(entities, t) run once per evaluation.
        """
        self.entities = entities
        self.physics = physics

    def stage(self, snapshot: StateCollection[K, S], operation: str = "stage") -> None:
        """Write snapshot into every entity. Key sets are checked before any write."""
        snapshot.check_keys(self.entities.keys(), operation)
        for key, entity in self.entities.items():
            entity.set_state(copy_state(snapshot[key]))

    def evaluate(self, snapshot: StateCollection[K, S], t: float) -> StateCollection[K, S]:
        """Derivative collection at (snapshot, t)."""
        self.stage(snapshot, "evaluate")
        for entity in self.entities.values():
            entity.reset()
        self.physics(self.entities, t)
        return self.collect_dstate()

    __call__ = evaluate

    def collect_state(self) -> StateCollection[K, S]:
        return StateCollection.from_entities(self.entities, lambda e: e.get_state())

    def collect_dstate(self) -> StateCollection[K, S]:
        return StateCollection.from_entities(self.entities, lambda e: e.get_dstate())
