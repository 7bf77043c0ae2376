"""DerivativeEvaluator: staging, reset ordering, harvesting, idempotence."""

import numpy as np
import pytest

from conftest import Body, Decay, Recorder, decay_physics
from statestep.core.collection import StateCollection
from statestep.core.errors import KeyMismatchError
from statestep.physics.evaluator import DerivativeEvaluator


def test_evaluate_stages_snapshot_and_harvests_derivatives() -> None:
    entities = {"a": Decay(1.0), "b": Decay(2.0)}
    physics = Recorder(decay_physics(k=0.5))
    evaluator = DerivativeEvaluator(entities, physics)

    d = evaluator.evaluate(StateCollection({"a": 4.0, "b": -2.0}), 1.5)

    assert physics.times == [1.5]
    assert physics.calls[0]["states"] == {"a": 4.0, "b": -2.0}
    assert d == StateCollection({"a": -2.0, "b": 1.0})
    assert entities["a"].x == 4.0


def test_reset_runs_before_physics() -> None:
    seen = []

    def physics(entities, t):
        for e in entities.values():
            seen.append(e.rate)
            e.rate += 1.0

    entities = {"a": Decay(1.0)}
    entities["a"].rate = 99.0
    evaluator = DerivativeEvaluator(entities, physics)
    d1 = evaluator.evaluate(StateCollection({"a": 1.0}), 0.0)
    d2 = evaluator.evaluate(StateCollection({"a": 1.0}), 0.0)
    assert seen == [0.0, 0.0]
    assert d1["a"] == d2["a"] == 1.0
    assert entities["a"].resets == 2


def test_evaluate_is_idempotent() -> None:
    entities = {"a": Decay(3.0), "b": Decay(-1.0)}
    evaluator = DerivativeEvaluator(entities, decay_physics())
    snapshot = StateCollection({"a": 0.25, "b": 8.0})
    first = evaluator.evaluate(snapshot, 0.0)
    evaluator.evaluate(StateCollection({"a": 100.0, "b": 100.0}), 5.0)
    again = evaluator.evaluate(snapshot, 0.0)
    assert first == again


def test_snapshot_arrays_are_not_aliased() -> None:
    entities = {"body": Body([1.0, 2.0])}

    def physics(entities, t):
        body = entities["body"]
        body.state += 100.0  # physics must not be able to corrupt the snapshot
        body.derivative = np.array([1.0, 1.0])

    evaluator = DerivativeEvaluator(entities, physics)
    snapshot = StateCollection({"body": np.array([1.0, 2.0])})
    evaluator.evaluate(snapshot, 0.0)
    np.testing.assert_array_equal(snapshot["body"], [1.0, 2.0])


def test_missing_entity_in_snapshot() -> None:
    entities = {"a": Decay(1.0), "b": Decay(1.0)}
    physics = Recorder(decay_physics())
    evaluator = DerivativeEvaluator(entities, physics)
    with pytest.raises(KeyMismatchError) as excinfo:
        evaluator.evaluate(StateCollection({"a": 5.0}), 0.0)
    assert excinfo.value.key == "b"
    assert excinfo.value.operation == "evaluate"
    # Nothing was written and physics never ran
    assert entities["a"].x == 1.0
    assert physics.calls == []


def test_unknown_entity_in_snapshot() -> None:
    evaluator = DerivativeEvaluator({"a": Decay(1.0)}, decay_physics())
    with pytest.raises(KeyMismatchError) as excinfo:
        evaluator.evaluate(StateCollection({"a": 1.0, "ghost": 1.0}), 0.0)
    assert excinfo.value.key == "ghost"


def test_collect_state_and_dstate() -> None:
    entities = {"a": Body([1.0, 2.0])}
    entities["a"].derivative = np.array([3.0, 4.0])
    evaluator = DerivativeEvaluator(entities, lambda e, t: None)
    np.testing.assert_array_equal(evaluator.collect_state()["a"], [1.0, 2.0])
    np.testing.assert_array_equal(evaluator.collect_dstate()["a"], [3.0, 4.0])


def test_non_finite_derivatives_propagate() -> None:
    def physics(entities, t):
        for e in entities.values():
            e.rate = float("inf")

    evaluator = DerivativeEvaluator({"a": Decay(1.0)}, physics)
    d = evaluator.evaluate(StateCollection({"a": 1.0}), 0.0)
    assert d.non_finite_keys() == ["a"]
