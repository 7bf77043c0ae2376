"""
Reference entity and force systems, ready to use.

Joint is a one-degree-of-freedom body (position, velocity) driven by an
accumulated force. The force systems below are physics-stage callables for
PhysicsSchedule; calculate_acceleration belongs in the finalize stage.
"""

from dataclasses import dataclass
from typing import Any, Callable, Mapping

import numpy as np

from statestep.core.state import is_scalar
from statestep.core.stateful import Stateful


@dataclass(frozen=True)
class JointState:
    """Position/velocity pair; also used for the derivative (velocity, acceleration)."""

    position: float
    velocity: float

    def __add__(self, other: Any) -> "JointState":
        if not isinstance(other, JointState):
            return NotImplemented
        return JointState(self.position + other.position, self.velocity + other.velocity)

    def __mul__(self, scalar: Any) -> "JointState":
        if not is_scalar(scalar):
            return NotImplemented
        return JointState(self.position * scalar, self.velocity * scalar)

    __rmul__ = __mul__

    def to_array(self) -> np.ndarray:
        return np.array([self.position, self.velocity], dtype=float)

    @classmethod
    def from_array(cls, arr: Any) -> "JointState":
        arr = np.asarray(arr, dtype=float).ravel()
        if arr.size != 2:
            raise ValueError(f"JointState needs 2 components, got {arr.size}")
        return cls(float(arr[0]), float(arr[1]))


class Joint(Stateful[JointState]):
    """
    Linear joint: m * dv/dt = F.
    State [position, velocity]; derivative [velocity, acceleration].
    """

    def __init__(
        self,
        position: float = 0.0,
        velocity: float = 0.0,
        mass: float = 1.0,
    ) -> None:
        mass = float(mass)
        if not np.isfinite(mass) or mass <= 0.0:
            raise ValueError(f"mass must be positive and finite, got {mass}")
        self.position = float(position)
        self.velocity = float(velocity)
        self.acceleration = 0.0
        self.force = 0.0
        self.mass = mass

    def get_state(self) -> JointState:
        return JointState(self.position, self.velocity)

    def set_state(self, state: JointState) -> None:
        self.position = state.position
        self.velocity = state.velocity

    def get_dstate(self) -> JointState:
        return JointState(self.velocity, self.acceleration)

    def set_dstate(self, dstate: JointState) -> None:
        self.velocity = dstate.position
        self.acceleration = dstate.velocity

    def reset(self) -> None:
        self.acceleration = 0.0
        self.force = 0.0

    def __repr__(self) -> str:
        return (
            f"Joint(position={self.position}, velocity={self.velocity}, "
            f"mass={self.mass})"
        )


def _joints(entities: Mapping[Any, Any]):
    return (e for e in entities.values() if isinstance(e, Joint))


def spring_force(stiffness: float, rest_position: float = 0.0) -> Callable[[Mapping[Any, Any], float], None]:
    """F += -stiffness * (position - rest_position)."""
    stiffness = float(stiffness)
    rest_position = float(rest_position)

    def system(entities: Mapping[Any, Any], t: float) -> None:
        for joint in _joints(entities):
            joint.force += -stiffness * (joint.position - rest_position)

    return system


def damping_force(coefficient: float) -> Callable[[Mapping[Any, Any], float], None]:
    """F += -coefficient * velocity."""
    coefficient = float(coefficient)

    def system(entities: Mapping[Any, Any], t: float) -> None:
        for joint in _joints(entities):
            joint.force += -coefficient * joint.velocity

    return system


def gravity(g: float = 9.81) -> Callable[[Mapping[Any, Any], float], None]:
    """F += -g * mass (along the joint axis)."""
    g = float(g)

    def system(entities: Mapping[Any, Any], t: float) -> None:
        for joint in _joints(entities):
            joint.force += -g * joint.mass

    return system


def calculate_acceleration(entities: Mapping[Any, Any], t: float) -> None:
    """acceleration = force / mass."""
    for joint in _joints(entities):
        joint.acceleration = joint.force / joint.mass
