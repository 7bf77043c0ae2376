"""
State algebra: the operations a per-entity state must support.

A state (and its derivative, which has the same type) only needs addition with
another state of the same shape and multiplication by a scalar. Floats, numpy
arrays and small value classes such as ``JointState`` all qualify.
"""

from typing import Any, Protocol, TypeVar, runtime_checkable

import numpy as np


@runtime_checkable
class StateAlgebra(Protocol):
    """Structural type for integrable states."""

    def __add__(self, other: Any) -> Any:
        ...

    def __mul__(self, scalar: float) -> Any:
        ...


S = TypeVar("S")


def as_array(state: Any) -> np.ndarray:
    """Flat float copy of a state (uses ``to_array()`` when available)."""
    to_array = getattr(state, "to_array", None)
    values = to_array() if callable(to_array) else state
    return np.atleast_1d(np.array(values, dtype=float)).ravel()


def copy_state(state: S) -> S:
    """
    Copy a state if it is mutable.

    numpy arrays are copied so an entity never aliases a buffer owned by a
    state collection; immutable values are returned as is.
    """
    if isinstance(state, np.ndarray):
        return state.copy()  # type: ignore[return-value]
    return state


def state_like(template: S, values: Any) -> S:
    """
    Rebuild a state of the same type as template from flat values.

    Supports types with a ``from_array`` classmethod, numpy arrays and scalars.
    """
    arr = np.atleast_1d(np.asarray(values, dtype=float)).ravel()
    from_array = getattr(type(template), "from_array", None)
    if callable(from_array):
        return from_array(arr)
    if isinstance(template, np.ndarray):
        if arr.size != template.size:
            raise ValueError(f"expected {template.size} components, got {arr.size}")
        return arr.reshape(template.shape).astype(template.dtype)  # type: ignore[return-value]
    if is_scalar(template):
        if arr.size != 1:
            raise ValueError(f"expected 1 component, got {arr.size}")
        return type(template)(arr[0])  # type: ignore[return-value]
    raise TypeError(f"cannot rebuild a {type(template).__name__} from an array")


def is_scalar(value: Any) -> bool:
    """True for real Python or numpy scalars (bool excluded)."""
    if isinstance(value, bool):
        return False
    return isinstance(value, (int, float, np.integer, np.floating))
