"""Entity-indexed state container with pointwise vector-space arithmetic."""

from typing import (
    Any,
    Callable,
    Dict,
    Hashable,
    Iterable,
    Iterator,
    Mapping,
    Optional,
    Tuple,
    TypeVar,
)

import numpy as np

from statestep.core.errors import KeyMismatchError
from statestep.core.state import as_array, copy_state, is_scalar

K = TypeVar("K", bound=Hashable)
S = TypeVar("S")


class StateCollection(Mapping[K, S]):
    """
    Mapping entity id -> state (or derivative).

    ``a + b`` and ``a * s`` lift the per-entity algebra to the whole system.
    Both return a new collection and never mutate their operands. Binary
    operations require identical key sets: a key present on one side only
    raises KeyMismatchError naming that key.
    """

    __slots__ = ("_data",)

    def __init__(self, data: Optional[Mapping[K, S]] = None) -> None:
        self._data: Dict[K, S] = dict(data) if data is not None else {}

    @classmethod
    def from_entities(
        cls,
        entities: Mapping[K, Any],
        getter: Callable[[Any], S],
    ) -> "StateCollection[K, S]":
        """Build a collection by calling getter(entity) for every entity."""
        return cls({key: copy_state(getter(entity)) for key, entity in entities.items()})

    # --- Mapping protocol ---

    def __getitem__(self, key: K) -> S:
        return self._data[key]

    def __iter__(self) -> Iterator[K]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._data!r})"

    # --- Key checks ---

    def keys_match(self, other: Iterable[K]) -> bool:
        """True when other holds exactly the same keys."""
        return set(self._data) == set(other)

    def check_keys(self, other: Iterable[K], operation: str) -> None:
        """Raise KeyMismatchError for the first key found on one side only."""
        other_keys = set(other)
        for key in self._data:
            if key not in other_keys:
                raise KeyMismatchError(key, operation, "present in left operand only")
        for key in other_keys:
            if key not in self._data:
                raise KeyMismatchError(key, operation, "present in right operand only")

    def require(self, key: K, operation: str = "get") -> S:
        """Get-or-fail lookup used during evaluation."""
        try:
            return self._data[key]
        except KeyError:
            raise KeyMismatchError(key, operation) from None

    # --- Algebra ---

    def __add__(self, other: Any) -> "StateCollection[K, S]":
        if not isinstance(other, StateCollection):
            return NotImplemented
        self.check_keys(other.keys(), "add")
        return StateCollection({key: value + other._data[key] for key, value in self._data.items()})

    def __mul__(self, scalar: Any) -> "StateCollection[K, S]":
        if not is_scalar(scalar):
            return NotImplemented
        return StateCollection({key: value * scalar for key, value in self._data.items()})

    def __rmul__(self, scalar: Any) -> "StateCollection[K, S]":
        return self.__mul__(scalar)

    # --- Utilities ---

    def copy(self) -> "StateCollection[K, S]":
        """Copy with mutable entries (numpy arrays) duplicated."""
        return StateCollection({key: copy_state(value) for key, value in self._data.items()})

    def items_sorted(self) -> Iterator[Tuple[K, S]]:
        """Items ordered by str(key), for stable output (CSV columns, logs)."""
        return iter(sorted(self._data.items(), key=lambda item: str(item[0])))

    def to_arrays(self) -> Dict[K, np.ndarray]:
        """Per-entity flat float arrays."""
        return {key: as_array(value) for key, value in self._data.items()}

    def allclose(
        self,
        other: "StateCollection[K, Any]",
        rtol: float = 1e-9,
        atol: float = 1e-12,
    ) -> bool:
        """Approximate equality over identical key sets."""
        if not self.keys_match(other.keys()):
            return False
        return all(
            np.allclose(as_array(value), as_array(other[key]), rtol=rtol, atol=atol)
            for key, value in self._data.items()
        )

    def non_finite_keys(self) -> list:
        """Keys whose state holds NaN or infinite components."""
        return [key for key, arr in self.to_arrays().items() if not np.all(np.isfinite(arr))]

    def is_finite(self) -> bool:
        return not self.non_finite_keys()
