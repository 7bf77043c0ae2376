"""Interfaccia base per le entità integrabili."""

from abc import ABC, abstractmethod
from typing import Generic, TypeVar

S = TypeVar("S")


class Stateful(ABC, Generic[S]):
    """
    Contract every integrable entity type satisfies.

    The core reads and writes the entity only through these methods and never
    looks at the meaning of the state components.
    """

    @abstractmethod
    def get_state(self) -> S:
        """Current integrable quantities (e.g. position, velocity)."""
        pass

    @abstractmethod
    def set_state(self, state: S) -> None:
        """
        Overwrite the integrable quantities.

        Must round-trip exactly: after ``set_state(x)``, ``get_state() == x``.
        """
        pass

    @abstractmethod
    def get_dstate(self) -> S:
        """Derivative produced by the latest physics pass since reset()."""
        pass

    def set_dstate(self, dstate: S) -> None:
        """
        Push derivative values back onto the entity.

        Optional: only checkpoint restore and inspection tools use it.
        """
        raise NotImplementedError(f"{type(self).__name__} does not support set_dstate()")

    @abstractmethod
    def reset(self) -> None:
        """Clear per-step accumulators (e.g. force) before physics runs."""
        pass
