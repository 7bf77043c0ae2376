"""Exceptions raised by the integration core."""

from typing import Any, Hashable, Optional


class IntegrationError(RuntimeError):
    """Base class for errors that stop the simulation from advancing."""


class KeyMismatchError(IntegrationError):
    """
    An operation between state collections (or between a snapshot and the
    registered entities) met an entity key that exists on one side only.
    """

    def __init__(self, key: Hashable, operation: str, detail: Optional[str] = None) -> None:
        self.key = key
        self.operation = operation
        message = f"entity {key!r} is missing from one operand of '{operation}'"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class UnrecognizedSolverError(IntegrationError, ValueError):
    """The solver selection is not one of the supported schemes."""

    def __init__(self, value: Any, choices: Optional[tuple] = None) -> None:
        self.value = value
        message = f"unrecognized solver {value!r}"
        if choices:
            message = f"{message}, expected one of: {', '.join(choices)}"
        super().__init__(message)
