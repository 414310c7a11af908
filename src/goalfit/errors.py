"""Exception types shared across the engine."""

from __future__ import annotations

from typing import Iterable


class GoalFitError(Exception):
    """Base class for goalfit errors."""


class InvalidDomainValue(GoalFitError, ValueError):
    """An enum-like value is not one the lookup tables know about.

    This signals a desync between the allowed choices offered to the user
    and the calculator tables, so it is always raised, never defaulted.
    """

    def __init__(self, field: str, value: object, allowed: Iterable[str]):
        self.field = field
        self.value = value
        self.allowed = tuple(allowed)
        super().__init__(
            f"{field} must be one of {self.allowed}, got {value!r}"
        )


class IncompleteInput(GoalFitError):
    """Required profile or goal fields are missing."""

    def __init__(self, missing: Iterable[str]):
        self.missing = list(missing)
        super().__init__(f"missing required fields: {', '.join(self.missing)}")


class PersistenceError(GoalFitError):
    """The record store failed to load or save."""


class NonFiniteValue(GoalFitError, ValueError):
    """A numeric field holds NaN or infinity."""

    def __init__(self, field: str, value: float):
        self.field = field
        self.value = value
        super().__init__(f"{field} must be a finite number, got {value!r}")
