# delegatekit/parameters/providers.py
"""Strategies that pick one delegatee argument out of the delegator's arguments."""
from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Sequence

from delegatekit.exceptions import DelegationArgumentError, DelegationConfigError

__all__ = [
    "ParameterProvider",
    "Positional",
    "TypeMatch",
    "Constant",
]


class ParameterProvider(ABC):
    """Produce a single delegatee argument from the caller's argument list."""

    @abstractmethod
    def get(self, arguments: Sequence[Any]) -> Any:
        """Return the argument value for one delegatee slot."""

    @abstractmethod
    def validate(self, parameter_types: Sequence[Any]) -> None:
        """Check this provider against the delegator's declared parameter types.

        Raises DelegationConfigError when the provider can never be satisfied.
        """


@dataclass(frozen=True, slots=True)
class Positional(ParameterProvider):
    """Pass through the caller argument at a fixed index."""

    index: int

    def __post_init__(self) -> None:
        if not isinstance(self.index, int) or isinstance(self.index, bool):
            raise DelegationConfigError(f"Parameter position must be an int, got {self.index!r}")
        if self.index < 0:
            raise DelegationConfigError("Parameter position must start from 0.")

    def get(self, arguments: Sequence[Any]) -> Any:
        try:
            return arguments[self.index]
        except IndexError as err:
            raise DelegationArgumentError(
                f"No argument at position {self.index}; only {len(arguments)} supplied."
            ) from err

    def validate(self, parameter_types: Sequence[Any]) -> None:
        if self.index >= len(parameter_types):
            raise DelegationConfigError(
                f"Parameter position {self.index} must be less than parameter count "
                f"{len(parameter_types)} of delegator method."
            )


@dataclass(frozen=True, slots=True)
class TypeMatch(ParameterProvider):
    """Pass through the first non-None caller argument that is an instance of `type`."""

    type: type

    def __post_init__(self) -> None:
        if not isinstance(self.type, type):
            raise DelegationConfigError(f"TypeMatch requires a class, got {self.type!r}")

    def get(self, arguments: Sequence[Any]) -> Any:
        for argument in arguments:
            if argument is not None and isinstance(argument, self.type):
                return argument
        return None

    def validate(self, parameter_types: Sequence[Any]) -> None:
        matched = [t for t in parameter_types if t is self.type]
        if len(matched) != 1:
            raise DelegationConfigError(
                f"There must be one and only one parameter of type {self.type.__qualname__} "
                f"in delegator method (found {len(matched)})."
            )


@dataclass(frozen=True, slots=True)
class Constant(ParameterProvider):
    """Always supply the same value."""

    value: Any

    def get(self, arguments: Sequence[Any]) -> Any:
        return self.value

    def validate(self, parameter_types: Sequence[Any]) -> None:
        return None
