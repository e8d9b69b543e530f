"""Committed delegation bindings.

A :class:`DelegationRecord` is created by the builder at the end of a
registration session and handed to the :class:`DelegationRegistry`, which owns
it for the rest of the process. Records form a set keyed on the delegator side:
two records are equal when they bind the same delegator method of the same
delegator type, whatever their delegatee.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Mapping

from delegatekit.exceptions import DelegationConfigError
from delegatekit.methods import MethodSignature
from delegatekit.parameters import ParameterProvider

ExceptionMap = Mapping[type[BaseException], type[BaseException]]


@dataclass(frozen=True, slots=True)
class DelegationRecord:
    """Immutable binding of one delegator method to one delegatee method.

    `exception_map` maps a delegatee (raised) error type to the delegator error
    type it must be converted to. An empty `providers` tuple means positional
    1:1 mapping, offset by one in first-argument mode.
    """

    delegator_type: type
    delegator_method: MethodSignature
    delegatee_type: type = field(compare=False)
    delegatee_method: MethodSignature = field(compare=False)
    delegatee_name: str | None = field(default=None, compare=False)
    providers: tuple[ParameterProvider, ...] = field(default=(), compare=False)
    exception_map: ExceptionMap = field(default_factory=dict, compare=False)

    def __post_init__(self) -> None:
        if self.delegatee_method is None:
            raise DelegationConfigError(f"{self.label}: delegatee method is not resolved")
        object.__setattr__(self, "providers", tuple(self.providers))
        object.__setattr__(self, "exception_map", MappingProxyType(dict(self.exception_map)))
        if self.providers and len(self.providers) != self.delegatee_method.parameter_count:
            raise DelegationConfigError(
                f"{self.label}: {len(self.providers)} parameter providers for "
                f"{self.delegatee_method.parameter_count} parameters of {self.delegatee_method.label}"
            )

    @property
    def key(self) -> tuple[type, MethodSignature]:
        return self.delegator_type, self.delegator_method

    @property
    def label(self) -> str:
        return f"{self.delegator_type.__qualname__}.{self.delegator_method.name}"

    @property
    def delegatee_label(self) -> str:
        if self.delegatee_name:
            return f"{self.delegatee_name}:{self.delegatee_method.label}"
        return self.delegatee_method.label

    def describe(self) -> dict[str, Any]:
        """Flat summary for logging and span attributes."""
        return {
            "delegation.delegator": self.label,
            "delegation.delegatee": self.delegatee_label,
            "delegation.providers": len(self.providers),
            "delegation.mapped_errors": len(self.exception_map),
        }


__all__ = ["DelegationRecord", "ExceptionMap"]
