# delegatekit/registers.py
"""Class-based delegation configuration.

Subclass :class:`DelegationRegister` once per delegator type and describe the
bindings in :meth:`~DelegationRegister.register`::

    class AccountDelegations(DelegationRegister[Accounts]):
        def register(self, source, builder):
            source.balance(None)
            self.delegate_to(Ledger, "ledger").total(self.at(0))
            self.map_exception(LedgerMissing, AccountMissing)

    register_all(builder, [AccountDelegations()])

A register whose ``register`` does nothing binds every abstract method of the
delegator type by name. The builder is passed in explicitly; registers never
look it up from ambient state.
"""
from __future__ import annotations

import logging
import typing
from typing import Any, ClassVar, Generic, Iterable, TypeVar

from delegatekit.builder import DelegationBuilder
from delegatekit.exceptions import DelegationConfigError
from delegatekit.registry import DelegationRecord

logger = logging.getLogger(__name__)

S = TypeVar("S")

__all__ = ["DelegationRegister", "register_all"]


def _generic_delegator(cls: type) -> type | None:
    for klass in cls.__mro__:
        for base in klass.__dict__.get("__orig_bases__", ()):
            if typing.get_origin(base) is DelegationRegister:
                (arg,) = typing.get_args(base)
                if isinstance(arg, type):
                    return arg
    return None


class DelegationRegister(Generic[S]):
    """Describe the delegations of one delegator type.

    The delegator type comes from the ``delegator`` class attribute or, when
    absent, from the generic argument (``DelegationRegister[Accounts]``).
    """

    delegator: ClassVar[type | None] = None

    def __init__(self) -> None:
        self._builder: DelegationBuilder | None = None

    @classmethod
    def delegator_type(cls) -> type:
        delegator = cls.delegator or _generic_delegator(cls)
        if delegator is None:
            raise DelegationConfigError(
                f"{cls.__qualname__} must declare `delegator` or subclass DelegationRegister[<type>]"
            )
        return delegator

    def register(self, source: S, builder: DelegationBuilder) -> None:
        """Describe delegations by calling methods on `source`; the default binds everything by name."""

    # ------------------- running -------------------
    def run(self, builder: DelegationBuilder) -> tuple[DelegationRecord, ...]:
        """Run this register in its own builder session and commit it."""
        delegator = self.delegator_type()
        source = builder.begin_from(delegator)
        self._builder = builder
        try:
            self.register(source, builder)
        except BaseException:
            builder.reset()
            raise
        finally:
            self._builder = None
        return builder.finish()

    # ------------------- helpers -------------------
    @property
    def builder(self) -> DelegationBuilder:
        if self._builder is None:
            raise DelegationConfigError(f"{type(self).__qualname__} helpers are only usable inside register()")
        return self._builder

    def delegate(self) -> Any:
        return self.builder.delegate()

    def delegate_to(self, delegatee_type: type, name: str | None = None) -> Any:
        """Shortcut for ``to_target`` followed by ``delegate``."""
        self.builder.to_target(delegatee_type, name)
        return self.builder.delegate()

    def at(self, position: int, as_type: Any = None) -> Any:
        return self.builder.at(position, as_type)

    def type_of(self, source_type: type, as_type: Any = None) -> Any:
        return self.builder.type_of(source_type, as_type)

    def constant(self, value: Any) -> Any:
        return self.builder.constant(value)

    def map_exception(
        self,
        delegatee_error: type[BaseException],
        delegator_error: type[BaseException],
    ) -> None:
        self.builder.map_exception(delegatee_error, delegator_error)


def register_all(
    builder: DelegationBuilder,
    registers: Iterable[DelegationRegister[Any] | type[DelegationRegister[Any]]],
) -> tuple[DelegationRecord, ...]:
    """Run every register through `builder`; classes are instantiated first."""
    committed: list[DelegationRecord] = []
    for register in registers:
        if isinstance(register, type):
            register = register()
        records = register.run(builder)
        logger.debug("%s committed %d delegations", type(register).__qualname__, len(records))
        committed.extend(records)
    return tuple(committed)
