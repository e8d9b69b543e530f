# delegatekit/builder/builder.py
"""Fluent registration of delegations through capture proxies.

Typical session::

    accounts = builder.begin_from(AccountService)      # delegator proxy
    accounts.balance(None)                              # capture the delegator method
    builder.to_target(Ledger, "ledger")                 # optional explicit delegatee
    builder.delegate().total(builder.at(0))             # capture the delegatee method
    builder.map_exception(LedgerMissing, AccountMissing)
    builder.finish()                                    # commit into the registry

Calling :meth:`DelegationBuilder.delegate` without a captured delegator method
binds every unbound abstract method of the delegator type to the same-named
method of the delegatee type instead.

A builder is a linear, single-threaded DSL session; it is not safe for
concurrent use.
"""
from __future__ import annotations

import enum
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator, Mapping

from delegatekit.capture import ProxyFactory, SingleShotCapture, zero_value
from delegatekit.conf import Settings, settings as default_settings
from delegatekit.exceptions import DelegationConfigError
from delegatekit.methods import MethodSignature, abstract_methods
from delegatekit.parameters import (
    Constant,
    ParameterProvider,
    Positional,
    TypeMatch,
    match_parameters,
)
from delegatekit.registry import DelegationRecord, DelegationRegistry, RegistryDuplicateError

logger = logging.getLogger(__name__)

__all__ = ["BuilderState", "DelegationBuilder"]


class BuilderState(enum.Enum):
    IDLE = "idle"
    DELEGATOR_SELECTED = "delegator_selected"
    DELEGATOR_CAPTURED = "delegator_captured"
    DELEGATEE_TARGET_SET = "delegatee_target_set"
    DELEGATEE_PENDING = "delegatee_pending"
    COMMITTED = "committed"


@dataclass(slots=True)
class _PendingDelegation:
    """Mutable draft of a record while its session is open."""

    delegator_type: type
    delegator_method: MethodSignature
    delegatee_type: type
    delegatee_name: str | None = None
    delegatee_method: MethodSignature | None = None
    providers: tuple[ParameterProvider, ...] = ()

    @property
    def key(self) -> tuple[type, MethodSignature]:
        return self.delegator_type, self.delegator_method

    def freeze(self, exception_map: Mapping[type, type]) -> DelegationRecord:
        return DelegationRecord(
            delegator_type=self.delegator_type,
            delegator_method=self.delegator_method,
            delegatee_type=self.delegatee_type,
            delegatee_method=self.delegatee_method,
            delegatee_name=self.delegatee_name,
            providers=self.providers,
            exception_map=exception_map,
        )


def _first_parameter_type(method: MethodSignature) -> type:
    if not method.parameters:
        raise DelegationConfigError(
            f"{method.label} must have at least one parameter to delegate to its first argument."
        )
    first = method.parameter_types[0]
    if first is None:
        raise DelegationConfigError(
            f"Cannot infer the delegatee type of {method.label}: "
            f"first parameter {method.parameters[0].name!r} is not annotated."
        )
    if not isinstance(first, type):
        raise DelegationConfigError(
            f"Cannot infer the delegatee type of {method.label}: {first!r} is not a class."
        )
    return first


def _check_error_type(value: Any, role: str) -> None:
    if not (isinstance(value, type) and issubclass(value, BaseException)):
        raise DelegationConfigError(f"{role} must be an exception type, got {value!r}")


class DelegationBuilder:
    """Collect delegations for one delegator type at a time and commit them to a registry."""

    def __init__(self, registry: DelegationRegistry, *, settings: Settings | None = None) -> None:
        self._registry = registry
        self._settings = settings if settings is not None else default_settings
        self._delegator_factory = ProxyFactory(self._on_delegator_call)
        self._delegatee_factory = ProxyFactory(self._on_delegatee_call)
        self._delegator_capture = SingleShotCapture("Delegator method called twice before delegate()")
        self._working: dict[tuple[type, MethodSignature], _PendingDelegation] = {}
        self._reset_session()

    # ------------------- State -------------------
    @property
    def registry(self) -> DelegationRegistry:
        return self._registry

    @property
    def state(self) -> BuilderState:
        return self._state

    @property
    def delegator_type(self) -> type | None:
        return self._delegator_type

    def drafts(self) -> tuple[_PendingDelegation, ...]:
        """Delegations collected in the current session, not yet committed."""
        return tuple(self._working.values())

    def _reset_session(self) -> None:
        self._working.clear()
        self._delegator_type: type | None = None
        self._exception_map: dict[type, type] | None = None
        self._reset_delegatee()
        self._state = BuilderState.IDLE

    def _reset_delegatee(self) -> None:
        self._delegatee_type: type | None = None
        self._delegatee_name: str | None = None
        self._reset_delegation()

    def _reset_delegation(self) -> None:
        self._delegator_capture.clear()
        self._providers: list[ParameterProvider] | None = None
        self._pending: _PendingDelegation | None = None

    def reset(self) -> None:
        """Discard the current session without registering anything."""
        if self._delegator_type is not None:
            logger.debug("discarding delegation session for %s", self._delegator_type.__qualname__)
        self._reset_session()

    # ------------------- Session -------------------
    def begin_from(self, delegator_type: type) -> Any:
        """Select the delegator type and return a capture proxy for it."""
        if not isinstance(delegator_type, type):
            raise DelegationConfigError(f"Delegator type must be a class, got {delegator_type!r}")
        if self._working:
            raise DelegationConfigError(
                f"A session for {self._delegator_type.__qualname__} has uncommitted delegations; "
                f"call finish() or reset() first."
            )
        self._reset_session()
        self._delegator_type = delegator_type
        self._exception_map = {}
        self._state = BuilderState.DELEGATOR_SELECTED
        return self._delegator_factory.get_proxy(delegator_type)

    def to_target(self, delegatee_type: type | None, name: str | None = None) -> None:
        """Set an explicit delegatee type (and optional component name) for the next delegations.

        Passing None goes back to delegating to the first argument.
        """
        self._require_delegator("to_target")
        if delegatee_type is None:
            self._delegatee_type = None
            self._delegatee_name = None
            return
        if not isinstance(delegatee_type, type):
            raise DelegationConfigError(f"Delegatee type must be a class, got {delegatee_type!r}")
        self._delegatee_type = delegatee_type
        self._delegatee_name = name or None
        self._state = BuilderState.DELEGATEE_TARGET_SET

    def delegate(self) -> Any:
        """Open a delegation for the captured delegator method.

        Returns a capture proxy for the delegatee type; the next call on it
        names the delegatee method. Without a captured delegator method every
        unbound abstract method is bound by name and None is returned.
        """
        self._require_delegator("delegate")

        delegator_method = self._delegator_capture.consume()
        if delegator_method is None:
            self._bind_abstract_methods()
            if self._working:
                self._state = BuilderState.COMMITTED
            return None

        pending = self._new_delegation(delegator_method)
        if pending.key in self._working:
            raise DelegationConfigError(f"{pending.delegator_method.label} is already delegated in this session.")
        self._working[pending.key] = pending
        self._pending = pending
        self._providers = []
        self._state = BuilderState.DELEGATEE_PENDING
        return self._delegatee_factory.get_proxy(pending.delegatee_type)

    def add_parameter(self, provider: ParameterProvider) -> None:
        """Append a parameter provider to the delegation opened by `delegate()`."""
        if self._providers is None:
            raise DelegationConfigError("add_parameter() must be called after delegate().")
        if not isinstance(provider, ParameterProvider):
            raise DelegationConfigError(f"Expected a ParameterProvider, got {provider!r}")
        self._providers.append(provider)

    def map_exception(
        self,
        delegatee_error: type[BaseException],
        delegator_error: type[BaseException],
    ) -> None:
        """Convert `delegatee_error` raised by a delegatee into `delegator_error`.

        The mapping applies to every delegation of the current session.
        """
        if self._exception_map is None:
            raise DelegationConfigError("begin_from() must be called before map_exception().")
        _check_error_type(delegatee_error, "delegatee_error")
        _check_error_type(delegator_error, "delegator_error")
        self._exception_map[delegatee_error] = delegator_error

    def finish(self) -> tuple[DelegationRecord, ...]:
        """Commit the session into the registry and return to the idle state.

        Every draft is resolved before anything is registered, so a failing
        session leaves the registry untouched. Returns the records actually
        stored (duplicates of existing registrations are dropped).
        """
        if self._delegator_type is None:
            return ()

        try:
            if not self._working:
                self._bind_abstract_methods()

            exception_map = dict(self._exception_map or {})
            records = [self._resolve(draft).freeze(exception_map) for draft in self._working.values()]

            strict = self._settings.get_bool("STRICT_REGISTRATION")
            if strict:
                for record in records:
                    if record in self._registry:
                        raise RegistryDuplicateError(f"Delegation already registered: {record.label}")

            committed = tuple(r for r in records if self._registry.register(r, strict=strict))
        finally:
            self._reset_session()
        return committed

    @contextmanager
    def session(self, delegator_type: type) -> Iterator[Any]:
        """Run ``begin_from``/``finish`` around a block; errors discard the session."""
        proxy = self.begin_from(delegator_type)
        try:
            yield proxy
        except BaseException:
            self.reset()
            raise
        self.finish()

    # ------------------- Inline providers -------------------
    def at(self, position: int, as_type: Any = None) -> Any:
        """Pass the caller argument at `position`; returns a placeholder for inline use."""
        return self._provide(Positional(position), as_type)

    def type_of(self, source_type: type, as_type: Any = None) -> Any:
        """Pass the first caller argument that is an instance of `source_type`."""
        return self._provide(TypeMatch(source_type), as_type if as_type is not None else source_type)

    def constant(self, value: Any) -> Any:
        """Always pass `value`."""
        return self._provide(Constant(value), type(value) if value is not None else None)

    def _provide(self, provider: ParameterProvider, as_type: Any) -> Any:
        self.add_parameter(provider)
        return zero_value(as_type)

    # ------------------- Visitors -------------------
    def _on_delegator_call(self, method: MethodSignature) -> None:
        if self._delegator_type is None:
            raise DelegationConfigError(
                f"{method.label} was called on a delegator proxy outside of a builder session."
            )
        if method.owner is not self._delegator_type:
            raise DelegationConfigError(
                f"{method.label} was called on a proxy from another session "
                f"(current delegator: {self._delegator_type.__qualname__})."
            )
        self._delegator_capture(method)
        self._pending = None
        self._providers = None
        self._state = BuilderState.DELEGATOR_CAPTURED

    def _on_delegatee_call(self, method: MethodSignature) -> None:
        pending = self._pending
        if pending is None:
            raise DelegationConfigError(f"{method.label} was called before delegate() opened a delegation.")
        if pending.delegatee_method is not None:
            raise DelegationConfigError(
                f"The delegatee method of {pending.delegator_method.label} has been set "
                f"({pending.delegatee_method.label})."
            )
        providers = list(self._providers or ())
        if not providers:
            providers = match_parameters(pending.delegator_method, method)
        try:
            if providers:
                if len(providers) != method.parameter_count:
                    raise DelegationConfigError(
                        f"Unmatched parameter providers ({len(providers)}) and parameters "
                        f"({method.parameter_count}) of {method.label}."
                    )
                delegator_types = pending.delegator_method.parameter_types
                for provider in providers:
                    provider.validate(delegator_types)
        except DelegationConfigError:
            # the failed delegation is dropped from the session
            self._working.pop(pending.key, None)
            self._reset_delegation()
            self._state = BuilderState.COMMITTED if self._working else BuilderState.DELEGATOR_SELECTED
            raise

        pending.delegatee_method = method
        pending.providers = tuple(providers)
        self._providers = None
        self._state = BuilderState.COMMITTED
        logger.debug(
            "captured %s -> %s with %d providers",
            pending.delegator_method.label,
            method.label,
            len(providers),
        )

    # ------------------- Helpers -------------------
    def _require_delegator(self, operation: str) -> None:
        if self._delegator_type is None:
            raise DelegationConfigError(f"begin_from() must be called before {operation}().")

    def _new_delegation(self, method: MethodSignature) -> _PendingDelegation:
        if self._delegatee_type is not None:
            return _PendingDelegation(
                delegator_type=self._delegator_type,
                delegator_method=method,
                delegatee_type=self._delegatee_type,
                delegatee_name=self._delegatee_name,
            )
        return _PendingDelegation(
            delegator_type=self._delegator_type,
            delegator_method=method,
            delegatee_type=_first_parameter_type(method),
        )

    def _bind_abstract_methods(self) -> None:
        delegator_type = self._delegator_type
        for name in abstract_methods(delegator_type):
            method = MethodSignature.of(delegator_type, name)
            try:
                draft = self._new_delegation(method)
            except DelegationConfigError as err:
                logger.debug("skipping %s: %s", method.label, err)
                continue

            delegatee_method = MethodSignature.find(draft.delegatee_type, name)
            if delegatee_method is None:
                logger.debug("skipping %s: no `%s` on %s", method.label, name, draft.delegatee_type.__qualname__)
                continue
            if draft.key in self._working or self._registry.contains(delegator_type, method):
                logger.debug("skipping %s: already delegated", method.label)
                continue

            draft.delegatee_method = delegatee_method
            self._working[draft.key] = draft

    def _resolve(self, draft: _PendingDelegation) -> _PendingDelegation:
        if draft.delegatee_method is None:
            method = MethodSignature.find(draft.delegatee_type, draft.delegator_method.name)
            if method is None:
                raise DelegationConfigError(
                    f"The method `{draft.delegator_method.name}` cannot be found in delegatee type "
                    f"{draft.delegatee_type.__qualname__}."
                )
            draft.delegatee_method = method
        return draft
