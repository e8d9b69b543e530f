# delegatekit/service.py
"""Entry point for invoking delegated methods.

:class:`DelegationService` is what an interception layer calls for every call
against a delegator method: it looks the delegation up by delegator type and
method name and hands it, with the live arguments, to the executor.

:func:`implement` is the built-in interception layer: it generates a concrete
subclass of a delegator type whose delegated methods forward to a service.
"""
from __future__ import annotations

import functools
import inspect
import logging
import types
from typing import Any

from asgiref.sync import sync_to_async

from delegatekit.exceptions import DelegationConfigError, DelegationLookupError
from delegatekit.executor import DelegationExecutor
from delegatekit.registry import DelegationRecord, DelegationRegistry

logger = logging.getLogger(__name__)

__all__ = ["DelegationService", "implement"]


class DelegationService:
    """Look delegations up in a registry and run them through an executor."""

    def __init__(self, registry: DelegationRegistry, executor: DelegationExecutor) -> None:
        self._registry = registry
        self._executor = executor

    @property
    def registry(self) -> DelegationRegistry:
        return self._registry

    @property
    def executor(self) -> DelegationExecutor:
        return self._executor

    def can_delegate(self, delegator_type: type, method_name: str) -> bool:
        """Return True when `delegator_type.method_name` has a registered delegation."""
        return self._registry.find(delegator_type, method_name) is not None

    def record_for(self, delegator_type: type, method_name: str) -> DelegationRecord:
        record = self._registry.find(delegator_type, method_name)
        if record is None:
            raise DelegationLookupError(
                f"No delegation registered for {delegator_type.__qualname__}.{method_name}"
            )
        return record

    def delegate(self, delegator_type: type, method_name: str, *arguments: Any) -> Any:
        """Invoke the delegatee bound to `delegator_type.method_name` with `arguments`."""
        return self._executor.execute(self.record_for(delegator_type, method_name), arguments)

    async def adelegate(self, delegator_type: type, method_name: str, *arguments: Any) -> Any:
        """Async wrapper around `delegate`."""
        return await sync_to_async(self.delegate)(delegator_type, method_name, *arguments)


def _positional(signature: inspect.Signature | None, args: tuple, kwargs: dict) -> tuple:
    """Fold keyword arguments and declared defaults into positional order."""
    if signature is None:
        return (*args, *kwargs.values())
    bound = signature.bind(*args, **kwargs)
    bound.apply_defaults()
    return tuple(bound.args)


def _concrete(function: Any) -> Any:
    # functools.wraps copies the abstract flag of the delegator method
    function.__isabstractmethod__ = False
    return function


def _forwarder(service: DelegationService, record: DelegationRecord) -> Any:
    method = record.delegator_method
    delegator_type = record.delegator_type
    name = method.name
    raw = inspect.getattr_static(delegator_type, name)

    try:
        signature = inspect.signature(method.function)
    except (TypeError, ValueError):
        signature = None

    if isinstance(raw, staticmethod):
        @functools.wraps(method.function)
        def forward_static(*args: Any, **kwargs: Any) -> Any:
            return service.delegate(delegator_type, name, *_positional(signature, args, kwargs))

        return staticmethod(_concrete(forward_static))

    if isinstance(raw, classmethod):
        @functools.wraps(method.function)
        def forward_class(cls: type, *args: Any, **kwargs: Any) -> Any:
            args = _positional(signature, (cls, *args), kwargs)[1:]
            return service.delegate(delegator_type, name, *args)

        return classmethod(_concrete(forward_class))

    @functools.wraps(method.function)
    def forward(self: Any, *args: Any, **kwargs: Any) -> Any:
        args = _positional(signature, (self, *args), kwargs)[1:]
        return service.delegate(delegator_type, name, *args)

    return _concrete(forward)


def implement(delegator_type: type, service: DelegationService) -> type:
    """Generate a concrete subclass of `delegator_type` backed by `service`.

    Every registered delegator method of `delegator_type` is replaced by a
    forwarder. Abstract methods without a delegation stay abstract, so
    instantiating the result fails the usual way.

    :raises DelegationLookupError: when nothing is registered for the type.
    :raises DelegationConfigError: when the type cannot be subclassed.
    """
    records = service.registry.for_type(delegator_type)
    if not records:
        raise DelegationLookupError(f"No delegations registered for {delegator_type.__qualname__}")

    namespace = {record.delegator_method.name: _forwarder(service, record) for record in records}
    namespace["__module__"] = delegator_type.__module__

    try:
        implemented = types.new_class(
            f"Delegating{delegator_type.__name__}",
            (delegator_type,),
            exec_body=lambda ns: ns.update(namespace),
        )
    except TypeError as err:
        raise DelegationConfigError(f"Cannot implement {delegator_type.__qualname__}: {err}") from err

    implemented.__qualname__ = f"Delegating{delegator_type.__qualname__}"
    logger.debug(
        "implemented %s with %d delegated methods",
        delegator_type.__qualname__,
        len(namespace) - 1,
    )
    return implemented

