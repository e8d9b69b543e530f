# delegatekit/executor/executor.py
"""Run a committed delegation against live caller arguments.

Dispatch happens in one of two modes:

* **component mode** when the delegation names its delegatee, or when the
  container holds a component of the delegatee type; the target comes from
  the container and caller arguments map onto the delegatee from slot 0;
* **first-argument mode** otherwise; the first caller argument is the target
  and the remaining arguments map onto the delegatee from slot 1.

Delegations without parameter providers map caller arguments positionally
from that offset. Extra caller arguments are ignored.
"""
import logging
from dataclasses import dataclass
from threading import RLock
from typing import Any, Sequence

from asgiref.sync import sync_to_async

from delegatekit.conf import Settings, settings as default_settings
from delegatekit.container import ComponentContainer
from delegatekit.conversion import ConversionService
from delegatekit.exceptions import DelegationArgumentError
from delegatekit.methods import EMPTY
from delegatekit.parameters import ParameterProvider
from delegatekit.registry import DelegationRecord
from delegatekit.tracing import service_span_sync

logger = logging.getLogger(__name__)

__all__ = ["DelegationExecutor", "DispatchPlan"]

_NONE_TYPE = type(None)


@dataclass(frozen=True, slots=True)
class DispatchPlan:
    """Per-delegation dispatch decision, computed once and reused."""

    component_mode: bool
    providers: tuple[ParameterProvider, ...]

    @property
    def offset(self) -> int:
        return 0 if self.component_mode else 1

    @property
    def mode(self) -> str:
        return "component" if self.component_mode else "first-argument"


class DelegationExecutor:
    """Resolve, convert, invoke and map errors for one delegated call."""

    def __init__(
        self,
        container: ComponentContainer,
        conversion: ConversionService,
        *,
        settings: Settings | None = None,
    ) -> None:
        self._container = container
        self._conversion = conversion
        self._settings = settings if settings is not None else default_settings
        self._lock = RLock()
        # keyed by identity: records compare equal on the delegator side only
        self._plans: dict[int, tuple[DelegationRecord, DispatchPlan]] = {}

    # ------------------- Planning -------------------
    def plan(self, record: DelegationRecord) -> DispatchPlan:
        """Return the memoized dispatch plan for `record`."""
        cached = self._plans.get(id(record))
        if cached is not None:
            return cached[1]

        component_mode = bool(record.delegatee_name) or self._container.contains_component(record.delegatee_type)
        plan = DispatchPlan(component_mode=component_mode, providers=tuple(record.providers))
        with self._lock:
            return self._plans.setdefault(id(record), (record, plan))[1]

    # ------------------- Execution -------------------
    def execute(self, record: DelegationRecord, arguments: Sequence[Any] = ()) -> Any:
        """Invoke the delegatee of `record` with the caller's `arguments`.

        :raises DelegationArgumentError: when the caller arguments cannot
            satisfy the delegatee (missing target, too few arguments).
        :raises BaseException: whatever the delegatee raised, converted through
            the delegation's exception map when an entry matches.
        """
        arguments = tuple(arguments)
        plan = self.plan(record)
        attributes = dict(record.describe())
        attributes["delegation.mode"] = plan.mode

        with service_span_sync(
            "delegatekit.execute",
            attributes=attributes,
            tracer_name=self._settings.get("TRACER_NAME"),
        ):
            target = self._resolve_target(record, plan, arguments)
            call_arguments = self._arguments(record, plan, arguments)
            return self._invoke(record, target, call_arguments)

    async def aexecute(self, record: DelegationRecord, arguments: Sequence[Any] = ()) -> Any:
        """Async wrapper around `execute`."""
        return await sync_to_async(self.execute)(record, arguments)

    # ------------------- internals -------------------
    def _resolve_target(self, record: DelegationRecord, plan: DispatchPlan, arguments: tuple[Any, ...]) -> Any:
        if plan.component_mode:
            target = self._container.get_component(record.delegatee_type, record.delegatee_name)
        else:
            if not arguments:
                raise DelegationArgumentError(
                    f"{record.label} was called without arguments; the first argument is the delegatee."
                )
            target = arguments[0]
            if target is None:
                raise DelegationArgumentError(f"The first argument of {record.label} must not be None.")
        return self._conversion.convert(target, record.delegatee_type)

    def _arguments(self, record: DelegationRecord, plan: DispatchPlan, arguments: tuple[Any, ...]) -> list[Any]:
        method = record.delegatee_method
        available = arguments[plan.offset:]
        if len(available) < method.required_count:
            raise DelegationArgumentError(
                f"{method.label} requires {method.required_count} arguments; "
                f"{record.label} supplied {len(available)}."
            )
        if plan.providers:
            values = [provider.get(arguments) for provider in plan.providers]
        else:
            values = list(available[: method.parameter_count])

        types = method.parameter_types
        return [self._conversion.convert(value, types[i]) for i, value in enumerate(values)]

    def _invoke(self, record: DelegationRecord, target: Any, call_arguments: list[Any]) -> Any:
        logger.debug("dispatching %s -> %s", record.label, record.delegatee_label)
        bound = getattr(target, record.delegatee_method.name)
        try:
            result = bound(*call_arguments)
        except Exception as error:
            mapped = self._mapped_error_type(record, type(error))
            if mapped is None:
                raise
            logger.debug("mapping %s raised by %s to %s", type(error).__name__, record.delegatee_label, mapped.__name__)
            raise self._conversion.convert(error, mapped) from error

        return_type = record.delegator_method.return_type
        if return_type is EMPTY:
            return result
        if return_type is None or return_type is _NONE_TYPE:
            return None
        return self._conversion.convert(result, return_type)

    def _mapped_error_type(
        self,
        record: DelegationRecord,
        error_type: type[BaseException],
    ) -> type[BaseException] | None:
        exception_map = record.exception_map
        for klass in error_type.__mro__:
            mapped = exception_map.get(klass)
            if mapped is not None:
                return mapped

        if self._settings.get_bool("MATCH_ERRORS_BY_NAME"):
            for declared in record.delegator_method.declared_errors:
                if declared.__name__ == error_type.__name__:
                    return declared
        return None
