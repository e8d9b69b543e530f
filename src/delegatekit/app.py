# delegatekit/app.py
"""A compact, explicit delegatekit application object.

Lifecycle:

1. ``configure``  -> apply settings from a mapping (env/module overlays are
   read on construction)
2. ``register`` / ``register_annotated`` / ``builder()`` -> describe delegations
3. ``finish``     -> optionally freeze the registry
4. ``implement`` / ``delegate`` -> call delegated methods

The executor and service are built lazily on first access. Callers hold the
application object; there is no ambient "current app".
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from threading import RLock
from typing import Any

from .builder import DelegationBuilder
from .conf import Settings
from .container import ComponentContainer, InMemoryContainer
from .conversion import ConversionService, DefaultConversionService
from .decorators import register_annotated
from .executor import DelegationExecutor
from .registers import DelegationRegister, register_all
from .registry import DelegationRecord, DelegationRegistry
from .service import DelegationService, implement

logger = logging.getLogger(__name__)


@dataclass
class Delegations:
    name: str = "delegatekit"
    conf: Settings = field(default_factory=Settings)
    registry: DelegationRegistry = field(default_factory=DelegationRegistry)
    container: ComponentContainer = field(default_factory=InMemoryContainer)
    conversion: ConversionService = field(default_factory=DefaultConversionService)

    _executor: DelegationExecutor | None = field(default=None, init=False, repr=False)
    _service: DelegationService | None = field(default=None, init=False, repr=False)
    _finished: bool = field(default=False, init=False)
    _lock: RLock = field(default_factory=RLock, init=False, repr=False)

    def __post_init__(self) -> None:
        self.conf.update_from_envvar()

    # ------------------------------------------------------------------
    # Configuration helpers
    # ------------------------------------------------------------------
    def configure(self, mapping: dict | None = None, *, namespace: str | None = None) -> Delegations:
        if mapping:
            self.conf.update_from_mapping(mapping, namespace=namespace)
        return self

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def builder(self) -> DelegationBuilder:
        """A fresh builder committing into this application's registry."""
        return DelegationBuilder(self.registry, settings=self.conf)

    def register(
        self,
        *registers: DelegationRegister[Any] | type[DelegationRegister[Any]],
    ) -> tuple[DelegationRecord, ...]:
        return register_all(self.builder(), registers)

    def register_annotated(self, *classes: type) -> tuple[DelegationRecord, ...]:
        return register_annotated(self.builder(), *classes)

    def finish(self) -> Delegations:
        if self._finished:
            return self
        if self.conf.get_bool("FREEZE_ON_FINISH"):
            self.registry.freeze()
        self._finished = True
        logger.info(
            "[%s] ✅ %d delegations ready: %s",
            self.name.upper(),
            self.registry.count(),
            self.registry.keys(as_csv=True) or "-",
        )
        return self

    # ------------------------------------------------------------------
    # Dispatch (lazy)
    # ------------------------------------------------------------------
    @property
    def executor(self) -> DelegationExecutor:
        with self._lock:
            if self._executor is None:
                self._executor = DelegationExecutor(self.container, self.conversion, settings=self.conf)
            return self._executor

    @property
    def service(self) -> DelegationService:
        with self._lock:
            if self._service is None:
                self._service = DelegationService(self.registry, self.executor)
            return self._service

    def implement(self, delegator_type: type) -> type:
        """Concrete subclass of `delegator_type` whose delegated methods forward to this app."""
        return implement(delegator_type, self.service)

    def delegate(self, delegator_type: type, method_name: str, *arguments: Any) -> Any:
        return self.service.delegate(delegator_type, method_name, *arguments)

    async def adelegate(self, delegator_type: type, method_name: str, *arguments: Any) -> Any:
        return await self.service.adelegate(delegator_type, method_name, *arguments)


__all__ = ["Delegations"]
