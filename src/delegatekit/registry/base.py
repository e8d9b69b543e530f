# delegatekit/registry/base.py


import logging
from threading import RLock
from typing import Any, Iterator, Literal, overload

from asgiref.sync import sync_to_async

from delegatekit.methods import MethodSignature

from .exceptions import RegistryDuplicateError, RegistryFrozenError, RegistryLookupError
from .records import DelegationRecord

logger = logging.getLogger(__name__)

RecordKey = tuple[type, MethodSignature]


class DelegationRegistry:
    """Process-wide table of committed delegations keyed by (delegator type, method).

    Populated during start-up by the builder; read concurrently afterwards.
    The first record registered for a key wins.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._store: dict[RecordKey, DelegationRecord] = {}
        self._frozen = False

    def _register(self, record: DelegationRecord) -> None:
        """Internal: insert a record, refusing duplicates and frozen state."""
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is frozen")
            if record.key in self._store:
                raise RegistryDuplicateError(
                    f"Delegation already registered: {record.label} -> "
                    f"{self._store[record.key].delegatee_label}"
                )
            self._store[record.key] = record

    # --- registration ---

    def register(self, record: DelegationRecord, *, strict: bool = False) -> bool:
        """
        Register a committed delegation.

        If a record for the same delegator method already exists the new one is
        dropped and a debug message is logged; with `strict` a
        `RegistryDuplicateError` is raised instead.

        :param record: The delegation to register.
        :param strict: Raise on duplicates instead of ignoring them.
        :return: True when the record was stored, False when it was ignored.
        """
        try:
            self._register(record)
        except RegistryDuplicateError:
            if strict:
                raise
            logger.debug("Duplicate delegation ignored: %s", record.label)
            return False
        logger.info("[DELEGATION] ✅ registered `%s` -> `%s`", record.label, record.delegatee_label)
        return True

    async def aregister(self, record: DelegationRecord, *, strict: bool = False) -> bool:
        """Async wrapper around `register`."""
        return await sync_to_async(self.register)(record, strict=strict)

    # --- membership ---

    def contains(self, delegator_type: type, method: MethodSignature) -> bool:
        """Return True when a delegation exists for `method` on `delegator_type`."""
        with self._lock:
            return (delegator_type, method) in self._store

    def __contains__(self, item: Any) -> bool:
        if isinstance(item, DelegationRecord):
            item = item.key
        with self._lock:
            return item in self._store

    # --- retrieval ---

    def get(self, delegator_type: type, method: MethodSignature) -> DelegationRecord:
        """
        Retrieve the delegation registered for `method` on `delegator_type`.

        :raises RegistryLookupError: If nothing is registered for that key.
        """
        with self._lock:
            try:
                return self._store[(delegator_type, method)]
            except KeyError as err:
                raise RegistryLookupError(
                    f"No delegation registered for {delegator_type.__qualname__}.{method.name}"
                ) from err

    async def aget(self, delegator_type: type, method: MethodSignature) -> DelegationRecord:
        """Async wrapper around `get`."""
        return await sync_to_async(self.get)(delegator_type, method)

    def try_get(self, delegator_type: type, method: MethodSignature) -> DelegationRecord | None:
        """Like `get` but returns None when nothing is registered."""
        try:
            return self.get(delegator_type, method)
        except RegistryLookupError:
            return None

    async def atry_get(self, delegator_type: type, method: MethodSignature) -> DelegationRecord | None:
        try:
            return await self.aget(delegator_type, method)
        except RegistryLookupError:
            return None

    def find(self, delegator_type: type, method_name: str) -> DelegationRecord | None:
        """Look a delegation up by delegator type and method name."""
        signature = MethodSignature.find(delegator_type, method_name)
        if signature is None:
            return None
        return self.try_get(delegator_type, signature)

    def for_type(self, delegator_type: type) -> tuple[DelegationRecord, ...]:
        """All delegations whose delegator is exactly `delegator_type`."""
        with self._lock:
            return tuple(r for r in self._store.values() if r.delegator_type is delegator_type)

    # --- counting ---

    def count(self) -> int:
        """Counts the number of registered delegations."""
        with self._lock:
            return len(self._store)

    async def acount(self) -> int:
        return await sync_to_async(self.count)()

    def __len__(self) -> int:
        return self.count()

    def __iter__(self) -> Iterator[DelegationRecord]:
        return iter(self.items())

    # --- enumerate all entries ---

    def items(self) -> tuple[DelegationRecord, ...]:
        with self._lock:
            return tuple(self._store.values())

    @overload
    def keys(self) -> tuple[RecordKey, ...]: ...
    @overload
    def keys(self, *, as_csv: Literal[True]) -> str: ...
    @overload
    def keys(self, *, as_csv: Literal[False]) -> tuple[RecordKey, ...]: ...

    def keys(self, *, as_csv: bool = False):
        """
        Return all registered keys.

        When `as_csv` is True, returns a comma-separated string of
        ``Type.method`` labels for logging/debugging purposes.
        """
        with self._lock:
            keys_tuple: tuple[RecordKey, ...] = tuple(self._store.keys())

        if as_csv:
            return ",".join(f"{t.__qualname__}.{m.name}" for t, m in keys_tuple)
        return keys_tuple

    # --- mutation / control ---

    def clear(self) -> None:
        """Clear the registry if not frozen."""
        with self._lock:
            if self._frozen:
                raise RegistryFrozenError("Registry is frozen")
            self._store.clear()

    def freeze(self) -> None:
        """Reject any further registration."""
        with self._lock:
            self._frozen = True

    @property
    def frozen(self) -> bool:
        return self._frozen

    def __repr__(self) -> str:
        return f"<{type(self).__name__} records={self.count()} frozen={self._frozen}>"


__all__ = ["DelegationRegistry", "RecordKey"]
