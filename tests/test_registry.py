import abc
import asyncio
import logging

import pytest

from delegatekit.exceptions import DelegationConfigError
from delegatekit.methods import MethodSignature
from delegatekit.parameters import Positional
from delegatekit.registry import (
    DelegationRecord,
    DelegationRegistry,
    RegistryDuplicateError,
    RegistryFrozenError,
    RegistryLookupError,
)


class Target:
    def run(self, value: int) -> int:
        return value

    def other(self, value: int) -> int:
        return -value


class Source(abc.ABC):
    @abc.abstractmethod
    def run(self, target: Target, value: int) -> int: ...


def _record(delegatee: str = "run", **kwargs) -> DelegationRecord:
    return DelegationRecord(
        delegator_type=Source,
        delegator_method=MethodSignature.of(Source, "run"),
        delegatee_type=Target,
        delegatee_method=MethodSignature.of(Target, delegatee),
        **kwargs,
    )


def test_records_are_equal_on_delegator_side_only():
    assert _record("run") == _record("other")
    assert len({_record("run"), _record("other")}) == 1


def test_record_rejects_provider_count_mismatch():
    with pytest.raises(DelegationConfigError):
        _record(providers=(Positional(0), Positional(1)))


def test_record_exception_map_is_read_only():
    record = _record(exception_map={KeyError: LookupError})
    with pytest.raises(TypeError):
        record.exception_map[ValueError] = LookupError


def test_first_registration_wins(caplog: pytest.LogCaptureFixture):
    registry = DelegationRegistry()
    first, second = _record("run"), _record("other")

    caplog.set_level(logging.DEBUG, logger="delegatekit.registry.base")
    assert registry.register(first) is True
    assert registry.register(second) is False

    effective = registry.get(Source, MethodSignature.of(Source, "run"))
    assert effective.delegatee_method.name == "run"
    assert registry.count() == 1
    assert any("Duplicate delegation ignored" in r.message for r in caplog.records)
    assert any("[DELEGATION] ✅ registered" in r.message for r in caplog.records)


def test_strict_registration_raises_on_duplicates():
    registry = DelegationRegistry()
    registry.register(_record())
    with pytest.raises(RegistryDuplicateError):
        registry.register(_record("other"), strict=True)


def test_lookup_helpers():
    registry = DelegationRegistry()
    record = _record()
    registry.register(record)
    method = MethodSignature.of(Source, "run")

    assert registry.contains(Source, method)
    assert record in registry
    assert registry.find(Source, "run") is record
    assert registry.find(Source, "missing") is None
    assert registry.for_type(Source) == (record,)
    assert registry.keys(as_csv=True) == "Source.run"
    assert registry.try_get(Target, MethodSignature.of(Target, "run")) is None
    with pytest.raises(RegistryLookupError):
        registry.get(Target, MethodSignature.of(Target, "run"))


def test_frozen_registry_rejects_registration():
    registry = DelegationRegistry()
    registry.freeze()
    with pytest.raises(RegistryFrozenError):
        registry.register(_record())
    with pytest.raises(RegistryFrozenError):
        registry.clear()


def test_async_wrappers():
    registry = DelegationRegistry()
    record = _record()

    async def scenario():
        await registry.aregister(record)
        found = await registry.aget(Source, record.delegator_method)
        missing = await registry.atry_get(Target, MethodSignature.of(Target, "run"))
        return found, missing, await registry.acount()

    found, missing, count = asyncio.run(scenario())
    assert found is record
    assert missing is None
    assert count == 1
