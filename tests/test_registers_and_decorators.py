import abc

import pytest

from delegatekit.builder import BuilderState
from delegatekit.decorators import DelegationMark, class_mark, delegate_to, method_marks, register_annotated
from delegatekit.exceptions import DelegationConfigError
from delegatekit.parameters import Positional
from delegatekit.registers import DelegationRegister, register_all


class Missing(Exception):
    pass


class AccountMissing(Exception):
    pass


class Account:
    def __init__(self, amount: int = 0) -> None:
        self.amount = amount

    def balance(self) -> int:
        return self.amount

    def close(self) -> None:
        raise Missing("closed")


class Ledger:
    def total(self, account: Account) -> int:
        return account.amount * 2


@delegate_to(errors={Missing: AccountMissing})
class Accounts(abc.ABC):
    @abc.abstractmethod
    def balance(self, account: Account) -> int: ...

    @abc.abstractmethod
    def close(self, account: Account) -> None: ...

    @delegate_to(target=Ledger, name="ledger", method="total")
    @abc.abstractmethod
    def doubled(self, account: Account) -> int: ...


class Plain(abc.ABC):
    @abc.abstractmethod
    def balance(self, account: Account) -> int: ...

    @abc.abstractmethod
    def doubled(self, account: Account) -> int: ...


class PlainRegister(DelegationRegister[Plain]):
    def register(self, source, builder):
        source.doubled(None)
        self.delegate_to(Ledger, "ledger").total(self.at(0))
        self.map_exception(Missing, AccountMissing)


class BulkRegister(DelegationRegister):
    delegator = Plain


class Broken(DelegationRegister[Plain]):
    def register(self, source, builder):
        source.balance(None)
        self.delegate().balance()
        raise RuntimeError("register failed")


# ---------------------------------------------------------------- decorators


def test_marks_are_stamped_on_classes_and_methods():
    assert class_mark(Accounts) == DelegationMark(errors={Missing: AccountMissing})
    assert method_marks(Accounts) == [
        ("doubled", DelegationMark(target=Ledger, name="ledger", method="total")),
    ]
    assert class_mark(Plain) is None


def test_marks_are_not_inherited():
    class SubAccounts(Accounts):
        pass

    assert class_mark(SubAccounts) is None
    assert method_marks(SubAccounts) == []


def test_decorator_argument_checks():
    with pytest.raises(DelegationConfigError):
        delegate_to(method="total")(type("Target", (), {}))
    with pytest.raises(DelegationConfigError):
        delegate_to(errors={Missing: AccountMissing})(lambda self: None)
    with pytest.raises(DelegationConfigError):
        delegate_to(target="Ledger")


def test_static_and_class_methods_are_marked_on_the_function():
    class Tools:
        @delegate_to(target=Ledger)
        @staticmethod
        def parse(text: str) -> int: ...

    assert method_marks(Tools) == [("parse", DelegationMark(target=Ledger))]


def test_register_annotated(builder, registry):
    records = register_annotated(builder, Accounts, Plain)

    assert {r.delegator_method.name for r in records} == {"balance", "close", "doubled"}
    doubled = registry.find(Accounts, "doubled")
    assert doubled.delegatee_type is Ledger
    assert doubled.delegatee_name == "ledger"
    assert doubled.providers == (Positional(0),)
    assert registry.find(Accounts, "balance").delegatee_type is Account
    assert all(dict(r.exception_map) == {Missing: AccountMissing} for r in records)
    assert registry.for_type(Plain) == ()


def test_register_annotated_resets_the_builder_on_failure(builder, registry):
    @delegate_to
    class Bad(abc.ABC):
        @delegate_to(method="does_not_exist")
        @abc.abstractmethod
        def balance(self, account: Account) -> int: ...

    with pytest.raises(DelegationConfigError):
        register_annotated(builder, Bad)
    assert builder.state is BuilderState.IDLE
    assert registry.count() == 0


# ---------------------------------------------------------------- registers


def test_delegator_type_from_generic_argument_or_attribute():
    assert PlainRegister.delegator_type() is Plain
    assert BulkRegister.delegator_type() is Plain

    class Nothing(DelegationRegister):
        pass

    with pytest.raises(DelegationConfigError):
        Nothing.delegator_type()


def test_register_all_runs_each_register_in_its_own_session(builder, registry):
    records = register_all(builder, [PlainRegister(), BulkRegister])

    assert [r.delegator_method.name for r in records] == ["doubled", "balance"]
    doubled = registry.find(Plain, "doubled")
    assert doubled.delegatee_type is Ledger
    assert doubled.providers == (Positional(0),)
    assert dict(doubled.exception_map) == {Missing: AccountMissing}
    assert dict(registry.find(Plain, "balance").exception_map) == {}


def test_register_helpers_only_work_inside_register():
    with pytest.raises(DelegationConfigError):
        PlainRegister().at(0)


def test_failing_register_commits_nothing(builder, registry):
    with pytest.raises(RuntimeError):
        register_all(builder, [Broken])

    assert registry.count() == 0
    assert builder.state is BuilderState.IDLE


def test_register_annotated_span_names_the_class(builder, monkeypatch):
    from contextlib import contextmanager

    import delegatekit.decorators.base as decorators_base

    seen = []
    real_span = decorators_base.service_span_sync

    @contextmanager
    def recording_span(name, *, attributes=None, tracer_name=None):
        seen.append((name, dict(attributes or {})))
        with real_span(name, attributes=attributes, tracer_name=tracer_name) as span:
            yield span

    monkeypatch.setattr(decorators_base, "service_span_sync", recording_span)
    register_annotated(builder, Accounts)

    assert seen == [
        (
            "delegatekit.register_annotated",
            {"delegatekit.class": "Accounts", "delegatekit.marked_methods": 1},
        )
    ]
