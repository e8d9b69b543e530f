import abc
import asyncio

import pytest

from delegatekit.exceptions import DelegationArgumentError
from delegatekit.methods import MethodSignature, declares
from delegatekit.parameters import Constant, Positional, TypeMatch
from delegatekit.registry import DelegationRecord


class NotFound(Exception):
    pass


class AccountMissing(Exception):
    pass


# same simple name as the declared error, unrelated class
RemoteAccountMissing = type("AccountMissing", (Exception,), {})


class Account:
    def __init__(self, balance: int = 0) -> None:
        self.balance = balance
        self.log: list[tuple[int, str]] = []

    def get(self) -> int:
        return self.balance

    def deposit(self, amount: int, note: str) -> None:
        self.balance += amount
        self.log.append((amount, note))
        return "ignored"

    def fail(self) -> None:
        raise NotFound("no such account")

    def missing(self) -> None:
        raise RemoteAccountMissing("gone")


class Ledger:
    def total(self, account: Account) -> int:
        return account.balance * 2

    def label(self, text: str) -> str:
        return f"<{text}>"


class Accounts(abc.ABC):
    @abc.abstractmethod
    def get(self, account: Account) -> int: ...

    @abc.abstractmethod
    def ratio(self, account: Account) -> float: ...

    @abc.abstractmethod
    def text(self, account: Account) -> str: ...

    @abc.abstractmethod
    def name(self, account: Account) -> str: ...

    @abc.abstractmethod
    def deposit(self, account: Account, amount: int, note: str) -> None: ...

    @abc.abstractmethod
    @declares(AccountMissing)
    def fail(self, account: Account) -> None: ...


def _record(delegator_method, delegatee_method=None, delegatee_type=Account, **kwargs) -> DelegationRecord:
    return DelegationRecord(
        Accounts,
        MethodSignature.of(Accounts, delegator_method),
        delegatee_type,
        MethodSignature.of(delegatee_type, delegatee_method or delegator_method),
        **kwargs,
    )


def test_first_argument_mode_calls_the_first_argument(executor):
    assert executor.execute(_record("get"), (Account(5),)) == 5
    assert executor.plan(_record("get")).mode == "first-argument"


def test_remaining_arguments_map_positionally_and_convert(executor):
    account = Account(1)

    result = executor.execute(_record("deposit"), (account, "10", "salary"))

    assert result is None
    assert account.balance == 11
    assert account.log == [(10, "salary")]


def test_extra_arguments_are_ignored(executor):
    assert executor.execute(_record("get"), (Account(5), "extra", 3)) == 5


def test_too_few_arguments(executor):
    with pytest.raises(DelegationArgumentError):
        executor.execute(_record("deposit"), (Account(), 10))


@pytest.mark.parametrize("arguments", [(), (None,)])
def test_missing_first_argument(executor, arguments):
    with pytest.raises(DelegationArgumentError):
        executor.execute(_record("get"), arguments)


def test_first_argument_is_converted_to_the_delegatee_type(executor, conversion):
    conversion.register(str, Account, lambda number: Account(len(number)))

    assert executor.execute(_record("get"), ("abc",)) == 3


def test_component_mode_by_name(executor, container):
    container.add(Ledger(), "ledger")
    record = _record("get", "total", Ledger, delegatee_name="ledger", providers=(Positional(0),))

    assert executor.plan(record).mode == "component"
    assert executor.execute(record, (Account(3),)) == 6


def test_component_mode_by_type_maps_from_slot_zero(executor, container):
    container.add(Ledger())

    assert executor.execute(_record("get", "total", Ledger), (Account(4),)) == 8


def test_type_match_and_constant_providers(executor, container):
    container.add(Ledger())
    by_type = _record("text", "label", Ledger, providers=(TypeMatch(str),))
    constant = _record("name", "label", Ledger, providers=(Constant("fixed"),))

    assert executor.execute(by_type, (Account(), "name")) == "<name>"
    assert executor.execute(constant, (Account(),)) == "<fixed>"


def test_provider_out_of_range_is_an_argument_error(executor, container):
    container.add(Ledger())
    record = _record("get", "total", Ledger, providers=(Positional(3),))

    with pytest.raises(DelegationArgumentError):
        executor.execute(record, (Account(),))


def test_mapped_exception_is_converted_and_chained(executor):
    record = _record("fail", exception_map={NotFound: AccountMissing})

    with pytest.raises(AccountMissing, match="no such account") as info:
        executor.execute(record, (Account(),))
    assert isinstance(info.value.__cause__, NotFound)


def test_exception_map_matches_base_classes(executor):
    record = _record("fail", exception_map={LookupError: KeyError, Exception: AccountMissing})

    with pytest.raises(AccountMissing):
        executor.execute(record, (Account(),))


def test_unmapped_exceptions_propagate_unchanged(executor):
    with pytest.raises(NotFound):
        executor.execute(_record("fail"), (Account(),))


def test_declared_errors_match_by_name_only_when_enabled(executor, conf):
    record = _record("fail", "missing")

    with pytest.raises(RemoteAccountMissing):
        executor.execute(record, (Account(),))

    conf["MATCH_ERRORS_BY_NAME"] = True
    with pytest.raises(AccountMissing) as info:
        executor.execute(record, (Account(),))
    assert info.type is AccountMissing
    assert isinstance(info.value.__cause__, RemoteAccountMissing)


def test_return_values_convert_to_the_delegator_return_type(executor, conversion):
    ratio = executor.execute(_record("ratio", "get"), (Account(2),))
    assert ratio == 2.0
    assert isinstance(ratio, float)

    conversion.register(int, str, lambda value: f"{value} EUR")
    assert executor.execute(_record("text", "get"), (Account(7),)) == "7 EUR"


def test_plan_is_decided_once_per_record(executor, container):
    record = _record("get", "total", Ledger)
    first = executor.plan(record)

    container.add(Ledger())

    assert executor.plan(record) is first
    assert first.offset == 1


def test_aexecute(executor):
    assert asyncio.run(executor.aexecute(_record("get"), (Account(9),))) == 9


def test_too_few_arguments_with_providers(executor, container):
    container.add(Ledger())
    record = _record("text", "label", Ledger, providers=(TypeMatch(str),))

    with pytest.raises(DelegationArgumentError):
        executor.execute(record, ())


def test_plans_are_kept_per_record_instance(executor, container):
    container.add(Ledger())
    by_component = _record("get", "total", Ledger)
    by_argument = _record("get")
    assert by_component == by_argument

    assert executor.execute(by_component, (Account(4),)) == 8
    assert executor.execute(by_argument, (Account(4),)) == 4
    assert executor.plan(by_component).mode == "component"
    assert executor.plan(by_argument).mode == "first-argument"
