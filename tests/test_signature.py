import abc
from typing import Generic, Optional, Protocol, TypeVar

import pytest

from delegatekit.exceptions import DelegationConfigError
from delegatekit.methods import EMPTY, MethodSignature, abstract_methods, declares, normalize_type

T = TypeVar("T")


class Missing(Exception):
    pass


class Account:
    pass


class Accounts(abc.ABC):
    @abc.abstractmethod
    @declares(Missing)
    def balance(self, account: Account, currency: str = "EUR") -> int: ...

    @abc.abstractmethod
    def close(self, account: Optional[Account]) -> None: ...

    def describe(self) -> str:
        return "accounts"

    @staticmethod
    def parse(text: str) -> Account:
        return Account()

    @classmethod
    def build(cls, size: int) -> "Accounts":
        raise NotImplementedError

    label = "accounts"

    class Nested:
        pass


class Repository(Generic[T]):
    def save(self, item: T) -> T:
        return item


class AccountRepository(Repository[Account]):
    pass


class Reader(Protocol):
    def read(self, size: int) -> bytes: ...


def test_signature_excludes_receiver_for_instance_methods():
    sig = MethodSignature.of(Accounts, "balance")

    assert sig.label == "Accounts.balance"
    assert sig.parameter_names == ("account", "currency")
    assert sig.parameter_types == (Account, str)
    assert sig.return_type is int
    assert sig.required_count == 1
    assert sig.parameter_count == 2
    assert sig.is_abstract


def test_signature_keeps_every_parameter_of_static_methods():
    assert MethodSignature.of(Accounts, "parse").parameter_names == ("text",)
    assert MethodSignature.of(Accounts, "build").parameter_names == ("size",)


def test_optional_annotations_normalize_to_inner_type():
    assert MethodSignature.of(Accounts, "close").parameter_types == (Account,)
    assert normalize_type(Optional[int]) is int
    assert normalize_type(EMPTY) is None


def test_declared_errors_are_recorded():
    assert MethodSignature.of(Accounts, "balance").declared_errors == (Missing,)
    assert MethodSignature.of(Accounts, "close").declared_errors == ()


def test_declares_rejects_non_exception_types():
    with pytest.raises(TypeError):
        declares(int)


def test_signature_equality_uses_owner_name_and_function():
    first = MethodSignature.of(Accounts, "balance")
    second = MethodSignature.of(Accounts, "balance")

    assert first == second
    assert hash(first) == hash(second)
    assert first != MethodSignature.of(Accounts, "close")


def test_type_vars_resolve_against_generic_bases():
    sig = MethodSignature.of(AccountRepository, "save")

    assert sig.parameter_types == (Account,)
    assert sig.return_type is Account


def test_non_methods_and_missing_names_are_configuration_errors():
    with pytest.raises(DelegationConfigError):
        MethodSignature.of(Accounts, "label")
    with pytest.raises(DelegationConfigError):
        MethodSignature.of(Accounts, "missing")
    assert MethodSignature.find(Accounts, "missing") is None


def test_abstract_methods_lists_unimplemented_methods_in_order():
    assert abstract_methods(Accounts) == ("balance", "close")


def test_protocol_methods_count_as_abstract():
    assert abstract_methods(Reader) == ("read",)
