"""
delegatekit: bind abstract methods to concrete callables at configuration time.

A *delegator* is an unimplemented method signature callers invoke; a
*delegatee* is the concrete method that does the work, either on a managed
component or on the first argument of the call. Bindings are described with
ordinary method calls on capture proxies (`delegatekit.builder`), registers
(`delegatekit.registers`) or decorators (`delegatekit.decorators`), committed
to a registry (`delegatekit.registry`) and dispatched by the executor
(`delegatekit.executor`) with argument reordering, type conversion and
exception mapping.

Import Guidelines:
------------------
- Use `delegatekit.Delegations` to wire registry, container, conversion and
  dispatch together.
- Use `delegatekit.exceptions` for the shared error hierarchy.
"""
from importlib.metadata import PackageNotFoundError, version

from .app import Delegations
from .builder import BuilderState, DelegationBuilder
from .decorators import delegate_to, register_annotated
from .executor import DelegationExecutor
from .methods import MethodSignature, declares
from .parameters import Constant, ParameterProvider, Positional, TypeMatch
from .registers import DelegationRegister, register_all
from .registry import DelegationRecord, DelegationRegistry
from .service import DelegationService, implement

try:
    __version__ = version("delegatekit")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "Delegations",
    "BuilderState",
    "DelegationBuilder",
    "DelegationExecutor",
    "DelegationRecord",
    "DelegationRegistry",
    "DelegationRegister",
    "DelegationService",
    "MethodSignature",
    "ParameterProvider",
    "Positional",
    "TypeMatch",
    "Constant",
    "declares",
    "delegate_to",
    "implement",
    "register_all",
    "register_annotated",
]
