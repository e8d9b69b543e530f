"""Committed delegations and the registry that owns them."""

from .base import DelegationRegistry, RecordKey
from .exceptions import (
    RegistryDuplicateError,
    RegistryError,
    RegistryFrozenError,
    RegistryLookupError,
)
from .records import DelegationRecord, ExceptionMap

__all__ = [
    "DelegationRegistry",
    "DelegationRecord",
    "ExceptionMap",
    "RecordKey",
    "RegistryError",
    "RegistryDuplicateError",
    "RegistryLookupError",
    "RegistryFrozenError",
]
