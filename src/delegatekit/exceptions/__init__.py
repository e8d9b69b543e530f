"""
Exception hierarchy shared by every delegatekit sub-package.

Sub-packages define their own errors next to the code that raises them
(`delegatekit.registry.exceptions`, `delegatekit.container.exceptions`) and
derive from :class:`DelegateKitError` so callers can catch the whole family.

Errors raised by a delegatee are never wrapped in these types; they are either
re-raised unchanged or converted through the delegation's exception map.
"""
from .base import (
    ConversionError,
    DelegateKitError,
    DelegationArgumentError,
    DelegationConfigError,
    DelegationLookupError,
)

__all__ = [
    "DelegateKitError",
    "DelegationConfigError",
    "DelegationArgumentError",
    "DelegationLookupError",
    "ConversionError",
]
