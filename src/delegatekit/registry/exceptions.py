# delegatekit/registry/exceptions.py
"""Registry exceptions"""
from delegatekit.exceptions import DelegateKitError


# ----------------------------------------------------------------------------
# Registry errors
# ----------------------------------------------------------------------------
class RegistryError(DelegateKitError): ...


class RegistryDuplicateError(RegistryError): ...


class RegistryLookupError(RegistryError, LookupError): ...


class RegistryFrozenError(RuntimeError, RegistryError): ...
