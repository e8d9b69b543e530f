# delegatekit/exceptions/base.py


class DelegateKitError(Exception):
    """Base for all delegatekit exceptions."""


# ----------------------------------------------------------------------------
# Configuration / dispatch errors
# ----------------------------------------------------------------------------
class DelegationConfigError(DelegateKitError, ValueError):
    """Raised while building a delegation (bad session order, unresolvable method, ...)."""


class DelegationArgumentError(DelegateKitError, ValueError):
    """Raised at dispatch time when caller arguments cannot satisfy the delegatee."""


class DelegationLookupError(DelegateKitError, LookupError):
    """Raised when no delegation is registered for a delegator method."""


# ----------------------------------------------------------------------------
# Conversion errors
# ----------------------------------------------------------------------------
class ConversionError(DelegateKitError, TypeError):
    """Raised when a value cannot be converted to the requested type."""

    def __init__(self, value: object, target_type: object, reason: str | None = None) -> None:
        message = f"Cannot convert {type(value).__name__} value {value!r} to {target_type!r}"
        if reason:
            message += f": {reason}"
        super().__init__(message)
        self.value = value
        self.target_type = target_type
