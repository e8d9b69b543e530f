from delegatekit.exceptions import DelegateKitError


class ComponentError(DelegateKitError):
    pass


class ComponentNotFoundError(ComponentError, LookupError):
    pass


class ComponentLookupError(ComponentError, LookupError):
    """Ambiguous lookup, or a named component of the wrong type."""
