"""Default configuration values for delegatekit."""

DEFAULTS: dict[str, object] = {
    # Raise RegistryDuplicateError on a second registration of the same
    # delegator method instead of dropping it (first registration wins either way).
    "STRICT_REGISTRATION": False,
    # Fall back to matching raised errors against the delegator's declared
    # error types by simple class name when the exception map has no entry.
    "MATCH_ERRORS_BY_NAME": False,
    # Freeze the delegation registry when `Delegations.finish()` runs.
    "FREEZE_ON_FINISH": False,
    "TRACER_NAME": "delegatekit",
}
