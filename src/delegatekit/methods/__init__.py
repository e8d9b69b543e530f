from .signature import (
    EMPTY,
    MethodSignature,
    ParameterInfo,
    abstract_methods,
    declares,
    normalize_type,
)

__all__ = [
    "EMPTY",
    "MethodSignature",
    "ParameterInfo",
    "abstract_methods",
    "declares",
    "normalize_type",
]
