from .matching import match_by_key, match_parameters
from .providers import Constant, ParameterProvider, Positional, TypeMatch

__all__ = [
    "ParameterProvider",
    "Positional",
    "TypeMatch",
    "Constant",
    "match_parameters",
    "match_by_key",
]
