"""Component containers consulted by the executor in component mode."""

from .base import ComponentContainer, InMemoryContainer
from .exceptions import ComponentError, ComponentLookupError, ComponentNotFoundError

__all__ = [
    "ComponentContainer",
    "InMemoryContainer",
    "ComponentError",
    "ComponentNotFoundError",
    "ComponentLookupError",
]
