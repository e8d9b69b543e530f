# delegatekit/container/base.py
"""Component lookup used to resolve delegatees in component mode."""
from threading import RLock
from typing import Any, Protocol, TypeVar, runtime_checkable

from .exceptions import ComponentLookupError, ComponentNotFoundError

T = TypeVar("T")


@runtime_checkable
class ComponentContainer(Protocol):
    """Anything that can hand out component instances by type or by name."""

    def contains_component(self, component_type: type) -> bool: ...

    def get_component(self, component_type: type[T], name: str | None = None) -> T: ...


class InMemoryContainer:
    """Container of ready-made instances, indexed by name and looked up by type."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._instances: list[Any] = []
        self._named: dict[str, Any] = {}

    def add(self, instance: Any, name: str | None = None) -> Any:
        """Register `instance`, optionally under `name`. Returns the instance."""
        if instance is None:
            raise ValueError("component instance must not be None")
        with self._lock:
            if name is not None:
                key = str(name).strip()
                if not key:
                    raise ValueError("component name must be a non-empty string")
                if key in self._named:
                    raise ComponentLookupError(f"Component name already in use: {key!r}")
                self._named[key] = instance
            if not any(existing is instance for existing in self._instances):
                self._instances.append(instance)
        return instance

    def contains_component(self, component_type: type) -> bool:
        with self._lock:
            return any(isinstance(i, component_type) for i in self._instances)

    def get_component(self, component_type: type[T], name: str | None = None) -> T:
        with self._lock:
            if name is not None:
                try:
                    instance = self._named[name]
                except KeyError as err:
                    raise ComponentNotFoundError(f"No component named {name!r}") from err
                if not isinstance(instance, component_type):
                    raise ComponentLookupError(
                        f"Component {name!r} is a {type(instance).__qualname__}, "
                        f"not a {component_type.__qualname__}"
                    )
                return instance

            matches = [i for i in self._instances if isinstance(i, component_type)]

        if not matches:
            raise ComponentNotFoundError(f"No component of type {component_type.__qualname__}")
        if len(matches) > 1:
            exact = [i for i in matches if type(i) is component_type]
            if len(exact) == 1:
                return exact[0]
            raise ComponentLookupError(
                f"{len(matches)} components match type {component_type.__qualname__}; look it up by name"
            )
        return matches[0]

    def names(self) -> tuple[str, ...]:
        with self._lock:
            return tuple(self._named)

    def __len__(self) -> int:
        with self._lock:
            return len(self._instances)


__all__ = ["ComponentContainer", "InMemoryContainer"]
