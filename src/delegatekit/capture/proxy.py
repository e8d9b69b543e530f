# delegatekit/capture/proxy.py
"""Stand-in objects that record which method was called on them.

The builder hands these out so configuration code can name methods with plain
calls (``proxy.balance(...)``) instead of strings. A call on a stand-in never
runs user code: it reports the resolved :class:`MethodSignature` to the
factory's visitor and returns a zero value for the declared return type.
"""

import logging
import types
from threading import RLock
from typing import Any, Callable

from delegatekit.exceptions import DelegationConfigError
from delegatekit.methods import EMPTY, MethodSignature, normalize_type

logger = logging.getLogger(__name__)

__all__ = ["MethodVisitor", "ProxyFactory", "SingleShotCapture", "zero_value"]

MethodVisitor = Callable[[MethodSignature], None]

_ZERO_VALUES: dict[type, Any] = {
    bool: False,
    int: 0,
    float: 0.0,
    complex: 0j,
    str: "",
    bytes: b"",
    list: [],
    dict: {},
    set: set(),
    frozenset: frozenset(),
    tuple: (),
}


def zero_value(annotation: Any) -> Any:
    """Return the default value for a declared return annotation (None when unknown)."""
    if annotation is EMPTY or annotation is None:
        return None
    hint = normalize_type(annotation)
    origin = getattr(hint, "__origin__", None)
    key = origin if isinstance(origin, type) else hint
    if not isinstance(key, type):
        return None
    for base in key.__mro__:
        if base in _ZERO_VALUES:
            value = _ZERO_VALUES[base]
            # fresh containers per call
            return type(value)() if isinstance(value, (list, dict, set)) else value
    return None


class SingleShotCapture:
    """Visitor that holds at most one captured signature until it is consumed."""

    def __init__(self, message: str = "A method was captured twice before being consumed.") -> None:
        self._message = message
        self._captured: MethodSignature | None = None

    def __call__(self, signature: MethodSignature) -> None:
        if self._captured is not None:
            raise DelegationConfigError(
                f"{self._message} (pending: {self._captured.label}, got: {signature.label})"
            )
        self._captured = signature

    @property
    def pending(self) -> MethodSignature | None:
        return self._captured

    def consume(self) -> MethodSignature | None:
        captured, self._captured = self._captured, None
        return captured

    def clear(self) -> None:
        self._captured = None


class _AttributeProxy:
    """Fallback stand-in for types that cannot be subclassed or instantiated bare."""

    __slots__ = ("_target", "_factory")

    def __init__(self, target: type, factory: "ProxyFactory") -> None:
        object.__setattr__(self, "_target", target)
        object.__setattr__(self, "_factory", factory)

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        target = object.__getattribute__(self, "_target")
        factory = object.__getattribute__(self, "_factory")
        return factory._recorder(MethodSignature.of(target, name))

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError("capture proxies are read-only")

    def __repr__(self) -> str:
        target = object.__getattribute__(self, "_target")
        return f"<capture proxy for {target.__qualname__}>"


class ProxyFactory:
    """Builds recording stand-ins for classes, reporting every call to `visitor`.

    Generated proxy classes are cached per target type for the lifetime of the
    factory. ``isinstance(proxy, target)`` holds for generated proxies.
    """

    def __init__(self, visitor: MethodVisitor) -> None:
        self._visitor = visitor
        self._lock = RLock()
        self._classes: dict[type, type | None] = {}

    def get_proxy(self, target: type) -> Any:
        if not isinstance(target, type):
            raise DelegationConfigError(f"Cannot build a capture proxy for non-class {target!r}")
        proxy_class = self._proxy_class(target)
        if proxy_class is not None:
            try:
                return object.__new__(proxy_class)
            except TypeError:
                logger.debug("bare instantiation failed for %s; using attribute proxy", target, exc_info=True)
                with self._lock:
                    self._classes[target] = None
        return _AttributeProxy(target, self)

    # ------------------- internals -------------------
    def _recorder(self, signature: MethodSignature) -> Callable[..., Any]:
        visitor = self._visitor

        def recorder(*args: Any, **kwargs: Any) -> Any:
            visitor(signature)
            return zero_value(signature.return_type)

        recorder.__name__ = signature.name
        recorder.__qualname__ = f"{signature.owner.__qualname__}.{signature.name}"
        return recorder

    def _missing_method(self, target: type) -> Callable[[Any, str], Any]:
        factory = self

        def __getattr__(proxy: Any, name: str) -> Any:
            if name.startswith("_"):
                raise AttributeError(name)
            # raises DelegationConfigError for unknown names and non-methods
            return factory._recorder(MethodSignature.of(target, name))

        return __getattr__

    def _proxy_class(self, target: type) -> type | None:
        with self._lock:
            if target in self._classes:
                return self._classes[target]

            namespace: dict[str, Any] = {"__module__": __name__, "__slots__": ()}
            namespace["__getattr__"] = self._missing_method(target)
            for name in dir(target):
                if name.startswith("_"):
                    continue
                signature = MethodSignature.find(target, name)
                if signature is not None:
                    namespace[name] = self._recorder(signature)

            try:
                proxy_class = types.new_class(
                    f"{target.__name__}CaptureProxy",
                    (target,),
                    exec_body=lambda ns: ns.update(namespace),
                )
            except TypeError:
                logger.debug("%s cannot be subclassed; using attribute proxy", target, exc_info=True)
                proxy_class = None

            self._classes[target] = proxy_class
            return proxy_class
