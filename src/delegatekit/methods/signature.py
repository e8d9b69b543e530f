# delegatekit/methods/signature.py
"""Hashable method signatures resolved from classes.

A :class:`MethodSignature` names one method of one owning type. It is the key
used by the delegation registry and carries the parameter metadata the
builder needs for automatic parameter matching and the executor needs for
argument/return conversion.

Equality and hashing only look at ``(owner, name, function)``; the derived
parameter data is informational.
"""
from __future__ import annotations

import inspect
import logging
import types
import typing
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from delegatekit.exceptions import DelegationConfigError

logger = logging.getLogger(__name__)

__all__ = [
    "EMPTY",
    "ParameterInfo",
    "MethodSignature",
    "abstract_methods",
    "declares",
    "normalize_type",
]

EMPTY = inspect.Parameter.empty

_POSITIONAL_KINDS = (
    inspect.Parameter.POSITIONAL_ONLY,
    inspect.Parameter.POSITIONAL_OR_KEYWORD,
)

_DECLARED_ERRORS_ATTR = "__delegate_errors__"


def declares(*error_types: type[BaseException]) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Record the error types a delegator method declares it may raise.

    Python has no checked exceptions; this is the stand-in used by the
    optional name-based exception fallback of the executor::

        class Accounts(abc.ABC):
            @abc.abstractmethod
            @declares(AccountMissing)
            def balance(self, account: Account) -> int: ...
    """
    for error_type in error_types:
        if not (isinstance(error_type, type) and issubclass(error_type, BaseException)):
            raise TypeError(f"declares() expects exception types, got {error_type!r}")

    def _apply(func: Callable[..., Any]) -> Callable[..., Any]:
        setattr(func, _DECLARED_ERRORS_ATTR, tuple(error_types))
        return func

    return _apply


# -----------------------------------------------------------------------------
# Type helpers
# -----------------------------------------------------------------------------

def _type_var_map(owner: type) -> dict[Any, Any]:
    """Map TypeVars of generic bases to the concrete arguments bound by `owner`."""
    mapping: dict[Any, Any] = {}
    for klass in reversed(owner.__mro__):
        for base in klass.__dict__.get("__orig_bases__", ()):
            origin = typing.get_origin(base)
            if origin is None or origin is typing.Generic:
                continue
            params = getattr(origin, "__parameters__", ())
            for param, arg in zip(params, typing.get_args(base)):
                mapping[param] = arg

    for key, value in list(mapping.items()):
        seen = set()
        while isinstance(value, TypeVar) and value in mapping and value not in seen:
            seen.add(value)
            value = mapping[value]
        mapping[key] = value
    return mapping


def normalize_type(hint: Any, type_vars: dict[Any, Any] | None = None) -> Any:
    """Return the comparable form of a resolved annotation.

    ``Optional[X]`` collapses to ``X``; TypeVars are substituted from
    `type_vars` when bound. Missing annotations normalize to ``None``.
    """
    if hint is EMPTY:
        return None
    if isinstance(hint, TypeVar) and type_vars:
        hint = type_vars.get(hint, hint)

    origin = typing.get_origin(hint)
    if origin is typing.Annotated:
        return normalize_type(typing.get_args(hint)[0], type_vars)
    if origin is typing.Union or origin is types.UnionType:
        args = [a for a in typing.get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return normalize_type(args[0], type_vars)
    return hint


def _resolve_hints(function: Callable[..., Any]) -> dict[str, Any]:
    try:
        return typing.get_type_hints(function)
    except (NameError, TypeError, AttributeError):
        # Unresolvable forward references: fall back to the raw annotations.
        logger.debug("could not resolve type hints for %r", function, exc_info=True)
        return dict(getattr(function, "__annotations__", {}) or {})


# -----------------------------------------------------------------------------
# Value objects
# -----------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class ParameterInfo:
    """One positional parameter of a method (the implicit receiver excluded)."""

    name: str
    index: int
    annotation: Any = EMPTY
    has_default: bool = False

    @property
    def is_annotated(self) -> bool:
        return self.annotation is not EMPTY


@dataclass(frozen=True, slots=True)
class MethodSignature:
    """Immutable reference to ``owner.name`` plus its resolved parameter metadata."""

    owner: type
    name: str
    function: Callable[..., Any] = field(repr=False)
    parameters: tuple[ParameterInfo, ...] = field(default=(), compare=False, repr=False)
    return_type: Any = field(default=EMPTY, compare=False, repr=False)
    declared_errors: tuple[type[BaseException], ...] = field(default=(), compare=False, repr=False)
    accepts_varargs: bool = field(default=False, compare=False, repr=False)

    # ------------------- Construction -------------------
    @classmethod
    def of(cls, owner: type, name: str) -> MethodSignature:
        """Resolve the most specific method `name` visible on `owner`.

        Raises DelegationConfigError when `owner` has no such attribute or the
        attribute is not a method.
        """
        if not isinstance(owner, type):
            raise DelegationConfigError(f"owner must be a class, got {owner!r}")
        try:
            raw = inspect.getattr_static(owner, name)
        except AttributeError as err:
            raise DelegationConfigError(
                f"{owner.__qualname__} has no method named {name!r}"
            ) from err

        drop_receiver = True
        if isinstance(raw, staticmethod):
            function, drop_receiver = raw.__func__, False
        elif isinstance(raw, classmethod):
            function = raw.__func__
        elif inspect.isfunction(raw) or inspect.ismethoddescriptor(raw) or inspect.isbuiltin(raw):
            function = raw
        else:
            raise DelegationConfigError(
                f"{owner.__qualname__}.{name} is not a method (got {type(raw).__name__})"
            )
        return cls._build(owner, name, function, drop_receiver=drop_receiver)

    @classmethod
    def find(cls, owner: type, name: str) -> MethodSignature | None:
        """Like :meth:`of` but returns None instead of raising."""
        try:
            return cls.of(owner, name)
        except DelegationConfigError:
            return None

    @classmethod
    def _build(
        cls,
        owner: type,
        name: str,
        function: Callable[..., Any],
        *,
        drop_receiver: bool,
    ) -> MethodSignature:
        try:
            sig = inspect.signature(function)
        except (TypeError, ValueError):
            # Some builtins expose no signature; treat them as variadic.
            return cls(owner=owner, name=name, function=function, accepts_varargs=True)

        hints = _resolve_hints(function)
        type_vars = _type_var_map(owner)

        params = list(sig.parameters.values())
        if drop_receiver and params and params[0].kind in _POSITIONAL_KINDS:
            params = params[1:]

        infos: list[ParameterInfo] = []
        accepts_varargs = False
        for param in params:
            if param.kind is inspect.Parameter.VAR_POSITIONAL:
                accepts_varargs = True
                continue
            if param.kind not in _POSITIONAL_KINDS:
                continue
            annotation = hints.get(param.name, param.annotation)
            if isinstance(annotation, TypeVar):
                annotation = type_vars.get(annotation, annotation)
            infos.append(
                ParameterInfo(
                    name=param.name,
                    index=len(infos),
                    annotation=annotation,
                    has_default=param.default is not EMPTY,
                )
            )

        return_type = hints.get("return", sig.return_annotation)
        if isinstance(return_type, TypeVar):
            return_type = type_vars.get(return_type, return_type)

        return cls(
            owner=owner,
            name=name,
            function=function,
            parameters=tuple(infos),
            return_type=return_type,
            declared_errors=tuple(getattr(function, _DECLARED_ERRORS_ATTR, ())),
            accepts_varargs=accepts_varargs,
        )

    # ------------------- Derived views -------------------
    @property
    def label(self) -> str:
        """Return 'Owner.method'."""
        return f"{self.owner.__qualname__}.{self.name}"

    @property
    def parameter_names(self) -> tuple[str, ...]:
        return tuple(p.name for p in self.parameters)

    @property
    def parameter_types(self) -> tuple[Any, ...]:
        """Normalized declared parameter types (None where unannotated)."""
        type_vars = _type_var_map(self.owner)
        return tuple(normalize_type(p.annotation, type_vars) for p in self.parameters)

    @property
    def parameter_count(self) -> int:
        return len(self.parameters)

    @property
    def required_count(self) -> int:
        return sum(1 for p in self.parameters if not p.has_default)

    @property
    def is_abstract(self) -> bool:
        return bool(getattr(self.function, "__isabstractmethod__", False))

    def __str__(self) -> str:
        return self.label


# -----------------------------------------------------------------------------
# Abstract method discovery
# -----------------------------------------------------------------------------

def _declaring_class(cls: type, name: str) -> type | None:
    for klass in cls.__mro__:
        if name in klass.__dict__:
            return klass
    return None


def _method_names(cls: type) -> list[str]:
    seen: dict[str, None] = {}
    for klass in reversed(cls.__mro__):
        if klass is object:
            continue
        for name in klass.__dict__:
            if not name.startswith("_"):
                seen.setdefault(name, None)
    return list(seen)


def abstract_methods(cls: type) -> tuple[str, ...]:
    """Names of the unimplemented public methods of `cls`, in declaration order.

    ABC abstract methods and methods declared in ``typing.Protocol`` bodies
    both count.
    """
    names: list[str] = []
    for name in _method_names(cls):
        raw = inspect.getattr_static(cls, name)
        function = raw.__func__ if isinstance(raw, (staticmethod, classmethod)) else raw
        if isinstance(function, type) or not callable(function):
            continue
        if getattr(function, "__isabstractmethod__", False):
            names.append(name)
            continue
        declaring = _declaring_class(cls, name)
        if declaring is not None and declaring.__dict__.get("_is_protocol", False):
            names.append(name)
    return tuple(names)
