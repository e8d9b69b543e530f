# delegatekit/decorators/base.py


"""
Declarative delegation marks (class-based dual-form decorator).

Usage
-----
    @delegate_to
    class Accounts(abc.ABC): ...                 # bind every abstract method by name

    @delegate_to(target=Ledger, name="ledger")
    class Accounts(abc.ABC): ...                 # ... on a named Ledger component

    class Accounts(abc.ABC):
        @delegate_to(target=Ledger, method="total")
        @abc.abstractmethod
        def balance(self, account: Account) -> int: ...

Decorating only stamps metadata; nothing is registered until
:func:`register_annotated` runs the marks through a builder.

Key behaviors
-------------
- Method marks are processed first, in declaration order.
- A class mark then bulk-binds the remaining abstract methods.
- `errors=` on a class mark maps delegatee error types to delegator error
  types for the whole class.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Mapping, Optional, TypeVar

from delegatekit.builder import DelegationBuilder
from delegatekit.exceptions import DelegationConfigError
from delegatekit.registry import DelegationRecord
from delegatekit.tracing import service_span_sync

logger = logging.getLogger(__name__)

T = TypeVar("T")

MARK_ATTR = "__delegate_to__"


@dataclass(frozen=True, slots=True)
class DelegationMark:
    """Metadata stamped on a delegator class or method by `delegate_to`."""

    target: type | None = None
    name: str | None = None
    method: str | None = None
    errors: Mapping[type[BaseException], type[BaseException]] = field(default_factory=dict)


class DelegateToDecorator:
    """Class-based decorator implementing the dual-form decorator pattern.

    Subclasses may override ``mark(self, obj, mark)`` to store marks elsewhere.
    """

    # ---------------- public API: dual-form decorator ----------------
    def __call__(
        self,
        _obj: Optional[T] = None,
        *,
        target: type | None = None,
        name: str | None = None,
        method: str | None = None,
        errors: Mapping[type[BaseException], type[BaseException]] | None = None,
    ) -> T | Callable[[T], T]:
        """Support both forms:

            @delegate_to
            class Foo: ...

            @delegate_to(target=Bar, name="bar")
            def foo(self, ...): ...
        """
        if target is not None and not isinstance(target, type):
            raise DelegationConfigError(f"delegate_to target must be a class, got {target!r}")

        def _apply(obj: T) -> T:
            if isinstance(obj, type):
                if method is not None:
                    raise DelegationConfigError("`method=` only applies to decorated methods")
                mark = DelegationMark(target=target, name=name, errors=dict(errors or {}))
            else:
                if errors:
                    raise DelegationConfigError("`errors=` only applies to decorated classes")
                mark = DelegationMark(target=target, name=name, method=method)
            self.mark(obj, mark)
            return obj

        # IMPORTANT: return the applied object when used as @delegate_to, or
        # the decorator function when used as @delegate_to(...)
        if _obj is not None:
            return _apply(_obj)
        return _apply

    # ---------------- hooks / extension points ----------------
    def mark(self, obj: Any, mark: DelegationMark) -> None:
        function = obj.__func__ if isinstance(obj, (staticmethod, classmethod)) else obj
        try:
            setattr(function, MARK_ATTR, mark)
        except (AttributeError, TypeError) as err:
            raise DelegationConfigError(f"Cannot mark {obj!r} for delegation") from err


delegate_to = DelegateToDecorator()


def class_mark(cls: type) -> DelegationMark | None:
    """The mark set directly on `cls` (marks are not inherited)."""
    mark = cls.__dict__.get(MARK_ATTR)
    return mark if isinstance(mark, DelegationMark) else None


def method_marks(cls: type) -> list[tuple[str, DelegationMark]]:
    """Marked methods declared in the body of `cls`, in declaration order."""
    marks: list[tuple[str, DelegationMark]] = []
    for attr_name, value in cls.__dict__.items():
        function = value.__func__ if isinstance(value, (staticmethod, classmethod)) else value
        mark = getattr(function, MARK_ATTR, None) if callable(function) and not isinstance(function, type) else None
        if isinstance(mark, DelegationMark):
            marks.append((attr_name, mark))
    return marks


def register_annotated(builder: DelegationBuilder, *classes: type) -> tuple[DelegationRecord, ...]:
    """Register the delegations declared with `delegate_to` on `classes`.

    Each class is processed in its own builder session; a class without any
    mark is skipped. Returns the records committed to the registry.
    """
    committed: list[DelegationRecord] = []
    for cls in classes:
        own = class_mark(cls)
        marked = method_marks(cls)
        if own is None and not marked:
            logger.debug("skipping %s: no delegation marks", cls.__qualname__)
            continue

        with service_span_sync(
            "delegatekit.register_annotated",
            attributes={"delegatekit.class": cls.__qualname__, "delegatekit.marked_methods": len(marked)},
        ):
            default = own or DelegationMark()
            source = builder.begin_from(cls)
            try:
                for attr_name, mark in marked:
                    getattr(source, attr_name)()
                    if mark.target is not None:
                        builder.to_target(mark.target, mark.name)
                    else:
                        builder.to_target(default.target, mark.name or default.name)
                    getattr(builder.delegate(), mark.method or attr_name)()

                if own is not None:
                    builder.to_target(own.target, own.name)
                    builder.delegate()
                for delegatee_error, delegator_error in default.errors.items():
                    builder.map_exception(delegatee_error, delegator_error)
            except BaseException:
                builder.reset()
                raise
            records = builder.finish()
            committed.extend(records)
            logger.info("[DELEGATION] ✅ discovered `%s` (%d delegations)", cls.__qualname__, len(records))
    return tuple(committed)


__all__ = [
    "DelegateToDecorator",
    "DelegationMark",
    "MARK_ATTR",
    "class_mark",
    "delegate_to",
    "method_marks",
    "register_annotated",
]
