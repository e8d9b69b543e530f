# delegatekit/conversion/base.py
"""Value conversion between delegator and delegatee types.

The executor converts the resolved target and every argument to the
delegatee's declared parameter types, the return value to the delegator's
declared return type, and raised errors to their mapped delegator error type.
"""
import enum
import logging
from threading import RLock
from typing import Any, Callable, Protocol, TypeVar, runtime_checkable

from pydantic import TypeAdapter, ValidationError
from pydantic.errors import PydanticUserError

from delegatekit.exceptions import ConversionError
from delegatekit.methods import EMPTY, normalize_type

logger = logging.getLogger(__name__)

Converter = Callable[[Any], Any]

_PASSTHROUGH = (EMPTY, None, Any, object)


@runtime_checkable
class ConversionService(Protocol):
    def convert(self, value: Any, target_type: Any) -> Any: ...


class DefaultConversionService:
    """Identity-first conversion backed by user converters and pydantic validation.

    Resolution order:
      1. no target type, ``None`` values and values already of the target type
         are returned unchanged;
      2. a converter registered for (a base of) the value's type and the target;
      3. exceptions are re-created as the target exception type, chained to
         the original through ``__cause__``;
      4. strings convert to enums by member name;
      5. pydantic ``TypeAdapter`` validation in lax mode.
    """

    def __init__(self) -> None:
        self._lock = RLock()
        self._converters: dict[tuple[type, Any], Converter] = {}
        self._adapters: dict[Any, TypeAdapter] = {}

    def register(self, source_type: type, target_type: Any, converter: Converter) -> None:
        """Use `converter` for values of `source_type` (or subclasses) requested as `target_type`."""
        if not callable(converter):
            raise TypeError(f"converter must be callable, got {converter!r}")
        with self._lock:
            self._converters[(source_type, target_type)] = converter

    def can_convert(self, value: Any, target_type: Any) -> bool:
        try:
            self.convert(value, target_type)
        except ConversionError:
            return False
        return True

    def convert(self, value: Any, target_type: Any) -> Any:
        target = normalize_type(target_type)
        if target in _PASSTHROUGH or value is None or isinstance(target, TypeVar):
            return value
        if isinstance(target, type) and isinstance(value, target):
            return value

        converter = self._find_converter(type(value), target)
        if converter is not None:
            return converter(value)

        if isinstance(value, BaseException) and isinstance(target, type) and issubclass(target, BaseException):
            return self._convert_error(value, target)

        if isinstance(value, str) and isinstance(target, type) and issubclass(target, enum.Enum):
            member = target.__members__.get(value.strip())
            if member is not None:
                return member

        return self._validate(value, target)

    # ------------------- internals -------------------
    def _find_converter(self, value_type: type, target: Any) -> Converter | None:
        with self._lock:
            if not self._converters:
                return None
            for base in value_type.__mro__:
                converter = self._converters.get((base, target))
                if converter is not None:
                    return converter
        return None

    def _convert_error(self, error: BaseException, target: type[BaseException]) -> BaseException:
        try:
            converted = target(*error.args)
        except TypeError:
            try:
                converted = target(str(error))
            except TypeError as err:
                raise ConversionError(error, target, "exception type cannot be built from the original") from err
        converted.__cause__ = error
        return converted

    def _adapter(self, target: Any) -> TypeAdapter:
        with self._lock:
            adapter = self._adapters.get(target)
            if adapter is None:
                adapter = TypeAdapter(target)
                self._adapters[target] = adapter
            return adapter

    def _validate(self, value: Any, target: Any) -> Any:
        try:
            adapter = self._adapter(target)
        except (PydanticUserError, TypeError) as err:
            raise ConversionError(value, target, "no conversion available") from err
        try:
            return adapter.validate_python(value, strict=False)
        except ValidationError as err:
            logger.debug("conversion of %r to %r failed: %s", value, target, err)
            raise ConversionError(value, target, str(err)) from err


__all__ = ["ConversionService", "Converter", "DefaultConversionService"]
