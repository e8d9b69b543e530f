"""Type conversion used around every delegated call."""

from .base import ConversionService, Converter, DefaultConversionService

__all__ = ["ConversionService", "Converter", "DefaultConversionService"]
