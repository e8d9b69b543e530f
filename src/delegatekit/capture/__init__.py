"""Recording stand-ins used to name methods with ordinary calls."""

from .proxy import MethodVisitor, ProxyFactory, SingleShotCapture, zero_value

__all__ = ["MethodVisitor", "ProxyFactory", "SingleShotCapture", "zero_value"]
