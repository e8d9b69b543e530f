"""Dispatch of delegated calls."""

from .executor import DelegationExecutor, DispatchPlan

__all__ = ["DelegationExecutor", "DispatchPlan"]
