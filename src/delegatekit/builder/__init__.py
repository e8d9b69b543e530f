"""Fluent construction of delegations."""

from .builder import BuilderState, DelegationBuilder

__all__ = ["BuilderState", "DelegationBuilder"]
