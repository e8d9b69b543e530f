from .base import (
    DelegateToDecorator,
    DelegationMark,
    class_mark,
    delegate_to,
    method_marks,
    register_annotated,
)

__all__ = [
    "DelegateToDecorator",
    "DelegationMark",
    "class_mark",
    "delegate_to",
    "method_marks",
    "register_annotated",
]
