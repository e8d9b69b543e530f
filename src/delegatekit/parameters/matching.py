# delegatekit/parameters/matching.py
"""Zero-configuration mapping of delegatee parameters onto delegator arguments.

Two passes are tried in order, first by parameter name and then by declared
(normalized) type. A pass succeeds only when every delegatee parameter finds
its own delegator slot; otherwise its partial result is discarded. When both
passes fail the result is empty and the executor falls back to positional
mapping with an offset.
"""
from __future__ import annotations

import logging
from typing import Hashable, Sequence

from delegatekit.methods import MethodSignature

from .providers import Positional

logger = logging.getLogger(__name__)

__all__ = ["match_by_key", "match_parameters"]


def match_by_key(
    delegator_keys: Sequence[Hashable | None],
    delegatee_keys: Sequence[Hashable | None],
) -> list[Positional]:
    """Map each delegatee key to the index of the equal delegator key.

    ``None`` keys never match. A repeated delegator key makes the pass
    ambiguous and yields an empty result. Each delegator index is used at most
    once; delegatee keys claim slots in declaration order.
    """
    if not delegator_keys or not delegatee_keys:
        return []

    slots: dict[Hashable, int] = {}
    for index, key in enumerate(delegator_keys):
        if key is None:
            continue
        if key in slots:
            return []
        slots[key] = index

    providers: list[Positional] = []
    for key in delegatee_keys:
        if key is None or key not in slots:
            return []
        providers.append(Positional(slots.pop(key)))
    return providers


def match_parameters(delegator: MethodSignature, delegatee: MethodSignature) -> list[Positional]:
    """Infer one Positional provider per delegatee parameter, by name then by type."""
    providers = match_by_key(delegator.parameter_names, delegatee.parameter_names)
    if providers:
        logger.debug("matched %s -> %s by name: %s", delegator.label, delegatee.label, providers)
        return providers

    try:
        providers = match_by_key(delegator.parameter_types, delegatee.parameter_types)
    except TypeError:
        # unhashable annotation objects cannot take part in type matching
        logger.debug("unhashable parameter types for %s -> %s", delegator.label, delegatee.label)
        return []
    if providers:
        logger.debug("matched %s -> %s by type: %s", delegator.label, delegatee.label, providers)
    return providers
