"""Dependency options: which closure policies each operation may use.

Every lifecycle operation has a whitelist of closures, a default and a
current selection. The current selection starts from configuration and can
be changed in memory; it is never persisted here.
"""

from __future__ import annotations

import logging
from typing import Dict, FrozenSet, Mapping, Optional

from depclosure.graph.models.schema import (
    ACTIVATING_TRANSITIONS,
    DEACTIVATING_TRANSITIONS,
    Closure,
    Operation,
    Transition,
)

logger = logging.getLogger("depclosure.closure.options")


VALID_CLOSURES: Dict[Operation, FrozenSet[Closure]] = {
    Operation.ACTIVATE_PROJECT: frozenset(
        {Closure.PROVIDING, Closure.REQUIRING_AND_PROVIDING, Closure.PARTIAL_GRAPH}
    ),
    Operation.DEACTIVATE_PROJECT: frozenset(
        {Closure.REQUIRING, Closure.PROVIDING_AND_REQUIRING, Closure.PARTIAL_GRAPH}
    ),
    Operation.ACTIVATE_BUNDLE: frozenset(
        {
            Closure.PROVIDING,
            Closure.REQUIRING,
            Closure.REQUIRING_AND_PROVIDING,
            Closure.PARTIAL_GRAPH,
            Closure.SINGLE,
        }
    ),
    Operation.DEACTIVATE_BUNDLE: frozenset(
        {
            Closure.REQUIRING,
            Closure.PROVIDING,
            Closure.PROVIDING_AND_REQUIRING,
            Closure.PARTIAL_GRAPH,
            Closure.SINGLE,
        }
    ),
}

DEFAULT_CLOSURES: Dict[Operation, Closure] = {
    Operation.ACTIVATE_PROJECT: Closure.PROVIDING,
    Operation.ACTIVATE_BUNDLE: Closure.PROVIDING,
    Operation.DEACTIVATE_PROJECT: Closure.REQUIRING,
    Operation.DEACTIVATE_BUNDLE: Closure.REQUIRING,
}


class IllegalClosureError(ValueError):
    """Raised when a closure is not permitted for an operation."""

    def __init__(self, operation: Operation, closure: Closure) -> None:
        allowed = ", ".join(sorted(c.value for c in VALID_CLOSURES[operation]))
        super().__init__(
            f"Closure '{closure.value}' is not allowed for operation "
            f"'{operation.value}' (allowed: {allowed})"
        )
        self.operation = operation
        self.closure = closure


class DependencyOptions:
    """Per-operation closure whitelist, defaults and current selection.

    Args:
        current: Initial selection per operation. Operations not listed use
            their default closure.

    Raises:
        IllegalClosureError: If an initial selection is not allowed.
    """

    def __init__(self, current: Optional[Mapping[Operation, Closure]] = None) -> None:
        self._current: Dict[Operation, Closure] = dict(DEFAULT_CLOSURES)
        for operation, closure in (current or {}).items():
            self.set(Operation(operation), Closure(closure))

    @staticmethod
    def valid_closures(operation: Operation) -> FrozenSet[Closure]:
        return VALID_CLOSURES[operation]

    @staticmethod
    def is_allowed(operation: Operation, closure: Closure) -> bool:
        return closure in VALID_CLOSURES[operation]

    @staticmethod
    def default(operation: Operation) -> Closure:
        return DEFAULT_CLOSURES[operation]

    @staticmethod
    def is_default(operation: Operation, closure: Closure) -> bool:
        return DEFAULT_CLOSURES[operation] is closure

    def get(self, operation: Operation) -> Closure:
        """Current closure of an operation."""
        return self._current[operation]

    def set(self, operation: Operation, closure: Closure) -> None:
        """Change the current closure of an operation."""
        self.check(operation, closure)
        if self._current.get(operation) is not closure:
            logger.debug("Closure for %s set to %s", operation.value, closure.value)
        self._current[operation] = closure

    def check(self, operation: Operation, closure: Closure) -> None:
        """Raise ``IllegalClosureError`` unless the pair is allowed."""
        if not self.is_allowed(operation, closure):
            raise IllegalClosureError(operation, closure)

    def as_dict(self) -> Dict[str, str]:
        return {op.value: closure.value for op, closure in self._current.items()}


def closure_for_transition(transition: Transition) -> Closure:
    """Closure used when reporting errors for a lifecycle transition.

    Activating transitions need the nodes they require and provide to be
    error free. Deactivating transitions look at providers first and then at
    everything requiring them.
    """
    if transition in ACTIVATING_TRANSITIONS:
        return Closure.REQUIRING_AND_PROVIDING
    if transition in DEACTIVATING_TRANSITIONS:
        return Closure.PROVIDING_AND_REQUIRING
    raise ValueError(f"No closure defined for transition '{transition.value}'")


__all__ = [
    "DEFAULT_CLOSURES",
    "DependencyOptions",
    "IllegalClosureError",
    "VALID_CLOSURES",
    "closure_for_transition",
]
