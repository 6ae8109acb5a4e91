"""Transition error marking.

Sorters and error closures are pure: they describe cycles and build errors
but never flag nodes. The functions here apply those descriptions to a
``TransitionRecorder`` so that later operations can treat the flagged nodes
specially without detecting cycles again.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from typing import Dict, Iterable, List, Mapping, Optional, Protocol, Set, runtime_checkable

from depclosure.closure.cycles import CycleFailure
from depclosure.graph.models.schema import TransitionError

logger = logging.getLogger("depclosure.closure.transition")


@runtime_checkable
class TransitionRecorder(Protocol):
    """Side channel receiving transition error flags."""

    def mark_cycle(self, node: str) -> None: ...

    def mark_in_error(self, node: str, reason: TransitionError) -> None: ...


class InMemoryTransitions:
    """TransitionRecorder keeping flags in a dictionary."""

    def __init__(self) -> None:
        self._errors: Dict[str, Set[TransitionError]] = defaultdict(set)

    def mark_cycle(self, node: str) -> None:
        self._errors[node].add(TransitionError.CYCLE)

    def mark_in_error(self, node: str, reason: TransitionError) -> None:
        self._errors[node].add(TransitionError(reason))

    def errors_of(self, node: str) -> Set[TransitionError]:
        return set(self._errors.get(node, ()))

    def has_error(self, node: str, reason: Optional[TransitionError] = None) -> bool:
        errors = self._errors.get(node)
        if not errors:
            return False
        return reason is None or reason in errors

    def nodes_with(self, reason: TransitionError) -> List[str]:
        return [node for node, errors in self._errors.items() if reason in errors]

    def clear(self, nodes: Optional[Iterable[str]] = None) -> None:
        """Remove flags of ``nodes``, or of every node when None."""
        if nodes is None:
            self._errors.clear()
            return
        for node in nodes:
            self._errors.pop(node, None)

    def __len__(self) -> int:
        return len(self._errors)


def apply_cycle_failure(
    recorder: Optional[TransitionRecorder], failure: Optional[CycleFailure]
) -> List[str]:
    """Flag both participants of every recorded cycle.

    Returns:
        The flagged nodes.
    """
    if recorder is None or failure is None:
        return []
    marked = list(failure.participants)
    for node in marked:
        recorder.mark_cycle(node)
    logger.debug("Marked %d node(s) with cycle errors", len(marked))
    return marked


def apply_error_marks(
    recorder: Optional[TransitionRecorder],
    reasons: Mapping[str, TransitionError],
) -> List[str]:
    """Flag nodes in error with their reason."""
    if recorder is None:
        return []
    for node, reason in reasons.items():
        recorder.mark_in_error(node, reason)
    return list(reasons)


__all__ = [
    "InMemoryTransitions",
    "TransitionRecorder",
    "apply_cycle_failure",
    "apply_error_marks",
]
