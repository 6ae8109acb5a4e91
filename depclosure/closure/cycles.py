"""Cycle bookkeeping and closure result values.

A traversal reports cycles through a ``CycleTracker``. The tracker collects
one ``CycleRecord`` per detected cycle and, once the traversal is complete,
produces a single immutable ``CycleFailure`` carrying every cycle that was
found. Sorters return their ordered node set together with that failure in
a ``ClosureResult``; nothing is thrown through the traversal.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, Iterator, List, Optional, Sequence, Tuple

from depclosure.graph.models.schema import Direction, NodeKind

logger = logging.getLogger("depclosure.closure.cycles")


def _unique(items: Iterable[str]) -> Tuple[str, ...]:
    return tuple(dict.fromkeys(items))


@dataclass(frozen=True)
class CycleRecord:
    """One detected cycle.

    Attributes:
        parent: Node whose neighbour closed the cycle.
        child: Neighbour found on the current descent stack.
        path: Cycle members taken from the descent stack, starting at
            ``child`` and ending at ``parent``.
        affected: Diagnostic closure of the two participants.
        direct: True for a self reference that is not tolerated.
        direction: Traversal direction the cycle was found in.
        details: Human-readable description lines.
    """

    parent: str
    child: str
    path: Tuple[str, ...]
    affected: Tuple[str, ...]
    direct: bool
    direction: Direction
    details: Tuple[str, ...] = ()

    @property
    def participants(self) -> Tuple[str, ...]:
        return _unique((self.parent, self.child))


@dataclass(frozen=True)
class CycleFailure:
    """All cycles detected during one traversal."""

    kind: NodeKind
    records: Tuple[CycleRecord, ...]

    @property
    def nodes(self) -> Tuple[str, ...]:
        """Nodes that are members of at least one detected cycle."""
        return _unique(node for record in self.records for node in record.path)

    @property
    def participants(self) -> Tuple[str, ...]:
        return _unique(node for record in self.records for node in record.participants)

    @property
    def affected(self) -> Tuple[str, ...]:
        """Cycle members plus the nodes depending on them."""
        return _unique(
            node for record in self.records for node in (*record.path, *record.affected)
        )

    @property
    def details(self) -> Tuple[str, ...]:
        return tuple(line for record in self.records for line in record.details)

    def merge(self, other: Optional["CycleFailure"]) -> "CycleFailure":
        """Combine two failures of the same universe."""
        if other is None:
            return self
        known = set(self.records)
        extra = tuple(record for record in other.records if record not in known)
        return CycleFailure(kind=self.kind, records=self.records + extra)

    def to_dict(self) -> Dict[str, Any]:
        """JSON-ready representation."""
        return {
            "kind": self.kind.value,
            "nodes": list(self.nodes),
            "affected": list(self.affected),
            "cycles": [
                {
                    "parent": record.parent,
                    "child": record.child,
                    "path": list(record.path),
                    "direct": record.direct,
                    "details": list(record.details),
                }
                for record in self.records
            ],
        }

    def describe(self) -> str:
        plural = "s" if len(self.records) != 1 else ""
        header = (
            f"{len(self.records)} circular reference{plural} detected among "
            f"{self.kind.value}s: {', '.join(self.nodes)}"
        )
        return "\n".join((header, *self.details))

    def __str__(self) -> str:
        return self.describe()


class CircularReferenceError(Exception):
    """Raised by ``ClosureResult.raise_for_failure`` for callers preferring exceptions."""

    def __init__(self, failure: CycleFailure) -> None:
        super().__init__(failure.describe())
        self.failure = failure

    @property
    def nodes(self) -> Tuple[str, ...]:
        return self.failure.nodes


class CycleTracker:
    """Accumulates cycles detected during one traversal."""

    def __init__(self, kind: NodeKind) -> None:
        self.kind = kind
        self._records: List[CycleRecord] = []

    @property
    def has_cycles(self) -> bool:
        return bool(self._records)

    def record(
        self,
        parent: str,
        child: str,
        *,
        path: Sequence[str],
        affected: Sequence[str],
        direction: Direction,
        direct: bool = False,
    ) -> CycleRecord:
        label = self.kind.value
        details = [f"Affected {label}s: {', '.join(_unique(affected))}"]
        if direct:
            details.append(f"Direct circular reference with {label} {parent}")
        else:
            details.append(f"Circular reference between {label}s {parent} and {child}")
        record = CycleRecord(
            parent=parent,
            child=child,
            path=_unique(path),
            affected=_unique(affected),
            direct=direct,
            direction=direction,
            details=tuple(details),
        )
        self._records.append(record)
        logger.warning(details[-1])
        return record

    def failure(self) -> Optional[CycleFailure]:
        """Return the aggregated failure, or None when no cycle was recorded."""
        if not self._records:
            return None
        return CycleFailure(kind=self.kind, records=tuple(self._records))


@dataclass(frozen=True)
class ClosureResult:
    """Ordered, duplicate free node set with an optional cycle failure."""

    nodes: Tuple[str, ...] = ()
    failure: Optional[CycleFailure] = field(default=None)

    @classmethod
    def empty(cls) -> "ClosureResult":
        return cls()

    @property
    def ok(self) -> bool:
        return self.failure is None

    def raise_for_failure(self) -> Tuple[str, ...]:
        """Return the nodes, raising ``CircularReferenceError`` on failure."""
        if self.failure is not None:
            raise CircularReferenceError(self.failure)
        return self.nodes

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {"nodes": list(self.nodes), "ok": self.ok}
        if self.failure is not None:
            payload["failure"] = self.failure.to_dict()
        return payload

    def index(self, node: str) -> int:
        return self.nodes.index(node)

    def __iter__(self) -> Iterator[str]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node: object) -> bool:
        return node in self.nodes


__all__ = [
    "CircularReferenceError",
    "ClosureResult",
    "CycleFailure",
    "CycleRecord",
    "CycleTracker",
]
