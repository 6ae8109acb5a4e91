"""Topological sort of modules and projects in dependency order.

Sorting is a depth-first traversal over one direction of the dependency
graph, restricted to a scope. A node is appended to the result only after
all of its not yet appended neighbours in the traversal direction have been
appended, so in a providing sort dependencies precede the nodes depending
on them, and in a requiring sort dependents precede the nodes they depend
on.

A neighbour that is already on the current descent stack closes a cycle.
The cycle is recorded and the neighbour is not descended into again, which
guarantees termination on any finite graph. Traversal continues after a
cycle so that every cycle reachable from the initial set is reported in a
single ``CycleFailure``.

To detect all cycles of a universe, sort with every node as the initial set.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import AbstractSet, Dict, Iterable, List, Optional, Set

from depclosure.closure.cycles import ClosureResult, CycleTracker
from depclosure.graph.edges import (
    DeclaredModuleEdges,
    GraphEdgeProvider,
    LiveModuleEdges,
    ProjectReferenceEdges,
)
from depclosure.graph.models.schema import Direction, NodeKind
from depclosure.graph.registry import NodeRegistry
from depclosure.graph.workspace import WorkspaceSnapshot

logger = logging.getLogger("depclosure.closure.sorter")


class _Traversal:
    """State of one sort call. Discarded when the call returns."""

    def __init__(
        self,
        sorter: "BaseSorter",
        edges: GraphEdgeProvider,
        scope: AbstractSet[str],
        direction: Direction,
        activation_filter: Optional[bool],
    ) -> None:
        self.sorter = sorter
        self.edges = edges
        self.scope = scope
        self.direction = direction
        self.activation_filter = activation_filter
        self.order: Dict[str, None] = {}
        self.stack: List[str] = []
        self.on_stack: Set[str] = set()
        self.tracker = CycleTracker(edges.kind)

    def visit(self, child: str, parent: Optional[str]) -> None:
        if child in self.order:
            return
        if child in self.on_stack:
            self.handle_cycle(child, parent)
            return
        self.stack.append(child)
        self.on_stack.add(child)
        for neighbour in self.edges.neighbours(child, self.scope, self.direction):
            if (
                self.activation_filter is not None
                and self.edges.activated(neighbour) != self.activation_filter
            ):
                continue
            self.visit(neighbour, child)
        self.stack.pop()
        self.on_stack.discard(child)
        self.order[child] = None

    def handle_cycle(self, child: str, parent: Optional[str]) -> None:
        sorter = self.sorter
        direct = False
        if parent == child:
            if sorter.allow_self_reference:
                return
            direct = True
        if parent is None:
            # A root is never on the stack before it is visited.
            raise RuntimeError(f"Internal error detecting cycles at '{child}'")
        if sorter.allow_cycles:
            return
        # A host may import from its own fragment. Check both ends because
        # the pair is met in either order depending on direction.
        for fragment, other in ((child, parent), (parent, child)):
            if self.edges.is_fragment(fragment):
                logger.debug(
                    "Ignoring cycle between fragment %s (hosts: %s) and %s",
                    fragment,
                    ", ".join(self.edges.hosts_of(fragment)) or "none",
                    other,
                )
                return
        path = self.stack[self.stack.index(child):]
        if sorter.diagnose_cycles:
            affected = sorter.diagnostic_closure([parent, child])
        else:
            affected = list(path)
        self.tracker.record(
            parent,
            child,
            path=path,
            affected=affected,
            direction=self.direction,
            direct=direct,
        )


class BaseSorter(ABC):
    """Depth-first dependency order sort with cycle detection.

    Args:
        workspace: Snapshot providing node attributes and edges.
        allow_cycles: Tolerate cycles instead of reporting them.
        allow_self_reference: Tolerate nodes depending on themselves.
        diagnose_cycles: Compute the declared requiring closure of cycle
            participants for the failure report. When false the cycle path
            is reported as the affected set.
    """

    kind: NodeKind

    def __init__(
        self,
        workspace: WorkspaceSnapshot,
        *,
        allow_cycles: bool = False,
        allow_self_reference: bool = True,
        diagnose_cycles: bool = True,
    ) -> None:
        self.workspace = workspace
        self.allow_cycles = allow_cycles
        self.allow_self_reference = allow_self_reference
        self.diagnose_cycles = diagnose_cycles

    @property
    def registry(self) -> NodeRegistry:
        return self.workspace.registry(self.kind)

    def universe(self) -> List[str]:
        """Every existing node of the universe, for use as a scope."""
        return self.registry.nodes()

    @abstractmethod
    def edges_for(
        self, scope: Iterable[str], declared: bool = False
    ) -> GraphEdgeProvider:
        """Edge provider to use for a sort over ``scope``."""

    def tolerant(self) -> "BaseSorter":
        """A copy of this sorter that allows cycles."""
        return type(self)(
            self.workspace,
            allow_cycles=True,
            allow_self_reference=self.allow_self_reference,
            diagnose_cycles=self.diagnose_cycles,
        )

    def sort(
        self,
        initial: Optional[Iterable[str]],
        edges: GraphEdgeProvider,
        scope: Optional[Iterable[str]],
        direction: Direction,
        activation_filter: Optional[bool] = None,
    ) -> ClosureResult:
        """Sort ``initial`` and everything reachable from it in ``direction``.

        Args:
            initial: Start nodes. Always part of the result.
            edges: Source of direct neighbours.
            scope: Candidate pool. Edges to nodes outside it are not followed.
            direction: PROVIDING or REQUIRING.
            activation_filter: When set, only follow edges to neighbours whose
                ``activated`` attribute equals this value.

        Returns:
            ClosureResult in dependency order, carrying a CycleFailure when a
            cycle was detected and cycles are not allowed.
        """
        if not initial or not scope:
            return ClosureResult.empty()
        scope_set = frozenset(scope)
        traversal = _Traversal(self, edges, scope_set, direction, activation_filter)
        for node in initial:
            if node is not None:
                traversal.visit(node, None)
        result = ClosureResult(
            nodes=tuple(traversal.order), failure=traversal.tracker.failure()
        )
        logger.debug(
            "Sorted %d %s(s) in %s order using %s edges (scope=%d)%s",
            len(result),
            self.kind.value,
            direction.value,
            getattr(edges, "name", "custom"),
            len(scope_set),
            "" if result.ok else " with cycles",
        )
        return result

    def sort_direction(
        self,
        direction: Direction,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        *,
        activation_filter: Optional[bool] = None,
        declared: bool = False,
    ) -> ClosureResult:
        """Sort in ``direction``. A None ``scope`` gives an empty result.

        Pass ``universe()`` as the scope to sort against every node.
        """
        if initial is None or scope is None:
            return ClosureResult.empty()
        initial = list(initial)
        scope = list(scope)
        edges = self.edges_for(scope, declared)
        return self.sort(initial, edges, scope, direction, activation_filter)

    def sort_providing(
        self,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        *,
        activation_filter: Optional[bool] = None,
        declared: bool = False,
    ) -> ClosureResult:
        """Providing order: providers before the nodes requiring them."""
        return self.sort_direction(
            Direction.PROVIDING,
            initial,
            scope,
            activation_filter=activation_filter,
            declared=declared,
        )

    def sort_requiring(
        self,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        *,
        activation_filter: Optional[bool] = None,
        declared: bool = False,
    ) -> ClosureResult:
        """Requiring order: requirers before the nodes they require."""
        return self.sort_direction(
            Direction.REQUIRING,
            initial,
            scope,
            activation_filter=activation_filter,
            declared=declared,
        )

    def sort_declared_providing(
        self,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]],
        *,
        activation_filter: Optional[bool] = None,
    ) -> ClosureResult:
        """Providing sort over declared edges, unresolved modules included."""
        return self.sort_providing(
            initial, scope, activation_filter=activation_filter, declared=True
        )

    def sort_declared_requiring(
        self,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]],
        *,
        activation_filter: Optional[bool] = None,
    ) -> ClosureResult:
        """Requiring sort over declared edges, unresolved modules included."""
        return self.sort_requiring(
            initial, scope, activation_filter=activation_filter, declared=True
        )

    def diagnostic_closure(self, nodes: Iterable[str]) -> List[str]:
        """Declared requiring closure of ``nodes`` over the universe, cycles tolerated."""
        sorter = type(self)(
            self.workspace,
            allow_cycles=True,
            allow_self_reference=True,
            diagnose_cycles=False,
        )
        result = sorter.sort_declared_requiring(list(nodes), self.universe())
        return list(result.nodes)


class ModuleSorter(BaseSorter):
    """Sorts modules over live wiring or declared dependencies.

    Live wiring only exists for resolved modules. Sorts over live wiring fall
    back to declared dependencies when any module in scope is pending removal,
    since its old wiring would be traversed otherwise.
    """

    kind = NodeKind.MODULE

    def __init__(self, workspace: WorkspaceSnapshot, **options) -> None:
        super().__init__(workspace, **options)
        self._live = LiveModuleEdges(workspace.modules)
        self._declared = DeclaredModuleEdges(workspace.modules)

    def edges_for(
        self, scope: Iterable[str], declared: bool = False
    ) -> GraphEdgeProvider:
        if declared:
            return self._declared
        pending = self.workspace.modules.removal_pending(scope)
        if pending:
            logger.debug(
                "Using declared dependencies; removal pending for %s",
                ", ".join(pending),
            )
            return self._declared
        return self._live


class ProjectSorter(BaseSorter):
    """Sorts projects over project references.

    Use ``activation_filter=True`` to sort activated projects only and
    ``False`` for deactivated projects only.
    """

    kind = NodeKind.PROJECT

    def __init__(self, workspace: WorkspaceSnapshot, **options) -> None:
        super().__init__(workspace, **options)
        self._references = ProjectReferenceEdges(workspace.projects)

    def edges_for(
        self, scope: Iterable[str], declared: bool = False
    ) -> GraphEdgeProvider:
        return self._references


__all__ = ["BaseSorter", "ModuleSorter", "ProjectSorter"]
