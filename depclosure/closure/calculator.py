"""Closure policies composed from one or more sorts.

``ClosureCalculator.compute`` translates a ``Closure`` value into sorter
calls:

* PROVIDING / REQUIRING: one sort in that direction.
* REQUIRING_AND_PROVIDING / PROVIDING_AND_REQUIRING: two passes, the second
  pass sorting the output of the first one. The second pass may add nodes
  reachable only from the first pass's output.
* PARTIAL_GRAPH: alternate both directions over the growing result until its
  size stops increasing.
* SINGLE: sort the initial set using itself as the scope.

For modules, live wiring is used when every node of the initial set and the
scope is resolved; declared dependencies otherwise. The choice is made on
every call.

The operation entry points (project/module activation and deactivation)
check the requested closure against ``DependencyOptions`` first.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Sequence, Union

from depclosure.closure.cycles import ClosureResult
from depclosure.closure.options import DependencyOptions
from depclosure.closure.sorter import BaseSorter, ModuleSorter, ProjectSorter
from depclosure.graph.models.schema import Closure, Direction, NodeKind, Operation
from depclosure.graph.workspace import WorkspaceSnapshot

logger = logging.getLogger("depclosure.closure.calculator")

_TWO_PASS = {
    Closure.REQUIRING_AND_PROVIDING: (Direction.REQUIRING, Direction.PROVIDING),
    Closure.PROVIDING_AND_REQUIRING: (Direction.PROVIDING, Direction.REQUIRING),
}


class ClosureCalculator:
    """Computes closures of modules and projects in a workspace snapshot.

    Args:
        workspace: Snapshot to operate on. It must not change during a call.
        options: Closure whitelist and current selection per operation.
        allow_cycles: Tolerate cycles in every sort.
        allow_self_reference: Tolerate nodes depending on themselves.
        deactivation_allows_cycles: Tolerate cycles when deactivating modules
            so that a cyclic group can still be stopped.
        diagnose_cycles: Attach the requiring closure of cycle participants
            to cycle reports.
    """

    def __init__(
        self,
        workspace: WorkspaceSnapshot,
        options: Optional[DependencyOptions] = None,
        *,
        allow_cycles: bool = False,
        allow_self_reference: bool = True,
        deactivation_allows_cycles: bool = True,
        diagnose_cycles: bool = True,
    ) -> None:
        self.workspace = workspace
        self.options = options if options is not None else DependencyOptions()
        self.deactivation_allows_cycles = deactivation_allows_cycles
        sorter_options = {
            "allow_cycles": allow_cycles,
            "allow_self_reference": allow_self_reference,
            "diagnose_cycles": diagnose_cycles,
        }
        self.module_sorter = ModuleSorter(workspace, **sorter_options)
        self.project_sorter = ProjectSorter(workspace, **sorter_options)

    def sorter(self, kind: NodeKind) -> BaseSorter:
        if kind is NodeKind.MODULE:
            return self.module_sorter
        return self.project_sorter

    def universe(self, kind: NodeKind) -> List[str]:
        """Every existing node of a universe, for use as a scope."""
        return self.sorter(kind).universe()

    def is_resolved(self, initial: Iterable[str], scope: Iterable[str]) -> bool:
        """True when every module of ``initial`` and ``scope`` has live wiring."""
        modules = self.workspace.modules
        for node in (*initial, *scope):
            if not modules.is_registered(node):
                return False
            if not modules.resolution_state(node).is_resolved:
                return False
        return True

    # ------------------------------------------------------------------
    # Policy composition
    # ------------------------------------------------------------------

    def compute(
        self,
        closure: Union[Closure, str, None],
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        *,
        kind: NodeKind = NodeKind.MODULE,
        requiring_first: bool = True,
        single_direction: Direction = Direction.PROVIDING,
        activation_filter: Optional[bool] = None,
        declared: Optional[bool] = None,
        sorter: Optional[BaseSorter] = None,
    ) -> ClosureResult:
        """Compute the closure of ``initial`` within ``scope``.

        Args:
            closure: Policy to apply. Unknown values give an empty result.
            initial: Start nodes.
            scope: Candidate pool. None gives an empty result; pass
                ``universe(kind)`` to use every node.
            kind: Node universe of ``initial`` and ``scope``.
            requiring_first: Direction PARTIAL_GRAPH starts with.
            single_direction: Direction of the SINGLE sort.
            activation_filter: Only follow edges to nodes whose ``activated``
                attribute equals this value.
            declared: Force declared (True) or live (False) module edges.
                Chosen from module states when None.
            sorter: Sorter to use instead of the calculator's own.

        Returns:
            ClosureResult. When a pass reports a cycle the remaining passes
            are skipped and the failing result is returned.
        """
        if closure is None or not initial or scope is None:
            return ClosureResult.empty()
        try:
            policy = Closure(closure)
        except ValueError:
            logger.warning("Unknown closure %r; returning an empty result", closure)
            return ClosureResult.empty()

        sorter = sorter if sorter is not None else self.sorter(kind)
        initial = list(dict.fromkeys(initial))
        scope = list(scope)
        if not scope:
            return ClosureResult.empty()
        if kind is NodeKind.MODULE and declared is None:
            declared = not self.is_resolved(initial, scope)
        declared = bool(declared)

        logger.debug(
            "Computing %s closure of %d %s(s) (scope=%d, %s edges)",
            policy.value,
            len(initial),
            kind.value,
            len(scope),
            "declared" if declared else "live",
        )

        def run(direction: Direction, nodes: Sequence[str], pool: Sequence[str]):
            return sorter.sort_direction(
                direction,
                nodes,
                pool,
                activation_filter=activation_filter,
                declared=declared,
            )

        if policy is Closure.PROVIDING:
            return run(Direction.PROVIDING, initial, scope)
        if policy is Closure.REQUIRING:
            return run(Direction.REQUIRING, initial, scope)
        if policy in _TWO_PASS:
            return self._passes(run, _TWO_PASS[policy], initial, scope)
        if policy is Closure.PARTIAL_GRAPH:
            first = Direction.REQUIRING if requiring_first else Direction.PROVIDING
            return self._partial_graph(run, first, initial, scope)
        if policy is Closure.SINGLE:
            return run(single_direction, initial, initial)
        return ClosureResult.empty()

    @staticmethod
    def _passes(run, directions, initial, scope) -> ClosureResult:
        result = ClosureResult(nodes=tuple(initial))
        for direction in directions:
            result = run(direction, result.nodes, scope)
            if not result.ok:
                logger.debug("Aborting closure after %s pass", direction.value)
                break
        return result

    def _partial_graph(self, run, first: Direction, initial, scope) -> ClosureResult:
        directions = (first, first.opposite)
        result = ClosureResult(nodes=tuple(initial))
        iteration = 0
        while True:
            count = len(result)
            result = self._passes(run, directions, result.nodes, scope)
            iteration += 1
            if not result.ok or len(result) <= count:
                break
        logger.debug(
            "Partial graph settled at %d node(s) after %d iteration(s)",
            len(result),
            iteration,
        )
        return result

    # ------------------------------------------------------------------
    # Operations
    # ------------------------------------------------------------------

    def _resolve_closure(
        self, operation: Operation, closure: Union[Closure, str, None]
    ) -> Closure:
        if closure is None:
            return self.options.get(operation)
        closure = Closure(closure)
        self.options.check(operation, closure)
        return closure

    def project_activation(
        self,
        initial: Optional[Iterable[str]],
        closure: Union[Closure, str, None] = None,
        activated: Optional[bool] = True,
    ) -> ClosureResult:
        """Projects to activate together with ``initial``.

        Args:
            initial: Projects being activated.
            closure: PROVIDING, REQUIRING_AND_PROVIDING or PARTIAL_GRAPH.
                Defaults to the current option.
            activated: Only follow references to activated (True) or
                deactivated (False) projects. None follows all references.

        Raises:
            IllegalClosureError: If ``closure`` is not allowed.
        """
        policy = self._resolve_closure(Operation.ACTIVATE_PROJECT, closure)
        return self.compute(
            policy,
            initial,
            self.universe(NodeKind.PROJECT),
            kind=NodeKind.PROJECT,
            requiring_first=True,
            activation_filter=activated,
        )

    def project_deactivation(
        self,
        initial: Optional[Iterable[str]],
        closure: Union[Closure, str, None] = None,
        activated: Optional[bool] = True,
    ) -> ClosureResult:
        """Projects to deactivate together with ``initial``.

        Raises:
            IllegalClosureError: If ``closure`` is not REQUIRING,
                PROVIDING_AND_REQUIRING or PARTIAL_GRAPH.
        """
        policy = self._resolve_closure(Operation.DEACTIVATE_PROJECT, closure)
        return self.compute(
            policy,
            initial,
            self.universe(NodeKind.PROJECT),
            kind=NodeKind.PROJECT,
            requiring_first=True,
            activation_filter=activated,
        )

    def module_activation(
        self,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        closure: Union[Closure, str, None] = None,
    ) -> ClosureResult:
        """Modules to start together with ``initial``, in start order.

        Raises:
            IllegalClosureError: If ``closure`` is PROVIDING_AND_REQUIRING.
        """
        policy = self._resolve_closure(Operation.ACTIVATE_BUNDLE, closure)
        return self.compute(
            policy,
            initial,
            scope,
            kind=NodeKind.MODULE,
            requiring_first=True,
            single_direction=Direction.PROVIDING,
        )

    def module_deactivation(
        self,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        closure: Union[Closure, str, None] = None,
    ) -> ClosureResult:
        """Modules to stop together with ``initial``, in stop order.

        Raises:
            IllegalClosureError: If ``closure`` is REQUIRING_AND_PROVIDING.
        """
        policy = self._resolve_closure(Operation.DEACTIVATE_BUNDLE, closure)
        sorter = self.module_sorter
        if self.deactivation_allows_cycles:
            sorter = sorter.tolerant()
        return self.compute(
            policy,
            initial,
            scope,
            kind=NodeKind.MODULE,
            requiring_first=False,
            single_direction=Direction.REQUIRING,
            sorter=sorter,
        )

    def for_operation(
        self,
        operation: Operation,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        closure: Union[Closure, str, None] = None,
    ) -> ClosureResult:
        """Dispatch to the entry point of ``operation``.

        Project operations ignore ``scope`` and follow all references.
        Module operations give an empty result when ``scope`` is None.
        """
        operation = Operation(operation)
        if operation is Operation.ACTIVATE_PROJECT:
            return self.project_activation(initial, closure, activated=None)
        if operation is Operation.DEACTIVATE_PROJECT:
            return self.project_deactivation(initial, closure, activated=None)
        if operation is Operation.ACTIVATE_BUNDLE:
            return self.module_activation(initial, scope, closure)
        return self.module_deactivation(initial, scope, closure)


__all__ = ["ClosureCalculator"]
