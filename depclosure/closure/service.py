"""Public entry points of the closure engine.

``ClosureService`` wires a workspace snapshot, the configuration and a
transition recorder together. Every call is synchronous and keeps its state
local; the snapshot must not be mutated while a call is running. After each
call the cycles found are flagged on the recorder, and error closures also
flag the nodes in error.
"""

from __future__ import annotations

import logging
from typing import Iterable, List, Optional, Union

from depclosure.closure.calculator import ClosureCalculator
from depclosure.closure.cycles import ClosureResult, CycleFailure
from depclosure.closure.errors import ErrorClosure, ErrorPredicate, WorkspaceErrorPredicate
from depclosure.closure.transition import (
    InMemoryTransitions,
    TransitionRecorder,
    apply_cycle_failure,
    apply_error_marks,
)
from depclosure.config.loader import ConfigSource, load_closure_config
from depclosure.config.schema import ClosureConfig
from depclosure.graph.io import WorkspaceSource, load_workspace
from depclosure.graph.models.schema import (
    ActivationScope,
    Closure,
    Direction,
    NodeKind,
    Operation,
    Transition,
)
from depclosure.graph.workspace import WorkspaceSnapshot

logger = logging.getLogger("depclosure.closure.service")


class ClosureService:
    """Sorting, closures, error closures and cycle detection for a workspace.

    Args:
        workspace: Snapshot to operate on.
        config: Engine configuration. Defaults are used when None.
        recorder: Receives cycle and build error flags.
        predicate: Build state queries. Reads project attributes by default.
    """

    def __init__(
        self,
        workspace: WorkspaceSnapshot,
        config: Optional[ClosureConfig] = None,
        recorder: Optional[TransitionRecorder] = None,
        predicate: Optional[ErrorPredicate] = None,
    ) -> None:
        self.workspace = workspace
        self.config = config if config is not None else ClosureConfig.default()
        self.options = self.config.dependency_options.to_options()
        sorter_config = self.config.sorter
        self.calculator = ClosureCalculator(
            workspace,
            self.options,
            allow_cycles=sorter_config.allow_cycles,
            allow_self_reference=sorter_config.allow_self_reference,
            deactivation_allows_cycles=sorter_config.deactivation_allows_cycles,
            diagnose_cycles=sorter_config.diagnose_cycles,
        )
        self.recorder = recorder if recorder is not None else InMemoryTransitions()
        self.predicate = (
            predicate if predicate is not None else WorkspaceErrorPredicate(workspace)
        )

    @classmethod
    def from_sources(
        cls, workspace: WorkspaceSource, config: ConfigSource = None
    ) -> "ClosureService":
        """Load the workspace document and configuration, then build a service."""
        return cls(load_workspace(workspace), load_closure_config(config))

    def universe(self, kind: NodeKind = NodeKind.MODULE) -> List[str]:
        """Every existing node of a universe, for use as a scope."""
        return self.calculator.universe(kind)

    def _finish(self, result: ClosureResult) -> ClosureResult:
        apply_cycle_failure(self.recorder, result.failure)
        return result

    def sort_providing(
        self,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        activation_filter: Optional[bool] = None,
        kind: NodeKind = NodeKind.MODULE,
    ) -> ClosureResult:
        """Providers of ``initial`` in dependency order, ``initial`` included.

        A None ``scope`` gives an empty result.
        """
        sorter = self.calculator.sorter(kind)
        return self._finish(
            sorter.sort_providing(initial, scope, activation_filter=activation_filter)
        )

    def sort_requiring(
        self,
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        activation_filter: Optional[bool] = None,
        kind: NodeKind = NodeKind.MODULE,
    ) -> ClosureResult:
        """Requirers of ``initial`` in dependency order, ``initial`` included.

        A None ``scope`` gives an empty result.
        """
        sorter = self.calculator.sorter(kind)
        return self._finish(
            sorter.sort_requiring(initial, scope, activation_filter=activation_filter)
        )

    def compute_closure(
        self,
        closure: Union[Closure, str, None],
        initial: Optional[Iterable[str]],
        scope: Optional[Iterable[str]] = None,
        kind: NodeKind = NodeKind.MODULE,
        operation: Optional[Operation] = None,
    ) -> ClosureResult:
        """Apply a closure policy to ``initial``.

        With ``operation`` the closure is validated against the operation's
        whitelist (``None`` selects its current closure) and the operation's
        traversal preferences are used; ``kind`` is then implied by the
        operation. A None ``scope`` gives an empty result, except for project
        operations which always run over every project.

        Raises:
            IllegalClosureError: If ``closure`` is not allowed for ``operation``.
        """
        if operation is not None:
            result = self.calculator.for_operation(operation, initial, scope, closure)
        else:
            result = self.calculator.compute(closure, initial, scope, kind=kind)
        return self._finish(result)

    def error_closure(
        self,
        initial: Iterable[str],
        direction: Union[Closure, Direction, str, None] = None,
        domain: Union[ActivationScope, str, None] = None,
        kind: NodeKind = NodeKind.PROJECT,
        transition: Union[Transition, str, None] = None,
    ) -> ErrorClosure:
        """Build an ``ErrorClosure`` configured from the service settings.

        Without ``direction`` the closure follows from ``transition``, and
        is REQUIRING when no transition is given either.
        """
        if isinstance(direction, Direction):
            direction = direction.value
        error_config = self.config.error_closure
        return ErrorClosure(
            self.calculator,
            self.predicate,
            initial,
            closure=Closure(direction) if direction is not None else None,
            domain=ActivationScope(domain) if domain is not None else error_config.domain,
            kind=kind,
            transition=transition,
            include_duplicates=error_config.include_duplicates,
            bundle_errors_only=error_config.activate_on_compile_error,
        )

    def compute_error_closure(
        self,
        initial: Iterable[str],
        direction: Union[Closure, Direction, str, None] = None,
        domain: Union[ActivationScope, str, None] = None,
        kind: NodeKind = NodeKind.PROJECT,
        transition: Union[Transition, str, None] = None,
    ) -> ClosureResult:
        """Nodes of the closure of ``initial`` blocked by build errors.

        A cycle failure met on the way is returned unchanged.
        """
        closure = self.error_closure(initial, direction, domain, kind, transition)
        result = self._finish(closure.error_closure())
        if result.ok:
            apply_error_marks(self.recorder, closure.reasons)
        return result

    def find_cycles(self, kind: NodeKind = NodeKind.MODULE) -> Optional[CycleFailure]:
        """Every cycle of a universe, or None when it is acyclic.

        Cycles are reported even when the configuration tolerates them.
        """
        sorter = self.calculator.sorter(kind)
        detector = type(sorter)(
            self.workspace,
            allow_cycles=False,
            allow_self_reference=sorter.allow_self_reference,
            diagnose_cycles=sorter.diagnose_cycles,
        )
        nodes = detector.universe()
        declared = kind is NodeKind.MODULE and not self.calculator.is_resolved(nodes, ())
        if declared:
            result = detector.sort_declared_providing(nodes, nodes)
        else:
            result = detector.sort_providing(nodes, nodes)
        self._finish(result)
        if result.failure is not None:
            logger.info(
                "Found %d cycle(s) among %d %s(s)",
                len(result.failure.records),
                len(nodes),
                kind.value,
            )
        return result.failure


__all__ = ["ClosureService"]
