"""Build error closures.

An error closure answers: which nodes taking part in an operation are
blocked by build errors? It is computed in three steps:

1. The structural closure of the initial nodes, in the requested direction
   and restricted to an activation domain.
2. The members of that closure that are in error according to an
   ``ErrorPredicate`` (build errors, missing build state, and optionally
   duplicates).
3. The requiring closure of the nodes in error within the same domain,
   intersected with the structural closure. Errors propagate to dependents
   only, and never beyond the nodes of the operation.

Module closures are computed over modules and checked through the projects
they are built from.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Protocol, Tuple, runtime_checkable

from depclosure.closure.calculator import ClosureCalculator
from depclosure.closure.cycles import ClosureResult, CycleFailure
from depclosure.closure.options import closure_for_transition
from depclosure.graph.models.schema import (
    ActivationScope,
    Closure,
    NodeKind,
    Transition,
    TransitionError,
)
from depclosure.graph.workspace import WorkspaceSnapshot

logger = logging.getLogger("depclosure.closure.errors")

_ACTIVATION_FILTERS = {
    ActivationScope.ACTIVATED: True,
    ActivationScope.DEACTIVATED: False,
    ActivationScope.ALL: None,
}


def _merge_failure(
    failure: Optional[CycleFailure], other: Optional[CycleFailure]
) -> Optional[CycleFailure]:
    if failure is None:
        return other
    return failure.merge(other)


@runtime_checkable
class ErrorPredicate(Protocol):
    """Build state queries for projects."""

    def has_build_error(self, project: str) -> bool: ...

    def has_build_state(self, project: str) -> bool: ...

    def is_duplicate(self, project: str) -> bool: ...

    def has_manifest_error(self, project: str) -> bool: ...


class WorkspaceErrorPredicate:
    """Reads build attributes stored on the projects of a workspace."""

    def __init__(self, workspace: WorkspaceSnapshot) -> None:
        self.projects = workspace.projects

    def has_build_error(self, project: str) -> bool:
        return bool(self.projects.get(project, "build_error", False))

    def has_build_state(self, project: str) -> bool:
        return bool(self.projects.get(project, "build_state", True))

    def is_duplicate(self, project: str) -> bool:
        return bool(self.projects.get(project, "duplicate", False))

    def has_manifest_error(self, project: str) -> bool:
        return bool(self.projects.get(project, "manifest_error", False))


def error_reason(
    predicate: ErrorPredicate,
    project: str,
    *,
    include_duplicates: bool = False,
    bundle_errors_only: bool = False,
) -> Optional[TransitionError]:
    """Why ``project`` is in error, or None when it is not.

    With ``bundle_errors_only`` compile errors are ignored and only a missing
    build state or a broken manifest counts.
    """
    if not predicate.has_build_state(project):
        return TransitionError.BUILD_STATE
    if bundle_errors_only:
        if predicate.has_manifest_error(project):
            return TransitionError.MANIFEST
        return None
    if predicate.has_build_error(project):
        return TransitionError.BUILD_ERROR
    if include_duplicates and predicate.is_duplicate(project):
        return TransitionError.DUPLICATE
    return None


@dataclass(frozen=True)
class ErrorClosureStatus:
    """Outcome of an error closure, ready for display.

    Attributes:
        ok: True when no node of the structural closure is in error.
        message: One line summary.
        details: Providing/requiring information per node in error.
        error_nodes: Nodes in error.
        affected: Nodes of the error closure.
    """

    ok: bool
    message: str
    details: Tuple[str, ...] = ()
    error_nodes: Tuple[str, ...] = ()
    affected: Tuple[str, ...] = field(default=())

    def lines(self) -> List[str]:
        return [self.message, *(f"  {line}" for line in self.details)]


class ErrorClosure:
    """Nodes of an operation that are blocked by build errors.

    Args:
        calculator: Calculator used for every closure.
        predicate: Build state queries.
        initial: Nodes the operation starts from.
        closure: Policy of the structural closure. When None it follows from
            ``transition``, and is REQUIRING without a transition.
        domain: Activation domain the closures are restricted to.
        kind: Universe of ``initial``.
        transition: Transition named in the status message.
        include_duplicates: Treat duplicate projects as errors.
        bundle_errors_only: Ignore compile errors (activate on compile error).
    """

    def __init__(
        self,
        calculator: ClosureCalculator,
        predicate: ErrorPredicate,
        initial: Iterable[str],
        *,
        closure: Optional[Closure] = None,
        domain: ActivationScope = ActivationScope.ACTIVATED,
        kind: NodeKind = NodeKind.PROJECT,
        transition: Optional[Transition] = None,
        include_duplicates: bool = False,
        bundle_errors_only: bool = False,
    ) -> None:
        self.calculator = calculator
        self.workspace = calculator.workspace
        self.predicate = predicate
        self.initial = list(dict.fromkeys(initial))
        if transition is not None:
            transition = Transition(transition)
        if closure is None:
            closure = (
                closure_for_transition(transition)
                if transition is not None
                else Closure.REQUIRING
            )
        self.closure = Closure(closure)
        self.domain = ActivationScope(domain)
        self.kind = NodeKind(kind)
        self.transition = transition
        self.include_duplicates = include_duplicates
        self.bundle_errors_only = bundle_errors_only
        self._structural: Optional[ClosureResult] = None
        self._errors: Optional[ClosureResult] = None
        self._reasons: Dict[str, TransitionError] = {}
        self._error_closure: Optional[ClosureResult] = None

    def _closure_of(
        self, nodes: Iterable[str], closure: Closure, domain: ActivationScope
    ) -> ClosureResult:
        if self.kind is NodeKind.PROJECT:
            return self.calculator.compute(
                closure,
                nodes,
                self.calculator.universe(NodeKind.PROJECT),
                kind=NodeKind.PROJECT,
                activation_filter=_ACTIVATION_FILTERS[domain],
            )
        scope = self.workspace.modules.in_scope(domain)
        return self.calculator.compute(closure, nodes, scope, kind=NodeKind.MODULE)

    def _project_for(self, node: str) -> Optional[str]:
        if self.kind is NodeKind.PROJECT:
            return node
        return self.workspace.project_of(node)

    def project_closure(self) -> ClosureResult:
        """Structural closure of the initial nodes."""
        if self._structural is None:
            self._structural = self._closure_of(self.initial, self.closure, self.domain)
        return self._structural

    def build_errors(self) -> ClosureResult:
        """Members of the structural closure that are in error."""
        if self._errors is not None:
            return self._errors
        structural = self.project_closure()
        if not structural.ok:
            self._errors = structural
            return structural
        errors: List[str] = []
        for node in structural:
            project = self._project_for(node)
            if project is None or project not in self.workspace.projects:
                continue
            reason = error_reason(
                self.predicate,
                project,
                include_duplicates=self.include_duplicates,
                bundle_errors_only=self.bundle_errors_only,
            )
            if reason is not None:
                errors.append(node)
                self._reasons[node] = reason
        if errors:
            logger.info(
                "Build errors in %d of %d %s(s): %s",
                len(errors),
                len(structural),
                self.kind.value,
                ", ".join(errors),
            )
        self._errors = ClosureResult(nodes=tuple(errors))
        return self._errors

    @property
    def reasons(self) -> Dict[str, TransitionError]:
        """Reason per node in error. Empty until ``build_errors`` ran."""
        return dict(self._reasons)

    def has_build_errors(self) -> bool:
        return len(self.build_errors()) > 0

    def error_closure(self) -> ClosureResult:
        """Nodes in error and their dependents, within the structural closure."""
        if self._error_closure is not None:
            return self._error_closure
        errors = self.build_errors()
        if not errors.ok or not errors.nodes:
            self._error_closure = errors
            return errors
        requiring = self._closure_of(errors.nodes, Closure.REQUIRING, self.domain)
        if not requiring.ok:
            self._error_closure = requiring
            return requiring
        members = set(self.project_closure().nodes)
        self._error_closure = ClosureResult(
            nodes=tuple(node for node in requiring if node in members)
        )
        return self._error_closure

    def status(self) -> ErrorClosureStatus:
        """Summarise the error closure for the user."""
        label = self.kind.value
        structural = self.project_closure()
        if not structural.ok:
            return ErrorClosureStatus(
                ok=False,
                message=structural.failure.describe(),
                error_nodes=structural.failure.nodes,
            )
        errors = self.build_errors()
        if not errors.nodes:
            return ErrorClosureStatus(
                ok=True,
                message=f"No build errors in {label}s: {', '.join(structural)}",
            )
        closure = self.error_closure()
        affected = [node for node in closure if node in self.initial] or list(closure)
        name = str(self.transition) if self.transition is not None else "Operation"
        message = (
            f"{name} of {', '.join(affected)} awaiting build. "
            f"Build errors in {label}s: {', '.join(errors)}"
        )
        details: List[str] = []
        cycles: Optional[CycleFailure] = None
        for node in errors:
            reason = self._reasons.get(node)
            if reason is not None:
                details.append(f"{node}: {reason.value.replace('_', ' ')}")
            providing = self._closure_of([node], Closure.PROVIDING, ActivationScope.ALL)
            cycles = _merge_failure(cycles, providing.failure)
            providers = [other for other in providing if other != node]
            if providers:
                details.append(f"{node} is provided by: {', '.join(providers)}")
            requiring = self._closure_of([node], Closure.REQUIRING, ActivationScope.ALL)
            cycles = _merge_failure(cycles, requiring.failure)
            requirers = [other for other in requiring if other != node]
            if requirers:
                details.append(f"{node} is required by: {', '.join(requirers)}")
        if cycles is not None:
            details.extend(cycles.describe().splitlines())
        return ErrorClosureStatus(
            ok=False,
            message=message,
            details=tuple(details),
            error_nodes=errors.nodes,
            affected=closure.nodes,
        )


__all__ = [
    "ErrorClosure",
    "ErrorClosureStatus",
    "ErrorPredicate",
    "WorkspaceErrorPredicate",
    "error_reason",
]
