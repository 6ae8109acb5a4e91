"""Dependency closure engine: sorting, closure policies and error closures."""

from .calculator import ClosureCalculator
from .cycles import (
    CircularReferenceError,
    ClosureResult,
    CycleFailure,
    CycleRecord,
    CycleTracker,
)
from .errors import ErrorClosure, ErrorClosureStatus, ErrorPredicate, WorkspaceErrorPredicate
from .options import DependencyOptions, IllegalClosureError, closure_for_transition
from .sorter import BaseSorter, ModuleSorter, ProjectSorter
from .transition import (
    InMemoryTransitions,
    TransitionRecorder,
    apply_cycle_failure,
    apply_error_marks,
)

__all__ = [
    "BaseSorter",
    "CircularReferenceError",
    "ClosureCalculator",
    "ClosureResult",
    "CycleFailure",
    "CycleRecord",
    "CycleTracker",
    "DependencyOptions",
    "ErrorClosure",
    "ErrorClosureStatus",
    "ErrorPredicate",
    "IllegalClosureError",
    "InMemoryTransitions",
    "ModuleSorter",
    "ProjectSorter",
    "TransitionRecorder",
    "WorkspaceErrorPredicate",
    "apply_cycle_failure",
    "apply_error_marks",
    "closure_for_transition",
]
