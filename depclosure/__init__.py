"""Dependency closures and topological ordering of modules and projects."""

from depclosure.graph import WorkspaceSnapshot, load_workspace
from depclosure.closure import (
    CircularReferenceError,
    ClosureCalculator,
    ClosureResult,
    CycleFailure,
    DependencyOptions,
    ErrorClosure,
    IllegalClosureError,
    ModuleSorter,
    ProjectSorter,
)
from depclosure.config import ClosureConfig, load_closure_config
from depclosure.closure.service import ClosureService

__version__ = "0.1.0"

__all__ = [
    "CircularReferenceError",
    "ClosureCalculator",
    "ClosureConfig",
    "ClosureResult",
    "ClosureService",
    "CycleFailure",
    "DependencyOptions",
    "ErrorClosure",
    "IllegalClosureError",
    "ModuleSorter",
    "ProjectSorter",
    "WorkspaceSnapshot",
    "load_workspace",
    "load_closure_config",
]
