"""Enumerations and workspace document models used by the graph package."""

from .schema import (
    ActivationScope,
    Closure,
    Direction,
    ModuleSpec,
    NodeKind,
    Operation,
    ProjectSpec,
    ResolutionState,
    Transition,
    TransitionError,
    WorkspaceSpec,
)

__all__ = [
    "ActivationScope",
    "Closure",
    "Direction",
    "ModuleSpec",
    "NodeKind",
    "Operation",
    "ProjectSpec",
    "ResolutionState",
    "Transition",
    "TransitionError",
    "WorkspaceSpec",
]
