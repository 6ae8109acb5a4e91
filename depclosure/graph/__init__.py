"""Public graph API surface."""

from depclosure.graph.edges import (
    DeclaredModuleEdges,
    GraphEdgeProvider,
    LiveModuleEdges,
    NetworkxEdgeProvider,
    ProjectReferenceEdges,
)
from depclosure.graph.io import WorkspaceLoadError, build_workspace, load_workspace
from depclosure.graph.registry import (
    ModuleRegistry,
    NodeRegistry,
    ProjectRegistry,
    UnknownNodeError,
)
from depclosure.graph.workspace import WorkspaceSnapshot

__all__ = [
    "DeclaredModuleEdges",
    "GraphEdgeProvider",
    "LiveModuleEdges",
    "ModuleRegistry",
    "NetworkxEdgeProvider",
    "NodeRegistry",
    "ProjectReferenceEdges",
    "ProjectRegistry",
    "UnknownNodeError",
    "WorkspaceLoadError",
    "WorkspaceSnapshot",
    "build_workspace",
    "load_workspace",
]
