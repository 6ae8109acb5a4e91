"""Graph edge providers.

An edge provider answers, for one node, which nodes it requires
capabilities from (its providers) and which nodes require capabilities from
it (its requirers), restricted to a scope. Modules come in two flavours:
live edges derived from resolved wiring and declared edges derived from
manifest metadata. Projects have a single flavour backed by project
references.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from typing import AbstractSet, List

import networkx as nx

from depclosure.graph.models.schema import Direction, NodeKind
from depclosure.graph.registry import ModuleRegistry, NodeRegistry, ProjectRegistry

logger = logging.getLogger("depclosure.graph.edges")


class GraphEdgeProvider(ABC):
    """Abstract source of direct dependency edges."""

    name: str = "abstract"

    def __init__(self, registry: NodeRegistry) -> None:
        self.registry = registry

    @property
    def kind(self) -> NodeKind:
        return self.registry.kind

    @abstractmethod
    def direct_providers(self, node: str, scope: AbstractSet[str]) -> List[str]:
        """Nodes in ``scope`` that ``node`` requires capabilities from."""

    @abstractmethod
    def direct_requirers(self, node: str, scope: AbstractSet[str]) -> List[str]:
        """Nodes in ``scope`` that require capabilities from ``node``."""

    def neighbours(
        self, node: str, scope: AbstractSet[str], direction: Direction
    ) -> List[str]:
        """Direct neighbours of ``node`` in the traversal direction."""
        if direction is Direction.PROVIDING:
            return self.direct_providers(node, scope)
        return self.direct_requirers(node, scope)

    def is_fragment(self, node: str) -> bool:
        return self.registry.is_fragment(node)

    def hosts_of(self, node: str) -> List[str]:
        return self.registry.hosts_of(node)

    def activated(self, node: str) -> bool:
        return self.registry.activated(node)

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.kind.value})"


class NetworkxEdgeProvider(GraphEdgeProvider):
    """Edge provider reading a ``requirer -> provider`` NetworkX graph."""

    def __init__(self, registry: NodeRegistry, graph: nx.DiGraph) -> None:
        super().__init__(registry)
        self.graph = graph

    def _filter(self, candidates, scope: AbstractSet[str]) -> List[str]:
        # Dangling and inaccessible nodes are not part of the workspace.
        return [
            candidate
            for candidate in candidates
            if candidate in scope and self.registry.exists(candidate)
        ]

    def direct_providers(self, node: str, scope: AbstractSet[str]) -> List[str]:
        if node is None or not self.graph.has_node(node):
            return []
        return self._filter(self.graph.successors(node), scope)

    def direct_requirers(self, node: str, scope: AbstractSet[str]) -> List[str]:
        if node is None or not self.graph.has_node(node):
            return []
        return self._filter(self.graph.predecessors(node), scope)


class LiveModuleEdges(NetworkxEdgeProvider):
    """Module edges from the resolved wiring. Unresolved modules have none."""

    name = "live"

    def __init__(self, registry: ModuleRegistry) -> None:
        super().__init__(registry, registry.wiring)


class DeclaredModuleEdges(NetworkxEdgeProvider):
    """Module edges from manifest declarations, available in any state."""

    name = "declared"

    def __init__(self, registry: ModuleRegistry) -> None:
        super().__init__(registry, registry.graph)


class ProjectReferenceEdges(NetworkxEdgeProvider):
    """Project edges from project references."""

    name = "references"

    def __init__(self, registry: ProjectRegistry) -> None:
        super().__init__(registry, registry.graph)


__all__ = [
    "DeclaredModuleEdges",
    "GraphEdgeProvider",
    "LiveModuleEdges",
    "NetworkxEdgeProvider",
    "ProjectReferenceEdges",
]
