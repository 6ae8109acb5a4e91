"""Node attribute stores for the module and project universes.

A registry owns the node identities of one universe together with their
attributes and dependency edges. Edges are stored in NetworkX ``DiGraph``
instances with the orientation ``requirer -> provider``: an edge ``A -> B``
means that A requires capabilities from B (B provides to A).

The closure engine only reads from registries. Callers populate them once
and must not mutate them while a closure computation is running.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Iterator, List, Optional

import networkx as nx

from depclosure.graph.models.schema import (
    ActivationScope,
    NodeKind,
    ResolutionState,
)

logger = logging.getLogger("depclosure.graph.registry")


class UnknownNodeError(KeyError):
    """Raised when an attribute is requested for a node outside the registry."""

    def __init__(self, kind: NodeKind, node_id: str) -> None:
        super().__init__(node_id)
        self.kind = kind
        self.node_id = node_id

    def __str__(self) -> str:
        return f"Unknown {self.kind.value} '{self.node_id}'"


class NodeRegistry:
    """Attribute store and dependency graph for one node universe.

    The ``graph`` attribute carries node attributes and the declared
    (manifest / project reference) edges of the universe.
    """

    def __init__(self, kind: NodeKind) -> None:
        self.kind = kind
        self.graph = nx.DiGraph()

    # ------------------------------------------------------------------
    # Population
    # ------------------------------------------------------------------

    def add_node(
        self,
        node_id: str,
        *,
        activated: bool = False,
        state: ResolutionState = ResolutionState.INSTALLED,
        exists: bool = True,
        fragment: bool = False,
        **attributes: Any,
    ) -> None:
        """Register a node, replacing attributes of an existing one."""
        self.graph.add_node(
            node_id,
            activated=activated,
            state=ResolutionState(state),
            exists=exists,
            fragment=fragment,
            hosts=[],
            registered=True,
            **attributes,
        )

    def add_dependency(self, requirer: str, provider: str) -> None:
        """Add a declared edge: ``requirer`` depends on ``provider``."""
        self.graph.add_edge(requirer, provider)

    def add_host(self, fragment: str, host: str) -> None:
        """Attach a fragment to a host. The attachment is also a dependency."""
        self.graph.nodes[self._require(fragment)]["hosts"].append(host)
        self.add_dependency(fragment, host)

    # ------------------------------------------------------------------
    # Attribute store
    # ------------------------------------------------------------------

    def _require(self, node_id: str) -> str:
        if not self.is_registered(node_id):
            raise UnknownNodeError(self.kind, node_id)
        return node_id

    def is_registered(self, node_id: Optional[str]) -> bool:
        """True when the node was added with ``add_node``.

        Nodes that only appear as edge endpoints are dangling references.
        """
        if node_id is None or not self.graph.has_node(node_id):
            return False
        return bool(self.graph.nodes[node_id].get("registered"))

    def activated(self, node_id: str) -> bool:
        return bool(self.graph.nodes[self._require(node_id)]["activated"])

    def resolution_state(self, node_id: str) -> ResolutionState:
        return self.graph.nodes[self._require(node_id)]["state"]

    def exists(self, node_id: str) -> bool:
        """True for registered nodes that are accessible.

        Dangling edge endpoints and closed or deleted nodes do not exist.
        """
        if not self.is_registered(node_id):
            return False
        return bool(self.graph.nodes[node_id]["exists"])

    def is_fragment(self, node_id: str) -> bool:
        if not self.is_registered(node_id):
            return False
        return bool(self.graph.nodes[node_id]["fragment"])

    def hosts_of(self, node_id: str) -> List[str]:
        if not self.is_fragment(node_id):
            return []
        return list(self.graph.nodes[node_id]["hosts"])

    def get(self, node_id: str, key: str, default: Any = None) -> Any:
        """Return an optional attribute of a registered node."""
        return self.graph.nodes[self._require(node_id)].get(key, default)

    # ------------------------------------------------------------------
    # Views
    # ------------------------------------------------------------------

    def __contains__(self, node_id: object) -> bool:
        return isinstance(node_id, str) and self.is_registered(node_id)

    def __iter__(self) -> Iterator[str]:
        return iter(self.nodes())

    def __len__(self) -> int:
        return len(self.nodes())

    def nodes(self) -> List[str]:
        """All existing nodes in registration order."""
        return [
            node_id
            for node_id, data in self.graph.nodes(data=True)
            if data.get("registered") and data.get("exists")
        ]

    def activated_nodes(self) -> List[str]:
        return [node_id for node_id in self.nodes() if self.activated(node_id)]

    def deactivated_nodes(self) -> List[str]:
        return [node_id for node_id in self.nodes() if not self.activated(node_id)]

    def in_scope(self, scope: ActivationScope) -> List[str]:
        """Nodes belonging to an activation domain."""
        if scope is ActivationScope.ACTIVATED:
            return self.activated_nodes()
        if scope is ActivationScope.DEACTIVATED:
            return self.deactivated_nodes()
        return self.nodes()


class ModuleRegistry(NodeRegistry):
    """Modules with a declared graph and a live wiring graph.

    ``graph`` holds the declared (manifest) edges. ``wiring`` holds the
    resolved wiring; only resolved modules take part in it.
    """

    def __init__(self) -> None:
        super().__init__(NodeKind.MODULE)
        self.wiring = nx.DiGraph()

    def add_node(self, node_id: str, **kwargs: Any) -> None:
        super().add_node(node_id, **kwargs)
        self.wiring.add_node(node_id)

    def add_wire(self, requirer: str, provider: str) -> None:
        """Add a live wire: ``requirer`` is wired to ``provider``."""
        self.wiring.add_edge(requirer, provider)

    def add_host(self, fragment: str, host: str) -> None:
        super().add_host(fragment, host)
        resolved = all(
            self.is_registered(node) and self.resolution_state(node).is_resolved
            for node in (fragment, host)
        )
        if resolved:
            self.add_wire(fragment, host)

    def removal_pending(self, nodes: Iterable[str]) -> List[str]:
        """Modules among ``nodes`` whose previous wiring is still in use."""
        return [
            node_id
            for node_id in nodes
            if self.is_registered(node_id) and self.get(node_id, "removal_pending", False)
        ]


class ProjectRegistry(NodeRegistry):
    """Projects and their project references."""

    def __init__(self) -> None:
        super().__init__(NodeKind.PROJECT)


__all__ = [
    "ModuleRegistry",
    "NodeRegistry",
    "ProjectRegistry",
    "UnknownNodeError",
]
