"""Workspace snapshot: modules, projects and the binding between them.

``WorkspaceSnapshot`` is the explicit, read-only context object handed to
the closure engine. It replaces process-wide registries: every sorter,
calculator and error closure receives the snapshot it operates on.

Concurrency: the engine does no locking. Callers must guarantee that the
snapshot is not mutated while a closure computation is running, typically by
running a single lifecycle job at a time.
"""

from __future__ import annotations

import logging
from typing import Dict, Iterable, List, Optional

from depclosure.graph.models.schema import NodeKind
from depclosure.graph.registry import ModuleRegistry, NodeRegistry, ProjectRegistry

logger = logging.getLogger("depclosure.graph.workspace")


class WorkspaceSnapshot:
    """Module and project registries correlated one to one."""

    def __init__(
        self,
        modules: Optional[ModuleRegistry] = None,
        projects: Optional[ProjectRegistry] = None,
    ) -> None:
        self.modules = modules if modules is not None else ModuleRegistry()
        self.projects = projects if projects is not None else ProjectRegistry()
        self._module_by_project: Dict[str, str] = {}
        self._project_by_module: Dict[str, str] = {}

    def registry(self, kind: NodeKind) -> NodeRegistry:
        """Return the registry of a node universe."""
        if kind is NodeKind.MODULE:
            return self.modules
        return self.projects

    def bind(self, module_id: str, project_id: str) -> None:
        """Associate a module with the project it is built from."""
        previous = self._module_by_project.get(project_id)
        if previous is not None and previous != module_id:
            raise ValueError(
                f"Project '{project_id}' is already bound to module '{previous}'"
            )
        self._module_by_project[project_id] = module_id
        self._project_by_module[module_id] = project_id

    def project_of(self, module_id: str) -> Optional[str]:
        return self._project_by_module.get(module_id)

    def module_of(self, project_id: str) -> Optional[str]:
        return self._module_by_project.get(project_id)

    def projects_of(self, modules: Iterable[str]) -> List[str]:
        """Projects of the given modules, preserving order and skipping unbound ones."""
        result: List[str] = []
        for module_id in modules:
            project_id = self._project_by_module.get(module_id)
            if project_id is not None and project_id not in result:
                result.append(project_id)
        return result

    def summary(self) -> Dict[str, int]:
        return {
            "modules": len(self.modules.nodes()),
            "activated_modules": len(self.modules.activated_nodes()),
            "wires": self.modules.wiring.number_of_edges(),
            "declared_dependencies": self.modules.graph.number_of_edges(),
            "projects": len(self.projects.nodes()),
            "project_references": self.projects.graph.number_of_edges(),
        }


__all__ = ["WorkspaceSnapshot"]
