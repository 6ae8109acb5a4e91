"""Workspace document loading.

A workspace document lists modules and projects with their attributes and
dependencies. It can be supplied as a mapping, a ``.json``/``.toml`` file or
inline JSON/TOML text, and is validated with the ``WorkspaceSpec`` model
before a ``WorkspaceSnapshot`` is built from it.
"""

from __future__ import annotations

import logging

from pydantic import ValidationError

from depclosure.graph.models.schema import WorkspaceSpec
from depclosure.graph.workspace import WorkspaceSnapshot
from depclosure.utils.documents import DocumentSource, read_document

logger = logging.getLogger("depclosure.graph.io")

WorkspaceSource = DocumentSource


class WorkspaceLoadError(ValueError):
    """Raised when a workspace document cannot be read or validated."""


def build_workspace(spec: WorkspaceSpec) -> WorkspaceSnapshot:
    """Turn a validated document into a workspace snapshot."""
    workspace = WorkspaceSnapshot()
    modules = workspace.modules
    projects = workspace.projects

    for project in spec.projects:
        projects.add_node(
            project.id,
            activated=project.activated,
            exists=project.exists,
            fragment=project.fragment,
            build_error=project.build_error,
            build_state=project.build_state,
            duplicate=project.duplicate,
            manifest_error=project.manifest_error,
        )
    for project in spec.projects:
        for reference in project.references:
            projects.add_dependency(project.id, reference)

    for module in spec.modules:
        modules.add_node(
            module.id,
            activated=module.activated,
            state=module.state,
            fragment=module.fragment,
            removal_pending=module.removal_pending,
        )
        if module.project is not None:
            if module.project not in projects:
                raise WorkspaceLoadError(
                    f"Module '{module.id}' refers to unknown project '{module.project}'"
                )
            workspace.bind(module.id, module.project)

    for module in spec.modules:
        for provider in module.declared_requires:
            modules.add_dependency(module.id, provider)
        for host in module.hosts:
            modules.add_host(module.id, host)

        wires = module.requires
        if not module.state.is_resolved:
            if wires:
                logger.warning(
                    "Ignoring wiring of unresolved module %s (state=%s)",
                    module.id,
                    module.state.value,
                )
            continue
        if wires is None:
            wires = module.declared_requires
        for provider in wires:
            if provider in modules and modules.resolution_state(provider).is_resolved:
                modules.add_wire(module.id, provider)
            else:
                logger.debug("Skipping wire %s -> %s: provider not resolved", module.id, provider)

    logger.debug("Built workspace snapshot: %s", workspace.summary())
    return workspace


def load_workspace(source: WorkspaceSource) -> WorkspaceSnapshot:
    """Load and validate a workspace document.

    Args:
        source: Mapping, path to a ``.json``/``.toml`` file, or inline text.

    Returns:
        WorkspaceSnapshot built from the document.

    Raises:
        WorkspaceLoadError: If the document is malformed or invalid.
    """
    try:
        data = read_document(source, "workspace document")
    except ValueError as exc:
        raise WorkspaceLoadError(str(exc)) from exc
    try:
        spec = WorkspaceSpec.model_validate(data)
    except ValidationError as exc:
        raise WorkspaceLoadError(f"Invalid workspace document: {exc}") from exc
    return build_workspace(spec)


__all__ = [
    "WorkspaceLoadError",
    "build_workspace",
    "load_workspace",
]
