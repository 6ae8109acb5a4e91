"""Canonical workspace schema models and enumerations.

This module is the single source of truth for the vocabulary shared by the
closure engine: node universes, resolution states, traversal directions,
closure policies, lifecycle operations and transitions. Workspace documents
are validated through the ``ModuleSpec`` / ``ProjectSpec`` / ``WorkspaceSpec``
Pydantic models before they are turned into a ``WorkspaceSnapshot``.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Annotated, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

logger = logging.getLogger("depclosure.graph.models.schema")


class NodeKind(str, Enum):
    """Node universes. A single traversal never mixes the two."""

    MODULE = "module"
    PROJECT = "project"


class ResolutionState(str, Enum):
    """Runtime state of a module."""

    UNINSTALLED = "uninstalled"
    INSTALLED = "installed"
    RESOLVED = "resolved"
    STARTING = "starting"
    ACTIVE = "active"
    STOPPING = "stopping"

    @property
    def is_resolved(self) -> bool:
        """True for states that have live wiring to traverse."""
        return self in RESOLVED_STATES


RESOLVED_STATES = frozenset(
    {
        ResolutionState.RESOLVED,
        ResolutionState.STARTING,
        ResolutionState.ACTIVE,
        ResolutionState.STOPPING,
    }
)


class Direction(str, Enum):
    """Traversal direction.

    PROVIDING follows dependencies (the nodes a node requires capabilities
    from). REQUIRING follows dependents (the nodes requiring capabilities
    from a node).
    """

    PROVIDING = "providing"
    REQUIRING = "requiring"

    @property
    def opposite(self) -> "Direction":
        if self is Direction.PROVIDING:
            return Direction.REQUIRING
        return Direction.PROVIDING


class Closure(str, Enum):
    """Dependency options (closure policies) applied by lifecycle operations."""

    PROVIDING = "providing"
    REQUIRING = "requiring"
    REQUIRING_AND_PROVIDING = "requiring_and_providing"
    PROVIDING_AND_REQUIRING = "providing_and_requiring"
    PARTIAL_GRAPH = "partial_graph"
    SINGLE = "single"


class Operation(str, Enum):
    """Operations a closure policy may be bound to."""

    ACTIVATE_PROJECT = "activate_project"
    DEACTIVATE_PROJECT = "deactivate_project"
    ACTIVATE_BUNDLE = "activate_bundle"
    DEACTIVATE_BUNDLE = "deactivate_bundle"


class ActivationScope(str, Enum):
    """Domain of nodes considered when computing error closures."""

    ACTIVATED = "activated"
    DEACTIVATED = "deactivated"
    ALL = "all"


class Transition(str, Enum):
    """Lifecycle transitions that request closures."""

    INSTALL = "install"
    UPDATE = "update"
    ACTIVATE_BUNDLE = "activate_bundle"
    ACTIVATE_PROJECT = "activate_project"
    RESOLVE = "resolve"
    REFRESH = "refresh"
    BUILD = "build"
    DEACTIVATE = "deactivate"
    UNINSTALL = "uninstall"
    UNRESOLVE = "unresolve"

    def __str__(self) -> str:
        return self.name.replace("_", " ").title()


ACTIVATING_TRANSITIONS = frozenset(
    {
        Transition.INSTALL,
        Transition.UPDATE,
        Transition.ACTIVATE_BUNDLE,
        Transition.ACTIVATE_PROJECT,
        Transition.RESOLVE,
        Transition.REFRESH,
        Transition.BUILD,
    }
)

DEACTIVATING_TRANSITIONS = frozenset(
    {Transition.DEACTIVATE, Transition.UNINSTALL, Transition.UNRESOLVE}
)


class TransitionError(str, Enum):
    """Flags written to the transition side channel."""

    CYCLE = "cycle"
    BUILD_ERROR = "build_error"
    BUILD_STATE = "build_state"
    DUPLICATE = "duplicate"
    MANIFEST = "manifest"


# =============================================================================
# Workspace document models
# =============================================================================


def _non_empty(value: str) -> str:
    if not value or not value.strip():
        raise ValueError("Node id must be a non-empty string")
    return value


class ModuleSpec(BaseModel):
    """Module entry of a workspace document.

    ``requires`` lists live wiring (only meaningful for resolved modules);
    ``declared_requires`` lists manifest dependencies. When a resolved module
    omits ``requires`` its declared dependencies are used as wiring.
    """

    model_config = ConfigDict(extra="forbid")

    id: Annotated[str, Field(..., description="Module identifier")]
    project: Optional[str] = None
    activated: bool = False
    state: ResolutionState = ResolutionState.INSTALLED
    fragment: bool = False
    hosts: List[str] = Field(default_factory=list)
    requires: Optional[List[str]] = None
    declared_requires: List[str] = Field(default_factory=list)
    removal_pending: bool = False

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        return _non_empty(value)

    @model_validator(mode="after")
    def _check_fragment_hosts(self) -> "ModuleSpec":
        if self.hosts and not self.fragment:
            raise ValueError(f"Module '{self.id}' lists hosts but is not a fragment")
        return self


class ProjectSpec(BaseModel):
    """Project entry of a workspace document."""

    model_config = ConfigDict(extra="forbid")

    id: Annotated[str, Field(..., description="Project identifier")]
    activated: bool = False
    exists: bool = True
    fragment: bool = False
    references: List[str] = Field(default_factory=list)
    build_error: bool = False
    build_state: bool = True
    duplicate: bool = False
    manifest_error: bool = False

    @field_validator("id")
    @classmethod
    def _check_id(cls, value: str) -> str:
        return _non_empty(value)


class WorkspaceSpec(BaseModel):
    """Top-level workspace document."""

    model_config = ConfigDict(extra="forbid")

    modules: List[ModuleSpec] = Field(default_factory=list)
    projects: List[ProjectSpec] = Field(default_factory=list)

    @model_validator(mode="after")
    def _check_unique_ids(self) -> "WorkspaceSpec":
        for label, items in (("module", self.modules), ("project", self.projects)):
            seen = set()
            for item in items:
                if item.id in seen:
                    raise ValueError(f"Duplicate {label} id '{item.id}'")
                seen.add(item.id)
        owners = {}
        for module in self.modules:
            if module.project is None:
                continue
            if module.project in owners:
                raise ValueError(
                    f"Project '{module.project}' is bound to both "
                    f"'{owners[module.project]}' and '{module.id}'"
                )
            owners[module.project] = module.id
        return self

__all__ = [
    "ACTIVATING_TRANSITIONS",
    "ActivationScope",
    "Closure",
    "DEACTIVATING_TRANSITIONS",
    "Direction",
    "ModuleSpec",
    "NodeKind",
    "Operation",
    "ProjectSpec",
    "RESOLVED_STATES",
    "ResolutionState",
    "Transition",
    "TransitionError",
    "WorkspaceSpec",
]
