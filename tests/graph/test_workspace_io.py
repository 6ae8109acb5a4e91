"""Tests for workspace document loading and the snapshot registries."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from depclosure.graph.edges import (
    DeclaredModuleEdges,
    LiveModuleEdges,
    ProjectReferenceEdges,
)
from depclosure.graph.io import WorkspaceLoadError, load_workspace
from depclosure.graph.models.schema import ActivationScope, Direction, ResolutionState
from depclosure.graph.registry import UnknownNodeError
from depclosure.graph.workspace import WorkspaceSnapshot

DOCUMENT = {
    "projects": [
        {"id": "p.core", "activated": True},
        {"id": "p.ui", "activated": False, "references": ["p.core"]},
    ],
    "modules": [
        {"id": "core", "project": "p.core", "activated": True, "state": "active"},
        {
            "id": "ui",
            "project": "p.ui",
            "state": "installed",
            "declared_requires": ["core"],
        },
    ],
}


def test_load_from_json_file(tmp_path: Path) -> None:
    """A JSON file is validated and turned into a snapshot."""
    path = tmp_path / "workspace.json"
    path.write_text(json.dumps(DOCUMENT), encoding="utf-8")

    ws = load_workspace(path)

    assert ws.modules.nodes() == ["core", "ui"]
    assert ws.projects.nodes() == ["p.core", "p.ui"]
    assert ws.project_of("ui") == "p.ui"
    assert ws.module_of("p.core") == "core"
    assert ws.modules.resolution_state("ui") is ResolutionState.INSTALLED


def test_load_from_inline_toml() -> None:
    """Inline TOML text is accepted."""
    text = """
[[modules]]
id = "a"
state = "resolved"
declared_requires = ["b"]

[[modules]]
id = "b"
state = "resolved"
"""
    ws = load_workspace(text)

    assert ws.modules.wiring.has_edge("a", "b")
    assert ws.summary()["wires"] == 1


def test_unresolved_modules_have_no_wiring() -> None:
    """Only resolved modules take part in live wiring."""
    ws = load_workspace(DOCUMENT)
    scope = frozenset(ws.modules.nodes())

    assert LiveModuleEdges(ws.modules).direct_providers("ui", scope) == []
    assert DeclaredModuleEdges(ws.modules).direct_providers("ui", scope) == ["core"]
    assert DeclaredModuleEdges(ws.modules).neighbours(
        "core", scope, Direction.REQUIRING
    ) == ["ui"]


def test_explicit_wiring_overrides_declared() -> None:
    """The requires list is the live wiring of a resolved module."""
    ws = load_workspace(
        {
            "modules": [
                {"id": "a", "state": "active", "declared_requires": ["b"], "requires": ["c"]},
                {"id": "b", "state": "active"},
                {"id": "c", "state": "active"},
            ]
        }
    )

    assert list(ws.modules.wiring.successors("a")) == ["c"]
    assert list(ws.modules.graph.successors("a")) == ["b"]


def test_activation_domains() -> None:
    """Registries split nodes by activation."""
    ws = load_workspace(DOCUMENT)

    assert ws.projects.in_scope(ActivationScope.ACTIVATED) == ["p.core"]
    assert ws.projects.in_scope(ActivationScope.DEACTIVATED) == ["p.ui"]
    assert ws.projects.in_scope(ActivationScope.ALL) == ["p.core", "p.ui"]
    assert ws.projects_of(["ui", "core", "ui"]) == ["p.ui", "p.core"]


def test_dangling_references_are_not_nodes() -> None:
    """Edges to unknown ids do not create workspace nodes."""
    ws = load_workspace({"projects": [{"id": "p", "references": ["ghost"]}]})
    scope = frozenset({"p", "ghost"})

    assert "ghost" not in ws.projects
    assert ws.projects.nodes() == ["p"]
    assert not ws.projects.exists("ghost")
    assert ws.projects.graph.has_edge("p", "ghost")
    assert ProjectReferenceEdges(ws.projects).direct_providers("p", scope) == []


def test_unknown_node_attribute_lookup_raises() -> None:
    """Attribute lookups of unknown nodes fail loudly."""
    ws = load_workspace(DOCUMENT)

    with pytest.raises(UnknownNodeError) as excinfo:
        ws.modules.activated("missing")

    assert excinfo.value.node_id == "missing"
    assert "Unknown module 'missing'" in str(excinfo.value)


@pytest.mark.parametrize(
    "document, message",
    [
        ({"modules": [{"id": "a"}, {"id": "a"}]}, "Duplicate module id"),
        ({"modules": [{"id": "a", "hosts": ["b"]}]}, "not a fragment"),
        ({"modules": [{"id": "a", "project": "nowhere"}]}, "unknown project"),
        ({"modules": [{"id": " "}]}, "non-empty"),
        ({"modules": [{"id": "a", "colour": "red"}]}, "colour"),
        (
            {
                "projects": [{"id": "p"}],
                "modules": [{"id": "a", "project": "p"}, {"id": "b", "project": "p"}],
            },
            "bound to both",
        ),
    ],
)
def test_invalid_documents_are_rejected(document: dict, message: str) -> None:
    """Invalid documents raise WorkspaceLoadError with a useful message."""
    with pytest.raises(WorkspaceLoadError) as excinfo:
        load_workspace(document)

    assert message in str(excinfo.value)


def test_malformed_text_is_rejected() -> None:
    """Unparseable documents raise WorkspaceLoadError."""
    with pytest.raises(WorkspaceLoadError):
        load_workspace("{not json")


def test_unsupported_source_type() -> None:
    """Only mappings, paths and strings are accepted."""
    with pytest.raises(TypeError):
        load_workspace(42)  # type: ignore[arg-type]


def test_bind_rejects_second_module_for_project() -> None:
    """A project is built into at most one module."""
    ws = WorkspaceSnapshot()
    ws.projects.add_node("p")
    ws.modules.add_node("a")
    ws.modules.add_node("b")
    ws.bind("a", "p")

    with pytest.raises(ValueError):
        ws.bind("b", "p")
