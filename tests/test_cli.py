"""Tests for depclosure CLI entrypoints."""

from __future__ import annotations

import json
import sys
from pathlib import Path

import pytest

import depclosure.main as main

WORKSPACE = {
    "projects": [
        {"id": "core", "activated": True},
        {"id": "ui", "activated": True, "references": ["core"]},
        {"id": "broken", "activated": True, "build_error": True},
        {"id": "app", "activated": True, "references": ["broken"]},
        {"id": "loop_a", "activated": True, "references": ["loop_b"]},
        {"id": "loop_b", "activated": True, "references": ["loop_a"]},
    ],
    "modules": [
        {"id": "core.mod", "project": "core", "activated": True, "state": "active"},
        {
            "id": "ui.mod",
            "project": "ui",
            "activated": True,
            "state": "active",
            "declared_requires": ["core.mod"],
        },
    ],
}


@pytest.fixture
def workspace_file(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> str:
    """Workspace document on disk, with logging setup disabled."""
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)
    path = tmp_path / "workspace.json"
    path.write_text(json.dumps(WORKSPACE), encoding="utf-8")
    return str(path)


def test_main_dispatches_closure_command(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    """Verify that `main` parses args and dispatches closure_command."""
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)

    captured: dict[str, object] = {}

    def fake_closure_command(args) -> int:
        captured["args"] = args
        return 0

    monkeypatch.setattr(main, "closure_command", fake_closure_command)

    argv = [
        "depclosure",
        "closure",
        str(tmp_path / "ws.json"),
        "-i",
        "a,b",
        "-i",
        "c",
        "--policy",
        "partial_graph",
    ]
    monkeypatch.setattr(sys, "argv", argv)

    exit_code = main.main()

    assert exit_code == 0
    parsed = captured["args"]
    assert parsed.workspace == str(tmp_path / "ws.json")
    assert parsed.initial == ["a,b", "c"]
    assert parsed.policy == "partial_graph"
    assert parsed.projects is False


def test_closure_json_output(workspace_file: str, capsys: pytest.CaptureFixture) -> None:
    """The providing closure of ui.mod is printed in order."""
    exit_code = main.main(["closure", workspace_file, "-i", "ui.mod", "--json"])

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload == {"nodes": ["core.mod", "ui.mod"], "ok": True}


def test_closure_for_operation_uses_project_universe(
    workspace_file: str, capsys: pytest.CaptureFixture
) -> None:
    """Project operations sort projects with their current closure."""
    exit_code = main.main(
        ["closure", workspace_file, "-i", "core", "--operation", "deactivate_project", "--json"]
    )

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out)["nodes"] == ["ui", "core"]


def test_closure_rejects_illegal_policy(workspace_file: str) -> None:
    """A policy outside the operation's whitelist fails the command."""
    exit_code = main.main(
        [
            "closure",
            workspace_file,
            "-i",
            "core",
            "--operation",
            "activate_project",
            "--policy",
            "single",
        ]
    )

    assert exit_code == 1


def test_closure_reports_cycle(workspace_file: str, capsys: pytest.CaptureFixture) -> None:
    exit_code = main.main(
        ["closure", workspace_file, "-i", "loop_a", "--projects", "--json"]
    )

    assert exit_code == 1
    payload = json.loads(capsys.readouterr().out)
    assert payload["ok"] is False
    assert sorted(payload["failure"]["nodes"]) == ["loop_a", "loop_b"]


def test_cycles_fail_on_cycle(workspace_file: str, capsys: pytest.CaptureFixture) -> None:
    """--fail-on-cycle turns detected cycles into a failing exit code."""
    assert main.main(["cycles", workspace_file, "--projects"]) == 0
    assert main.main(["cycles", workspace_file, "--projects", "--fail-on-cycle"]) == 1
    capsys.readouterr()

    exit_code = main.main(["cycles", workspace_file, "--fail-on-cycle", "--json"])

    assert exit_code == 0
    assert json.loads(capsys.readouterr().out) == {"cycles": []}


def test_cycles_json_lists_paths(workspace_file: str, capsys: pytest.CaptureFixture) -> None:
    main.main(["cycles", workspace_file, "--projects", "--json"])

    payload = json.loads(capsys.readouterr().out)
    assert payload["kind"] == "project"
    assert len(payload["cycles"]) == 1
    assert sorted(payload["cycles"][0]["path"]) == ["loop_a", "loop_b"]


def test_errors_command_reports_blocked_projects(
    workspace_file: str, capsys: pytest.CaptureFixture
) -> None:
    """Projects requiring a project in error are blocked."""
    exit_code = main.main(
        ["errors", workspace_file, "-i", "broken", "--transition", "build"]
    )

    assert exit_code == 1
    out = capsys.readouterr().out
    assert "Build of broken awaiting build. Build errors in projects: broken" in out
    assert "broken is required by: app" in out


def test_errors_command_clean_closure(
    workspace_file: str, capsys: pytest.CaptureFixture
) -> None:
    exit_code = main.main(
        ["errors", workspace_file, "-i", "ui", "--direction", "providing", "--json"]
    )

    assert exit_code == 0
    payload = json.loads(capsys.readouterr().out)
    assert payload["nodes"] == []
    assert payload["errors"] == []
    assert payload["message"] == "No build errors in projects: core, ui"


def test_policies_json_uses_configuration(
    monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture
) -> None:
    """Current closures come from the configuration."""
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)

    exit_code = main.main(
        [
            "-c",
            '{"dependency_options": {"activate_bundle": "single"}}',
            "policies",
            "--json",
        ]
    )

    assert exit_code == 0
    rows = {row["operation"]: row for row in json.loads(capsys.readouterr().out)["operations"]}
    assert rows["activate_bundle"]["current"] == "single"
    assert rows["activate_bundle"]["default"] == "providing"
    assert rows["activate_project"]["valid"] == [
        "providing",
        "requiring_and_providing",
        "partial_graph",
    ]


def test_missing_command_prints_help(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(main, "setup_logging", lambda *a, **k: None)

    assert main.main([]) == 1
