"""Tests for closure policy composition."""

from __future__ import annotations

from typing import Dict, List, Optional

import pytest

from depclosure.closure.calculator import ClosureCalculator
from depclosure.closure.options import DependencyOptions, IllegalClosureError
from depclosure.graph.io import load_workspace
from depclosure.graph.models.schema import Closure, NodeKind, Operation
from depclosure.graph.workspace import WorkspaceSnapshot


def _modules(
    requires: Dict[str, List[str]], overrides: Optional[Dict[str, dict]] = None
) -> WorkspaceSnapshot:
    overrides = overrides or {}
    modules = []
    for module_id, providers in requires.items():
        entry = {
            "id": module_id,
            "state": "active",
            "activated": True,
            "declared_requires": providers,
        }
        entry.update(overrides.get(module_id, {}))
        modules.append(entry)
    return load_workspace({"modules": modules})


def _projects(references: Dict[str, List[str]], deactivated=()) -> WorkspaceSnapshot:
    return load_workspace(
        {
            "projects": [
                {"id": pid, "activated": pid not in deactivated, "references": refs}
                for pid, refs in references.items()
            ]
        }
    )


def test_end_to_end_providing_closure() -> None:
    """core and util both precede ui."""
    ws = _modules({"core": [], "util": [], "ui": ["core", "util"]})

    result = ClosureCalculator(ws).compute(
        Closure.PROVIDING, ["ui"], ["core", "util", "ui"]
    )

    assert list(result)[-1] == "ui"
    assert set(result) == {"core", "util", "ui"}


def test_missing_scope_gives_empty_result() -> None:
    """Without a scope nothing is reachable, for every policy."""
    ws = _modules({"a": ["b"], "b": []})
    calculator = ClosureCalculator(ws)

    for closure in Closure:
        result = calculator.compute(closure, ["a"], None)
        assert result.ok
        assert len(result) == 0
    assert len(calculator.module_activation(["a"])) == 0
    assert len(calculator.module_deactivation(["b"], None)) == 0


def test_universe_scope_reaches_every_node() -> None:
    ws = _modules({"a": ["b"], "b": []})
    calculator = ClosureCalculator(ws)

    result = calculator.compute(
        Closure.PROVIDING, ["a"], calculator.universe(NodeKind.MODULE)
    )

    assert list(result) == ["b", "a"]


def test_partial_graph_reaches_fixpoint() -> None:
    """A -> B -> C and D -> C: alternating directions reach all four."""
    ws = _modules({"A": ["B"], "B": ["C"], "C": [], "D": ["C"]})

    result = ClosureCalculator(ws).compute(
        Closure.PARTIAL_GRAPH, ["A"], ["A", "B", "C", "D"]
    )

    assert result.ok
    assert set(result) == {"A", "B", "C", "D"}


def test_partial_graph_starting_with_providers() -> None:
    """The starting direction does not change the fixpoint."""
    ws = _modules({"A": ["B"], "B": ["C"], "C": [], "D": ["C"]})

    result = ClosureCalculator(ws).compute(
        Closure.PARTIAL_GRAPH, ["A"], ws.modules.nodes(), requiring_first=False
    )

    assert set(result) == {"A", "B", "C", "D"}


def test_two_pass_closure_sorts_first_pass_output() -> None:
    """The second pass expands from nodes found by the first one."""
    ws = _modules({"A": [], "X": ["A", "Y"], "Y": []})
    calculator = ClosureCalculator(ws)
    scope = ws.modules.nodes()

    two_pass = calculator.compute(Closure.REQUIRING_AND_PROVIDING, ["A"], scope)
    union = set(calculator.compute(Closure.REQUIRING, ["A"], scope)) | set(
        calculator.compute(Closure.PROVIDING, ["A"], scope)
    )

    assert set(two_pass) == {"A", "X", "Y"}
    assert "Y" not in union


def test_providing_and_requiring_closure() -> None:
    """Providers first, then everything requiring them."""
    ws = _modules({"A": ["B"], "B": [], "C": ["B"]})

    result = ClosureCalculator(ws).compute(
        Closure.PROVIDING_AND_REQUIRING, ["A"], ws.modules.nodes()
    )

    assert set(result) == {"A", "B", "C"}
    assert result.index("C") < result.index("B")


def test_single_closure_does_not_expand() -> None:
    """SINGLE only orders the initial nodes among themselves."""
    ws = _modules({"A": ["B"], "B": ["C"], "C": []})
    calculator = ClosureCalculator(ws)
    scope = ws.modules.nodes()

    assert list(calculator.compute(Closure.SINGLE, ["A"], scope)) == ["A"]
    assert list(calculator.compute(Closure.SINGLE, ["A", "B"], scope)) == ["B", "A"]


def test_unknown_closure_gives_empty_result() -> None:
    """Unknown policies are lenient."""
    ws = _modules({"A": []})

    result = ClosureCalculator(ws).compute("bogus", ["A"], ws.modules.nodes())

    assert result.ok
    assert len(result) == 0


def test_cycle_aborts_remaining_passes() -> None:
    """A failure in the first pass is returned as is."""
    ws = _modules({"A": ["B"], "B": ["A"], "C": ["A"]})

    result = ClosureCalculator(ws).compute(
        Closure.PROVIDING_AND_REQUIRING, ["A"], ws.modules.nodes()
    )

    assert result.failure is not None
    assert "C" not in result


def test_declared_edges_used_when_a_module_is_unresolved() -> None:
    """Live wiring is used only when every module in play is resolved."""
    ws = _modules({"A": ["B"], "B": []}, {"B": {"state": "installed"}})
    calculator = ClosureCalculator(ws)
    scope = ws.modules.nodes()

    assert not calculator.is_resolved(["A"], scope)
    assert list(calculator.compute(Closure.PROVIDING, ["A"], scope)) == ["B", "A"]
    assert list(
        calculator.compute(Closure.PROVIDING, ["A"], scope, declared=False)
    ) == ["A"]


def test_live_edges_used_when_all_modules_are_resolved() -> None:
    """Resolved modules without wiring contribute no edges."""
    ws = _modules({"A": ["B"], "B": []}, {"A": {"requires": []}})
    calculator = ClosureCalculator(ws)
    scope = ws.modules.nodes()

    assert calculator.is_resolved(["A"], scope)
    assert list(calculator.compute(Closure.PROVIDING, ["A"], scope)) == ["A"]


def test_module_deactivation_tolerates_cycles() -> None:
    """A cyclic group can be stopped but not started."""
    ws = _modules({"A": ["B"], "B": ["A"]})
    calculator = ClosureCalculator(ws)

    stop = calculator.module_deactivation(["A"], ws.modules.nodes())
    start = calculator.module_activation(["A"], ws.modules.nodes())

    assert stop.ok
    assert set(stop) == {"A", "B"}
    assert start.failure is not None


def test_module_deactivation_can_report_cycles() -> None:
    """Cycle tolerance on deactivation is configurable."""
    ws = _modules({"A": ["B"], "B": ["A"]})
    calculator = ClosureCalculator(ws, deactivation_allows_cycles=False)

    result = calculator.module_deactivation(["A"], ws.modules.nodes())

    assert result.failure is not None


def test_module_deactivation_single_uses_requiring_order() -> None:
    """Requirers are stopped before their providers."""
    ws = _modules({"A": ["B"], "B": []})

    result = ClosureCalculator(ws).module_deactivation(
        ["B", "A"], ws.modules.nodes(), closure=Closure.SINGLE
    )

    assert list(result) == ["A", "B"]


@pytest.mark.parametrize(
    "operation, closure",
    [
        (Operation.ACTIVATE_PROJECT, Closure.REQUIRING),
        (Operation.ACTIVATE_PROJECT, Closure.SINGLE),
        (Operation.DEACTIVATE_PROJECT, Closure.PROVIDING),
        (Operation.ACTIVATE_BUNDLE, Closure.PROVIDING_AND_REQUIRING),
        (Operation.DEACTIVATE_BUNDLE, Closure.REQUIRING_AND_PROVIDING),
    ],
)
def test_illegal_combinations_raise(operation: Operation, closure: Closure) -> None:
    """Closures outside an operation's whitelist are rejected."""
    ws = _modules({"A": []})
    calculator = ClosureCalculator(ws)

    with pytest.raises(IllegalClosureError):
        calculator.for_operation(operation, ["A"], ws.modules.nodes(), closure=closure)


def test_current_option_is_used_when_closure_is_omitted() -> None:
    """The configured closure applies to the operation."""
    ws = _modules({"A": ["B"], "B": []})
    options = DependencyOptions({Operation.ACTIVATE_BUNDLE: Closure.REQUIRING})

    result = ClosureCalculator(ws, options).module_activation(["B"], ws.modules.nodes())

    assert list(result) == ["A", "B"]


def test_project_activation_follows_activated_projects_only() -> None:
    """Activation of P pulls in activated providers only."""
    ws = _projects({"P": ["Q", "R"], "Q": [], "R": []}, deactivated=("R",))
    calculator = ClosureCalculator(ws)

    assert list(calculator.project_activation(["P"])) == ["Q", "P"]
    assert set(calculator.project_activation(["P"], activated=None)) == {"P", "Q", "R"}


def test_project_deactivation_includes_requirers() -> None:
    """Deactivating Q also deactivates the projects referencing it."""
    ws = _projects({"P": ["Q"], "Q": [], "S": ["P"]})

    result = ClosureCalculator(ws).project_deactivation(["Q"])

    assert list(result) == ["S", "P", "Q"]


def test_project_partial_graph() -> None:
    """Projects support the partial graph closure on activation."""
    ws = _projects({"A": ["B"], "B": ["C"], "C": [], "D": ["C"]})

    result = ClosureCalculator(ws).project_activation(["A"], closure=Closure.PARTIAL_GRAPH)

    assert set(result) == {"A", "B", "C", "D"}


def test_compute_on_projects_by_kind() -> None:
    """compute accepts the project universe explicitly."""
    ws = _projects({"P": ["Q"], "Q": []})
    calculator = ClosureCalculator(ws)

    result = calculator.compute(
        Closure.PROVIDING,
        ["P"],
        calculator.universe(NodeKind.PROJECT),
        kind=NodeKind.PROJECT,
    )

    assert list(result) == ["Q", "P"]
