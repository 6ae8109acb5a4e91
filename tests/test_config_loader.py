"""Tests for closure configuration loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from depclosure.config.loader import load_closure_config
from depclosure.config.schema import ClosureConfig
from depclosure.graph.models.schema import ActivationScope, Closure, Operation


def test_none_gives_defaults() -> None:
    """No source means the default configuration."""
    config = load_closure_config(None)

    assert config == ClosureConfig.default()
    assert config.sorter.allow_cycles is False
    assert config.sorter.deactivation_allows_cycles is True
    assert config.error_closure.domain is ActivationScope.ACTIVATED


def test_load_from_dict() -> None:
    config = load_closure_config(
        {
            "sorter": {"allow_self_reference": False},
            "dependency_options": {"deactivate_bundle": "single"},
        }
    )

    assert config.sorter.allow_self_reference is False
    options = config.dependency_options.to_options()
    assert options.get(Operation.DEACTIVATE_BUNDLE) is Closure.SINGLE
    assert options.get(Operation.ACTIVATE_BUNDLE) is Closure.PROVIDING


def test_load_from_toml_file(tmp_path: Path) -> None:
    """A .toml file is parsed as TOML."""
    path = tmp_path / "depclosure.toml"
    path.write_text(
        "[error_closure]\ninclude_duplicates = true\ndomain = \"all\"\n",
        encoding="utf-8",
    )

    config = load_closure_config(path)

    assert config.error_closure.include_duplicates is True
    assert config.error_closure.domain is ActivationScope.ALL


def test_load_from_inline_json() -> None:
    config = load_closure_config('{"sorter": {"diagnose_cycles": false}}')

    assert config.sorter.diagnose_cycles is False


def test_closure_outside_whitelist_is_rejected() -> None:
    """Each operation only accepts its own closures."""
    with pytest.raises(ValidationError) as excinfo:
        load_closure_config({"dependency_options": {"activate_project": "single"}})

    assert "not allowed for activate_project" in str(excinfo.value)


def test_unknown_closure_value_is_rejected() -> None:
    with pytest.raises(ValidationError):
        load_closure_config({"dependency_options": {"activate_bundle": "bogus"}})


def test_unknown_keys_are_rejected() -> None:
    """Typos in configuration keys fail loudly."""
    with pytest.raises(ValidationError):
        load_closure_config({"sorter": {"allow_cycle": True}})


def test_malformed_text_raises_value_error() -> None:
    with pytest.raises(ValueError):
        load_closure_config('{"sorter": ')


def test_non_mapping_document_raises_value_error() -> None:
    with pytest.raises(ValueError):
        load_closure_config("[1, 2]")


def test_unsupported_source_type() -> None:
    with pytest.raises(TypeError):
        load_closure_config(42)  # type: ignore[arg-type]


def test_round_trip_through_dict() -> None:
    """to_dict output is accepted by from_dict."""
    config = load_closure_config({"dependency_options": {"activate_bundle": "partial_graph"}})

    data = config.to_dict()

    assert data["dependency_options"]["activate_bundle"] == "partial_graph"
    assert ClosureConfig.from_dict(data) == config
