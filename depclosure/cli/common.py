"""Helpers shared by the CLI commands."""

from __future__ import annotations

import json
from typing import Any, Dict, Iterable, List, Optional

from rich.console import Console
from rich.table import Table

from depclosure.closure.service import ClosureService
from depclosure.graph.models.schema import NodeKind


def split_ids(values: Optional[Iterable[str]]) -> Optional[List[str]]:
    """Flatten repeated and comma separated node id options."""
    if values is None:
        return None
    ids: List[str] = []
    for value in values:
        for part in value.split(","):
            part = part.strip()
            if part and part not in ids:
                ids.append(part)
    return ids


def build_service(args) -> ClosureService:
    return ClosureService.from_sources(args.workspace, getattr(args, "config", None))


def kind_from_args(args, default: NodeKind = NodeKind.MODULE) -> NodeKind:
    if getattr(args, "projects", False):
        return NodeKind.PROJECT
    if getattr(args, "modules", False):
        return NodeKind.MODULE
    return default


def print_json(payload: Dict[str, Any]) -> None:
    print(json.dumps(payload, indent=2))


def node_table(title: str, nodes: Iterable[str], kind: NodeKind) -> Table:
    table = Table(title=title)
    table.add_column("#", justify="right")
    table.add_column(kind.value.title())
    for index, node in enumerate(nodes, start=1):
        table.add_row(str(index), node)
    return table


def get_console() -> Console:
    return Console(soft_wrap=True)
