"""CLI command listing the closures allowed for each operation."""

from __future__ import annotations

import logging

from rich.table import Table

from depclosure.cli.common import get_console, print_json
from depclosure.config.loader import load_closure_config
from depclosure.graph.models.schema import Closure, Operation

logger = logging.getLogger("depclosure.cli.policies")


def policies_command(args) -> int:
    """Execute policies command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code.
    """
    try:
        options = load_closure_config(getattr(args, "config", None)).dependency_options
        current = options.to_options()

        rows = []
        for operation in Operation:
            valid = [c for c in Closure if current.is_allowed(operation, c)]
            rows.append(
                {
                    "operation": operation.value,
                    "valid": [c.value for c in valid],
                    "default": current.default(operation).value,
                    "current": current.get(operation).value,
                }
            )

        if getattr(args, "json", False):
            print_json({"operations": rows})
            return 0

        table = Table(title="Closure policies")
        table.add_column("Operation")
        table.add_column("Valid closures")
        table.add_column("Default")
        table.add_column("Current")
        for row in rows:
            table.add_row(
                row["operation"], ", ".join(row["valid"]), row["default"], row["current"]
            )
        get_console().print(table)
        return 0

    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("Policies command failed: %s", e, exc_info=True)
        return 1
