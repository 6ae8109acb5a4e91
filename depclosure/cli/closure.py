"""CLI command computing the closure of a set of modules or projects."""

from __future__ import annotations

import logging

from depclosure.cli.common import (
    build_service,
    get_console,
    kind_from_args,
    node_table,
    print_json,
    split_ids,
)
from depclosure.graph.models.schema import Closure, NodeKind, Operation

logger = logging.getLogger("depclosure.cli.closure")


def closure_command(args) -> int:
    """Execute closure command.

    With ``--operation`` the policy is checked against the operation and
    defaults to the operation's current closure. Without it ``--policy``
    is applied as is (default: providing).

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code (0 for success, 1 on error or cycle).
    """
    try:
        service = build_service(args)
        initial = split_ids(args.initial)
        scope = split_ids(getattr(args, "scope", None))
        operation = Operation(args.operation) if args.operation else None
        if operation is not None:
            policy = Closure(args.policy) if args.policy else None
            kind = (
                NodeKind.PROJECT
                if operation in (Operation.ACTIVATE_PROJECT, Operation.DEACTIVATE_PROJECT)
                else NodeKind.MODULE
            )
        else:
            policy = Closure(args.policy or Closure.PROVIDING.value)
            kind = kind_from_args(args)
        if scope is None:
            scope = service.universe(kind)

        result = service.compute_closure(
            policy, initial, scope, kind=kind, operation=operation
        )

        if getattr(args, "json", False):
            print_json(result.to_dict())
        else:
            console = get_console()
            title = f"{(policy or service.options.get(operation)).value} closure"
            console.print(node_table(title, result.nodes, kind))
            if result.failure is not None:
                console.print(result.failure.describe())

        if not result.ok:
            logger.error("Closure failed: %s", ", ".join(result.failure.nodes))
            return 1
        return 0

    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("Closure command failed: %s", e, exc_info=True)
        return 1
