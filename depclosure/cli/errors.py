"""CLI command computing the build error closure of an operation."""

from __future__ import annotations

import logging

from depclosure.cli.common import build_service, kind_from_args, print_json, split_ids
from depclosure.graph.models.schema import NodeKind, Transition

logger = logging.getLogger("depclosure.cli.errors")


def errors_command(args) -> int:
    """Execute error closure command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code (0 when nothing is blocked, 1 otherwise).
    """
    try:
        service = build_service(args)
        kind = kind_from_args(args, default=NodeKind.PROJECT)
        transition = Transition(args.transition) if args.transition else None
        closure = service.error_closure(
            split_ids(args.initial),
            args.direction,
            args.domain,
            kind,
            transition,
        )
        result = closure.error_closure()
        status = closure.status()

        if getattr(args, "json", False):
            payload = result.to_dict()
            payload["errors"] = list(status.error_nodes)
            payload["message"] = status.message
            payload["details"] = list(status.details)
            print_json(payload)
        else:
            print("\n".join(status.lines()))

        return 0 if status.ok else 1

    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("Errors command failed: %s", e, exc_info=True)
        return 1
