"""CLI command reporting every dependency cycle of a workspace.

When requested it can also fail the process so that CI pipelines can
enforce acyclicity.
"""

from __future__ import annotations

import logging

from depclosure.cli.common import build_service, kind_from_args, print_json

logger = logging.getLogger("depclosure.cli.cycles")


def cycles_command(args) -> int:
    """Execute cycle detection command.

    Args:
        args: Parsed command-line arguments.

    Returns:
        int: Exit code (0 for success, non-zero for failure).
    """
    try:
        service = build_service(args)
        kind = kind_from_args(args)
        fail_on_cycle = getattr(args, "fail_on_cycle", False)

        failure = service.find_cycles(kind)
        if getattr(args, "json", False):
            print_json(failure.to_dict() if failure is not None else {"cycles": []})

        if failure is None:
            logger.info("No dependency cycles among %ss", kind.value)
            return 0

        logger.warning("Detected %d cycle(s)", len(failure.records))
        for idx, record in enumerate(failure.records, start=1):
            # Present a closed loop for readability: A -> B -> A
            loop = list(record.path) + [record.path[0]]
            logger.warning("Cycle %d: %s", idx, " -> ".join(loop))
            for line in record.details:
                logger.warning("    - %s", line)

        if fail_on_cycle:
            logger.error("Cycle validation failed: dependency cycles detected")
            return 1
        return 0

    except Exception as e:  # pylint: disable=broad-exception-caught
        logger.error("Cycles command failed: %s", e, exc_info=True)
        return 1
