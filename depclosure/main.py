"""Main CLI entry point for depclosure.

Provides commands: closure, cycles, errors, policies
"""

import argparse
import logging
import sys
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler

from depclosure.cli.closure import closure_command
from depclosure.cli.cycles import cycles_command
from depclosure.cli.errors import errors_command
from depclosure.cli.policies import policies_command
from depclosure.graph.models.schema import ActivationScope, Closure, Operation, Transition

logger = logging.getLogger("depclosure.cli")


def setup_logging(
    verbose: bool = False,
    console: Optional[Console] = None,
    log_file: Optional[str] = None,
) -> None:
    """Setup logging configuration with Rich integration.

    Args:
        verbose: Enable verbose logging.
        console: Rich Console instance for coordinated output (optional).
        log_file: Also write log records to this file (optional).
    """
    if verbose:
        level = logging.DEBUG
    else:
        level = logging.WARNING

    handler = RichHandler(
        console=console if console is not None else Console(stderr=True),
        show_time=True,
        show_path=False,
        markup=False,
        rich_tracebacks=True,
        tracebacks_show_locals=verbose,
        log_time_format="[%H:%M:%S]",
    )
    handlers: List[logging.Handler] = [handler]

    if log_file:
        file_handler = logging.FileHandler(log_file, encoding="utf-8")
        file_handler.setFormatter(
            logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")
        )
        handlers.append(file_handler)

    logging.basicConfig(
        level=level,
        format="[%(name)s] [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="depclosure",
        description="Depclosure - Dependency closure and ordering of modules and projects",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--log-file",
        help="Output log to file (optional), in addition to the console.",
    )
    parser.add_argument(
        "-c",
        "--config",
        help=(
            "Optional closure configuration. Can be a path to a TOML/JSON "
            "file (e.g. depclosure.toml) or an inline TOML/JSON string. "
            "When omitted, built-in defaults are used."
        ),
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Closure command
    closure_parser = subparsers.add_parser(
        "closure",
        help="Compute the ordered closure of modules or projects",
    )
    closure_parser.add_argument(
        "workspace",
        help="Workspace document (JSON/TOML file or inline string)",
    )
    closure_parser.add_argument(
        "-i",
        "--initial",
        action="append",
        required=True,
        help="Initial node ids (comma separated, repeatable)",
    )
    closure_parser.add_argument(
        "-s",
        "--scope",
        action="append",
        help="Restrict the closure to these node ids (default: all nodes)",
    )
    closure_parser.add_argument(
        "--policy",
        choices=[c.value for c in Closure],
        help=(
            "Closure policy (default: providing, or the current closure of "
            "--operation)"
        ),
    )
    closure_parser.add_argument(
        "--operation",
        choices=[o.value for o in Operation],
        help="Validate the policy against this lifecycle operation",
    )
    closure_parser.add_argument(
        "--projects",
        action="store_true",
        help="Initial ids are projects instead of modules",
    )
    closure_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )

    # Cycles command
    cycles_parser = subparsers.add_parser(
        "cycles",
        help="Report all dependency cycles of a workspace",
    )
    cycles_parser.add_argument(
        "workspace",
        help="Workspace document (JSON/TOML file or inline string)",
    )
    cycles_parser.add_argument(
        "--projects",
        action="store_true",
        help="Check project references instead of module dependencies",
    )
    cycles_parser.add_argument(
        "--fail-on-cycle",
        action="store_true",
        help=(
            "Exit with non-zero status when dependency cycles are found. "
            "Useful for CI validation."
        ),
    )
    cycles_parser.add_argument(
        "--json",
        action="store_true",
        help="Print detected cycles as JSON",
    )

    # Errors command
    errors_parser = subparsers.add_parser(
        "errors",
        help="Compute the nodes blocked by build errors",
    )
    errors_parser.add_argument(
        "workspace",
        help="Workspace document (JSON/TOML file or inline string)",
    )
    errors_parser.add_argument(
        "-i",
        "--initial",
        action="append",
        required=True,
        help="Initial node ids (comma separated, repeatable)",
    )
    errors_parser.add_argument(
        "--direction",
        choices=[c.value for c in Closure],
        help=(
            "Closure of the initial nodes (default: derived from --transition, "
            "requiring without one)"
        ),
    )
    errors_parser.add_argument(
        "--domain",
        choices=[s.value for s in ActivationScope],
        help="Activation domain (default: from configuration, activated)",
    )
    errors_parser.add_argument(
        "--transition",
        choices=[t.value for t in Transition],
        help="Transition named in the status message",
    )
    errors_parser.add_argument(
        "--modules",
        action="store_true",
        help="Initial ids are modules instead of projects",
    )
    errors_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the result as JSON",
    )

    # Policies command
    policies_parser = subparsers.add_parser(
        "policies",
        help="List valid, default and current closures per operation",
    )
    policies_parser.add_argument(
        "--json",
        action="store_true",
        help="Print the policies as JSON",
    )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        int: Exit code.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(args.verbose, log_file=args.log_file)

    if args.command == "closure":
        return closure_command(args)
    elif args.command == "cycles":
        return cycles_command(args)
    elif args.command == "errors":
        return errors_command(args)
    elif args.command == "policies":
        return policies_command(args)
    else:
        parser.print_help()
        return 1


if __name__ == "__main__":
    sys.exit(main())
