from __future__ import annotations

import argparse
import logging
import sys
from functools import partial
from typing import Any, Never, Sequence

from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.panel import Panel
from rich.table import Table
from rich_argparse import RawTextRichHelpFormatter
from artifact_runner import (
    ArtifactRequest,
    ConfigurationError,
    ExecutionRequest,
    ExecutionResult,
    load_params,
    new_runner,
)

_CONSOLE = Console(no_color=False)
_ERR_CONSOLE = Console(stderr=True)
_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR")


class _CaptureHelpFormatter(RawTextRichHelpFormatter):
    """Help formatter that keeps example blocks verbatim.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CaptureHelpFormatter)
        ```
    """

    styles = {
        **RawTextRichHelpFormatter.styles,
        "argparse.args": "bold green",
        "argparse.metavar": "yellow",
    }


_HELP_FORMATTER = partial(_CaptureHelpFormatter, width=120)


class _CaptureArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that reports usage errors on stderr through Rich.

    Example:
        ```python
        parser = _CaptureArgumentParser(prog="python -m arun")
        ```
    """

    def error(self, message: str) -> Never:
        """Print the usage line and a red error message, then exit with 2.

        Example:
            ```python
            # parser.error("argument --execution-id is required")
            ```
        """
        self.print_usage(sys.stderr)
        _ERR_CONSOLE.print(f"[bold red]{self.prog}: error:[/bold red] {escape(message)}")
        raise SystemExit(2)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for artifact capture operations.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _CaptureArgumentParser(
        prog="python -m arun",
        description=(
            "artifact-runner CLI\n"
            "Check and upload the artifact directories of a finished test execution.\n"
            "Storage settings are read from RUNNER_* environment variables."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m arun config\n"
            "  python -m arun capture --execution-id 65a1f0c2 --volume-mount-path /data/run-1 --dir logs\n"
            "  python -m arun capture --execution-id 65a1f0c2 --volume-mount-path /data/run-1 "
            "--dir logs --dir reports --json\n\n"
            "Environment:\n"
            "  RUNNER_ENDPOINT, RUNNER_ACCESSKEYID, RUNNER_SECRETACCESSKEY, RUNNER_LOCATION,\n"
            "  RUNNER_TOKEN, RUNNER_SSL, RUNNER_SCRAPPERENABLED"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=_LOG_LEVELS,
        type=str.upper,
        help="Logging verbosity written to stderr (default: WARNING).",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_CaptureArgumentParser,
    )

    capture_cmd = sub.add_parser(
        "capture",
        help="Check and scrape the artifacts of one execution.",
        description=(
            "Check that the volume mount path exists and, when scraping is enabled,\n"
            "upload the requested subdirectories keyed by the execution id.\n"
            "Without --volume-mount-path nothing is requested and nothing is checked."
        ),
        epilog=(
            "Examples:\n"
            "  python -m arun capture --execution-id 65a1f0c2\n"
            "  python -m arun capture --execution-id 65a1f0c2 --volume-mount-path /data/run-1 "
            "--dir logs --dir reports"
        ),
        formatter_class=_HELP_FORMATTER,
    )
    capture_cmd.add_argument(
        "--execution-id",
        required=True,
        help="Identifier of the finished execution; also the target bucket name.",
    )
    capture_cmd.add_argument(
        "--volume-mount-path",
        help="Absolute directory where the execution wrote its outputs.",
    )
    capture_cmd.add_argument(
        "--dir",
        dest="dirs",
        action="append",
        default=[],
        metavar="NAME",
        help="Subdirectory of the mount path to upload. Repeat for several.",
    )
    capture_cmd.add_argument(
        "--json",
        action="store_true",
        help="Print the execution result as JSON.",
    )

    sub.add_parser(
        "config",
        help="Show the effective runner configuration.",
        description=(
            "Show settings read from RUNNER_* environment variables.\n"
            "Credentials are masked."
        ),
        formatter_class=_HELP_FORMATTER,
    )

    return parser


def _configure_logging(level: str) -> None:
    """Route log records through Rich on stderr.

    Example:
        ```python
        _configure_logging("INFO")
        ```
    """
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=_ERR_CONSOLE, show_path=False)],
        force=True,
    )


def build_execution(args: argparse.Namespace) -> ExecutionRequest:
    """Create the execution request described by `capture` flags.

    Example:
        ```python
        execution = build_execution(args)
        ```
    """
    artifact_request = None
    if args.volume_mount_path:
        artifact_request = ArtifactRequest(
            volume_mount_path=args.volume_mount_path,
            dirs=list(args.dirs),
        )
    return ExecutionRequest(id=args.execution_id, artifact_request=artifact_request)


def _print_result(execution: ExecutionRequest, result: ExecutionResult) -> None:
    """Render an execution result as a panel or an error table.

    Example:
        ```python
        _print_result(execution, ExecutionResult())
        ```
    """
    if not result.errors:
        _CONSOLE.print(
            Panel.fit(f"Artifacts captured for execution {execution.id}", style="bold green")
        )
        return
    table = Table(title=f"Capture Errors ({execution.id})")
    table.add_column("#", style="cyan")
    table.add_column("Error", style="red")
    for index, message in enumerate(result.errors, start=1):
        table.add_row(str(index), escape(message))
    _CONSOLE.print(table)


def _print_config(values: dict[str, Any]) -> None:
    """Render configuration values in a rich table.

    Example:
        ```python
        _print_config({"endpoint": "minio:9000"})
        ```
    """
    table = Table(title="Runner Configuration")
    table.add_column("Setting", style="cyan")
    table.add_column("Value", style="magenta")
    for name, value in values.items():
        table.add_row(name, escape(str(value)))
    _CONSOLE.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `arun` CLI command handler.

    Example:
        ```python
        code = main(["capture", "--execution-id", "65a1f0c2"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    _configure_logging(args.log_level)

    try:
        if args.command == "config":
            _print_config(load_params().masked())
            return 0
        if args.command == "capture":
            runner = new_runner()
            execution = build_execution(args)
            result = runner.run(execution)
            if args.json:
                _CONSOLE.print_json(data=result.to_dict())
            else:
                _print_result(execution, result)
            return 1 if result.errors else 0
    except ConfigurationError as exc:
        _CONSOLE.print(Panel.fit(f"[bold red]Configuration error:[/bold red] {escape(str(exc))}", border_style="red"))
        return 2

    parser.error("Unhandled command")
    return 2
