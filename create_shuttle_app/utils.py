"""Shared utility functions for create-shuttle-app.

Provides blocking command execution with uniform error mapping, PATH lookup,
and Rich-based console reporting.  Every other module prints through the
``console`` defined here so output stays consistent.
"""

from __future__ import annotations

import os
import shlex
import shutil
import subprocess
import sys
from pathlib import Path
from typing import IO, Any, Union

from rich.console import Console
from rich.rule import Rule
from rich.table import Table
from rich.text import Text

from create_shuttle_app.errors import (
    CommandFailedError,
    CommandNotFoundError,
    ScaffoldError,
)

console = Console()

# Exit codes a shell uses when it cannot resolve the command name.
_NOT_FOUND_EXIT_CODES = {127, 9009}

StdStream = Union[int, IO[Any], None]


# ---------------------------------------------------------------------------
# Command execution
# ---------------------------------------------------------------------------


def _join_command(command: str, args: list[str] | tuple[str, ...] | None) -> str:
    if not args:
        return command
    if sys.platform == "win32":
        return subprocess.list2cmdline([command, *args])
    return " ".join([command, *(shlex.quote(a) for a in args)])


def run_command(
    command: str,
    args: list[str] | tuple[str, ...] | None = None,
    *,
    cwd: str | Path | None = None,
    stdin: StdStream = None,
    stdout: StdStream = subprocess.PIPE,
    env: dict[str, str] | None = None,
) -> bytes:
    """Run a command through the OS shell and block until it exits.

    Stderr is always captured so it can be reported on failure; stdin and
    stdout follow the caller's choice (inherit by passing ``None``).

    Args:
        command: Executable name, or a full shell command line when *args*
            is omitted.
        args: Optional arguments, quoted for the current platform's shell.
        cwd: Working directory for the child process.
        stdin: Standard input for the child (``None`` inherits).
        stdout: Standard output for the child (captured by default).
        env: Optional extra environment variables merged on top of ``os.environ``.

    Returns:
        The captured stdout bytes, or ``b""`` if stdout was not captured.

    Raises:
        CommandNotFoundError: If the shell cannot find *command*.
        CommandFailedError: If the command exits with a non-zero status.
        ScaffoldError: For any other failure to spawn the process.
    """
    merged_env: dict[str, str] | None = None
    if env:
        merged_env = {**os.environ, **env}

    try:
        result = subprocess.run(
            _join_command(command, args),
            shell=True,
            cwd=str(cwd) if cwd else None,
            stdin=stdin,
            stdout=stdout,
            stderr=subprocess.PIPE,
            env=merged_env,
        )
    except FileNotFoundError:
        raise CommandNotFoundError(command) from None
    except OSError as exc:
        raise ScaffoldError(f'Failed to spawn command "{command}"', [str(exc)]) from exc

    stderr = (result.stderr or b"").decode("utf-8", errors="replace").strip()

    if result.returncode in _NOT_FOUND_EXIT_CODES:
        raise CommandNotFoundError(command)
    if result.returncode != 0:
        raise CommandFailedError(command, result.returncode, stderr)

    return result.stdout or b""


def command_exists(name: str) -> bool:
    """Return ``True`` if *name* resolves to an executable on ``PATH``."""
    return shutil.which(name) is not None


# ---------------------------------------------------------------------------
# Rich output helpers
# ---------------------------------------------------------------------------


def print_step(message: str) -> None:
    """Print a full-width rule announcing the next scaffolding step."""
    console.print()
    console.print(Rule(f"[bold bright_cyan] {message} [/bold bright_cyan]", style="bright_cyan"))


def print_summary_table(data: dict[str, str], title: str = "Summary") -> None:
    """Print a two-column key/value summary table.

    Args:
        data: Mapping of label -> value.
        title: Table title.
    """
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("Item", style="dim", no_wrap=True)
    table.add_column("Value")

    for key, value in data.items():
        table.add_row(key, str(value))

    console.print(table)
    console.print()


def print_success(message: str) -> None:
    """Print a green success message."""
    console.print(f"[bold green]{message}[/bold green]")


def print_error(message: str, problems: list[str] | None = None) -> None:
    """Print a red error message followed by each problem, indented."""
    console.print()
    console.print(Text(message, style="bold red"))
    for problem in problems or []:
        console.print(f"  {problem}", highlight=False, markup=False)


def print_warning(message: str) -> None:
    """Print a yellow warning message."""
    console.print(f"[bold yellow]{message}[/bold yellow]")
