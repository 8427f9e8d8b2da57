"""Error types raised by create-shuttle-app.

Every failure that should end the run is a ``ScaffoldError``: a human-readable
message plus an optional list of itemised problems.  The CLI entry point is
the only place that catches them, prints them, and exits.
"""

from __future__ import annotations


class ScaffoldError(Exception):
    """Raised when a scaffolding step fails irrecoverably."""

    def __init__(self, message: str, problems: list[str] | None = None) -> None:
        self.message = message
        self.problems = list(problems or [])
        super().__init__(message)


class CommandNotFoundError(ScaffoldError):
    """Raised when the shell cannot find the requested command."""

    def __init__(self, command: str) -> None:
        self.command = command
        super().__init__(f'Could not find command "{command}"')


class CommandFailedError(ScaffoldError):
    """Raised when a command exits with a non-zero status."""

    def __init__(self, command: str, returncode: int, stderr: str = "") -> None:
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        problems = [stderr] if stderr else []
        super().__init__(f'Failed to execute command "{command}"', problems)


class UnsupportedPlatformError(ScaffoldError):
    """Raised when a dependency cannot be installed automatically here."""

    def __init__(self, tool: str, platform_name: str, docs_url: str) -> None:
        self.tool = tool
        self.platform_name = platform_name
        self.docs_url = docs_url
        super().__init__(
            f"create-shuttle-app can't install {tool} automatically on: {platform_name}",
            [
                f'Refer to "{docs_url}" for instructions on installing {tool} manually.',
                f"After installing {tool}, please run create-shuttle-app again.",
            ],
        )
