"""Project name and path validation.

Shuttle project names end up in deployment URLs, so they are restricted to
alphanumerics and hyphens, may not be profane, may not collide with the
platform's own names, and may not start or end with a hyphen.
"""

from __future__ import annotations

import re
import secrets
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9-]+$")
_WORDLIST_PATH = Path(__file__).parent / "data" / "profanity.txt"

RESERVED_NAMES = frozenset({"shuttle", "shuttleapp"})

# Entries that may already exist in a target directory without conflicting
# with the generated project.
SAFE_ENTRIES = frozenset({
    ".DS_Store",
    ".git",
    ".gitignore",
    ".idea",
    ".vscode",
    "LICENSE",
    "README.md",
    "Thumbs.db",
})


@dataclass
class ValidationResult:
    valid: bool
    problems: list[str] = field(default_factory=list)


@dataclass
class PathCheckResult:
    safe: bool
    problems: list[str] = field(default_factory=list)


@lru_cache(maxsize=1)
def _profanity_wordlist() -> tuple[str, ...]:
    lines = _WORDLIST_PATH.read_text(encoding="utf-8").splitlines()
    return tuple(
        word.strip().lower()
        for word in lines
        if word.strip() and not word.startswith("#")
    )


def contains_profanity(name: str) -> bool:
    lowered = name.lower()
    return any(word in lowered for word in _profanity_wordlist())


def validate_project_name(name: str) -> ValidationResult:
    """Check *name* against every naming rule and collect all violations.

    Examples::

        validate_project_name("my-app")  -> ValidationResult(valid=True, problems=[])
        validate_project_name("-bad-")   -> problems == ["must not start or end with a hyphen"]
    """
    problems: list[str] = []

    if not _NAME_PATTERN.match(name):
        problems.append("must contain only alphanumeric characters or hyphens")
    if contains_profanity(name):
        problems.append("must not contain profanity")
    if name.lower() in RESERVED_NAMES:
        problems.append("must not be a reserved name")
    if name.startswith("-") or name.endswith("-"):
        problems.append("must not start or end with a hyphen")

    return ValidationResult(valid=not problems, problems=problems)


def append_unique_suffix(project_name: str) -> str:
    """Return ``<project_name>-<6 hex chars>`` for a unique deployment name."""
    return f"{project_name}-{secrets.token_hex(3)}"


def is_path_safe(path: str | Path) -> PathCheckResult:
    """Check that a project can be created at *path* without clobbering files.

    A missing path is safe.  An existing directory is safe if it only holds
    entries from ``SAFE_ENTRIES``; anything else is reported as a conflict.
    """
    target = Path(path)
    if not target.exists():
        return PathCheckResult(safe=True)

    if not target.is_dir():
        return PathCheckResult(safe=False, problems=[f"{target} exists and is not a directory"])

    conflicts = sorted(entry.name for entry in target.iterdir() if entry.name not in SAFE_ENTRIES)
    problems = [f"{name} already exists in the target directory" for name in conflicts]
    return PathCheckResult(safe=not problems, problems=problems)
