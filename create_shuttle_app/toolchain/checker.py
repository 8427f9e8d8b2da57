"""Version checks for the native toolchain.

A dependency counts as installed when it is on ``PATH`` and the version it
reports through ``<tool> --version`` satisfies a semver constraint such as
``">=1.65.0"``.
"""

from __future__ import annotations

import re

import semver

from create_shuttle_app.utils import command_exists, run_command

_VERSION_TOKEN = re.compile(r"^v?(\d+(?:\.\d+)*)")

# ``protoc --version`` prints "libprotoc 22.2" for releases after 3.21, dropping
# the major version the constraints are written against.
PROTOC_DEFAULT_MAJOR = "3"


def normalize_version(dependency: str, output: str) -> str | None:
    """Extract the version token from ``--version`` output.

    The first whitespace-separated token that starts with a dotted number is
    taken, without any leading ``v``.  For ``protoc`` a token that does not
    have exactly two separators gets the default major version prepended.

    Examples::

        normalize_version("rustc", "rustc 1.75.0 (82e1608df 2023-12-21)") -> "1.75.0"
        normalize_version("protoc", "libprotoc 22.2") -> "3.22.2"

    Returns:
        The version string, or ``None`` if no token looks like a version.
    """
    for token in output.split():
        match = _VERSION_TOKEN.match(token)
        if match:
            version = match.group(1)
            break
    else:
        return None

    if dependency == "protoc" and version.count(".") != 2:
        version = f"{PROTOC_DEFAULT_MAJOR}.{version}"

    return version


def satisfies(version: str, constraint: str) -> bool:
    """Return ``True`` if *version* matches every comparison in *constraint*.

    Comparisons are comma-separated (``">=1.65.0,<2.0.0"``); a bare version
    means equality.  Missing minor/patch components count as zero.

    Raises:
        ValueError: If *version* or a comparison is not valid semver.
    """
    parsed = semver.Version.parse(version, optional_minor_and_patch=True)
    clauses = [clause.strip() for clause in constraint.split(",") if clause.strip()]
    return all(parsed.match(clause if clause[0] in "<>=!" else f"=={clause}") for clause in clauses)


def is_installed(dependency: str, constraint: str) -> bool:
    """Check whether *dependency* is on ``PATH`` and satisfies *constraint*.

    A missing tool is not an error; it simply yields ``False``.  Neither is
    an unreadable version string, so the caller can offer a reinstall.
    """
    if not command_exists(dependency):
        return False

    output = run_command(f"{dependency} --version").decode("utf-8", errors="replace")
    version = normalize_version(dependency, output)
    if version is None:
        return False

    try:
        return satisfies(version, constraint)
    except ValueError:
        return False
