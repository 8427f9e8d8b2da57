"""Automatic installers for Rust, protoc, and cargo-shuttle.

Each installer looks the current platform (and, for protoc, CPU architecture)
up once in a capability table and shells out to the matching download /
extract / move commands.  Platforms missing from a table raise
``UnsupportedPlatformError`` with a link to the manual install docs.
"""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass
from pathlib import Path
from typing import Callable

from create_shuttle_app.config import ScaffoldConfig, ToolVersions
from create_shuttle_app.errors import ScaffoldError, UnsupportedPlatformError
from create_shuttle_app.utils import command_exists, console, run_command

RUST_DOCS_URL = "https://www.rust-lang.org/tools/install"
SHUTTLE_DOCS_URL = "https://docs.shuttle.rs/introduction/installation"
PROTOC_DOCS_URL = "https://grpc.io/docs/protoc-installation/#install-pre-compiled-binaries-any-os"
PROTOC_WINDOWS_DOCS_URL = "https://docs.shuttle.rs/support/installing-protoc#windows"

RUSTUP_INIT_URL = "https://static.rust-lang.org/rustup/dist/x86_64-pc-windows-msvc/rustup-init.exe"


@dataclass(frozen=True)
class ShuttleTarget:
    """Release asset for one platform."""

    triple: str
    suffix: str = ""


# Capability tables: platform (and arch) -> install strategy.
RUSTUP_TLS_FLAGS: dict[str, str] = {
    "linux": "--tlsv1.3",
    "darwin": "--tlsv1.2",
}

SHUTTLE_TARGETS: dict[str, ShuttleTarget] = {
    "linux": ShuttleTarget("x86_64-unknown-linux-gnu"),
    "darwin": ShuttleTarget("x86_64-apple-darwin"),
    "windows": ShuttleTarget("x86_64-pc-windows-msvc", ".exe"),
}

PROTOC_PLATFORMS: dict[str, str] = {
    "linux": "linux",
    "darwin": "osx",
}

PROTOC_ARCHES: dict[str, str] = {
    "x86_64": "x86_64",
    "amd64": "x86_64",
    "x64": "x86_64",
    "arm64": "aarch_64",
    "aarch64": "aarch_64",
}


def current_system() -> str:
    """Return ``"linux"``, ``"darwin"``, ``"windows"``, or another lowercased OS name."""
    return platform.system().lower()


def current_machine() -> str:
    return platform.machine().lower()


# ---------------------------------------------------------------------------
# Rust
# ---------------------------------------------------------------------------


def install_rust(versions: ToolVersions | None = None, system: str | None = None) -> None:
    """Install Rust through rustup.

    Raises:
        UnsupportedPlatformError: If the platform is not linux, macOS or Windows.
    """
    versions = versions or ToolVersions()
    system = system or current_system()

    if system in RUSTUP_TLS_FLAGS:
        run_command(
            f"curl --proto '=https' {RUSTUP_TLS_FLAGS[system]} https://sh.rustup.rs -sSf"
            f" | bash -s -- -y --default-toolchain {versions.rustc}",
            stdout=None,
        )
        return

    if system == "windows":
        tmp_dir = Path.home() / "tmprustup"
        rm_command = "rm -r" if command_exists("rm") else "rd /s /q"
        run_command(
            f"curl -s --create-dirs -O --output-dir {tmp_dir} {RUSTUP_INIT_URL}"
            f" && {tmp_dir / 'rustup-init.exe'} --default-toolchain {versions.rustc}"
            f" && {rm_command} {tmp_dir}",
            stdout=None,
        )
        return

    raise UnsupportedPlatformError("Rust", system, RUST_DOCS_URL)


# ---------------------------------------------------------------------------
# cargo-shuttle
# ---------------------------------------------------------------------------


def find_cargo_bin_dir(cargo_home: str | Path | None = None) -> Path:
    """Locate ``$CARGO_HOME/bin``.

    An explicit *cargo_home* (or the ``CARGO_HOME`` environment variable)
    wins; otherwise the default ``~/.cargo`` is used if it exists.

    Raises:
        ScaffoldError: If no cargo home directory can be found.
    """
    override = cargo_home or os.environ.get("CARGO_HOME")
    if override:
        return Path(override) / "bin"

    default = Path.home() / ".cargo"
    if default.exists():
        return default / "bin"

    raise ScaffoldError(
        "Failed to find the cargo home directory",
        ["Set CARGO_HOME or install Rust with rustup first."],
    )


def shuttle_install_command(
    target: ShuttleTarget,
    versions: ToolVersions,
    cargo_bin_dir: Path,
) -> str:
    """Build the shell pipeline that installs a cargo-shuttle release binary."""
    archive = f"cargo-shuttle-{versions.shuttle_tag}-{target.triple}.tar.gz"
    url = f"{versions.shuttle_download_url}{archive}"
    bin_dir = f"cargo-shuttle-{target.triple}-{versions.shuttle_tag}"
    binary = f"cargo-shuttle{target.suffix}"

    return (
        f"curl -s -OL {url}"
        f" && tar -xzf {archive} {bin_dir}/{binary}"
        f" && mv {bin_dir}/{binary} {cargo_bin_dir / binary}"
        f" && rm -rf {archive} {bin_dir}"
    )


def install_shuttle(
    versions: ToolVersions | None = None,
    system: str | None = None,
    cargo_home: str | Path | None = None,
) -> None:
    """Install cargo-shuttle from the GitHub release binaries.

    On Windows without coreutils ``mv``/``rm`` this falls back to
    ``cargo install``.

    Raises:
        UnsupportedPlatformError: If the platform is not linux, macOS or Windows.
    """
    versions = versions or ToolVersions()
    system = system or current_system()

    target = SHUTTLE_TARGETS.get(system)
    if target is None:
        raise UnsupportedPlatformError("cargo-shuttle", system, SHUTTLE_DOCS_URL)

    if system == "windows" and not (command_exists("mv") and command_exists("rm")):
        console.print("  [dim]coreutils not found, installing cargo-shuttle with cargo[/dim]")
        run_command(
            "cargo",
            ["install", "cargo-shuttle", "--version", versions.shuttle],
            stdout=None,
        )
        return

    command = shuttle_install_command(target, versions, find_cargo_bin_dir(cargo_home))
    run_command(command, stdout=None)


# ---------------------------------------------------------------------------
# protoc
# ---------------------------------------------------------------------------


def protoc_install_command(os_name: str, arch: str, versions: ToolVersions) -> str:
    """Build the shell pipeline that unpacks a protoc release into /usr/local."""
    archive = f"protoc-{versions.protoc_short}-{os_name}-{arch}.zip"
    url = (
        "https://github.com/protocolbuffers/protobuf/releases/download/"
        f"v{versions.protoc_short}/{archive}"
    )
    return (
        f"curl -OL {url}"
        f" && sudo unzip -o {archive} -d /usr/local bin/protoc"
        f" && sudo unzip -o {archive} -d /usr/local 'include/*'"
        f" && rm -f {archive}"
    )


def install_protoc(
    versions: ToolVersions | None = None,
    system: str | None = None,
    machine: str | None = None,
) -> None:
    """Install protoc from the protobuf release archives.

    Raises:
        UnsupportedPlatformError: If the CPU architecture is not x86_64 or
            arm64, or the platform is not linux or macOS.
    """
    versions = versions or ToolVersions()
    system = system or current_system()
    machine = machine or current_machine()

    arch = PROTOC_ARCHES.get(machine)
    if arch is None:
        raise UnsupportedPlatformError("protoc", machine, PROTOC_DOCS_URL)

    os_name = PROTOC_PLATFORMS.get(system)
    if os_name is None:
        docs = PROTOC_WINDOWS_DOCS_URL if system == "windows" else PROTOC_DOCS_URL
        raise UnsupportedPlatformError("protoc", system, docs)

    run_command(protoc_install_command(os_name, arch, versions), stdout=None)


# ---------------------------------------------------------------------------
# Toolchain table
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Dependency:
    """A native tool the generated project needs."""

    name: str
    command: str
    constraint: str
    install: Callable[[ScaffoldConfig], None]


def toolchain(config: ScaffoldConfig) -> list[Dependency]:
    """Return the native dependencies in the order they must be installed."""
    versions = config.versions
    return [
        Dependency(
            "Rust",
            "rustc",
            f">={versions.rustc}",
            lambda c: install_rust(c.versions),
        ),
        Dependency(
            "protoc",
            "protoc",
            f">={versions.protoc}",
            lambda c: install_protoc(c.versions),
        ),
        Dependency(
            "cargo-shuttle",
            "cargo-shuttle",
            f">={versions.shuttle}",
            lambda c: install_shuttle(c.versions, cargo_home=c.cargo_home),
        ),
    ]
