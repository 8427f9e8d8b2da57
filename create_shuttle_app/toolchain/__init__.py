"""Native toolchain detection and installation (Rust, protoc, cargo-shuttle)."""

from create_shuttle_app.toolchain.checker import is_installed, normalize_version, satisfies
from create_shuttle_app.toolchain.installers import (
    Dependency,
    find_cargo_bin_dir,
    install_protoc,
    install_rust,
    install_shuttle,
    toolchain,
)

__all__ = [
    "Dependency",
    "find_cargo_bin_dir",
    "install_protoc",
    "install_rust",
    "install_shuttle",
    "is_installed",
    "normalize_version",
    "satisfies",
    "toolchain",
]
