"""Shared pytest fixtures for the create-shuttle-app test suite.

Provides reusable fixtures for:
- Temporary project directories
- In-memory template archives shaped like GitHub branch snapshots
- A generated Next.js project (package.json + next.config.js)
- A mocked ``run_command`` for code that shells out
"""

from __future__ import annotations

import io
import json
import zipfile
from pathlib import Path
from typing import Callable
from unittest.mock import MagicMock, patch

import pytest


# ---------------------------------------------------------------------------
# Paths & Directories
# ---------------------------------------------------------------------------

@pytest.fixture
def tmp_project_dir(tmp_path: Path) -> Path:
    """Path for a project that does not exist yet (auto-cleanup)."""
    yield tmp_path / "my-app"


@pytest.fixture
def next_project(tmp_path: Path) -> Path:
    """A directory shaped like fresh create-next-app output."""
    project = tmp_path / "next-app"
    project.mkdir()
    (project / "package.json").write_text(
        json.dumps(
            {
                "name": "next-app",
                "version": "0.1.0",
                "private": True,
                "scripts": {"dev": "next dev", "lint": "next lint"},
                "dependencies": {"next": "13.0.6"},
            },
            indent=2,
        ),
        encoding="utf-8",
    )
    (project / "next.config.js").write_text(
        "/** @type {import('next').NextConfig} */\n"
        "const nextConfig = {\n"
        "  reactStrictMode: true,\n"
        "  swcMinify: true,\n"
        "}\n"
        "\n"
        "module.exports = nextConfig\n",
        encoding="utf-8",
    )
    yield project


# ---------------------------------------------------------------------------
# Template archives
# ---------------------------------------------------------------------------

@pytest.fixture
def make_archive() -> Callable[..., bytes]:
    """Build a ZIP snapshot with every entry under ``<root>/``.

    Usage::

        data = make_archive({"axum/app/Cargo.toml": "[package]"})
    """

    def _make(files: dict[str, str], root: str = "examples-main") -> bytes:
        buffer = io.BytesIO()
        with zipfile.ZipFile(buffer, "w") as archive:
            archive.writestr(f"{root}/", "")
            for name, content in files.items():
                archive.writestr(f"{root}/{name}", content)
        return buffer.getvalue()

    return _make


@pytest.fixture
def backend_archive(make_archive) -> bytes:
    """Snapshot of a repository holding the static Next.js server example."""
    return make_archive(
        {
            "README.md": "# examples\n",
            "axum/hello-world/Cargo.toml": "[package]\nname = \"hello-world\"\n",
            "axum/static-next-server/Cargo.toml": "[package]\nname = \"static-next-server\"\n",
            "axum/static-next-server/src/main.rs": "fn main() {}\n",
            "axum/static-next-server/static/.gitkeep": "",
        }
    )


# ---------------------------------------------------------------------------
# Subprocess
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_run_command():
    """Patch ``run_command`` in the installer module; yields the mock."""
    with patch(
        "create_shuttle_app.toolchain.installers.run_command",
        return_value=b"",
    ) as mock:
        yield mock


@pytest.fixture
def fake_completed_process() -> Callable[..., MagicMock]:
    """Factory for objects shaped like ``subprocess.CompletedProcess``."""

    def _make(returncode: int = 0, stdout: bytes | None = b"", stderr: bytes = b"") -> MagicMock:
        result = MagicMock()
        result.returncode = returncode
        result.stdout = stdout
        result.stderr = stderr
        return result

    return _make
