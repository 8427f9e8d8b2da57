"""create-shuttle-app configuration.

Typed configuration for a single scaffolding run.  The CLI builds one
``ScaffoldConfig`` from its flags and the environment, and the orchestrator
threads it through every step; nothing is stored in module globals.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator

# Preset full-stack templates selectable with ``--fullstack-example``.
FULLSTACK_EXAMPLES: dict[str, str] = {
    "saas": "https://github.com/shuttle-hq/shuttle-examples/fullstack-templates/saas",
}

SHUTTLE_EXAMPLE_URL = "https://github.com/shuttle-hq/examples/axum/static-next-server"


class ToolVersions(BaseModel):
    """Minimum versions of the native toolchain."""

    rustc: str = Field(default="1.65.0")
    shuttle: str = Field(default="0.12.0")
    protoc: str = Field(default="3.21.9")
    protoc_short: str = Field(default="21.9", description="Release tag used in protoc download URLs")

    @property
    def shuttle_tag(self) -> str:
        return f"v{self.shuttle}"

    @property
    def shuttle_download_url(self) -> str:
        """Base URL of the cargo-shuttle GitHub release assets."""
        return f"https://github.com/shuttle-hq/shuttle/releases/download/{self.shuttle_tag}/"


class ScaffoldConfig(BaseModel):
    """Settings for one run of the scaffolder.

    Built once by the CLI entry point (or by ``from_env`` in tests) and then
    passed to ``Scaffolder``.
    """

    project_path: Path | None = Field(default=None)
    typescript: bool = Field(default=False)
    javascript: bool = Field(default=False)
    eslint: bool = Field(default=False)
    example: str | None = Field(default=None, description="Next.js example name or URL")
    shuttle_example: str = Field(default=SHUTTLE_EXAMPLE_URL)
    fullstack_example: str | None = Field(default=None)
    next_app_version: str = Field(default="13.0.6", description="Pinned create-next-app release")
    cargo_home: Path | None = Field(default=None)
    user_agent: str | None = Field(default=None, description="npm_config_user_agent of the caller")
    versions: ToolVersions = Field(default_factory=ToolVersions)

    @field_validator("fullstack_example")
    @classmethod
    def _known_fullstack_example(cls, value: str | None) -> str | None:
        if value is not None and value not in FULLSTACK_EXAMPLES:
            raise ValueError(
                f"unknown full-stack example {value!r} (choose from: {', '.join(FULLSTACK_EXAMPLES)})"
            )
        return value

    # ------------------------------------------------------------------
    # Derived paths (read-only properties)
    # ------------------------------------------------------------------

    @property
    def resolved_path(self) -> Path:
        """Absolute project directory."""
        if self.project_path is None:
            raise ValueError("project_path has not been set")
        return self.project_path.expanduser().resolve()

    @property
    def project_name(self) -> str:
        return self.resolved_path.name

    @property
    def backend_path(self) -> Path:
        return self.resolved_path / "backend"

    @property
    def package_json_path(self) -> Path:
        return self.resolved_path / "package.json"

    @property
    def shuttle_toml_path(self) -> Path:
        return self.backend_path / "Shuttle.toml"

    @property
    def fullstack_url(self) -> str | None:
        """Template URL for the selected full-stack preset, if any."""
        if self.fullstack_example is None:
            return None
        return FULLSTACK_EXAMPLES[self.fullstack_example]

    def next_app_args(self) -> list[str]:
        """Arguments forwarded to ``create-next-app`` (project path last)."""
        args: list[str] = []
        if self.javascript:
            args.append("--js")
        if self.typescript:
            args.append("--ts")
        if self.example:
            args.extend(["--example", self.example])
        if self.eslint:
            args.append("--eslint")
        args.append(str(self.resolved_path))
        return args

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------

    @classmethod
    def from_env(cls, **overrides: Any) -> "ScaffoldConfig":
        """Build a ``ScaffoldConfig`` from environment variables.

        Recognised variables (all optional):
            CARGO_HOME, npm_config_user_agent, CSA_SHUTTLE_EXAMPLE,
            CSA_NEXT_APP_VERSION.

        Keyword *overrides* (typically parsed CLI flags) win over the
        environment; ``None`` values are ignored.
        """
        kwargs: dict[str, Any] = {}
        if os.environ.get("CARGO_HOME"):
            kwargs["cargo_home"] = Path(os.environ["CARGO_HOME"])
        if os.environ.get("npm_config_user_agent"):
            kwargs["user_agent"] = os.environ["npm_config_user_agent"]
        if os.environ.get("CSA_SHUTTLE_EXAMPLE"):
            kwargs["shuttle_example"] = os.environ["CSA_SHUTTLE_EXAMPLE"]
        if os.environ.get("CSA_NEXT_APP_VERSION"):
            kwargs["next_app_version"] = os.environ["CSA_NEXT_APP_VERSION"]

        kwargs.update({key: value for key, value in overrides.items() if value is not None})
        return cls(**kwargs)
