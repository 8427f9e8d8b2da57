"""create-shuttle-app orchestrator.

Bootstraps a Next.js frontend with a Shuttle backend, one step after another:

1. TOOLCHAIN -- check (and offer to install) rustc, protoc, cargo-shuttle.
2. NAME      -- resolve and validate the project directory.
3. FRONTEND  -- run create-next-app.
4. BACKEND   -- download the Shuttle template into ``backend/``.
5. PATCH     -- write Shuttle.toml, rewrite package.json scripts, fix next.config.

Usage::

    create-shuttle-app my-app
    create-shuttle-app my-app --ts --eslint --shuttle-example https://github.com/org/repo/sub
    python -m create_shuttle_app --fullstack-example saas my-saas
"""

from __future__ import annotations

import argparse
import asyncio
import signal
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

import httpx
from rich.panel import Panel
from rich.prompt import Confirm, Prompt

from create_shuttle_app import __version__
from create_shuttle_app.config import FULLSTACK_EXAMPLES, ScaffoldConfig
from create_shuttle_app.errors import ScaffoldError
from create_shuttle_app.scaffolder import (
    TemplateRenderer,
    append_unique_suffix,
    get_pkg_manager,
    install_dependencies,
    install_dev_dependency,
    is_path_safe,
    patch_next_config,
    patch_package,
    validate_project_name,
    write_shuttle_toml,
)
from create_shuttle_app.template import clone_example, relocate_file
from create_shuttle_app.toolchain import is_installed, toolchain
from create_shuttle_app.utils import (
    command_exists,
    console,
    print_error,
    print_step,
    print_success,
    print_summary_table,
    print_warning,
    run_command,
)

NODE_DOCS_URL = "https://nodejs.org/en/download"


class Scaffolder:
    """Runs the scaffolding steps for one project.

    All run state lives on the instance: the ``config`` built by the CLI
    (whose ``project_path`` is filled in by the name prompt if needed) and a
    ``state`` dict that records what each step produced.

    Attributes:
        config: Settings for this run.
        state: Results accumulated by the steps, returned by ``run``.
        client: Optional HTTP client used for template downloads.
    """

    def __init__(self, config: ScaffoldConfig, client: httpx.AsyncClient | None = None) -> None:
        self.config = config
        self.client = client
        self.renderer = TemplateRenderer()
        self.state: dict[str, Any] = {
            "started_at": datetime.now(timezone.utc).isoformat(),
            "package_manager": get_pkg_manager(config.user_agent),
            "steps_completed": [],
            "success": False,
        }

    # ------------------------------------------------------------------
    # Steps
    # ------------------------------------------------------------------

    def check_toolchain(self) -> None:
        """Make sure every native dependency is installed, installing on request.

        Raises:
            ScaffoldError: If the user declines an install, or Node.js is missing.
        """
        for dependency in toolchain(self.config):
            if is_installed(dependency.command, dependency.constraint):
                console.print(f"  [green]+[/green] {dependency.name} {dependency.constraint}")
                continue

            wants_install = Confirm.ask(
                f"create-shuttle-app requires {dependency.name} {dependency.constraint}, "
                "do you wish to install it now?",
                default=True,
                console=console,
            )
            if not wants_install:
                raise ScaffoldError(f"{dependency.command} is required")

            dependency.install(self.config)
            console.print(f"  [green]+[/green] Installed {dependency.name}")

        if not command_exists("npx"):
            raise ScaffoldError(
                "Node.js is required",
                [f"Install Node.js from {NODE_DOCS_URL} and run create-shuttle-app again."],
            )

        self.state["steps_completed"].append("toolchain")

    def _prompt_project_path(self) -> Path | None:
        """Ask for the project directory until the name passes validation."""
        while True:
            answer = Prompt.ask("What is your project named?", default="my-app", console=console).strip()
            if not answer:
                return None

            validation = validate_project_name(Path(answer).expanduser().resolve().name)
            if validation.valid:
                return Path(answer)
            print_warning(f"Invalid project name: {validation.problems[0]}")

    def resolve_project_path(self) -> Path:
        """Settle the project directory and check it can be created.

        Raises:
            ScaffoldError: If no directory was given, the name is invalid, or
                the directory already holds conflicting files.
        """
        if self.config.project_path is None:
            self.config.project_path = self._prompt_project_path()

        if self.config.project_path is None:
            raise ScaffoldError(
                "Please specify the project directory:",
                ["create-shuttle-app <project-directory>"],
            )

        resolved = self.config.resolved_path
        validation = validate_project_name(resolved.name)
        if not validation.valid:
            raise ScaffoldError(f'Invalid project name "{resolved.name}"', validation.problems)

        path_check = is_path_safe(resolved)
        if not path_check.safe:
            raise ScaffoldError(f"Cannot create project at path {resolved}", path_check.problems)

        self.state["project_path"] = str(resolved)
        self.state["deployment_name"] = append_unique_suffix(resolved.name)
        self.state["steps_completed"].append("name")
        return resolved

    def generate_frontend(self) -> None:
        """Run the pinned create-next-app with the forwarded flags."""
        run_command(
            "npx",
            ["--yes", f"create-next-app@{self.config.next_app_version}", *self.config.next_app_args()],
            stdout=None,
        )
        self.state["steps_completed"].append("frontend")

    async def fetch_backend(self) -> None:
        """Download the Shuttle backend template into ``backend/``."""
        await clone_example(self.config.shuttle_example, self.config.backend_path, client=self.client)
        self.state["steps_completed"].append("backend")

    async def fetch_fullstack(self) -> None:
        """Download a preset full-stack template into the project root."""
        url = self.config.fullstack_url
        if url is None:
            raise ScaffoldError("No full-stack example selected")

        root = await clone_example(url, self.config.resolved_path, client=self.client)
        relocate_file(root, "Shuttle.toml", "backend")
        install_dependencies(root, self.state["package_manager"])
        self.state["steps_completed"].append("fullstack")

    def write_manifest(self) -> Path:
        """Write ``Shuttle.toml`` with the unique deployment name."""
        target_dir = self.config.backend_path
        if not target_dir.is_dir():
            target_dir = self.config.resolved_path
        path = write_shuttle_toml(target_dir, self.state["deployment_name"], self.renderer)
        self.state["shuttle_toml"] = str(path)
        return path

    def patch_project(self) -> None:
        """Rewrite package.json scripts, add ``concurrently``, fix next.config."""
        project = self.config.resolved_path
        patch_package(project)
        install_dev_dependency(project, self.state["package_manager"])
        self.state["next_config"] = str(patch_next_config(project, self.renderer))
        self.state["steps_completed"].append("patch")

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    async def run(self) -> dict[str, Any]:
        """Execute every step in order.

        Returns:
            The final state dictionary, including a top-level ``success`` flag.

        Raises:
            ScaffoldError: As soon as any step fails; later steps do not run.
        """
        console.print(
            Panel(
                f"[bold bright_cyan]create-shuttle-app[/bold bright_cyan] v{__version__}\n"
                "Next.js frontend + Shuttle backend",
                border_style="bright_cyan",
            )
        )

        print_step("Toolchain")
        self.check_toolchain()

        print_step("Project")
        project = self.resolve_project_path()

        if self.config.fullstack_example:
            print_step(f"Full-stack template: {self.config.fullstack_example}")
            await self.fetch_fullstack()
            self.write_manifest()
        else:
            print_step("Frontend")
            self.generate_frontend()

            print_step("Backend")
            await self.fetch_backend()
            self.write_manifest()

            print_step("Patching project files")
            self.patch_project()

        self.state["success"] = True
        self.state["finished_at"] = datetime.now(timezone.utc).isoformat()
        self._print_final_summary(project)
        return self.state

    def _print_final_summary(self, project: Path) -> None:
        package_manager = self.state["package_manager"]
        console.print()
        print_summary_table(
            {
                "Project": str(project),
                "Shuttle project": self.state["deployment_name"],
                "Package manager": package_manager,
            },
            title="create-shuttle-app",
        )
        print_success(f"Success! Created {project.name} at {project}")
        console.print(
            Panel(
                f"cd {project}\n"
                f"{package_manager} run shuttle-login\n"
                f"{package_manager} run deploy",
                title="[bold]Next steps[/bold]",
                border_style="green",
            )
        )


# ---------------------------------------------------------------------------
# CLI entry point
# ---------------------------------------------------------------------------


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="create-shuttle-app",
        description="Create a Next.js app with a Shuttle backend",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=(
            "Examples:\n"
            "  create-shuttle-app my-app\n"
            "  create-shuttle-app my-app --ts --eslint\n"
            "  create-shuttle-app my-saas --fullstack-example saas\n"
        ),
    )
    parser.add_argument("project_directory", nargs="?", default=None, metavar="project-directory")
    parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--ts", "--typescript",
        dest="typescript",
        action="store_true",
        help="Initialize as a TypeScript project (default)",
    )
    parser.add_argument(
        "--js", "--javascript",
        dest="javascript",
        action="store_true",
        help="Initialize as a JavaScript project",
    )
    parser.add_argument("--eslint", action="store_true", help="Initialize with eslint config")
    parser.add_argument(
        "-e", "--example",
        default=None,
        metavar="NAME_OR_URL",
        help=(
            "An example to bootstrap the app with: an example name from the "
            "official Next.js repo or a GitHub URL (any branch and/or subdirectory)"
        ),
    )
    parser.add_argument(
        "--shuttle-example",
        default=None,
        metavar="GITHUB_URL",
        help="A GitHub URL to bootstrap the Shuttle backend with",
    )
    parser.add_argument(
        "--fullstack-example",
        default=None,
        choices=sorted(FULLSTACK_EXAMPLES),
        help="Bootstrap frontend and backend together from a preset template",
    )
    return parser


def _handle_sigterm(signum: int, frame: Any) -> None:
    sys.exit(0)


def main(argv: list[str] | None = None) -> None:
    """CLI entry point for ``create-shuttle-app`` / ``python -m create_shuttle_app``."""
    args = build_parser().parse_args(argv)
    signal.signal(signal.SIGTERM, _handle_sigterm)

    config = ScaffoldConfig.from_env(
        project_path=Path(args.project_directory) if args.project_directory else None,
        typescript=args.typescript,
        javascript=args.javascript,
        eslint=args.eslint,
        example=args.example,
        shuttle_example=args.shuttle_example,
        fullstack_example=args.fullstack_example,
    )

    try:
        asyncio.run(Scaffolder(config).run())
    except ScaffoldError as exc:
        print_error(exc.message, exc.problems)
        sys.exit(1)
    except EOFError:
        print_error("Aborted: no input available for the prompt")
        sys.exit(1)
    except KeyboardInterrupt:
        console.show_cursor(True)
        console.print()
        sys.exit(0)


if __name__ == "__main__":
    main()
