"""Fix up ``package.json`` and the backend manifest for Shuttle development.

The npm scripts are rewritten so that ``npm run deploy`` builds the static
Next.js export into ``backend/static`` and deploys the backend with
``cargo shuttle``; ``npm run dev`` runs both halves side by side through
``concurrently``, which is installed as a dev dependency.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Literal

from create_shuttle_app.errors import ScaffoldError
from create_shuttle_app.scaffolder.templates import TemplateRenderer
from create_shuttle_app.utils import run_command

PackageManager = Literal["npm", "pnpm", "yarn"]

DEV_DEPENDENCY = "concurrently"

PACKAGE_SCRIPTS: dict[str, str] = {
    "build": (
        "next build && next export -o ./backend/static"
        " && cargo build --manifest-path ./backend/Cargo.toml"
    ),
    "shuttle-login": "cargo shuttle login --working-directory ./backend/",
    "start": "cargo shuttle project start --working-directory ./backend/",
    "deploy": "npm run build && cargo shuttle deploy --working-directory ./backend/ --allow-dirty",
    "dev": (
        'npm run build && concurrently --names "next, shuttle" --kill-others'
        ' "next dev" "cargo shuttle run --working-directory ./backend/"'
    ),
    "stop": "cargo shuttle project stop --working-directory ./backend/",
}


def patch_package(project_path: str | Path) -> Path:
    """Overwrite the development scripts in ``package.json``.

    Other keys are preserved; the file is rewritten with 4-space indentation.

    Returns:
        Path to the patched manifest.

    Raises:
        ScaffoldError: If the manifest is missing or not a JSON object.
    """
    manifest_path = Path(project_path) / "package.json"
    try:
        packages = json.loads(manifest_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise ScaffoldError(f"Could not find {manifest_path}") from None
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise ScaffoldError(f"Failed to parse {manifest_path}", [str(exc)]) from exc

    if not isinstance(packages, dict):
        raise ScaffoldError(f"Failed to parse {manifest_path}", ["Expected a JSON object."])

    scripts = packages.setdefault("scripts", {})
    if not isinstance(scripts, dict):
        raise ScaffoldError(f"Failed to parse {manifest_path}", ['"scripts" must be an object.'])
    scripts.update(PACKAGE_SCRIPTS)

    manifest_path.write_text(json.dumps(packages, indent=4, ensure_ascii=False), encoding="utf-8")
    return manifest_path


def get_pkg_manager(user_agent: str | None) -> PackageManager:
    """Detect the package manager that launched us from ``npm_config_user_agent``."""
    if user_agent:
        if user_agent.startswith("yarn"):
            return "yarn"
        if user_agent.startswith("pnpm"):
            return "pnpm"
    return "npm"


def dev_dependency_args(package_manager: PackageManager, package: str) -> list[str]:
    if package_manager == "yarn":
        return ["add", "--dev", package]
    return ["install", "--save-dev", package]


def install_dev_dependency(
    project_path: str | Path,
    package_manager: PackageManager,
    package: str = DEV_DEPENDENCY,
) -> None:
    """Install *package* as a dev dependency with the native package manager."""
    run_command(
        package_manager,
        dev_dependency_args(package_manager, package),
        cwd=project_path,
        stdout=None,
    )


def install_dependencies(project_path: str | Path, package_manager: PackageManager) -> None:
    """Install everything listed in ``package.json``."""
    run_command(package_manager, ["install"], cwd=project_path, stdout=None)


def write_shuttle_toml(
    backend_path: str | Path,
    name: str,
    renderer: TemplateRenderer | None = None,
) -> Path:
    """Write ``Shuttle.toml`` naming the Shuttle project."""
    return (renderer or TemplateRenderer()).render_to_file(
        "Shuttle.toml.j2",
        Path(backend_path) / "Shuttle.toml",
        {"name": name},
    )
