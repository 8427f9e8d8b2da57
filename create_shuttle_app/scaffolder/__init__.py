"""Scaffolder -- validates names and patches generated project files.

Quick usage::

    from create_shuttle_app.scaffolder import patch_next_config, patch_package

    patch_package(project_path)
    patch_next_config(project_path)
"""

from create_shuttle_app.scaffolder.names import (
    append_unique_suffix,
    is_path_safe,
    validate_project_name,
)
from create_shuttle_app.scaffolder.next_config import patch_config_source, patch_next_config
from create_shuttle_app.scaffolder.package import (
    get_pkg_manager,
    install_dependencies,
    install_dev_dependency,
    patch_package,
    write_shuttle_toml,
)
from create_shuttle_app.scaffolder.templates import TemplateRenderer

__all__ = [
    "TemplateRenderer",
    "append_unique_suffix",
    "get_pkg_manager",
    "install_dependencies",
    "install_dev_dependency",
    "is_path_safe",
    "patch_config_source",
    "patch_next_config",
    "patch_package",
    "validate_project_name",
    "write_shuttle_toml",
]
