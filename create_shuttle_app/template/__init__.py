"""Template repository fetching (GitHub ZIP snapshots)."""

from create_shuttle_app.template.fetcher import (
    clone_example,
    download_archive,
    extract_archive,
    parse_repository_url,
    relocate_file,
)

__all__ = [
    "clone_example",
    "download_archive",
    "extract_archive",
    "parse_repository_url",
    "relocate_file",
]
