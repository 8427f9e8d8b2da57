"""Download and unpack template repositories from GitHub.

A template is addressed by a repository URL that may carry a sub-path, e.g.
``https://github.com/shuttle-hq/examples/axum/static-next-server``.  The
repository's branch snapshot is fetched as a ZIP archive, and only the
requested sub-path is extracted into the destination directory.
"""

from __future__ import annotations

import io
import re
import shutil
import zipfile
from pathlib import Path

import httpx

from create_shuttle_app.errors import ScaffoldError

DEFAULT_BRANCH = "main"

# scheme, "", host, owner, repository
_REPOSITORY_SEGMENTS = 5


def parse_repository_url(repository: str) -> tuple[str, str]:
    """Split a template URL into the ZIP snapshot URL and the sub-path.

    Examples::

        parse_repository_url("https://github.com/org/repo.git")
            -> ("https://github.com/org/repo/archive/refs/heads/main.zip", "")
        parse_repository_url("https://github.com/org/repo/tree/dev/a/b")
            -> ("https://github.com/org/repo/archive/refs/heads/dev.zip", "a/b")
    """
    parts = repository.strip().split("/")
    root = "/".join(parts[:_REPOSITORY_SEGMENTS])
    rest = [segment for segment in parts[_REPOSITORY_SEGMENTS:] if segment]

    root = re.sub(r"\.git$", "", root)

    branch = DEFAULT_BRANCH
    if len(rest) >= 2 and rest[0] == "tree":
        branch = rest[1]
        rest = rest[2:]

    return f"{root}/archive/refs/heads/{branch}.zip", "/".join(rest)


async def download_archive(url: str, client: httpx.AsyncClient | None = None) -> bytes:
    """Fetch *url* and return the whole response body.

    Raises:
        ScaffoldError: On a transport error or any status other than 200.
    """
    owns_client = client is None
    if client is None:
        client = httpx.AsyncClient(follow_redirects=True, timeout=httpx.Timeout(60.0, connect=10.0))

    chunks: list[bytes] = []
    try:
        async with client.stream("GET", url) as response:
            if response.status_code != 200:
                raise ScaffoldError(
                    f'Failed to download template from "{url}"',
                    [response.reason_phrase or str(response.status_code)],
                )
            async for chunk in response.aiter_bytes():
                chunks.append(chunk)
    except httpx.HTTPError as exc:
        raise ScaffoldError(f'Failed to clone template from "{url}"', [str(exc)]) from exc
    finally:
        if owns_client:
            await client.aclose()

    return b"".join(chunks)


def _strip_archive_root(name: str) -> str:
    """Drop the top-level ``<repo>-<branch>/`` segment of an archive entry."""
    segments = [segment for segment in name.split("/") if segment]
    return "/".join(segments[1:])


def _safe_target(destination: Path, relative: str) -> Path:
    target = (destination / relative).resolve()
    if target != destination and destination not in target.parents:
        raise ScaffoldError(f'Archive entry "{relative}" escapes the destination directory')
    return target


def extract_archive(data: bytes, relative_path: str, destination: Path) -> list[Path]:
    """Extract *relative_path* of a repository snapshot into *destination*.

    With an empty *relative_path* the whole repository is extracted.  Paths
    are written relative to the requested entry, so no archive wrapper
    directories are created.  Existing files are overwritten.

    Returns:
        The files written, in archive order.

    Raises:
        ScaffoldError: If the archive is unreadable or *relative_path* is
            not in it.
    """
    with zipfile.ZipFile(io.BytesIO(data)) as archive:
        entries = archive.infolist()
        if not entries:
            raise ScaffoldError("Template archive is empty")

        wanted = relative_path.strip("/")
        if wanted:
            file_match = next(
                (e for e in entries if not e.is_dir() and _strip_archive_root(e.filename) == wanted),
                None,
            )
            dir_prefix = wanted + "/"
            members = [e for e in entries if _strip_archive_root(e.filename).startswith(dir_prefix)]
            if file_match is None and not members:
                raise ScaffoldError(f'Could not find "{wanted}" in specified template archive')
        else:
            file_match = None
            dir_prefix = ""
            members = entries

        destination = destination.resolve()
        destination.mkdir(parents=True, exist_ok=True)
        written: list[Path] = []

        if file_match is not None:
            members = [file_match]
            dir_prefix = wanted.rsplit("/", 1)[0] + "/" if "/" in wanted else ""

        for entry in members:
            relative = _strip_archive_root(entry.filename)[len(dir_prefix):]
            if not relative:
                continue
            target = _safe_target(destination, relative)
            if entry.is_dir():
                target.mkdir(parents=True, exist_ok=True)
                continue
            target.parent.mkdir(parents=True, exist_ok=True)
            with archive.open(entry) as source, open(target, "wb") as sink:
                shutil.copyfileobj(source, sink)
            written.append(target)

    return written


async def clone_example(
    repository: str,
    path: str | Path,
    *,
    client: httpx.AsyncClient | None = None,
) -> Path:
    """Populate *path* with a template repository (or a sub-path of it).

    Args:
        repository: GitHub URL, optionally followed by a sub-path.
        path: Destination directory; created if missing.
        client: Optional ``httpx.AsyncClient`` to issue the request with.

    Returns:
        The resolved destination directory.

    Raises:
        ScaffoldError: If the download fails or extraction fails.  Nothing
            is written to disk when the download fails.
    """
    archive_url, relative_path = parse_repository_url(repository)
    data = await download_archive(archive_url, client)

    destination = Path(path)
    try:
        extract_archive(data, relative_path, destination)
    except Exception as exc:
        cause = exc.message if isinstance(exc, ScaffoldError) else str(exc)
        raise ScaffoldError("Failed to extract template", [cause]) from exc

    return destination.resolve()


# ---------------------------------------------------------------------------
# Layout normalisation
# ---------------------------------------------------------------------------


def relocate_file(root: Path, filename: str, subdirectory: str) -> Path | None:
    """Move ``root/filename`` into ``root/subdirectory`` if both exist.

    Returns:
        The new location, or ``None`` if nothing was moved.
    """
    source = root / filename
    target_dir = root / subdirectory
    if not source.is_file() or not target_dir.is_dir():
        return None

    target = target_dir / filename
    shutil.move(str(source), str(target))
    return target
