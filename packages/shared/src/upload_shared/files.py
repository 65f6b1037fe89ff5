"""
Filesystem helpers for replacing an upload with its WebP version.
"""

from __future__ import annotations

import logging
from pathlib import Path
from urllib.parse import urlsplit, urlunsplit

from .errors import DeleteFailed

logger = logging.getLogger(__name__)

WEBP_EXT = ".webp"


def has_webp_ext(path: str | Path) -> bool:
    return Path(path).suffix.lower() == WEBP_EXT


def unique_filename(directory: Path, filename: str) -> str:
    """
    Return a name for `filename` that doesn't exist yet in `directory`.

    The name is used as given; the host has already sanitised it. Collisions
    get a numeric suffix on the stem: photo.webp, photo-1.webp, ...
    """
    stem, suffix = Path(filename).stem, Path(filename).suffix

    candidate = filename
    n = 1
    while (directory / candidate).exists():
        candidate = f"{stem}-{n}{suffix}"
        n += 1

    if candidate != filename:
        logger.debug("%s exists in %s, using %s", filename, directory, candidate)
    return candidate


def unique_webp_target(original: Path) -> Path:
    """Sibling of `original` with a .webp extension and a collision-free name."""
    directory = original.parent
    return directory / unique_filename(directory, original.stem + WEBP_EXT)


def delete_file(path: Path) -> None:
    """
    Remove a file if it exists.

    Raises DeleteFailed when the file is there but can't be removed.
    """
    if not path.is_file():
        return
    try:
        path.unlink()
    except OSError as e:
        raise DeleteFailed(f"Failed to delete {path}: {e}") from e


def replace_url_basename(url: str, new_basename: str) -> str:
    """Swap the last path segment of `url`, keeping scheme, host, query and fragment."""
    parts = urlsplit(url)
    head, sep, _ = parts.path.rpartition("/")
    path = f"{head}{sep}{new_basename}"
    return urlunsplit((parts.scheme, parts.netloc, path, parts.query, parts.fragment))
