from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath, PureWindowsPath

from .errors import InvalidPathError, TargetNotFoundError


log = logging.getLogger(__name__)


def is_safe_basename(name: str) -> bool:
    """Allow only simple filenames (no directories)."""
    if not isinstance(name, str) or not name:
        return False
    if name in (".", ".."):
        return False
    if name != Path(name).name:
        return False
    if "/" in name or "\\" in name or "\x00" in name:
        return False
    if PureWindowsPath(name).drive:
        return False
    return True


def safe_join(base_dir: Path, *parts: str) -> Path:
    """Join paths and ensure the result stays within base_dir.

    This defends against path traversal when serving or writing user-controlled paths.
    """
    base_dir = base_dir.resolve()
    candidate = base_dir
    for part in parts:
        if "\x00" in part:
            raise InvalidPathError("Invalid path")
        candidate = candidate / part
    resolved = candidate.resolve()
    if resolved == base_dir:
        return resolved
    if base_dir not in resolved.parents:
        raise InvalidPathError("Path traversal attempt")
    return resolved


def _client_parts(path: str | None) -> tuple[str, ...]:
    if path is None:
        # No ?path at all is a non-success, unlike "" which names the root.
        raise TargetNotFoundError("Missing path")
    relative = path.replace("\\", "/").lstrip("/")
    if not relative:
        return ()
    if PureWindowsPath(relative).drive:
        # block drive letters
        log.warning("Rejected path with drive component")
        raise InvalidPathError("Invalid path")
    parts = PurePosixPath(relative).parts
    if ".." in parts:
        log.warning("Rejected path with parent segment: %r", path)
        raise InvalidPathError("Path traversal attempt")
    return parts


def resolve_client_path(root: Path, path: str | None, follow_symlinks: bool = True) -> Path:
    """Resolve the ``path`` query value against root.

    An empty string means the root itself; a missing value raises
    TargetNotFoundError. Leading slashes are ignored so that "/docs/" and
    "docs" name the same directory. Drive paths and ".." segments are
    rejected outright, and the canonical result must stay under root.

    With ``follow_symlinks=False`` only the parent is canonicalized and the
    last segment is kept as given, so a link can be removed without touching
    its target.
    """
    parts = _client_parts(path)
    if not parts:
        return root.resolve()
    try:
        if follow_symlinks:
            return safe_join(root, *parts)
        parent = safe_join(root, *parts[:-1])
        return parent / parts[-1]
    except InvalidPathError:
        log.warning("Rejected path outside root: %r", path)
        raise


def relative_to_root(root: Path, path: Path) -> str:
    """Display form of a resolved path, for logs."""
    rel = path.relative_to(root.resolve()).as_posix()
    return "/" if rel == "." else f"/{rel}"
