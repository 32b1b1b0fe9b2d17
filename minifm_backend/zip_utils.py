from __future__ import annotations

import os
import zipfile
from pathlib import Path
from typing import Callable, Iterable


def iter_directory_members(directory: Path) -> Iterable[tuple[Path, str]]:
    """Yield (path, arcname) for everything under directory, parents first.

    Directories get a trailing "/" arcname so empty folders survive the
    round trip. Symlinked directories are not followed.
    """
    directory = directory.resolve()
    for current, dirnames, filenames in os.walk(directory):
        dirnames.sort()
        base = Path(current)
        for name in dirnames:
            path = base / name
            yield path, path.relative_to(directory).as_posix() + "/"
        for name in sorted(filenames):
            path = base / name
            yield path, path.relative_to(directory).as_posix()


def write_directory_zip(directory: Path, dest: Path, exclude: Callable[[Path], bool] | None = None) -> int:
    """Write the contents of directory (not the directory itself) to dest.

    Returns the number of entries written. Resolved paths for which
    ``exclude`` returns True are skipped.
    """
    root = directory.resolve()
    count = 0
    with zipfile.ZipFile(dest, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for path, arcname in iter_directory_members(directory):
            resolved = path.resolve()
            if exclude is not None and exclude(resolved):
                continue
            if resolved != root and root not in resolved.parents:
                # symlink leading out of the tree
                continue
            if arcname.endswith("/") or path.is_file():
                zf.write(path, arcname)
            else:
                # sockets, fifos, dangling links
                continue
            count += 1
    return count
