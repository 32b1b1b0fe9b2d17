from __future__ import annotations

import fnmatch
import logging
import os
import tempfile
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import BinaryIO, Iterable

from pydantic import BaseModel, ConfigDict, Field

from .config import ZIP_FILENAME
from .errors import (
    ConflictError,
    InvalidPathError,
    PayloadTooLargeError,
    RootNotFoundError,
    TargetNotFoundError,
)
from .security import is_safe_basename, relative_to_root, resolve_client_path, safe_join
from .zip_utils import write_directory_zip


log = logging.getLogger(__name__)

_COPY_CHUNK = 1024 * 1024
_TMP_PREFIX = ".backup-"


class DirectoryEntry(BaseModel):
    """One row of a directory listing, serialized with the front end's field names."""

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    name: str = Field(alias="Name")
    length: int = Field(alias="Length")
    last_modified: datetime = Field(alias="LastModified")
    is_directory: bool = Field(alias="IsDirectory")

    @classmethod
    def from_path(cls, path: Path) -> "DirectoryEntry":
        st = path.stat()
        is_dir = path.is_dir()
        return cls(
            name=path.name,
            length=-1 if is_dir else st.st_size,
            last_modified=datetime.fromtimestamp(st.st_mtime, tz=timezone.utc),
            is_directory=is_dir,
        )


@dataclass(frozen=True)
class UploadedFile:
    filename: str
    stream: BinaryIO


def _decode_text(raw: bytes) -> str:
    # Best-effort decoding: prefer UTF-8 (dropping a BOM), fall back to cp1252/latin1.
    for enc in ("utf-8-sig", "cp1252"):
        try:
            return raw.decode(enc)
        except UnicodeDecodeError:
            continue
    return raw.decode("latin-1")


class FileManager:
    """Filesystem operations confined to a single root directory.

    Every method takes the client-supplied ``path`` string, resolves it
    beneath the root and performs exactly one filesystem action.
    """

    def __init__(self, root: Path | str, zip_dir: Path | str = ".", max_upload_bytes: int | None = None) -> None:
        root_path = Path(root)
        if not root_path.is_dir():
            raise RootNotFoundError(root)
        self.root = root_path.resolve()
        self.zip_dir = Path(zip_dir)
        self.max_upload_bytes = max_upload_bytes

    def _display(self, path: Path) -> str:
        return relative_to_root(self.root, path)

    def resolve(self, path: str | None, follow_symlinks: bool = True) -> Path:
        return resolve_client_path(self.root, path, follow_symlinks=follow_symlinks)

    def resolve_file(self, path: str | None) -> Path:
        full = self.resolve(path)
        if not full.is_file():
            raise TargetNotFoundError("File not found")
        return full

    def resolve_directory(self, path: str | None) -> Path:
        full = self.resolve(path)
        if not full.is_dir():
            raise TargetNotFoundError("Directory not found")
        return full

    def _child(self, directory: Path, name: str | None) -> Path:
        if not is_safe_basename(name or ""):
            raise InvalidPathError("Invalid name")
        return safe_join(directory, name)

    def list_directory(self, path: str | None) -> list[DirectoryEntry]:
        """Directories first, then files, each group sorted by name."""
        directory = self.resolve_directory(path)
        entries = []
        for child in directory.iterdir():
            try:
                entries.append(DirectoryEntry.from_path(child))
            except FileNotFoundError:
                # Removed (or a dangling symlink) between iterdir() and stat().
                continue
        entries.sort(key=lambda e: (not e.is_directory, e.name.lower(), e.name))
        return entries

    def read_text(self, path: str | None) -> str:
        full = self.resolve_file(path)
        return _decode_text(full.read_bytes())

    def write_text(self, path: str | None, name: str | None, text: str | None) -> Path:
        """Create or overwrite ``name`` inside the directory ``path`` as UTF-8."""
        directory = self.resolve_directory(path)
        dest = self._child(directory, name)
        if dest.is_dir():
            raise ConflictError("A folder with this name already exists")
        # newline="" keeps the text byte-for-byte as sent by the browser.
        with dest.open("w", encoding="utf-8", newline="") as fh:
            fh.write(text or "")
        log.info("Saved file %s", self._display(dest))
        return dest

    def delete_file(self, path: str | None) -> None:
        # Unlink the entry itself; for a symlink that is the link, not its target.
        full = self.resolve(path, follow_symlinks=False)
        if not full.is_file():
            raise TargetNotFoundError("File not found")
        full.unlink()
        log.info("Deleted file %s", self._display(full))

    def create_folder(self, path: str | None, name: str | None) -> Path:
        directory = self.resolve_directory(path)
        dest = self._child(directory, name)
        if dest.exists():
            raise ConflictError("Folder already exists")
        dest.mkdir()
        log.info("Created folder %s", self._display(dest))
        return dest

    def delete_folder(self, path: str | None) -> None:
        """Delete an empty directory; the root itself is never deleted.

        A symlinked folder is removed as a link and its target is left alone.
        """
        directory = self.resolve(path, follow_symlinks=False)
        if not directory.is_dir():
            raise TargetNotFoundError("Directory not found")
        if directory == self.root:
            raise InvalidPathError("Cannot delete the root folder")
        if directory.is_symlink():
            directory.unlink()
        else:
            if any(directory.iterdir()):
                raise ConflictError("Folder is not empty")
            directory.rmdir()
        log.info("Deleted folder %s", self._display(directory))

    def save_uploads(self, path: str | None, files: Iterable[UploadedFile]) -> list[Path]:
        """Write each uploaded file into the directory ``path``.

        Names are validated before anything is written, so a bad name in the
        batch leaves the directory untouched.
        """
        directory = self.resolve_directory(path)
        batch = list(files)
        targets = [self._child(directory, upload.filename) for upload in batch]
        written: list[Path] = []
        for upload, dest in zip(batch, targets):
            self._copy_limited(upload.stream, dest)
            written.append(dest)
            log.info("Uploaded file %s", self._display(dest))
        return written

    def _copy_limited(self, stream: BinaryIO, dest: Path) -> None:
        limit = self.max_upload_bytes
        total = 0
        try:
            with dest.open("wb") as out:
                while True:
                    chunk = stream.read(_COPY_CHUNK)
                    if not chunk:
                        break
                    total += len(chunk)
                    if limit is not None and total > limit:
                        raise PayloadTooLargeError("File too large")
                    out.write(chunk)
        except PayloadTooLargeError:
            dest.unlink(missing_ok=True)
            raise

    def _is_backup_artifact(self, path: Path) -> bool:
        """backup.zip or an in-progress .backup-*.zip of any request."""
        if path.parent != self.zip_dir.resolve():
            return False
        return path.name == ZIP_FILENAME or fnmatch.fnmatch(path.name, f"{_TMP_PREFIX}*.zip")

    def build_zip(self, path: str | None) -> Path:
        """Zip the contents of directory ``path`` into ``zip_dir/backup.zip``.

        The archive is built in a temporary file and moved into place.
        """
        directory = self.resolve_directory(path)
        self.zip_dir.mkdir(parents=True, exist_ok=True)
        dest = self.zip_dir / ZIP_FILENAME
        fd, tmp_name = tempfile.mkstemp(prefix=_TMP_PREFIX, suffix=".zip", dir=self.zip_dir)
        os.close(fd)
        tmp_path = Path(tmp_name)
        try:
            write_directory_zip(directory, tmp_path, exclude=self._is_backup_artifact)
            os.replace(tmp_path, dest)
        except BaseException:
            tmp_path.unlink(missing_ok=True)
            raise
        log.info("Built %s for %s", ZIP_FILENAME, self._display(directory))
        return dest
