"""Exceptions raised by file manager operations."""
from __future__ import annotations


class RootNotFoundError(FileNotFoundError):
    """Raised at construction when the root directory does not exist."""

    def __init__(self, root: object) -> None:
        super().__init__(f'"{root}" directory not exist!')


class FileManagerError(Exception):
    """Base class for expected, client-facing failures.

    Carries the HTTP status code the request should be answered with.
    """

    status_code = 400

    def __init__(self, detail: str) -> None:
        super().__init__(detail)
        self.detail = detail


class InvalidPathError(FileManagerError):
    """Client path or name would leave the root, or is malformed."""

    status_code = 400


class TargetNotFoundError(FileManagerError):
    status_code = 404


class ConflictError(FileManagerError):
    status_code = 409


class PayloadTooLargeError(FileManagerError):
    status_code = 413
