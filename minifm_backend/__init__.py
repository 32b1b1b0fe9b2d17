"""Backend for the MiniFM browser file manager.

This package intentionally keeps FastAPI route handlers thin:
- settings + root directory validation
- safe path resolution beneath the root
- filesystem operations (list/read/write/delete/upload)
- directory ZIP export

Security note:
Every client path is resolved to a canonical path and must stay inside the
configured root. Never log or expose absolute filesystem paths in responses.
"""
from __future__ import annotations

from .app import create_app
from .config import FileManagerSettings
from .errors import RootNotFoundError
from .filesystem import FileManager

__all__ = ["FileManager", "FileManagerSettings", "RootNotFoundError", "create_app"]
