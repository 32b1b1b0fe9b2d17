from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path


# Directory served by the file manager.
# Default: ./wwwroot relative to the working directory.
# Override with env var MINIFM_ROOT.
DEFAULT_ROOT = os.environ.get("MINIFM_ROOT") or "wwwroot"

# URL prefix the file manager is mounted under.
DEFAULT_URL_PREFIX = os.environ.get("MINIFM_URL_PREFIX") or "/filemanager"

# Optional HTML page replacing the built-in one (ignored if the file is missing).
DEFAULT_HTML_TEMPLATE = os.environ.get("MINIFM_HTML_TEMPLATE", "filemanager.html")

# Where backup.zip is written for directory downloads.
DEFAULT_ZIP_DIR = os.environ.get("MINIFM_ZIP_DIR") or "."

# Upload limit per file (best-effort; also enforced by proxy/browser typically).
MAX_UPLOAD_BYTES = int(os.environ.get("MINIFM_MAX_UPLOAD_BYTES", str(100 * 1024 * 1024)))  # 100MB

# "router" registers endpoints, "middleware" intercepts requests under the prefix.
DEFAULT_INTEGRATION = os.environ.get("MINIFM_INTEGRATION", "router")

# Mount the root directory as a static site at "/".
SERVE_STATIC = os.environ.get("MINIFM_SERVE_STATIC", "1").strip().lower() not in {"0", "false", "no", "off"}

ZIP_FILENAME = "backup.zip"
API_URL_TOKEN = "{@apiUrl}"
INTEGRATIONS = ("router", "middleware")


def normalize_url_prefix(prefix: str) -> str:
    """Return the prefix with exactly one leading slash and no trailing slash."""
    if not isinstance(prefix, str):
        raise ValueError("Invalid URL prefix")
    cleaned = prefix.strip().strip("/")
    if not cleaned:
        raise ValueError("URL prefix must not be empty")
    return f"/{cleaned}"


@dataclass(frozen=True)
class FileManagerSettings:
    root: Path
    url_prefix: str = DEFAULT_URL_PREFIX
    html_template: Path | None = None
    zip_dir: Path = field(default_factory=lambda: Path(DEFAULT_ZIP_DIR))
    max_upload_bytes: int = MAX_UPLOAD_BYTES
    integration: str = DEFAULT_INTEGRATION
    serve_static: bool = False

    def __post_init__(self) -> None:
        # Frozen dataclass: normalize through object.__setattr__.
        object.__setattr__(self, "root", Path(self.root))
        object.__setattr__(self, "url_prefix", normalize_url_prefix(self.url_prefix))
        object.__setattr__(self, "zip_dir", Path(self.zip_dir))
        if self.html_template is not None:
            object.__setattr__(self, "html_template", Path(self.html_template))
        if self.integration not in INTEGRATIONS:
            raise ValueError(f"Unknown integration {self.integration!r}")
        if self.max_upload_bytes <= 0:
            raise ValueError("max_upload_bytes must be positive")

    @classmethod
    def from_env(cls) -> "FileManagerSettings":
        return cls(
            root=Path(DEFAULT_ROOT),
            url_prefix=DEFAULT_URL_PREFIX,
            html_template=Path(DEFAULT_HTML_TEMPLATE) if DEFAULT_HTML_TEMPLATE else None,
            zip_dir=Path(DEFAULT_ZIP_DIR),
            max_upload_bytes=MAX_UPLOAD_BYTES,
            integration=DEFAULT_INTEGRATION,
            serve_static=SERVE_STATIC,
        )
