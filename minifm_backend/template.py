from __future__ import annotations

import logging
from dataclasses import dataclass
from importlib import resources
from pathlib import Path

from .config import API_URL_TOKEN


log = logging.getLogger(__name__)

BUILTIN_TEMPLATE = "filemanager.html"


def load_builtin_template() -> str:
    return resources.files(__package__).joinpath("static", BUILTIN_TEMPLATE).read_text(encoding="utf-8")


@dataclass(frozen=True)
class PageTemplate:
    """The file manager page, read once at startup.

    ``render`` only substitutes the API URL token; it never mutates the
    template, so concurrent requests share it safely.
    """

    text: str

    @classmethod
    def load(cls, custom_path: Path | None = None) -> "PageTemplate":
        if custom_path is not None and custom_path.is_file():
            log.info("Using custom page template %s", custom_path.name)
            return cls(custom_path.read_text(encoding="utf-8"))
        return cls(load_builtin_template())

    def render(self, api_url: str) -> str:
        return self.text.replace(API_URL_TOKEN, api_url)


def build_api_url(base_url: str, url_prefix: str) -> str:
    """scheme://host + prefix, from a request base URL such as "http://host:8010/"."""
    return f"{base_url.rstrip('/')}{url_prefix}"
