from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.staticfiles import StaticFiles

from .config import FileManagerSettings
from .filesystem import FileManager
from .middleware import FileManagerMiddleware
from .routes import FileManagerContext, create_router
from .template import PageTemplate


log = logging.getLogger(__name__)


def build_context(settings: FileManagerSettings) -> FileManagerContext:
    """Validate the root and load the page template once.

    Raises RootNotFoundError when the root directory does not exist.
    """
    manager = FileManager(settings.root, zip_dir=settings.zip_dir, max_upload_bytes=settings.max_upload_bytes)
    page = PageTemplate.load(settings.html_template)
    return FileManagerContext(manager=manager, page=page, url_prefix=settings.url_prefix)


def mount_file_manager(app: FastAPI, settings: FileManagerSettings) -> FileManagerContext:
    """Attach the file manager to an existing application."""
    ctx = build_context(settings)
    if settings.integration == "middleware":
        app.add_middleware(FileManagerMiddleware, context=ctx)
    else:
        app.include_router(create_router(ctx))
    log.info("File manager mounted at %s (%s)", settings.url_prefix, settings.integration)
    return ctx


def create_app(settings: FileManagerSettings | None = None) -> FastAPI:
    settings = settings or FileManagerSettings.from_env()
    app = FastAPI(title="MiniFM")
    app.state.file_manager = mount_file_manager(app, settings)

    # The page calls the API through an absolute URL; allow other origins too.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Static file hosting of the root (define file manager routes first, then mount at '/').
    if settings.serve_static:
        app.mount("/", StaticFiles(directory=str(settings.root), html=True), name="static")
    return app
