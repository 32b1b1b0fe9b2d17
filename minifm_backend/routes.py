from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Awaitable, Callable

from fastapi import APIRouter, Request
from fastapi.responses import FileResponse, HTMLResponse, JSONResponse, PlainTextResponse, Response
from pydantic import BaseModel, ConfigDict, Field
from starlette.datastructures import UploadFile
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import ZIP_FILENAME
from .errors import FileManagerError
from .filesystem import FileManager, UploadedFile
from .template import PageTemplate, build_api_url


log = logging.getLogger(__name__)

NO_STORE = {"Cache-Control": "no-store"}


@dataclass(frozen=True)
class FileManagerContext:
    manager: FileManager
    page: PageTemplate
    url_prefix: str


Handler = Callable[[FileManagerContext, Request], Awaitable[Response]]


class ErrorPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    message: str
    inner_exception: str | None = Field(default=None, alias="innerException")


def _path_param(request: Request) -> str | None:
    return request.query_params.get("path")


def _form_text(value: object) -> str | None:
    # A file part where a text field is expected counts as missing.
    return value if isinstance(value, str) else None


def _empty_ok() -> Response:
    return Response(status_code=200, headers=NO_STORE)


async def index(ctx: FileManagerContext, request: Request) -> Response:
    api_url = build_api_url(str(request.base_url), ctx.url_prefix)
    return HTMLResponse(ctx.page.render(api_url), headers=NO_STORE)


async def list_files(ctx: FileManagerContext, request: Request) -> Response:
    entries = ctx.manager.list_directory(_path_param(request))
    payload = [entry.model_dump(mode="json", by_alias=True) for entry in entries]
    return JSONResponse(payload, headers=NO_STORE)


async def read_file(ctx: FileManagerContext, request: Request) -> Response:
    text = ctx.manager.read_text(_path_param(request))
    return PlainTextResponse(text, headers=NO_STORE)


async def save_file(ctx: FileManagerContext, request: Request) -> Response:
    form = await request.form()
    try:
        ctx.manager.write_text(_path_param(request), _form_text(form.get("Name")), _form_text(form.get("Text")))
    finally:
        await form.close()
    return _empty_ok()


async def delete_file(ctx: FileManagerContext, request: Request) -> Response:
    ctx.manager.delete_file(_path_param(request))
    return _empty_ok()


async def add_folder(ctx: FileManagerContext, request: Request) -> Response:
    form = await request.form()
    try:
        ctx.manager.create_folder(_path_param(request), _form_text(form.get("Name")))
    finally:
        await form.close()
    return _empty_ok()


async def delete_folder(ctx: FileManagerContext, request: Request) -> Response:
    ctx.manager.delete_folder(_path_param(request))
    return _empty_ok()


async def upload_files(ctx: FileManagerContext, request: Request) -> Response:
    form = await request.form()
    try:
        uploads = [
            UploadedFile(filename=value.filename or "", stream=value.file)
            for _, value in form.multi_items()
            if isinstance(value, UploadFile)
        ]
        ctx.manager.save_uploads(_path_param(request), uploads)
    finally:
        await form.close()
    return _empty_ok()


async def download(ctx: FileManagerContext, request: Request) -> Response:
    archive = ctx.manager.build_zip(_path_param(request))
    # Read back now: another request may replace backup.zip while we stream.
    zip_bytes = archive.read_bytes()
    headers = {
        "Content-Disposition": f'attachment; filename="{ZIP_FILENAME}"',
        **NO_STORE,
    }
    return Response(content=zip_bytes, media_type="application/zip", headers=headers)


async def view_file(ctx: FileManagerContext, request: Request) -> Response:
    full = ctx.manager.resolve_file(_path_param(request))
    # FileResponse guesses the media type from the suffix; add nosniff for safety.
    return FileResponse(full, headers={**NO_STORE, "X-Content-Type-Options": "nosniff"})


# (method, path below the prefix) -> handler
ROUTES: dict[tuple[str, str], Handler] = {
    ("GET", ""): index,
    ("GET", "/"): index,
    ("GET", "/files"): list_files,
    ("GET", "/file"): read_file,
    ("POST", "/file"): save_file,
    ("DELETE", "/file"): delete_file,
    ("POST", "/folder"): add_folder,
    ("DELETE", "/folder"): delete_folder,
    ("POST", "/upload"): upload_files,
    ("GET", "/download"): download,
    ("GET", "/view"): view_file,
}


def match_route(url_prefix: str, method: str, path: str) -> Handler | None:
    """Look up the handler for a request path, or None when it is not ours."""
    if path != url_prefix and not path.startswith(url_prefix + "/"):
        return None
    return ROUTES.get((method.upper(), path[len(url_prefix):]))


def error_response(exc: FileManagerError) -> JSONResponse:
    return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=NO_STORE)


def unexpected_error_response(exc: Exception) -> JSONResponse:
    cause = exc.__cause__ or exc.__context__
    payload = ErrorPayload(message=str(exc), inner_exception=str(cause) if cause is not None else None)
    return JSONResponse(payload.model_dump(by_alias=True), status_code=500, headers=NO_STORE)


async def call_handler(handler: Handler, ctx: FileManagerContext, request: Request) -> Response:
    """Run a handler, turning every failure into a JSON response.

    FileManagerError subclasses keep their own status; anything else is a 500.
    """
    try:
        return await handler(ctx, request)
    except FileManagerError as exc:
        return error_response(exc)
    except StarletteHTTPException as exc:
        # e.g. malformed multipart body
        return JSONResponse({"detail": exc.detail}, status_code=exc.status_code, headers=NO_STORE)
    except Exception as exc:
        log.exception("File manager request failed: %s %s", request.method, request.url.path)
        return unexpected_error_response(exc)


def _bind(handler: Handler, ctx: FileManagerContext) -> Callable[[Request], Awaitable[Response]]:
    async def endpoint(request: Request) -> Response:
        return await call_handler(handler, ctx, request)

    endpoint.__name__ = handler.__name__
    return endpoint


def create_router(ctx: FileManagerContext) -> APIRouter:
    """Endpoint-style integration: one route per entry of ROUTES under the prefix."""
    router = APIRouter(prefix=ctx.url_prefix, tags=["filemanager"])
    for (method, sub_path), handler in ROUTES.items():
        router.add_api_route(
            sub_path,
            _bind(handler, ctx),
            methods=[method],
            include_in_schema=sub_path != "",
            name=f"filemanager_{handler.__name__}_{method.lower()}",
        )
    return router
