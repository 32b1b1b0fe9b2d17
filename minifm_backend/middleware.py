from __future__ import annotations

import logging

from fastapi import Request
from fastapi.responses import JSONResponse, Response
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.types import ASGIApp

from .errors import FileManagerError, TargetNotFoundError
from .routes import FileManagerContext, error_response, match_route, unexpected_error_response


log = logging.getLogger(__name__)


class FileManagerMiddleware(BaseHTTPMiddleware):
    """Pipeline-style integration.

    Requests under the prefix that match the route table are answered here.
    Unmatched method/path pairs, and requests whose target does not exist,
    continue down the pipeline to the next handler.
    """

    def __init__(self, app: ASGIApp, context: FileManagerContext) -> None:
        super().__init__(app)
        self.context = context

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        handler = match_route(self.context.url_prefix, request.method, request.url.path)
        if handler is None:
            return await call_next(request)
        try:
            return await handler(self.context, request)
        except TargetNotFoundError:
            return await call_next(request)
        except FileManagerError as exc:
            return error_response(exc)
        except StarletteHTTPException as exc:
            return JSONResponse({"detail": exc.detail}, status_code=exc.status_code)
        except Exception as exc:
            log.exception("File manager request failed: %s %s", request.method, request.url.path)
            return unexpected_error_response(exc)
