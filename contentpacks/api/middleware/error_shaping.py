from __future__ import annotations

import logging
import traceback
from typing import Callable

from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.responses import JSONResponse, Response

from contentpacks.core.errors import (
    CircularDependencyError,
    ContentPackError,
    DuplicateKeyError,
    MissingParameterError,
    NotFoundError,
    SerializationError,
    UnresolvedReferenceError,
    UnsupportedModelTypeError,
)

log = logging.getLogger("contentpacks.errors")

_STATUS = {
    NotFoundError: 404,
    DuplicateKeyError: 409,
    MissingParameterError: 400,
    UnsupportedModelTypeError: 400,
    SerializationError: 422,
    UnresolvedReferenceError: 422,
    CircularDependencyError: 422,
}


def status_for(exc: ContentPackError) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS:
            return _STATUS[cls]
    return 400


async def content_pack_error_handler(request: Request, exc: ContentPackError) -> JSONResponse:
    rid = getattr(request.state, "request_id", None)
    log.warning("content pack error: %s rid=%s path=%s", exc, rid, request.url.path)
    payload = {"detail": exc.to_dict()}
    if rid:
        payload["request_id"] = rid
    return JSONResponse(status_code=status_for(exc), content=payload)


class SafeErrorMiddleware(BaseHTTPMiddleware):
    """
    - Never return stack traces to clients
    - Preserve request_id if present
    - Log traceback server-side
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        try:
            return await call_next(request)
        except Exception as e:
            rid = getattr(request.state, "request_id", None) or request.headers.get("x-request-id")
            log.error(
                "Unhandled error: %s rid=%s path=%s\n%s",
                str(e),
                rid,
                request.url.path,
                traceback.format_exc(),
            )
            payload = {"detail": "Internal Server Error"}
            if rid:
                payload["request_id"] = rid
            return JSONResponse(status_code=500, content=payload)
