"""처리되지 않은 예외 미들웨어.

Unhandled exception middleware.
Persistence faults and other unexpected exceptions are logged server-side
with their traceback and answered with an opaque 500; internals are never
returned to the client. HTTPException subclasses never reach this point.
"""

import logging

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger: logging.Logger = logging.getLogger("app.errors")


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """예외를 500 응답으로 변환하는 미들웨어 (Turns unhandled exceptions into 500)."""

    async def dispatch(
        self, request: Request, call_next: RequestResponseEndpoint
    ) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception("Unhandled error on %s %s", request.method, request.url.path)
            return JSONResponse(status_code=500, content={"detail": "Internal server error"})
