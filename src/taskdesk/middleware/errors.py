"""Unhandled-error middleware.

Anything that escapes a route (store outage, bug) is logged with its
traceback and turned into a bare 500. The client never sees exception
text. Foreseeable failures are TaskDeskError and handled in main.py
before they get here.
"""

import structlog
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = structlog.get_logger()


class ErrorHandlingMiddleware(BaseHTTPMiddleware):
    """Catch-all for unexpected exceptions."""

    async def dispatch(self, request: Request, call_next) -> Response:
        try:
            return await call_next(request)
        except Exception:
            logger.exception(
                "request.unhandled_error",
                method=request.method,
                path=request.url.path,
            )
            return JSONResponse(
                status_code=500,
                content={"detail": "Internal server error"},
            )
