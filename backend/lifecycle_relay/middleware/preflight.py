"""Empty-bodied answers to CORS preflight requests on webhook routes."""

from collections.abc import Iterable

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type",
    "Access-Control-Allow-Methods": "GET, POST, OPTIONS",
}


def preflight_response() -> Response:
    """Build the 200 answer to a preflight: CORS headers, no body."""
    return Response(status_code=200, headers=PREFLIGHT_HEADERS)


class PreflightMiddleware(BaseHTTPMiddleware):
    """Answer OPTIONS on ``paths`` before CORSMiddleware can.

    CORSMiddleware replies to browser preflights with a ``text/plain`` "OK"
    body. Marketplace webhook routes must answer with an empty body, so this
    middleware is installed outside it.
    """

    def __init__(self, app: ASGIApp, paths: Iterable[str]) -> None:
        super().__init__(app)
        self.paths = frozenset(paths)

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS" and request.url.path in self.paths:
            return preflight_response()
        return await call_next(request)
