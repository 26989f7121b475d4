"""
Single-origin CORS.

Starlette's CORSMiddleware drops the allow-origin header when the caller's
Origin is not on the list; this site always answers with its configured
origin instead, on every response including errors.
"""

from typing import Dict, Optional

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response
from starlette.types import ASGIApp

ALLOWED_METHODS = "GET,POST,DELETE,OPTIONS"
ALLOWED_HEADERS = "Content-Type, Authorization"


def resolve_origin(request_origin: Optional[str], site_origin: str) -> str:
    if request_origin and request_origin == site_origin:
        return request_origin
    return site_origin


def cors_headers(origin: str) -> Dict[str, str]:
    return {
        "Access-Control-Allow-Origin": origin,
        "Access-Control-Allow-Methods": ALLOWED_METHODS,
        "Access-Control-Allow-Headers": ALLOWED_HEADERS,
        "Vary": "Origin",
    }


def merge_vary(existing: Optional[str], value: str = "Origin") -> str:
    tokens = [t.strip() for t in (existing or "").split(",") if t.strip()]
    if "*" in tokens or value.lower() in (t.lower() for t in tokens):
        return ", ".join(tokens)
    return ", ".join(tokens + [value])


class SiteCORSMiddleware(BaseHTTPMiddleware):
    """
    Answers preflight requests directly and stamps CORS headers on everything else.
    Must be the outermost middleware so 500s built further in get the headers too.
    """

    def __init__(self, app: ASGIApp, site_origin: str) -> None:
        super().__init__(app)
        self.site_origin = site_origin

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        headers = cors_headers(resolve_origin(request.headers.get("origin"), self.site_origin))

        if request.method == "OPTIONS":
            return Response(status_code=204, headers=headers)

        response = await call_next(request)
        for name, value in headers.items():
            if name == "Vary":
                value = merge_vary(response.headers.get("vary"), value)
            response.headers[name] = value
        return response
