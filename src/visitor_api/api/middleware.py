"""CORS and security headers middleware."""

from typing import Any

from fastapi import FastAPI, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint

from visitor_api.core.config import Settings


def setup_cors(app: FastAPI, settings: Settings) -> None:
    """Allow the configured origins; credentials only for an explicit origin list."""
    origins = settings.cors_origin_list
    kwargs: dict[str, Any] = {
        "allow_credentials": bool(origins) and "*" not in origins,
        "allow_methods": ["*"],
        "allow_headers": ["*"],
    }
    if origins:
        kwargs["allow_origins"] = origins
    if settings.cors_origin_regex.strip():
        kwargs["allow_origin_regex"] = settings.cors_origin_regex.strip()
    app.add_middleware(CORSMiddleware, **kwargs)


SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Strict-Transport-Security": "max-age=31536000; includeSubDomains",
}


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Stamp ``SECURITY_HEADERS`` on every response."""

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        response = await call_next(request)
        response.headers.update(SECURITY_HEADERS)
        return response
