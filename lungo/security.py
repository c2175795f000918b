# =============================================================================
# lungo/security.py - HTTPS Redirect Middleware
# =============================================================================
# In production, plain HTTP requests are redirected to their https:// URL.
# Requests that arrived over TLS at a proxy (X-Forwarded-Proto: https) are
# left alone.
# =============================================================================

from __future__ import annotations

from starlette.datastructures import Headers
from starlette.responses import RedirectResponse
from starlette.types import ASGIApp, Receive, Scope, Send


class SecureRedirectMiddleware:
    """Redirect insecure requests to HTTPS when `production` is set."""

    def __init__(self, app: ASGIApp, production: bool = False) -> None:
        self.app = app
        self.production = production

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and self.production and not is_secure(scope):
            response = RedirectResponse(https_url(scope), status_code=302)
            await response(scope, receive, send)
            return

        await self.app(scope, receive, send)


def is_secure(scope: Scope) -> bool:
    """True for TLS requests and for requests forwarded from a TLS proxy."""
    if scope.get("scheme") == "https":
        return True
    return Headers(scope=scope).get("x-forwarded-proto") == "https"


def https_url(scope: Scope) -> str:
    """Same host, path and query string on https://."""
    host = Headers(scope=scope).get("host", "")
    url = f"https://{host}{scope.get('root_path', '')}{scope['path']}"
    if scope.get("query_string"):
        url += "?" + scope["query_string"].decode("latin-1")
    return url
