# =============================================================================
# lungo/access_log.py - Request Logging Middleware
# =============================================================================
# Writes one line per request to the "lungo.access" logger.
#
# Formats:
#   combined  127.0.0.1 - - [10/Oct/2026:13:55:36 +0000] "GET / HTTP/1.1" 200 12 "-" "curl/8.0"
#   common    127.0.0.1 - - [10/Oct/2026:13:55:36 +0000] "GET / HTTP/1.1" 200 12
#   dev       GET / 200 1.234 ms - 12
#   short     127.0.0.1 - GET / HTTP/1.1 200 12 - 1.234 ms
#   tiny      GET / 200 12 - 1.234 ms
# =============================================================================

from __future__ import annotations

import logging
import time
from datetime import datetime, timezone

from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger("lungo.access")

LOG_FORMATS = {
    "combined": (
        '{remote_addr} - {remote_user} [{date}] "{method} {url} HTTP/{http_version}" '
        '{status} {content_length} "{referrer}" "{user_agent}"'
    ),
    "common": (
        '{remote_addr} - {remote_user} [{date}] "{method} {url} HTTP/{http_version}" '
        "{status} {content_length}"
    ),
    "dev": "{method} {url} {status} {response_time} ms - {content_length}",
    "short": (
        "{remote_addr} {remote_user} {method} {url} HTTP/{http_version} "
        "{status} {content_length} - {response_time} ms"
    ),
    "tiny": "{method} {url} {status} {content_length} - {response_time} ms",
}


class AccessLogMiddleware:
    """ASGI middleware logging each HTTP request once its response has started."""

    def __init__(self, app: ASGIApp, log_format: str = "common") -> None:
        if log_format not in LOG_FORMATS:
            raise ValueError(
                f"Unknown log format: {log_format}. "
                f"Valid formats: {', '.join(LOG_FORMATS)}"
            )
        self.app = app
        self.log_format = log_format
        self.template = LOG_FORMATS[log_format]

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        started = time.perf_counter()
        response: dict[str, Message] = {}

        async def send_wrapper(message: Message) -> None:
            if message["type"] == "http.response.start":
                response["start"] = message
                logger.info(self.format_line(scope, message, time.perf_counter() - started))
            await send(message)

        try:
            await self.app(scope, receive, send_wrapper)
        except Exception:
            if "start" not in response:
                # ServerErrorMiddleware answers with a 500 once this re-raises
                failed = {"type": "http.response.start", "status": 500, "headers": []}
                logger.info(self.format_line(scope, failed, time.perf_counter() - started))
            raise

    def format_line(
        self,
        scope: Scope,
        start: Message,
        elapsed: float,
    ) -> str:
        """Render the configured format for a request and its response start."""
        request_headers = Headers(scope=scope)
        response_headers = Headers(raw=start["headers"])

        client = scope.get("client")
        url = scope.get("root_path", "") + scope["path"]
        if scope.get("query_string"):
            url += "?" + scope["query_string"].decode("latin-1")

        fields = {
            "remote_addr": client[0] if client else "-",
            "remote_user": "-",
            "date": datetime.now(timezone.utc).strftime("%d/%b/%Y:%H:%M:%S %z"),
            "method": scope["method"],
            "url": url,
            "http_version": scope.get("http_version", "1.1"),
            "status": start["status"],
            "content_length": response_headers.get("content-length", "-"),
            "referrer": request_headers.get("referer", "-"),
            "user_agent": request_headers.get("user-agent", "-"),
            "response_time": f"{elapsed * 1000:.3f}",
        }
        return self.template.format(**fields)
