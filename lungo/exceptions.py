# =============================================================================
# lungo/exceptions.py - Exceptions and Default Error Handlers
# =============================================================================
# Structured errors for the bootstrapper plus the handlers installed by
# Lungo.add_default_handlers(). Every error body has the same shape:
#
#   {"code": 404, "message": "File Not Found", "stack": ""}
# =============================================================================

from __future__ import annotations

import logging
import traceback
from typing import Any

from fastapi import Request
from fastapi.exception_handlers import http_exception_handler
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

logger = logging.getLogger(__name__)


class LungoException(Exception):
    """
    Base exception for Lungo.

    Carries a machine-readable code and, where possible, a suggestion
    telling the caller how to fix the problem.
    """

    def __init__(
        self,
        message: str,
        code: str = "LUNGO_ERROR",
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.suggestion = suggestion
        self.details = details or {}

    def __str__(self) -> str:
        result = f"[{self.code}] {self.message}"
        if self.suggestion:
            result += f" Suggestion: {self.suggestion}"
        return result


class ConfigurationError(LungoException, ValueError):
    """Raised when the options passed to configure() are invalid."""

    def __init__(self, message: str, errors: list[dict[str, Any]] | None = None):
        super().__init__(
            message=message,
            code="INVALID_CONFIGURATION",
            suggestion="Check the options passed to Lungo.configure()",
            details={"errors": errors} if errors else None,
        )


class NotConfiguredError(LungoException, RuntimeError):
    """Raised when an operation needs configure() to have run first."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"Cannot {operation} before configure()",
            code="NOT_CONFIGURED",
            suggestion="Await Lungo.configure(options) first",
        )


class ViewEngineNotConfiguredError(LungoException, RuntimeError):
    """Raised when a template is rendered by an API-only application."""

    def __init__(self, template: str):
        super().__init__(
            message=f"No view engine configured to render '{template}'",
            code="NO_VIEW_ENGINE",
            suggestion="Set view_engine in the options to render templates",
            details={"template": template},
        )


# =============================================================================
# Default Handlers
# =============================================================================

def error_payload(code: int, message: str, stack: str = "") -> dict[str, Any]:
    """Body shared by the default 404 and 500 responses."""
    return {"code": code, "message": message, "stack": stack}


async def not_found_handler(
    request: Request,
    exc: StarletteHTTPException,
) -> JSONResponse:
    """
    Answer unmatched paths with the structured 404 body.

    Errors raised by a matched route (including its own 404s) and other
    statuses such as 405 keep FastAPI's default `{"detail": ...}` response.
    """
    # The router records the endpoint in the scope once a route matches
    if exc.status_code != 404 or "endpoint" in request.scope:
        return await http_exception_handler(request, exc)

    return JSONResponse(
        status_code=404,
        content=error_payload(404, "File Not Found"),
    )


async def server_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Turn an unhandled exception into the structured 500 body.

    The traceback is included unless the application runs in production.
    Starlette only sends this response when nothing has been sent yet;
    otherwise it re-raises the error to the server.
    """
    logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")

    settings = getattr(request.app.state, "settings", None)
    production = settings is not None and settings.is_production

    stack = ""
    if not production:
        stack = "".join(traceback.format_exception(exc))

    return JSONResponse(
        status_code=500,
        content=error_payload(500, str(exc) or type(exc).__name__, stack),
    )
