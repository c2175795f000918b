# =============================================================================
# lungo/application.py - Application Bootstrapper
# =============================================================================
# Wires a FastAPI application from an Options object, in a fixed order:
#
#   1. validate options          5. view engine (optional)
#   2. default optional fields   6. Redis session store (optional)
#   3. access logging            7. HTTPS redirect (optional)
#   4. static files              8. CORS (optional)
#
# Usage:
#   lungo = Lungo()
#   await lungo.configure({"listen_port": 8000, "view_engine": "jinja2"})
#   lungo.add_route("/users", users.register)
#   lungo.add_default_handlers()
#   await lungo.start()
# =============================================================================

from __future__ import annotations

import inspect
import logging
from collections.abc import Mapping
from contextlib import asynccontextmanager
from typing import Any, Callable

import uvicorn
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.templating import Jinja2Templates
from pydantic import ValidationError
from redis.asyncio import Redis
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware import Middleware
from starlette.middleware.base import BaseHTTPMiddleware

from lungo.access_log import AccessLogMiddleware
from lungo.config import Options, Settings, get_settings
from lungo.exceptions import (
    ConfigurationError,
    NotConfiguredError,
    not_found_handler,
    server_error_handler,
)
from lungo.layout import missing_directories
from lungo.routing import Controller
from lungo.security import SecureRedirectMiddleware
from lungo.sessions import connect_redis, session_middleware
from lungo.static import StaticFilesMiddleware
from lungo.views import create_templates

logger = logging.getLogger(__name__)

CORS_METHODS = ["GET", "PUT", "POST", "DELETE", "OPTIONS"]
CORS_HEADERS = [
    "Content-Type",
    "Authorization",
    "Content-Length",
    "X-Requested-With",
    "X-Api-Key",
]


class Lungo:
    """
    One configured web application.

    Holds the FastAPI instance, the options it was configured with and the
    session store client (when sessions are enabled).
    """

    def __init__(self, settings: Settings | None = None, **fastapi_options: Any):
        self.settings = settings or get_settings()
        self.options: Options | None = None
        self.templates: Jinja2Templates | None = None
        self.session_client: Redis | None = None

        self.app = FastAPI(lifespan=self._lifespan, **fastapi_options)
        self.app.state.settings = self.settings
        self.app.state.templates = None

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    @staticmethod
    def validate_options(options: Options | Mapping[str, Any]) -> Options:
        """
        Validate options and fill in defaults.

        Raises:
            ConfigurationError: If the listen port is missing or a value is invalid
        """
        if isinstance(options, Options):
            return options

        if "listen_port" not in options and "listenPort" not in options:
            raise ConfigurationError("Listening port must be defined in options")

        try:
            return Options.model_validate(dict(options))
        except ValidationError as e:
            errors = [
                {"field": ".".join(str(part) for part in error["loc"]), "message": error["msg"]}
                for error in e.errors()
            ]
            summary = "; ".join(f"{error['field']}: {error['message']}" for error in errors)
            raise ConfigurationError(f"Invalid options: {summary}", errors=errors) from e

    async def configure(self, options: Options | Mapping[str, Any]) -> Lungo:
        """
        Validate options and attach the middleware they ask for.

        Connecting to the session store is the only step that awaits.
        A store that cannot be reached is logged, not raised.

        Returns:
            self, for chaining
        """
        self.options = self.validate_options(options)
        opts = self.options

        logger.info(f"Application root: {opts.application_root}")
        for directory in missing_directories(opts.application_root):
            logger.debug(f"Layout directory not found: {directory}")

        self.use(AccessLogMiddleware, log_format=opts.logger_format)
        logger.info(f"Logger format: {opts.logger_format}")

        self.use(StaticFilesMiddleware, directory=opts.public_path)
        logger.info(f"Static files: {opts.public_path}")

        if opts.view_engine:
            self.templates = create_templates(opts.view_engine, opts.views_path)
            self.app.state.templates = self.templates
            logger.info(f"Views: {opts.view_engine} at {opts.views_path}")

        if opts.sessions_enabled:
            self.session_client = await connect_redis(opts.session_redis_url)
            for middleware in session_middleware(
                self.session_client,
                secret=opts.session_secret,
                https_only=opts.redirect_secure and self.settings.is_production,
            ):
                self.use(middleware.cls, **middleware.kwargs)
            logger.info("Session storage configured")

        if opts.redirect_secure:
            self.use(SecureRedirectMiddleware, production=self.settings.is_production)
            logger.info(f"Secure redirect enabled (active: {self.settings.is_production})")

        if opts.allow_cors:
            self.use(
                CORSMiddleware,
                allow_origins=["*"],
                allow_methods=CORS_METHODS,
                allow_headers=CORS_HEADERS,
            )
            logger.info("CORS enabled for all origins")

        return self

    # -------------------------------------------------------------------------
    # Routes and Middleware
    # -------------------------------------------------------------------------

    def use(self, middleware_class: type, **options: Any) -> None:
        """
        Append an ASGI middleware class to the chain.

        Starlette's add_middleware() prepends; appending keeps the chain in
        registration order, so the first middleware registered runs first.
        """
        if self.app.middleware_stack is not None:
            raise RuntimeError("Cannot add middleware after the application has started")
        self.app.user_middleware.append(Middleware(middleware_class, **options))

    def add_middleware(self, handler: Callable[..., Any] | type, **options: Any) -> None:
        """
        Append a middleware to the chain.

        Args:
            handler: An `async def dispatch(request, call_next)` function,
                or an ASGI middleware class
            **options: Keyword arguments for a middleware class
        """
        if inspect.isclass(handler):
            self.use(handler, **options)
        else:
            self.use(BaseHTTPMiddleware, dispatch=handler)

    def add_error_handler(
        self,
        exc_class_or_status_code: int | type[Exception],
        handler: Callable[..., Any],
    ) -> None:
        """Register an `async def handler(request, exc)` for an exception or status."""
        self.app.add_exception_handler(exc_class_or_status_code, handler)

    def add_route(self, path: str, register: Callable[[Controller], Any]) -> Controller:
        """
        Let `register` add endpoints to a fresh controller, then mount it at `path`.

        The controller inherits the template environment when a view engine
        is configured.
        """
        controller = Controller(templates=self.templates)
        register(controller)
        self.app.include_router(controller, prefix=path.rstrip("/"))
        logger.info(f"Added route: {path}")
        return controller

    def add_default_handlers(self) -> None:
        """Install the JSON 404 and 500 handlers."""
        self.add_error_handler(StarletteHTTPException, not_found_handler)
        self.add_error_handler(Exception, server_error_handler)

    # -------------------------------------------------------------------------
    # Serving
    # -------------------------------------------------------------------------

    async def start(self) -> None:
        """
        Serve the application with uvicorn until the process is stopped.

        Raises:
            NotConfiguredError: If configure() has not run
        """
        if self.options is None:
            raise NotConfiguredError("start the server")

        config = uvicorn.Config(
            self.app,
            host=self.settings.HOST,
            port=self.options.listen_port,
            log_level="debug" if self.settings.DEBUG else "info",
            # Requests are logged by AccessLogMiddleware
            access_log=False,
        )
        await uvicorn.Server(config).serve()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        if self.options is not None:
            logger.info(
                f"Listening on port {self.options.listen_port} "
                f"({self.settings.ENVIRONMENT} mode)"
            )

        yield

        if self.session_client is not None:
            await self.session_client.aclose()
            logger.info("Session store connection closed")
