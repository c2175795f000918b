# =============================================================================
# lungo/static.py - Static File Middleware
# =============================================================================
# Serves files from application/public ahead of the routes. Unlike a
# StaticFiles mount at "/", a missing file falls through to the next
# handler so routes registered later stay reachable.
# =============================================================================

from __future__ import annotations

import logging
from pathlib import Path

from starlette.exceptions import HTTPException
from starlette.staticfiles import StaticFiles
from starlette.types import ASGIApp, Receive, Scope, Send

logger = logging.getLogger(__name__)


class StaticFilesMiddleware:
    """Serve GET/HEAD requests from a directory, passing misses along."""

    def __init__(self, app: ASGIApp, directory: str | Path) -> None:
        self.app = app
        self.directory = Path(directory)
        # check_dir=False: an API-only application may have no public folder
        self.files = StaticFiles(directory=self.directory, check_dir=False)

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in ("GET", "HEAD"):
            await self.app(scope, receive, send)
            return

        path = self.files.get_path(scope)
        try:
            response = await self.files.get_response(path, scope)
        except HTTPException as exc:
            if exc.status_code != 404:
                raise
            await self.app(scope, receive, send)
            return

        await response(scope, receive, send)
