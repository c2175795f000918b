# =============================================================================
# lungo/routing.py - Controllers
# =============================================================================
# A controller is an APIRouter that knows the application's template
# environment. Lungo.add_route() hands a fresh controller to a registration
# callback and then mounts it under a path prefix.
#
# Usage:
#   def register(controller: Controller) -> None:
#       @controller.get("/")
#       async def index(request: Request):
#           return controller.render(request, "users/index", {"users": []})
#
#   lungo.add_route("/users", register)
# =============================================================================

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from lungo.views import render


class Controller(APIRouter):
    """APIRouter carrying the template environment inherited from the app."""

    def __init__(self, *args: Any, templates: Jinja2Templates | None = None, **kwargs: Any):
        super().__init__(*args, **kwargs)
        self.templates = templates

    def render(
        self,
        request: Request,
        name: str,
        context: dict[str, Any] | None = None,
        status_code: int = 200,
    ) -> Response:
        """
        Render a template from the views directory.

        Raises:
            ViewEngineNotConfiguredError: If the application has no view engine
        """
        return render(self.templates, request, name, context, status_code)
