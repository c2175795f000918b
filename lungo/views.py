# =============================================================================
# lungo/views.py - View Engines
# =============================================================================
# Maps view engine names to template environment factories.
# Only Jinja2 ships with Starlette, so it is the one engine registered.
#
# Usage:
#   templates = create_templates("jinja2", options.views_path)
#   return render(templates, request, "index", {"title": "Home"})
# =============================================================================

from __future__ import annotations

import logging
from pathlib import Path, PurePosixPath
from typing import Any, Callable

from fastapi import Request
from fastapi.templating import Jinja2Templates
from starlette.responses import Response

from lungo.exceptions import ViewEngineNotConfiguredError

logger = logging.getLogger(__name__)

# Suffix appended to template names given without one
DEFAULT_TEMPLATE_SUFFIX = ".html"


def _jinja2(views_path: Path) -> Jinja2Templates:
    return Jinja2Templates(directory=str(views_path))


VIEW_ENGINES: dict[str, Callable[[Path], Jinja2Templates]] = {
    "jinja2": _jinja2,
    "jinja": _jinja2,
}


def create_templates(engine: str, views_path: Path) -> Jinja2Templates:
    """
    Build the template environment for a configured engine.

    Args:
        engine: Engine name, one of VIEW_ENGINES
        views_path: Directory the templates are loaded from

    Returns:
        Template environment shared by the application and its controllers
    """
    factory = VIEW_ENGINES[engine.lower()]
    if not views_path.is_dir():
        logger.warning(f"Views directory does not exist: {views_path}")
    return factory(views_path)


def template_name(name: str) -> str:
    """'users/index' -> 'users/index.html'; names with a suffix are kept."""
    if PurePosixPath(name).suffix:
        return name
    return name + DEFAULT_TEMPLATE_SUFFIX


def render(
    templates: Jinja2Templates | None,
    request: Request,
    name: str,
    context: dict[str, Any] | None = None,
    status_code: int = 200,
) -> Response:
    """Render a template, failing when the application is API-only."""
    if templates is None:
        raise ViewEngineNotConfiguredError(name)

    return templates.TemplateResponse(
        request,
        template_name(name),
        context or {},
        status_code=status_code,
    )
