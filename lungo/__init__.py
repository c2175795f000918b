# =============================================================================
# lungo/ - Web Application Bootstrapper
# =============================================================================
# Configures a FastAPI application by convention:
# - application.py: Lungo, the bootstrapper (configure, routes, handlers, start)
# - config.py: Options (per application) and Settings (process environment)
# - exceptions.py: error types and the default JSON 404/500 handlers
# - sessions.py, security.py, static.py, access_log.py: middleware
# - routing.py, views.py: controllers and template rendering
# =============================================================================

from lungo.application import Lungo
from lungo.config import Options, Settings, get_settings
from lungo.exceptions import (
    ConfigurationError,
    LungoException,
    NotConfiguredError,
    ViewEngineNotConfiguredError,
)
from lungo.routing import Controller

__version__ = "1.0.0"

__all__ = [
    "Lungo",
    "Options",
    "Settings",
    "get_settings",
    "Controller",
    "LungoException",
    "ConfigurationError",
    "NotConfiguredError",
    "ViewEngineNotConfiguredError",
]
