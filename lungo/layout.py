# =============================================================================
# lungo/layout.py - Application Folder Layout
# =============================================================================
# An application root is expected to look like:
#
#   <root>/application/public        static files
#   <root>/application/views         templates
#   <root>/application/controllers   route registration modules
#   <root>/application/models        domain models
#   <root>/application/adapters      clients for external services
# =============================================================================

from __future__ import annotations

from pathlib import Path

APPLICATION_DIR = "application"

LAYOUT_DIRECTORIES = ("public", "views", "controllers", "models", "adapters")


def application_dir(root: Path, name: str) -> Path:
    """Path of one layout directory under an application root."""
    return Path(root) / APPLICATION_DIR / name


def missing_directories(root: Path) -> list[Path]:
    """Layout directories that do not exist under `root`."""
    return [
        application_dir(root, name)
        for name in LAYOUT_DIRECTORIES
        if not application_dir(root, name).is_dir()
    ]
