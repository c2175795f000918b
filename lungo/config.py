# =============================================================================
# lungo/config.py - Application Options and Process Settings
# =============================================================================
# Two configuration layers:
# - Options: the per-application object passed to Lungo.configure()
# - Settings: process environment (ENVIRONMENT, PORT, ...) via pydantic-settings
#
# Usage:
#   from lungo.config import Options, get_settings
#   options = Options(listen_port=8000, view_engine="jinja2")
#   settings = get_settings()
# =============================================================================

from __future__ import annotations

import os
from functools import lru_cache
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from lungo.layout import application_dir
from lungo.views import VIEW_ENGINES

# Access log formats understood by lungo.access_log
LoggerFormat = Literal["combined", "common", "dev", "short", "tiny"]


class Options(BaseModel):
    """
    Options for a single Lungo application.

    Field names are snake_case; the camelCase names used by older
    configuration files (listenPort, applicationRoot, ...) are accepted
    as aliases.
    """

    model_config = ConfigDict(populate_by_name=True, extra="forbid")

    listen_port: int = Field(
        ...,
        alias="listenPort",
        ge=0,
        le=65535,
        description="Port the server binds to",
    )

    application_root: Path = Field(
        default_factory=lambda: Path(os.getcwd()),
        alias="applicationRoot",
        description="Base path holding the application/ folder",
    )

    logger_format: LoggerFormat = Field(
        default="common",
        alias="loggerFormat",
        description="Access log line format",
    )

    view_engine: str | None = Field(
        default=None,
        alias="viewEngine",
        description="Template engine name; None runs an API-only server",
    )

    session_redis_url: str | None = Field(
        default=None,
        alias="sessionRedisUrl",
        description="Redis URL backing the session store",
    )

    session_secret: str | None = Field(
        default=None,
        alias="sessionSecret",
        description="Secret used to sign the session cookie",
    )

    redirect_secure: bool = Field(
        default=False,
        alias="redirectSecure",
        description="Redirect plain HTTP requests to HTTPS in production",
    )

    allow_cors: bool = Field(
        default=False,
        alias="allowCORS",
        description="Answer cross-origin requests from any origin",
    )

    @field_validator("view_engine")
    @classmethod
    def _known_view_engine(cls, value: str | None) -> str | None:
        if value is None:
            return None
        name = value.lower()
        if name not in VIEW_ENGINES:
            raise ValueError(
                f"Unknown view engine '{value}'. "
                f"Available engines: {', '.join(sorted(VIEW_ENGINES))}"
            )
        return name

    # -------------------------------------------------------------------------
    # Computed Properties
    # -------------------------------------------------------------------------

    @property
    def public_path(self) -> Path:
        """Directory served as static files."""
        return application_dir(self.application_root, "public")

    @property
    def views_path(self) -> Path:
        """Directory holding the templates."""
        return application_dir(self.application_root, "views")

    @property
    def sessions_enabled(self) -> bool:
        """Sessions need both a store URL and a signing secret."""
        return bool(self.session_redis_url and self.session_secret)


class Settings(BaseSettings):
    """
    Process settings loaded from environment variables.

    ENVIRONMENT is the production mode flag: it switches on the HTTPS
    redirect and hides stack traces from error responses.
    """

    ENVIRONMENT: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Current environment",
    )

    DEBUG: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    HOST: str = Field(
        default="0.0.0.0",
        description="Interface the server binds to",
    )

    PORT: int | None = Field(
        default=None,
        ge=0,
        le=65535,
        description="Listen port used by the script entrypoint",
    )

    SESSION_REDIS_URL: str | None = Field(
        default=None,
        description="Redis URL for the session store (script entrypoint)",
    )

    SESSION_SECRET: str | None = Field(
        default=None,
        description="Session cookie secret (script entrypoint)",
    )

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        case_sensitive=True,
        extra="ignore",
    )

    @property
    def is_development(self) -> bool:
        """Check if running in development mode."""
        return self.ENVIRONMENT == "development"

    @property
    def is_production(self) -> bool:
        """Check if running in production mode."""
        return self.ENVIRONMENT == "production"


@lru_cache
def get_settings() -> Settings:
    """
    Get cached Settings instance.

    The environment is parsed and validated once per process.
    """
    return Settings()
