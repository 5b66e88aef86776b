"""
Configuration - Environment-driven settings.

Variables:
    GEMINI_API_KEY              API key for the generative service (API_KEY also accepted)
    NIGHTSHIFT_MODEL            Model name (default gemini-2.5-flash)
    NIGHTSHIFT_THINKING_BUDGET  Thinking token budget per turn (default 1024)
    NIGHTSHIFT_LOG_LEVEL        Root log level (default INFO)
    NIGHTSHIFT_FEEDBACK_DELAY   Seconds the CLI waits before showing feedback
    ALLOWED_ORIGINS             Comma-separated CORS origins for the API
"""

from __future__ import annotations
from dataclasses import dataclass
import logging
import os
from typing import Mapping

from .errors import ConfigurationError


DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_THINKING_BUDGET = 1024
DEFAULT_FEEDBACK_DELAY = 0.5

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


@dataclass(frozen=True)
class Settings:
    api_key: str | None = None
    model: str = DEFAULT_MODEL
    thinking_budget: int = DEFAULT_THINKING_BUDGET
    log_level: str = "INFO"
    feedback_delay: float = DEFAULT_FEEDBACK_DELAY
    allowed_origins: tuple[str, ...] = ("*",)

    def require_api_key(self) -> str:
        if not self.api_key:
            raise ConfigurationError(
                "GEMINI_API_KEY is missing from environment variables"
            )
        return self.api_key


def _number(environ: Mapping[str, str], name: str, default, cast):
    raw = environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return cast(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}")


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Read settings from the environment (or a given mapping)."""
    if environ is None:
        environ = os.environ

    origins = environ.get("ALLOWED_ORIGINS", "*")
    return Settings(
        api_key=environ.get("GEMINI_API_KEY") or environ.get("API_KEY"),
        model=environ.get("NIGHTSHIFT_MODEL", DEFAULT_MODEL),
        thinking_budget=_number(
            environ, "NIGHTSHIFT_THINKING_BUDGET", DEFAULT_THINKING_BUDGET, int
        ),
        log_level=environ.get("NIGHTSHIFT_LOG_LEVEL", "INFO").upper(),
        feedback_delay=_number(
            environ, "NIGHTSHIFT_FEEDBACK_DELAY", DEFAULT_FEEDBACK_DELAY, float
        ),
        allowed_origins=tuple(o.strip() for o in origins.split(",") if o.strip()),
    )


def configure_logging(settings: Settings):
    """Configure root logging once for an entry point."""
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format=LOG_FORMAT,
    )
