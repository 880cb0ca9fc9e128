"""Endpoint constants, .env loading, and per-client settings resolution.

WHY: Every client needs a base URL, an API key, a per-request timeout, and a
logging level. Keeping the defaults as named constants (not fallbacks buried
in each call) makes them easy to find and override.

HOW: python-dotenv loads the .env file on import. ClientSettings.resolve()
reads the environment once, at client construction, and explicit arguments
always win over environment variables.

RULES:
- Explicit constructor arguments > environment variables > constants
- API key is never hardcoded; a missing key is a ValidationError
- A requested logging level is applied to the package logger only; the
  package logger is shared, so the last client built with a level wins
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass

from dotenv import load_dotenv

from llmwhisperer_client.errors import ValidationError

load_dotenv()

# ---------------------------------------------------------------------------
# Remote endpoints
# ---------------------------------------------------------------------------

BASE_URL = "https://llmwhisperer-api.unstract.com/v1"
"""Legacy (v1) API root."""

BASE_URL_V2 = "https://llmwhisperer-api.us-central.unstract.com/api/v2"
"""Current (v2) API root."""

API_KEY_HEADER = "unstract-key"

# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DEFAULT_API_TIMEOUT_S = 120.0
DEFAULT_POLL_INTERVAL_S = 5.0
DEFAULT_WAIT_TIMEOUT_S = 180.0
DEFAULT_LOGGING_LEVEL = "INFO"

# ---------------------------------------------------------------------------
# Environment variable names
# ---------------------------------------------------------------------------

ENV_BASE_URL = "LLMWHISPERER_BASE_URL"
ENV_BASE_URL_V2 = "LLMWHISPERER_BASE_URL_V2"
ENV_API_KEY = "LLMWHISPERER_API_KEY"
ENV_API_TIMEOUT = "LLMWHISPERER_API_TIMEOUT"
ENV_LOGGING_LEVEL = "LLMWHISPERER_LOGGING_LEVEL"

PACKAGE_LOGGER = "llmwhisperer_client"

_LOGGING_LEVELS = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}


@dataclass(frozen=True)
class ClientSettings:
    """Resolved configuration for one client instance.

    WHY: Resolving configuration once per client avoids reading the
    environment on every call and keeps precedence rules in one place.

    HOW: Built by resolve(); immutable afterwards.

    RULES:
    - base_url has no trailing slash
    - api_timeout is seconds, > 0
    - logging_level is an upper-case stdlib level name
    - logging_level_explicit is True when the level came from an argument
      or the environment rather than the default
    """

    base_url: str
    api_key: str
    api_timeout: float
    logging_level: str
    logging_level_explicit: bool = False

    @classmethod
    def resolve(
        cls,
        base_url: str | None = None,
        api_key: str | None = None,
        api_timeout: float | None = None,
        logging_level: str | None = None,
        legacy: bool = False,
    ) -> ClientSettings:
        """Merge explicit arguments with the environment and the defaults.

        Args:
            base_url: Explicit API root, or None.
            api_key: Explicit API key, or None.
            api_timeout: Explicit per-request timeout in seconds, or None.
            logging_level: Explicit level name ("debug", "INFO", ...), or None.
            legacy: Select the v1 endpoint defaults instead of v2.

        Raises:
            ValidationError: API key missing, or timeout/level invalid.
        """
        if legacy:
            default_url = os.getenv(ENV_BASE_URL, BASE_URL)
        else:
            default_url = os.getenv(ENV_BASE_URL_V2, BASE_URL_V2)
        resolved_url = (base_url or default_url).rstrip("/")

        key = (api_key or os.getenv(ENV_API_KEY, "")).strip()
        if not key:
            raise ValidationError(
                "LLMWhisperer API key not configured. Pass api_key or set "
                "{} in the environment or .env file.".format(ENV_API_KEY)
            )

        timeout = api_timeout
        if timeout is None:
            raw = os.getenv(ENV_API_TIMEOUT, "").strip()
            try:
                timeout = float(raw) if raw else DEFAULT_API_TIMEOUT_S
            except ValueError:
                raise ValidationError(
                    "{} must be a number, got {!r}".format(ENV_API_TIMEOUT, raw)
                ) from None
        if timeout <= 0:
            raise ValidationError("api_timeout must be positive, got {}".format(timeout))

        requested = logging_level or os.getenv(ENV_LOGGING_LEVEL, "").strip()
        level = (requested or DEFAULT_LOGGING_LEVEL).upper()
        if level not in _LOGGING_LEVELS:
            raise ValidationError("Unknown logging level {!r}".format(level))

        return cls(
            base_url=resolved_url,
            api_key=key,
            api_timeout=float(timeout),
            logging_level=level,
            logging_level_explicit=bool(requested),
        )


def apply_logging_level(level: str) -> None:
    """Set the verbosity of the package logger.

    The level is process-wide: every client in the process logs through
    the same logger. Handlers are left to the embedding application (or
    the CLI's basicConfig call).
    """
    logging.getLogger(PACKAGE_LOGGER).setLevel(level)
