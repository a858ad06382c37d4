# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Process-wide settings, loaded once from the environment.

Everything here is immutable after startup and is passed explicitly to the
session codec, the store and the app factory.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Tuple

from jokester.errors import ConfigurationError

DEFAULT_COOKIE_NAME = "jokester_session"
SESSION_MAX_AGE_SECONDS = 60 * 60 * 24 * 30  # 30 days

_TRUE = {"1", "true", "yes", "y", "on"}
_FALSE = {"0", "false", "no", "n", "off"}


def _parse_secrets(value: str) -> Tuple[str, ...]:
    items = [x.strip() for x in (value or "").split(",")]
    return tuple(x for x in items if x)


@dataclass(frozen=True)
class SessionConfig:
    """Cookie attributes and signing secrets (newest first)."""

    secrets: Tuple[str, ...]
    cookie_name: str = DEFAULT_COOKIE_NAME
    secure: bool = False
    same_site: str = "lax"
    path: str = "/"
    max_age: int = SESSION_MAX_AGE_SECONDS
    http_only: bool = True

    def __post_init__(self) -> None:
        if not self.secrets or not all(self.secrets):
            raise ConfigurationError("At least one session signing secret is required")
        if not (self.cookie_name or "").strip():
            raise ConfigurationError("Session cookie name cannot be empty")


@dataclass(frozen=True)
class Settings:
    session: SessionConfig
    data_path: Path = field(default_factory=lambda: Path("data/jokester.yml").resolve())
    log_level: str = "INFO"


def _cookie_secure() -> bool:
    env = (os.getenv("JOKESTER_COOKIE_SECURE", "") or "").strip().lower()
    if env in _TRUE:
        return True
    if env in _FALSE:
        return False
    # Only send the cookie over HTTPS in production; local dev runs on plain HTTP.
    return (os.getenv("JOKESTER_ENV", "") or "").strip().lower() == "production"


def load_settings(secrets: Optional[Iterable[str]] = None) -> Settings:
    """Read settings from the environment.

    Raises ``ConfigurationError`` when no signing secret is available.
    """
    if secrets is None:
        raw = os.getenv("JOKESTER_SESSION_SECRETS") or os.getenv("SESSION_SECRET") or ""
        secrets = _parse_secrets(raw)
    secrets = tuple(secrets)
    if not secrets:
        raise ConfigurationError("JOKESTER_SESSION_SECRETS (or SESSION_SECRET) must be set")

    session = SessionConfig(
        secrets=secrets,
        cookie_name=(os.getenv("JOKESTER_COOKIE_NAME", "") or DEFAULT_COOKIE_NAME).strip(),
        secure=_cookie_secure(),
    )
    data_path = Path(os.getenv("JOKESTER_DATA_PATH", "data/jokester.yml")).resolve()
    log_level = (os.getenv("JOKESTER_LOG_LEVEL", "") or "INFO").strip().upper()
    return Settings(session=session, data_path=data_path, log_level=log_level)
