# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Any, Dict, Mapping, Optional

from itsdangerous import BadData, URLSafeTimedSerializer
from starlette.requests import cookie_parser
from starlette.responses import Response

from jokester.config import SessionConfig

logger = logging.getLogger(__name__)

SESSION_SALT = "jokester.session.v1"


class SessionCodec:
    """Signed session cookies.

    The payload is a small JSON mapping signed with itsdangerous. Signing
    always uses the first configured secret; verification accepts any of
    them so secrets can be rotated by prepending a new one.
    """

    def __init__(self, config: SessionConfig) -> None:
        self.config = config
        # itsdangerous signs with the *last* key and verifies with all of them.
        self._serializer = URLSafeTimedSerializer(
            secret_key=list(reversed(config.secrets)),
            salt=SESSION_SALT,
        )

    @property
    def cookie_name(self) -> str:
        return self.config.cookie_name

    def sign(self, payload: Mapping[str, Any]) -> str:
        return self._serializer.dumps(dict(payload))

    def unsign(self, token: Optional[str]) -> Dict[str, Any]:
        if not token:
            return {}
        try:
            data = self._serializer.loads(token, max_age=self.config.max_age)
        except BadData as e:
            logger.debug("Rejected session cookie: %s", type(e).__name__)
            return {}
        if not isinstance(data, dict):
            return {}
        return data

    def cookie_kwargs(self, value: str) -> dict:
        cfg = self.config
        return {
            "key": cfg.cookie_name,
            "value": value,
            "max_age": cfg.max_age,
            "path": cfg.path,
            "secure": cfg.secure,
            "httponly": cfg.http_only,
            "samesite": cfg.same_site,
        }

    def clear_cookie_kwargs(self) -> dict:
        cfg = self.config
        return {
            "key": cfg.cookie_name,
            "path": cfg.path,
            "secure": cfg.secure,
            "httponly": cfg.http_only,
            "samesite": cfg.same_site,
        }

    def encode(self, payload: Mapping[str, Any]) -> str:
        """Return a ``Set-Cookie`` header value carrying the signed payload."""
        resp = Response()
        resp.set_cookie(**self.cookie_kwargs(self.sign(payload)))
        return resp.headers["set-cookie"]

    def decode(self, cookie_header: Optional[str]) -> Dict[str, Any]:
        """Return the session payload from a raw ``Cookie`` header, or ``{}``."""
        if not cookie_header:
            return {}
        return self.unsign(cookie_parser(cookie_header).get(self.config.cookie_name))

    def destroy(self, payload: Optional[Mapping[str, Any]] = None) -> str:
        """Return a ``Set-Cookie`` header value that clears the session cookie."""
        resp = Response()
        resp.delete_cookie(**self.clear_cookie_kwargs())
        return resp.headers["set-cookie"]
