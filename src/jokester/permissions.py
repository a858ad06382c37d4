# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Request-level session access and the delete gate.

Every function decodes the session fresh from the request's ``Cookie``
header; nothing about a session is kept between requests.
"""

from __future__ import annotations

import logging
from typing import Optional
from urllib.parse import urlencode

from fastapi import Request

from jokester.auth.session import SessionCodec
from jokester.auth.users import Identity
from jokester.core.outcome import Failure, FailureKind, Ok, Outcome, Redirect
from jokester.errors import StoreError
from jokester.infra.store import Joke, RecordStore

logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
SESSION_USER_KEY = "userId"


def _session(request: Request, codec: SessionCodec) -> dict:
    return codec.unsign(request.cookies.get(codec.cookie_name))


def get_current_user_id(request: Request, codec: SessionCodec) -> Optional[str]:
    user_id = _session(request, codec).get(SESSION_USER_KEY)
    if not isinstance(user_id, str) or not user_id:
        return None
    return user_id


def login_redirect(redirect_to: str) -> Redirect:
    return Redirect(location=f"{LOGIN_PATH}?{urlencode({'redirectTo': redirect_to})}")


def require_user_id(
    request: Request, codec: SessionCodec, redirect_to: Optional[str] = None
) -> Outcome[str]:
    user_id = get_current_user_id(request, codec)
    if user_id is None:
        return login_redirect(redirect_to if redirect_to is not None else request.url.path)
    return Ok(user_id)


def logout(request: Request, codec: SessionCodec) -> Redirect:
    session = _session(request, codec)
    if session.get(SESSION_USER_KEY):
        logger.info("Logging out user %s", session.get(SESSION_USER_KEY))
    return Redirect(location=LOGIN_PATH, set_cookie=codec.destroy(session))


def get_current_user(
    request: Request, codec: SessionCodec, store: RecordStore
) -> Outcome[Optional[Identity]]:
    """Resolve the session user to ``(id, username)``.

    A store failure or a user record that no longer exists ends the session.
    """
    user_id = get_current_user_id(request, codec)
    if user_id is None:
        return Ok(None)
    try:
        user = store.find_user_by_id(user_id)
    except StoreError:
        logger.warning("User lookup failed for %s; forcing logout", user_id, exc_info=True)
        return logout(request, codec)
    if user is None:
        logger.info("Session user %s no longer exists; forcing logout", user_id)
        return logout(request, codec)
    return Ok(Identity(id=user.id, username=user.username))


def create_session(codec: SessionCodec, user_id: str, redirect_to: str) -> Redirect:
    return Redirect(location=redirect_to, set_cookie=codec.encode({SESSION_USER_KEY: user_id}))


def authorize_delete(
    request: Request, codec: SessionCodec, store: RecordStore, joke_id: str
) -> Outcome[Joke]:
    """Allow a delete only for the authenticated owner of the joke. Never mutates."""
    required = require_user_id(request, codec)
    if not isinstance(required, Ok):
        return required
    user_id = required.value

    try:
        joke = store.find_joke_by_id(joke_id)
    except StoreError as e:
        logger.warning("Joke lookup failed for %s: %s", joke_id, e)
        return Failure(FailureKind.STORE_UNAVAILABLE, "Storage is unavailable")
    if joke is None:
        return Failure(FailureKind.NOT_FOUND, "Can't delete what does not exist")
    if joke.jokester_id != user_id:
        logger.warning("User %s tried to delete joke %s owned by %s", user_id, joke_id, joke.jokester_id)
        return Failure(FailureKind.FORBIDDEN, "Pssh, nice try. That's not your joke")
    return Ok(joke)


def sanitize_redirect(target: Optional[str], default: str = "/jokes") -> str:
    """Allow only local absolute paths like ``/jokes/123`` as post-login targets."""
    p = (target or "").strip().replace("\r", "").replace("\n", "")
    if not p.startswith("/") or p.startswith("//") or p.startswith("/\\"):
        return default
    return p
