# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

from fastapi import Request

from jokester.auth.session import SessionCodec
from jokester.core.outcome import Failure, FailureKind, Ok, Outcome
from jokester.errors import StoreError
from jokester.infra.store import Joke, RecordStore
from jokester.permissions import authorize_delete, get_current_user_id, require_user_id

logger = logging.getLogger(__name__)

MIN_NAME_LENGTH = 2
MIN_CONTENT_LENGTH = 10


def list_jokes(store: RecordStore) -> List[Joke]:
    return store.list_jokes()


def get_joke_view(
    request: Request, codec: SessionCodec, store: RecordStore, joke_id: str
) -> Outcome[Tuple[Joke, bool]]:
    """Return the joke and whether the current user owns it."""
    joke = store.find_joke_by_id(joke_id)
    if joke is None:
        return Failure(FailureKind.NOT_FOUND, "What a joke! Not found.")
    user_id = get_current_user_id(request, codec)
    return Ok((joke, user_id is not None and joke.jokester_id == user_id))


def validate_joke(name: str, content: str) -> Dict[str, str]:
    errors: Dict[str, str] = {}
    if len(name) < MIN_NAME_LENGTH:
        errors["name"] = "That joke's name is too short"
    if len(content) < MIN_CONTENT_LENGTH:
        errors["content"] = "That joke is too short"
    return errors


def create_joke(
    request: Request, codec: SessionCodec, store: RecordStore, name: str, content: str
) -> Outcome[Joke]:
    required = require_user_id(request, codec)
    if not isinstance(required, Ok):
        return required

    name = (name or "").strip()
    content = (content or "").strip()
    errors = validate_joke(name, content)
    if errors:
        return Failure(FailureKind.BAD_REQUEST, "Invalid joke", details={"fields": errors})

    joke = store.add_joke(name=name, content=content, jokester_id=required.value)
    logger.info("User %s created joke %s", required.value, joke.id)
    return Ok(joke)


def delete_joke(
    request: Request,
    codec: SessionCodec,
    store: RecordStore,
    joke_id: str,
    method: Optional[str],
) -> Outcome[Joke]:
    """Delete a joke on behalf of its owner.

    ``method`` is the form's ``_method`` override; only ``delete`` is accepted,
    and it is checked before authentication.
    """
    if method != "delete":
        return Failure(FailureKind.BAD_REQUEST, f"The _method {method} is not supported")

    gate = authorize_delete(request, codec, store, joke_id)
    if not isinstance(gate, Ok):
        return gate

    try:
        store.delete_joke(joke_id)
    except StoreError as e:
        logger.warning("Deleting joke %s failed: %s", joke_id, e)
        return Failure(FailureKind.STORE_UNAVAILABLE, "Storage is unavailable")
    logger.info("Deleted joke %s", joke_id)
    return Ok(gate.value)
