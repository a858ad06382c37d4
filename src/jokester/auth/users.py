# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Credential checks against the record store (argon2 password hashes)."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from argon2 import PasswordHasher
from argon2.exceptions import InvalidHashError, VerificationError

from jokester.infra.store import RecordStore

logger = logging.getLogger(__name__)

_PH = PasswordHasher()


@dataclass(frozen=True)
class Identity:
    id: str
    username: str


def hash_password(plain: str) -> str:
    """Hash a password for a new credential record (see scripts/create_user.py)."""
    if not plain:
        raise ValueError("Password cannot be empty")
    return _PH.hash(plain)


def _password_matches(password_hash: str, plain: str) -> bool:
    if not password_hash or not plain:
        return False
    try:
        return _PH.verify(password_hash, plain)
    except (VerificationError, InvalidHashError):
        return False


def verify_login(store: RecordStore, username: str, password: str) -> Optional[Identity]:
    """Return the matching identity, or None for an unknown user or wrong password."""
    u = (username or "").strip()
    if not u:
        return None
    cred = store.find_credential_by_username(u)
    if cred is None or not _password_matches(cred.password_hash, password):
        logger.info("Login failed for %r", u)
        return None
    return Identity(id=cred.id, username=cred.username)
