# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""YAML-backed record store for users and jokes.

Layout of the data file::

    version: 1
    users:
      <id>: {username: ..., password_hash: ...}
    jokes:
      <id>: {name: ..., content: ..., jokester_id: ..., created_at: ...}
"""

from __future__ import annotations

import copy
import os
import tempfile
import threading
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional, Protocol, Tuple

import yaml

from jokester.errors import StoreError


@dataclass(frozen=True)
class CredentialRecord:
    id: str
    username: str
    password_hash: str


@dataclass(frozen=True)
class UserRecord:
    """Minimal user view: never carries the password hash."""

    id: str
    username: str


@dataclass(frozen=True)
class Joke:
    id: str
    name: str
    content: str
    jokester_id: str
    created_at: str = ""


class RecordStore(Protocol):
    def find_credential_by_username(self, username: str) -> Optional[CredentialRecord]: ...

    def find_user_by_id(self, user_id: str) -> Optional[UserRecord]: ...

    def find_joke_by_id(self, joke_id: str) -> Optional[Joke]: ...

    def delete_joke(self, joke_id: str) -> bool: ...

    def add_joke(self, *, name: str, content: str, jokester_id: str) -> Joke: ...

    def list_jokes(self) -> List[Joke]: ...


def _empty() -> Dict[str, Any]:
    return {"version": 1, "users": {}, "jokes": {}}


class YamlStore:
    """Record store persisted to a single YAML file.

    Reads are cached by file mtime. Writes hold a lock and replace the file
    atomically. Any I/O or parse problem surfaces as ``StoreError``.
    """

    def __init__(self, path: Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()
        self._cache: Tuple[float, Dict[str, Any]] = (0.0, _empty())

    # --- raw file access ---

    def _load(self) -> Dict[str, Any]:
        try:
            if not self.path.exists():
                return _empty()
            mtime = self.path.stat().st_mtime
            cached_mtime, cached = self._cache
            if mtime and mtime == cached_mtime:
                return cached
            raw = yaml.safe_load(self.path.read_text(encoding="utf-8")) or {}
        except (OSError, yaml.YAMLError) as e:
            raise StoreError(f"Cannot read {self.path}: {e}") from e

        if not isinstance(raw, dict):
            raise StoreError(f"{self.path} does not contain a mapping")
        data = _empty()
        data["version"] = raw.get("version", 1)
        for section in ("users", "jokes"):
            value = raw.get(section) or {}
            if not isinstance(value, dict):
                raise StoreError(f"'{section}' in {self.path} must be a mapping")
            data[section] = value
        self._cache = (mtime, data)
        return data

    def _save(self, data: Dict[str, Any]) -> None:
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp = tempfile.mkstemp(prefix=".jokester-", suffix=".yml", dir=str(self.path.parent))
            with os.fdopen(fd, "w", encoding="utf-8") as fh:
                yaml.safe_dump(data, fh, sort_keys=False, allow_unicode=True)
            os.replace(tmp, self.path)
        except OSError as e:
            raise StoreError(f"Cannot write {self.path}: {e}") from e
        # mtime resolution can be coarse; drop the cache instead of trusting it.
        self._cache = (0.0, _empty())

    # --- users ---

    def find_credential_by_username(self, username: str) -> Optional[CredentialRecord]:
        u = (username or "").strip()
        if not u:
            return None
        for user_id, udata in self._load()["users"].items():
            if not isinstance(udata, dict):
                continue
            if str(udata.get("username") or "").strip() == u:
                return CredentialRecord(
                    id=str(user_id),
                    username=u,
                    password_hash=str(udata.get("password_hash") or "").strip(),
                )
        return None

    def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        udata = self._load()["users"].get(user_id)
        if not isinstance(udata, dict):
            return None
        return UserRecord(id=str(user_id), username=str(udata.get("username") or ""))

    def add_user(self, *, username: str, password_hash: str, user_id: Optional[str] = None) -> UserRecord:
        username = (username or "").strip()
        if not username:
            raise ValueError("Username cannot be empty")
        with self._lock:
            data = copy.deepcopy(self._load())
            if self.find_credential_by_username(username) is not None:
                raise ValueError(f"User '{username}' already exists")
            uid = user_id or str(uuid.uuid4())
            if uid in data["users"]:
                raise ValueError(f"User id '{uid}' already exists")
            data["users"][uid] = {"username": username, "password_hash": password_hash}
            self._save(data)
        return UserRecord(id=uid, username=username)

    # --- jokes ---

    @staticmethod
    def _joke(joke_id: Any, jdata: Dict[str, Any]) -> Joke:
        return Joke(
            id=str(joke_id),
            name=str(jdata.get("name") or ""),
            content=str(jdata.get("content") or ""),
            jokester_id=str(jdata.get("jokester_id") or ""),
            created_at=str(jdata.get("created_at") or ""),
        )

    def find_joke_by_id(self, joke_id: str) -> Optional[Joke]:
        jdata = self._load()["jokes"].get(joke_id)
        if not isinstance(jdata, dict):
            return None
        return self._joke(joke_id, jdata)

    def list_jokes(self) -> List[Joke]:
        jokes = [self._joke(k, v) for k, v in self._load()["jokes"].items() if isinstance(v, dict)]
        jokes.sort(key=lambda j: j.created_at, reverse=True)
        return jokes

    def add_joke(self, *, name: str, content: str, jokester_id: str, joke_id: Optional[str] = None) -> Joke:
        jid = joke_id or str(uuid.uuid4())
        created_at = datetime.now(timezone.utc).isoformat(timespec="microseconds")
        with self._lock:
            data = copy.deepcopy(self._load())
            data["jokes"][jid] = {
                "name": name,
                "content": content,
                "jokester_id": jokester_id,
                "created_at": created_at,
            }
            self._save(data)
        return Joke(id=jid, name=name, content=content, jokester_id=jokester_id, created_at=created_at)

    def delete_joke(self, joke_id: str) -> bool:
        with self._lock:
            data = copy.deepcopy(self._load())
            if joke_id not in data["jokes"]:
                return False
            del data["jokes"][joke_id]
            self._save(data)
        return True
