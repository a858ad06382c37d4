#!/usr/bin/env python3
from __future__ import annotations

import os
from getpass import getpass
from pathlib import Path

from jokester.auth.users import hash_password
from jokester.infra.store import YamlStore

DATA_PATH = Path(os.getenv("JOKESTER_DATA_PATH", "data/jokester.yml")).resolve()


def main() -> None:
    store = YamlStore(DATA_PATH)

    username = input("Username: ").strip()
    pw1 = getpass("Password: ")
    pw2 = getpass("Repeat password: ")
    if pw1 != pw2:
        raise SystemExit("Passwords do not match")

    try:
        user = store.add_user(username=username, password_hash=hash_password(pw1))
    except ValueError as e:
        raise SystemExit(str(e))
    print(f"OK -> {user.username} ({user.id}) in {DATA_PATH}")


if __name__ == "__main__":
    main()
