import sys
from pathlib import Path as _Path
sys.path.insert(0, str(_Path(__file__).resolve().parents[1] / "src"))

from pathlib import Path

import pytest
from starlette.requests import Request

from jokester.auth.session import SessionCodec
from jokester.auth.users import hash_password
from jokester.config import SessionConfig, Settings
from jokester.infra.store import YamlStore

SECRET = "test-secret"
PASSWORDS = {"alice": "twixrox", "bob": "kodyrules"}


@pytest.fixture(scope="session")
def password_hashes() -> dict:
    # argon2 is deliberately slow; hash once per test session.
    return {name: hash_password(pw) for name, pw in PASSWORDS.items()}


@pytest.fixture()
def store(tmp_path: Path, password_hashes) -> YamlStore:
    """
    Temporary store with:
      - alice (u1) owning joke j1
      - bob (u2) owning joke j2
    """
    s = YamlStore(tmp_path / "data" / "jokester.yml")
    s.add_user(username="alice", password_hash=password_hashes["alice"], user_id="u1")
    s.add_user(username="bob", password_hash=password_hashes["bob"], user_id="u2")
    s.add_joke(name="Road worker", content="I never wanted to believe that my Dad was stealing.", jokester_id="u1", joke_id="j1")
    s.add_joke(name="Frisbee", content="I was wondering why the frisbee was getting bigger.", jokester_id="u2", joke_id="j2")
    return s


@pytest.fixture()
def session_config() -> SessionConfig:
    return SessionConfig(secrets=(SECRET,))


@pytest.fixture()
def codec(session_config) -> SessionCodec:
    return SessionCodec(session_config)


@pytest.fixture()
def settings(session_config, tmp_path: Path) -> Settings:
    return Settings(session=session_config, data_path=tmp_path / "data" / "jokester.yml")


@pytest.fixture()
def make_request():
    """Build a bare ASGI request with an optional Cookie header."""

    def _make(path: str = "/jokes/j1", cookie: str = "", method: str = "GET") -> Request:
        headers = []
        if cookie:
            headers.append((b"cookie", cookie.encode("latin-1")))
        scope = {
            "type": "http",
            "method": method,
            "scheme": "http",
            "server": ("testserver", 80),
            "path": path,
            "root_path": "",
            "query_string": b"",
            "headers": headers,
        }
        return Request(scope)

    return _make


@pytest.fixture()
def cookie_for(codec):
    """Return a Cookie request header for a session carrying ``user_id``."""

    def _cookie(user_id: str) -> str:
        return f"{codec.cookie_name}={codec.sign({'userId': user_id})}"

    return _cookie
