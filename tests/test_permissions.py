from typing import Optional
from urllib.parse import parse_qs, urlsplit

from starlette.requests import cookie_parser

from jokester.auth.users import Identity
from jokester.core.outcome import Failure, FailureKind, Ok, Redirect
from jokester.errors import StoreError
from jokester.infra.store import Joke, UserRecord
from jokester.permissions import (
    authorize_delete,
    create_session,
    get_current_user,
    get_current_user_id,
    logout,
    require_user_id,
    sanitize_redirect,
)


class BrokenStore:
    """Store double whose lookups always fail."""

    def find_user_by_id(self, user_id: str) -> Optional[UserRecord]:
        raise StoreError("database is down")

    def find_joke_by_id(self, joke_id: str) -> Optional[Joke]:
        raise StoreError("database is down")


def _is_clearing(set_cookie: str, codec) -> bool:
    return set_cookie.startswith(f'{codec.cookie_name}=""') and "Max-Age=0" in set_cookie


def test_current_user_id_from_cookie(codec, make_request, cookie_for):
    assert get_current_user_id(make_request(cookie=cookie_for("u1")), codec) == "u1"


def test_current_user_id_with_unrelated_cookies(codec, make_request, cookie_for):
    header = f"cart[1]=x; {cookie_for('u1')}; theme=dark"
    assert get_current_user_id(make_request(cookie=header), codec) == "u1"


def test_current_user_id_without_cookie(codec, make_request):
    assert get_current_user_id(make_request(), codec) is None


def test_current_user_id_rejects_non_string_or_empty(codec, make_request):
    for payload in ({"userId": 42}, {"userId": ""}, {"userId": None}, {"other": "u1"}, {}):
        cookie = f"{codec.cookie_name}={codec.sign(payload)}"
        assert get_current_user_id(make_request(cookie=cookie), codec) is None


def test_current_user_id_ignores_cookie_signed_elsewhere(make_request, codec):
    from jokester.auth.session import SessionCodec
    from jokester.config import SessionConfig

    foreign = SessionCodec(SessionConfig(secrets=("someone-else",)))
    cookie = f"{codec.cookie_name}={foreign.sign({'userId': 'u1'})}"
    assert get_current_user_id(make_request(cookie=cookie), codec) is None


def test_require_user_id_redirects_to_login_with_exact_path(codec, make_request):
    outcome = require_user_id(make_request(path="/jokes/j1"), codec)
    assert isinstance(outcome, Redirect)
    parts = urlsplit(outcome.location)
    assert parts.path == "/login"
    assert parse_qs(parts.query) == {"redirectTo": ["/jokes/j1"]}
    assert outcome.set_cookie is None


def test_require_user_id_explicit_target(codec, make_request):
    outcome = require_user_id(make_request(path="/jokes/j1"), codec, redirect_to="/jokes/new")
    assert isinstance(outcome, Redirect)
    assert parse_qs(urlsplit(outcome.location).query) == {"redirectTo": ["/jokes/new"]}


def test_require_user_id_ok(codec, make_request, cookie_for):
    assert require_user_id(make_request(cookie=cookie_for("u2")), codec) == Ok("u2")


def test_get_current_user_returns_minimal_identity(codec, store, make_request, cookie_for):
    outcome = get_current_user(make_request(cookie=cookie_for("u1")), codec, store)
    assert outcome == Ok(Identity(id="u1", username="alice"))


def test_get_current_user_anonymous(codec, store, make_request):
    assert get_current_user(make_request(), codec, store) == Ok(None)


def test_get_current_user_store_failure_forces_logout(codec, make_request, cookie_for):
    outcome = get_current_user(make_request(cookie=cookie_for("u1")), codec, BrokenStore())
    assert isinstance(outcome, Redirect)
    assert outcome.location == "/login"
    assert _is_clearing(outcome.set_cookie, codec)


def test_get_current_user_missing_record_forces_logout(codec, store, make_request, cookie_for):
    outcome = get_current_user(make_request(cookie=cookie_for("ghost")), codec, store)
    assert isinstance(outcome, Redirect)
    assert _is_clearing(outcome.set_cookie, codec)


def test_create_session_sets_cookie_and_redirects(codec, make_request):
    outcome = create_session(codec, "u1", "/jokes/j1")
    assert outcome.location == "/jokes/j1"
    assert outcome.status_code == 303
    token = cookie_parser(outcome.set_cookie)[codec.cookie_name]
    cookie = f"{codec.cookie_name}={token}"
    assert get_current_user_id(make_request(cookie=cookie), codec) == "u1"


def test_logout_always_clears_cookie(codec, make_request, cookie_for):
    for request in (
        make_request(cookie=cookie_for("u1")),
        make_request(),
        make_request(cookie=f"{codec.cookie_name}=tampered.value.sig"),
    ):
        outcome = logout(request, codec)
        assert outcome.location == "/login"
        assert _is_clearing(outcome.set_cookie, codec)


def test_authorize_delete_unauthenticated_redirects(codec, store, make_request):
    outcome = authorize_delete(make_request(path="/jokes/j1", method="POST"), codec, store, "j1")
    assert isinstance(outcome, Redirect)
    assert parse_qs(urlsplit(outcome.location).query) == {"redirectTo": ["/jokes/j1"]}


def test_authorize_delete_missing_record(codec, store, make_request, cookie_for):
    outcome = authorize_delete(make_request(cookie=cookie_for("u1")), codec, store, "nope")
    assert isinstance(outcome, Failure)
    assert outcome.kind is FailureKind.NOT_FOUND
    assert outcome.status_code == 404


def test_authorize_delete_not_owner(codec, store, make_request, cookie_for):
    outcome = authorize_delete(make_request(cookie=cookie_for("u1")), codec, store, "j2")
    assert isinstance(outcome, Failure)
    assert outcome.kind is FailureKind.FORBIDDEN
    assert outcome.status_code == 403
    assert store.find_joke_by_id("j2") is not None


def test_authorize_delete_owner(codec, store, make_request, cookie_for):
    outcome = authorize_delete(make_request(cookie=cookie_for("u1")), codec, store, "j1")
    assert isinstance(outcome, Ok)
    assert outcome.value.id == "j1"
    # The gate only authorizes; the record is still there.
    assert store.find_joke_by_id("j1") is not None


def test_authorize_delete_store_failure(codec, make_request, cookie_for):
    outcome = authorize_delete(make_request(cookie=cookie_for("u1")), codec, BrokenStore(), "j1")
    assert isinstance(outcome, Failure)
    assert outcome.kind is FailureKind.STORE_UNAVAILABLE


def test_sanitize_redirect():
    assert sanitize_redirect("/jokes/j1") == "/jokes/j1"
    assert sanitize_redirect("") == "/jokes"
    assert sanitize_redirect(None) == "/jokes"
    assert sanitize_redirect("https://evil.example") == "/jokes"
    assert sanitize_redirect("//evil.example") == "/jokes"
    assert sanitize_redirect("/\\evil.example") == "/jokes"
