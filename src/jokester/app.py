# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import logging
from pathlib import Path
from typing import Optional

from fastapi import APIRouter, FastAPI, Form, Query, Request
from fastapi.responses import PlainTextResponse, RedirectResponse, Response
from fastapi.templating import Jinja2Templates

from jokester.auth.session import SessionCodec
from jokester.auth.users import verify_login
from jokester.config import Settings, load_settings
from jokester.core.outcome import Failure, FailureKind, Redirect
from jokester.errors import StoreError
from jokester.infra.store import RecordStore, YamlStore
from jokester.permissions import (
    create_session,
    get_current_user,
    logout,
    require_user_id,
    sanitize_redirect,
)
from jokester.services.joke_service import create_joke, delete_joke, get_joke_view, list_jokes

logger = logging.getLogger(__name__)

BASE_DIR = Path(__file__).resolve().parent
templates = Jinja2Templates(directory=str(BASE_DIR / "templates"))

router = APIRouter()

JOKE_FAILURE_MESSAGES = {
    FailureKind.BAD_REQUEST: "What you're trying to do is not allowed.",
    FailureKind.NOT_FOUND: "Huh? What the heck is {joke_id}?",
    FailureKind.FORBIDDEN: "Sorry, but {joke_id} is not your joke.",
    FailureKind.STORE_UNAVAILABLE: "There was an error loading joke by the id {joke_id}. Sorry.",
}


def _codec(request: Request) -> SessionCodec:
    return request.app.state.codec


def _store(request: Request) -> RecordStore:
    return request.app.state.store


def _redirect(outcome: Redirect) -> RedirectResponse:
    resp = RedirectResponse(url=outcome.location, status_code=outcome.status_code)
    if outcome.set_cookie:
        resp.headers.append("set-cookie", outcome.set_cookie)
    return resp


def _joke_failure(failure: Failure, joke_id: str) -> PlainTextResponse:
    text = JOKE_FAILURE_MESSAGES.get(failure.kind, failure.message).format(joke_id=joke_id)
    return PlainTextResponse(text, status_code=failure.status_code)


def _render(request: Request, template_name: str, ctx: dict, status_code: int = 200):
    """TemplateResponse wrapper; resolves the current user for the layout.

    Returns the logout redirect instead when the session user cannot be loaded.
    """
    current = get_current_user(request, _codec(request), _store(request))
    if isinstance(current, Redirect):
        return _redirect(current)
    merged = {"current_user": current.value, **(ctx or {})}
    return templates.TemplateResponse(request, template_name, merged, status_code=status_code)


@router.get("/")
def index():
    return RedirectResponse(url="/jokes", status_code=303)


@router.get("/login")
def login_get(request: Request, redirect_to: str = Query("/jokes", alias="redirectTo")):
    target = sanitize_redirect(redirect_to)
    current = get_current_user(request, _codec(request), _store(request))
    if isinstance(current, Redirect):
        return _redirect(current)
    if current.value is not None:
        return RedirectResponse(url=target, status_code=303)
    return _render(request, "login.html", {"redirect_to": target, "username": "", "error": ""})


@router.post("/login")
def login_post(
    request: Request,
    username: str = Form(""),
    password: str = Form(""),
    redirect_to: str = Form("/jokes", alias="redirectTo"),
):
    target = sanitize_redirect(redirect_to)
    identity = verify_login(_store(request), username, password)
    if identity is None:
        return _render(
            request,
            "login.html",
            {"redirect_to": target, "username": username, "error": "Username/Password combination is incorrect"},
            status_code=400,
        )
    logger.info("User %s logged in", identity.username)
    return _redirect(create_session(_codec(request), identity.id, target))


@router.post("/logout")
def logout_post(request: Request):
    return _redirect(logout(request, _codec(request)))


@router.get("/logout")
def logout_get():
    return RedirectResponse(url="/", status_code=303)


@router.get("/jokes")
def jokes_index(request: Request):
    return _render(request, "jokes.html", {"jokes": list_jokes(_store(request))})


@router.get("/jokes/new")
def joke_new_form(request: Request):
    required = require_user_id(request, _codec(request))
    if isinstance(required, Redirect):
        return _redirect(required)
    return _render(request, "new_joke.html", {"name": "", "content": "", "errors": {}})


@router.post("/jokes/new")
def joke_new(request: Request, name: str = Form(""), content: str = Form("")):
    outcome = create_joke(request, _codec(request), _store(request), name, content)
    if isinstance(outcome, Redirect):
        return _redirect(outcome)
    if isinstance(outcome, Failure):
        return _render(
            request,
            "new_joke.html",
            {"name": name, "content": content, "errors": outcome.details.get("fields", {})},
            status_code=outcome.status_code,
        )
    return RedirectResponse(url=f"/jokes/{outcome.value.id}", status_code=303)


@router.get("/jokes/{joke_id}")
def joke_detail(request: Request, joke_id: str):
    outcome = get_joke_view(request, _codec(request), _store(request), joke_id)
    if isinstance(outcome, Failure):
        return _joke_failure(outcome, joke_id)
    joke, is_owner = outcome.value
    return _render(request, "joke.html", {"joke": joke, "is_owner": is_owner})


@router.post("/jokes/{joke_id}")
def joke_action(request: Request, joke_id: str, method: Optional[str] = Form(None, alias="_method")):
    outcome = delete_joke(request, _codec(request), _store(request), joke_id, method)
    if isinstance(outcome, Redirect):
        return _redirect(outcome)
    if isinstance(outcome, Failure):
        return _joke_failure(outcome, joke_id)
    return RedirectResponse(url="/jokes", status_code=303)


async def _store_error_handler(request: Request, exc: StoreError) -> Response:
    logger.exception("Store failure on %s %s", request.method, request.url.path, exc_info=exc)
    return PlainTextResponse("Storage is unavailable. Try again later.", status_code=503)


def create_app(settings: Optional[Settings] = None, store: Optional[RecordStore] = None) -> FastAPI:
    """Build the application.

    Settings are loaded from the environment when not given; a missing
    signing secret aborts startup with ``ConfigurationError``.
    """
    settings = settings or load_settings()
    app = FastAPI(title="Jokester")
    app.state.settings = settings
    app.state.codec = SessionCodec(settings.session)
    app.state.store = store if store is not None else YamlStore(settings.data_path)
    app.add_exception_handler(StoreError, _store_error_handler)
    app.include_router(router)
    logger.info("Jokester ready (data=%s, secure cookies=%s)", settings.data_path, settings.session.secure)
    return app
