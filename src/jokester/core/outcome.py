# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

"""Tagged results returned by the session layer and the resource gate.

Callers inspect the outcome instead of catching a thrown redirect:

- ``Ok(value)``: carry on with ``value``.
- ``Redirect(location, set_cookie)``: stop and send the client elsewhere.
- ``Failure(kind, message)``: stop and render an error for ``kind``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class FailureKind(str, Enum):
    BAD_REQUEST = "bad_request"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    STORE_UNAVAILABLE = "store_unavailable"

    @property
    def status_code(self) -> int:
        return _STATUS[self]


_STATUS = {
    FailureKind.BAD_REQUEST: 400,
    FailureKind.NOT_FOUND: 404,
    FailureKind.FORBIDDEN: 403,
    FailureKind.STORE_UNAVAILABLE: 503,
}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T


@dataclass(frozen=True)
class Redirect:
    location: str
    set_cookie: Optional[str] = None
    status_code: int = 303


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)

    @property
    def status_code(self) -> int:
        return self.kind.status_code


Outcome = Union[Ok[T], Redirect, Failure]
