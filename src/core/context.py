"""Per-request logging context.

The request id is bound by ``RequestContextMiddleware``; the acting user is
bound once the auth dependency has resolved the token. Log processors read
both through ``log_fields()``.
"""

from contextvars import ContextVar
from typing import Any
from uuid import uuid4


_request_id: ContextVar[str | None] = ContextVar("request_id", default=None)
_actor_id: ContextVar[str | None] = ContextVar("actor_id", default=None)
_actor_role: ContextVar[str | None] = ContextVar("actor_role", default=None)


def begin_request(request_id: str | None = None) -> str:
    """Bind the incoming request id (or a fresh one) and return it."""
    value = request_id or uuid4().hex
    _request_id.set(value)
    return value


def bind_actor(user_id: Any, role: str | None = None) -> None:
    _actor_id.set(str(user_id))
    _actor_role.set(role)


def current_request_id() -> str | None:
    return _request_id.get()


def log_fields() -> dict[str, str]:
    """Context fields to merge into every log event."""
    fields = {
        "request_id": _request_id.get(),
        "user_id": _actor_id.get(),
        "user_role": _actor_role.get(),
    }
    return {key: value for key, value in fields.items() if value}


def end_request() -> None:
    for var in (_request_id, _actor_id, _actor_role):
        var.set(None)
