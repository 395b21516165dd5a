"""Request context carried into every log line.

Two values follow a request across await points:

- correlation_id: taken from the X-Correlation-ID header or generated
- actor_id: the acting user named by the X-Actor-Id header

Both live in contextvars, so concurrent requests never see each other's
values. The middleware binds them on entry and restores the previous
values on exit.
"""

from contextvars import ContextVar, Token
from typing import Any, NamedTuple
from uuid import uuid4

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")
_actor_id: ContextVar[str] = ContextVar("actor_id", default="")


class RequestContextTokens(NamedTuple):
    """Tokens needed to undo bind_request_context."""

    correlation_id: Token[str]
    actor_id: Token[str]


def generate_correlation_id() -> str:
    return str(uuid4())


def get_correlation_id() -> str:
    """Current correlation id, "" outside a request."""
    return _correlation_id.get()


def set_correlation_id(correlation_id: str) -> None:
    _correlation_id.set(correlation_id)


def get_actor_id() -> str:
    """Acting user of the current request, "" when anonymous."""
    return _actor_id.get()


def bind_request_context(
    correlation_id: str, actor_id: str | None = None
) -> RequestContextTokens:
    """Bind both context values for the duration of a request."""
    return RequestContextTokens(
        correlation_id=_correlation_id.set(correlation_id),
        actor_id=_actor_id.set((actor_id or "").strip()),
    )


def reset_request_context(tokens: RequestContextTokens) -> None:
    _correlation_id.reset(tokens.correlation_id)
    _actor_id.reset(tokens.actor_id)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor stamping the request context onto an event.

    Values bound explicitly on the logger win over the context.
    """
    correlation_id = _correlation_id.get()
    if correlation_id:
        event_dict.setdefault("correlation_id", correlation_id)
    actor_id = _actor_id.get()
    if actor_id:
        event_dict.setdefault("actor_id", actor_id)
    return event_dict
