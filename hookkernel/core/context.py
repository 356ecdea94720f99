"""
Request context utilities.

Holds the id of the request being dispatched so that logs and the
outgoing response can be correlated.

Usage:
    from hookkernel.core.context import get_request_id

    logger.info("Processing", request_id=get_request_id())
"""

from __future__ import annotations

from contextvars import ContextVar, Token
from typing import Any, Optional


# Request-scoped context using contextvars (async-safe)
_request_id: ContextVar[Optional[str]] = ContextVar("request_id", default=None)


def get_request_id() -> Optional[str]:
    """Get the current request ID, None outside of a dispatch."""
    return _request_id.get()


def set_request_id(request_id: str) -> Token:
    """Set the current request ID. Returns a token for ``reset_request_id``."""
    return _request_id.set(request_id)


def reset_request_id(token: Token) -> None:
    _request_id.reset(token)


def add_request_context(
    logger: Any,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Structlog processor that adds the request ID to all logs."""
    request_id = get_request_id()
    if request_id:
        event_dict["request_id"] = request_id
    return event_dict
