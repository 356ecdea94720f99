"""
Request ID listener for request tracing.
"""

import uuid
from contextvars import ContextVar, Token
from typing import Any, Optional

from hookkernel.core.context import get_request_id, reset_request_id, set_request_id
from hookkernel.core.hooks import CoreHooks, HookEvent, HookManager, HookPriority

SOURCE = "hookkernel.listeners.request_id"

# Token restoring the request ID that was current before the main request
_reset_token: ContextVar[Optional[Token]] = ContextVar("request_id_reset_token", default=None)


class RequestIdListener:
    """
    Attach a unique request ID to each main request.

    Reads the incoming header when present, otherwise generates a UUID4.
    The ID is stored in the request context (see
    ``hookkernel.core.context``) and echoed on the outgoing response.
    Sub-requests share the ID of their main request. The previous ID is
    restored once the main response is filtered, or once an error is left
    unhandled by every other core.exception listener.
    """

    def __init__(self, header_name: str = "X-Request-ID"):
        self.header_name = header_name

    def register(self, manager: HookManager) -> None:
        """Register on ``manager``, replacing a previously registered instance."""
        manager.unregister_source(SOURCE)
        manager.register(
            CoreHooks.REQUEST,
            self.on_request,
            priority=HookPriority.FIRST,
            source=SOURCE,
        )
        manager.register(
            CoreHooks.RESPONSE,
            self.on_response,
            priority=HookPriority.LAST,
            source=SOURCE,
        )
        # Runs only when no other listener claimed the error
        manager.register(
            CoreHooks.EXCEPTION,
            self.on_exception,
            priority=HookPriority.LAST + 1,
            source=SOURCE,
        )

    async def on_request(self, event: HookEvent) -> bool:
        if not event["main_request"]:
            return False

        headers = getattr(event["request"], "headers", None) or {}
        request_id = headers.get(self.header_name) or str(uuid.uuid4())
        _reset_token.set(set_request_id(request_id))

        # Never claims the event
        return False

    async def on_response(self, event: HookEvent, response: Any) -> Any:
        if not event["main_request"]:
            return response

        request_id = get_request_id()
        if request_id:
            response.headers[self.header_name] = request_id
        self._restore()
        return response

    async def on_exception(self, event: HookEvent) -> bool:
        if event["main_request"]:
            self._restore()
        return False

    @staticmethod
    def _restore() -> None:
        token = _reset_token.get()
        if token is not None:
            _reset_token.set(None)
            reset_request_id(token)
