"""
Exception listener: turns uncaught errors into JSON error responses.
"""

from http import HTTPStatus

import structlog
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import JSONResponse

from hookkernel.core.exceptions import HttpException
from hookkernel.core.hooks import CoreHooks, HookEvent, HookManager, HookPriority

logger = structlog.get_logger()

SOURCE = "hookkernel.listeners.exception"


def _error_code(status_code: int) -> str:
    try:
        return HTTPStatus(status_code).phrase.lower().replace(" ", "_").replace("-", "_")
    except ValueError:
        return "http_error"


class ExceptionListener:
    """
    core.exception listener producing a JSONResponse.

    - HttpException (and Starlette's HTTPException) keep their status
      code, detail and headers.
    - Anything else becomes a 500 whose message is only revealed in debug.

    With ``main_request_only`` sub-request errors are left alone so they
    propagate to the dispatch that issued the sub-request.
    """

    def __init__(self, *, debug: bool = False, main_request_only: bool = False):
        self.debug = debug
        self.main_request_only = main_request_only

    def register(
        self,
        manager: HookManager,
        *,
        priority: HookPriority = HookPriority.LAST,
    ) -> None:
        """Register on ``manager``, replacing a previously registered instance."""
        manager.unregister_source(SOURCE)
        manager.register(
            CoreHooks.EXCEPTION,
            self,
            priority=priority,
            source=SOURCE,
        )

    async def __call__(self, event: HookEvent) -> bool:
        if self.main_request_only and not event["main_request"]:
            return False

        return event.resolve(self.build_response(event["exception"]))

    def build_response(self, exc: Exception) -> JSONResponse:
        if isinstance(exc, (HttpException, StarletteHTTPException)):
            status_code = exc.status_code
            logger.info(
                "HTTP error",
                status_code=status_code,
                detail=str(exc.detail),
            )
            return JSONResponse(
                status_code=status_code,
                content={
                    "error": _error_code(status_code),
                    "message": str(exc.detail),
                },
                headers=dict(exc.headers or {}),
            )

        logger.error(
            "Unhandled error during dispatch",
            error_type=type(exc).__name__,
            error=str(exc),
        )
        return JSONResponse(
            status_code=500,
            content={
                "error": "internal_server_error",
                "message": str(exc) if self.debug else "An error occurred",
            },
        )
