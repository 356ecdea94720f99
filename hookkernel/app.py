"""
ASGI application entry point.
"""

from typing import Any

import structlog
from starlette.requests import Request
from starlette.types import Receive, Scope, Send

from hookkernel.core.config import Settings, get_settings
from hookkernel.core.dispatcher import RequestHandler
from hookkernel.core.hooks import CoreHooks, HookEvent, HookManager, hooks
from hookkernel.core.logging_config import configure_logging
from hookkernel.listeners import ExceptionListener, RequestIdListener, exception, request_id

logger = structlog.get_logger()


class HookKernelApp:
    """
    ASGI application serving every HTTP request through a RequestHandler.

    Lifespan events are forwarded to the ``app.startup`` and
    ``app.shutdown`` hooks.
    """

    def __init__(self, handler: RequestHandler):
        self.handler = handler

    @property
    def hooks(self) -> HookManager:
        return self.handler.hooks

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "lifespan":
            await self._lifespan(receive, send)
            return

        if scope["type"] != "http":
            raise RuntimeError(f"Unsupported ASGI scope type: {scope['type']}")

        request = Request(scope, receive)
        try:
            response = await self.handler.handle(request)
        except Exception:
            logger.exception(
                "Request failed",
                method=request.method,
                path=request.url.path,
            )
            raise

        await response(scope, receive, send)

    async def _lifespan(self, receive: Receive, send: Send) -> None:
        while True:
            message = await receive()

            if message["type"] == "lifespan.startup":
                try:
                    await self.hooks.notify(self._event(CoreHooks.APP_STARTUP))
                except Exception as exc:
                    logger.exception("Startup hook failed")
                    await send({"type": "lifespan.startup.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.startup.complete"})

            elif message["type"] == "lifespan.shutdown":
                try:
                    await self.hooks.notify(self._event(CoreHooks.APP_SHUTDOWN))
                except Exception as exc:
                    logger.exception("Shutdown hook failed")
                    await send({"type": "lifespan.shutdown.failed", "message": str(exc)})
                    return
                await send({"type": "lifespan.shutdown.complete"})
                return

    def _event(self, name: str, **parameters: Any) -> HookEvent:
        return HookEvent(subject=self, name=name, parameters={"app": self, **parameters})


def create_app(
    settings: Settings | None = None,
    hook_manager: HookManager | None = None,
) -> HookKernelApp:
    """
    Create and configure the ASGI application.

    Uses the global hook manager unless one is given, so listeners
    registered with ``@hook(...)`` are picked up. The bundled listeners
    replace any instance left by a previous call on the same manager.
    """
    settings = settings or get_settings()
    manager = hook_manager if hook_manager is not None else hooks

    configure_logging(settings)

    if settings.listeners.request_id_enabled:
        RequestIdListener(settings.listeners.request_id_header).register(manager)
    else:
        manager.unregister_source(request_id.SOURCE)

    if settings.listeners.exception_handler_enabled:
        ExceptionListener(
            debug=settings.debug,
            main_request_only=settings.listeners.exception_main_request_only,
        ).register(manager)
    else:
        manager.unregister_source(exception.SOURCE)

    logger.debug(
        "Application created",
        app_name=settings.app_name,
        environment=settings.environment,
        hooks=manager.list_hooks(),
    )
    return HookKernelApp(RequestHandler(manager))


if __name__ == "__main__":
    import uvicorn

    settings = get_settings()
    uvicorn.run(
        "hookkernel.app:create_app",
        factory=True,
        host=settings.host,
        port=settings.port,
    )
