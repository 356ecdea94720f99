"""
Request handler: turns a request into a response by notifying hooks.
"""

from typing import Any

import structlog

from .exceptions import InvalidControllerError, InvalidResponseError, NotFoundHttpException
from .hooks.manager import CoreHooks, HookEvent, HookManager, maybe_await
from .responses import describe_value, is_response

logger = structlog.get_logger()


class RequestHandler:
    """
    Converts a request into a response through a fixed sequence of hooks.

    Dispatch order (any step may short-circuit):
    1. core.request: a listener may answer straight away
    2. core.load_controller: a listener must resolve (controller, arguments)
    3. core.controller: a listener may answer, or rewrite the controller
    4. the controller is called
    5. core.view: filters the controller return value
    6. core.response: filters every response before it is returned

    The handler owns no state besides the hook manager, so one instance
    serves any number of concurrent and nested dispatches.
    """

    def __init__(self, hooks: HookManager):
        self.hooks = hooks

    async def handle(self, request: Any, main_request: bool = True) -> Any:
        """
        Handle a request, giving core.exception listeners a chance to
        turn any error into a response.

        Raises:
            Exception: the original error when no core.exception listener
                handled it, or the error raised by the fallback itself
        """
        main_request = bool(main_request)

        try:
            return await self.handle_raw(request, main_request)
        except Exception as exc:
            event = await self.hooks.notify_until(
                self._event(
                    CoreHooks.EXCEPTION,
                    main_request=main_request,
                    request=request,
                    exception=exc,
                )
            )
            if event.processed:
                logger.debug(
                    "Exception converted to response",
                    error_type=type(exc).__name__,
                    main_request=main_request,
                )
                return await self.filter_response(
                    event.return_value,
                    'A "core.exception" listener returned a non response object.',
                    main_request,
                )

            logger.debug(
                "Exception not handled by any listener",
                error_type=type(exc).__name__,
                main_request=main_request,
            )
            raise

    async def handle_raw(self, request: Any, main_request: bool = True) -> Any:
        """
        Handle a request without catching errors.

        Raises:
            NotFoundHttpException: no listener resolved a controller
            InvalidControllerError: the resolved controller is not callable
            InvalidResponseError: a listener or the controller produced
                something that is not a response
        """
        main_request = bool(main_request)

        # request
        event = await self.hooks.notify_until(
            self._event(CoreHooks.REQUEST, main_request=main_request, request=request)
        )
        if event.processed:
            logger.debug("Request answered by core.request listener", main_request=main_request)
            return await self.filter_response(
                event.return_value,
                'A "core.request" listener returned a non response object.',
                main_request,
            )

        # load controller
        event = await self.hooks.notify_until(
            self._event(CoreHooks.LOAD_CONTROLLER, main_request=main_request, request=request)
        )
        if not event.processed:
            raise NotFoundHttpException("Unable to find the controller.")

        controller, arguments = self._unpack_controller(event.return_value)

        if not callable(controller):
            raise InvalidControllerError(
                f"The controller must be a callable ({controller!r})."
            )

        # controller
        event = await self.hooks.notify_until(
            self._event(
                CoreHooks.CONTROLLER,
                main_request=main_request,
                request=request,
                controller=controller,
                arguments=arguments,
            )
        )
        if event.processed:
            retval = event.return_value
            if is_response(retval):
                return await self.filter_response(
                    retval,
                    'A "core.controller" listener returned a non response object.',
                    main_request,
                )
            # Raw result from a listener still goes through the view hook
        else:
            controller = event["controller"]
            arguments = event["arguments"]
            logger.debug(
                "Calling controller",
                controller=getattr(controller, "__qualname__", repr(controller)),
                main_request=main_request,
            )
            retval = await maybe_await(controller(*arguments))

        # view
        event = await self.hooks.filter(
            self._event(CoreHooks.VIEW, main_request=main_request),
            retval,
        )
        retval = event.return_value

        return await self.filter_response(
            retval,
            f"The controller must return a response (instead of {describe_value(retval)}).",
            main_request,
        )

    async def filter_response(self, response: Any, message: str, main_request: bool) -> Any:
        """
        Pass a response through the core.response listeners.

        Raises:
            InvalidResponseError: ``response`` (with ``message``) or the
                filtered value is not a response
        """
        if not is_response(response):
            raise InvalidResponseError(message)

        event = await self.hooks.filter(
            self._event(CoreHooks.RESPONSE, main_request=main_request),
            response,
        )
        response = event.return_value

        if not is_response(response):
            raise InvalidResponseError(
                'A "core.response" listener returned a non response object.'
            )

        return response

    def _event(self, name: str, **parameters: Any) -> HookEvent:
        return HookEvent(subject=self, name=name, parameters=parameters)

    @staticmethod
    def _unpack_controller(value: Any) -> tuple[Any, list[Any]]:
        try:
            controller, arguments = value
        except (TypeError, ValueError) as exc:
            raise InvalidControllerError(
                "A \"core.load_controller\" listener must return a "
                f"(controller, arguments) pair ({describe_value(value)})."
            ) from exc

        if not isinstance(arguments, (list, tuple)):
            raise InvalidControllerError(
                f"The controller arguments must be a list ({describe_value(arguments)})."
            )

        return controller, list(arguments)
