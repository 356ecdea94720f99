"""
Tests for the bundled listeners.
"""

import json

import pytest
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.responses import PlainTextResponse

from hookkernel.core.context import get_request_id, reset_request_id, set_request_id
from hookkernel.core.exceptions import HttpException, NotFoundHttpException
from hookkernel.core.hooks import CoreHooks, HookEvent
from hookkernel.listeners import ExceptionListener, RequestIdListener


@pytest.fixture
def request_id_reset():
    """Restore the request ID context after the test."""
    token = set_request_id("")
    yield
    reset_request_id(token)


# ============ ExceptionListener ============


@pytest.mark.asyncio
async def test_not_found_becomes_404(handler, hook_manager, request_obj):
    ExceptionListener().register(hook_manager)

    response = await handler.handle(request_obj)

    assert response.status_code == 404
    assert json.loads(response.body) == {
        "error": "not_found",
        "message": "Unable to find the controller.",
    }


@pytest.mark.asyncio
async def test_unexpected_error_hides_message(handler, hook_manager, request_obj, resolver):
    def explode():
        raise ValueError("database password is hunter2")

    hook_manager.register(CoreHooks.LOAD_CONTROLLER, resolver(explode))
    ExceptionListener(debug=False).register(hook_manager)

    response = await handler.handle(request_obj)

    assert response.status_code == 500
    assert json.loads(response.body) == {
        "error": "internal_server_error",
        "message": "An error occurred",
    }


@pytest.mark.asyncio
async def test_unexpected_error_shows_message_in_debug(handler, hook_manager, request_obj, resolver):
    def explode():
        raise ValueError("boom")

    hook_manager.register(CoreHooks.LOAD_CONTROLLER, resolver(explode))
    ExceptionListener(debug=True).register(hook_manager)

    response = await handler.handle(request_obj)

    assert json.loads(response.body)["message"] == "boom"


def test_http_exception_keeps_status_and_headers():
    exc = HttpException("Slow down", status_code=429, headers={"Retry-After": "30"})

    response = ExceptionListener().build_response(exc)

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "30"
    assert json.loads(response.body) == {"error": "too_many_requests", "message": "Slow down"}


def test_starlette_http_exception_is_supported():
    response = ExceptionListener().build_response(StarletteHTTPException(status_code=403))

    assert response.status_code == 403
    assert json.loads(response.body)["error"] == "forbidden"


def test_not_found_default_detail():
    exc = NotFoundHttpException()

    assert exc.detail == "Not Found"
    assert exc.status_code == 404


@pytest.mark.asyncio
async def test_main_request_only_lets_sub_request_errors_propagate(handler, hook_manager, request_obj):
    ExceptionListener(main_request_only=True).register(hook_manager)

    with pytest.raises(NotFoundHttpException):
        await handler.handle(request_obj, main_request=False)

    response = await handler.handle(request_obj, main_request=True)
    assert response.status_code == 404


@pytest.mark.asyncio
async def test_exception_listener_runs_after_custom_listeners(handler, hook_manager, request_obj):
    custom = PlainTextResponse("custom 404", status_code=404)

    async def on_exception(event: HookEvent) -> bool:
        return event.resolve(custom)

    ExceptionListener().register(hook_manager)
    hook_manager.register(CoreHooks.EXCEPTION, on_exception)

    assert await handler.handle(request_obj) is custom


# ============ RequestIdListener ============


@pytest.mark.asyncio
async def test_request_id_generated_and_echoed(handler, hook_manager, request_obj, resolver, request_id_reset):
    seen = []

    def controller():
        seen.append(get_request_id())
        return PlainTextResponse("ok")

    RequestIdListener().register(hook_manager)
    hook_manager.register(CoreHooks.LOAD_CONTROLLER, resolver(controller))
    set_request_id("before")

    response = await handler.handle(request_obj)

    request_id = response.headers["X-Request-ID"]
    assert len(request_id) == 36
    assert seen == [request_id]
    assert get_request_id() == "before"


@pytest.mark.asyncio
async def test_request_id_taken_from_header(handler, hook_manager, request_obj, resolver, request_id_reset):
    RequestIdListener(header_name="X-Trace").register(hook_manager)
    hook_manager.register(CoreHooks.LOAD_CONTROLLER, resolver(lambda: PlainTextResponse("ok")))
    request_obj.headers["X-Trace"] = "trace-123"

    response = await handler.handle(request_obj)

    assert response.headers["X-Trace"] == "trace-123"


@pytest.mark.asyncio
async def test_request_id_listener_never_claims(handler, hook_manager, request_obj, resolver, recorder, request_id_reset):
    RequestIdListener().register(hook_manager)
    hook_manager.register(CoreHooks.LOAD_CONTROLLER, resolver(lambda: PlainTextResponse("ok")))

    await handler.handle(request_obj)

    assert CoreHooks.LOAD_CONTROLLER in recorder.calls


@pytest.mark.asyncio
async def test_sub_request_keeps_parent_id(handler, hook_manager, request_obj, resolver, request_id_reset):
    RequestIdListener().register(hook_manager)
    hook_manager.register(CoreHooks.LOAD_CONTROLLER, resolver(lambda: PlainTextResponse("ok")))
    set_request_id("parent-id")

    response = await handler.handle(request_obj, main_request=False)

    assert get_request_id() == "parent-id"
    assert "X-Request-ID" not in response.headers


@pytest.mark.asyncio
async def test_request_id_restored_after_unhandled_error(handler, hook_manager, request_obj, request_id_reset):
    RequestIdListener().register(hook_manager)
    set_request_id("before")

    with pytest.raises(NotFoundHttpException):
        await handler.handle(request_obj)

    assert get_request_id() == "before"


@pytest.mark.asyncio
async def test_request_id_echoed_on_error_response(handler, hook_manager, request_obj, request_id_reset):
    RequestIdListener().register(hook_manager)
    ExceptionListener().register(hook_manager)
    request_obj.headers["X-Request-ID"] = "failing-request"
    set_request_id("before")

    response = await handler.handle(request_obj)

    assert response.status_code == 404
    assert response.headers["X-Request-ID"] == "failing-request"
    assert get_request_id() == "before"


def test_registering_again_replaces_listeners(hook_manager):
    RequestIdListener().register(hook_manager)
    RequestIdListener(header_name="X-Trace").register(hook_manager)
    ExceptionListener().register(hook_manager)
    ExceptionListener(debug=True).register(hook_manager)

    request_listeners = hook_manager.get_listeners(CoreHooks.REQUEST)
    exception_listeners = hook_manager.get_listeners(CoreHooks.EXCEPTION)

    assert len(request_listeners) == 1
    assert request_listeners[0].__self__.header_name == "X-Trace"
    assert len(hook_manager.get_listeners(CoreHooks.RESPONSE)) == 1
    assert len(exception_listeners) == 2
    assert exception_listeners[0].debug is True
