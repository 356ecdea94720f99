"""
Pytest fixtures for testing.

Provides:
- A fresh hook manager and request handler per test
- A fake request object
- A recorder listing which hooks were notified
"""

from dataclasses import dataclass, field
from typing import Any

import pytest
from starlette.responses import PlainTextResponse

from hookkernel.core.dispatcher import RequestHandler
from hookkernel.core.hooks import CoreHooks, HookEvent, HookManager


@dataclass
class FakeRequest:
    """Opaque request stand-in; the handler never looks inside."""
    path: str = "/"
    headers: dict[str, str] = field(default_factory=dict)


class HookRecorder:
    """Listener registered on every core hook that records each call."""

    def __init__(self, manager: HookManager):
        self.calls: list[str] = []
        self.events: list[HookEvent] = []
        for name in (CoreHooks.REQUEST, CoreHooks.LOAD_CONTROLLER, CoreHooks.CONTROLLER, CoreHooks.EXCEPTION):
            manager.register(name, self._notify, priority=0)
        for name in (CoreHooks.VIEW, CoreHooks.RESPONSE):
            manager.register(name, self._filter, priority=0)

    async def _notify(self, event: HookEvent) -> bool:
        self.calls.append(event.name)
        self.events.append(event)
        return False

    async def _filter(self, event: HookEvent, value: Any) -> Any:
        self.calls.append(event.name)
        self.events.append(event)
        return value

    def count(self, name: str) -> int:
        return self.calls.count(name)


def resolve_to(controller: Any, arguments: list | None = None):
    """Build a core.load_controller listener resolving to ``controller``."""
    async def load_controller(event: HookEvent) -> bool:
        return event.resolve((controller, list(arguments or [])))
    return load_controller


@pytest.fixture
def hook_manager() -> HookManager:
    return HookManager()


@pytest.fixture
def handler(hook_manager: HookManager) -> RequestHandler:
    return RequestHandler(hook_manager)


@pytest.fixture
def request_obj() -> FakeRequest:
    return FakeRequest(path="/hello")


@pytest.fixture
def recorder(hook_manager: HookManager) -> HookRecorder:
    return HookRecorder(hook_manager)


@pytest.fixture
def ok_response() -> PlainTextResponse:
    return PlainTextResponse("ok")


@pytest.fixture
def resolver():
    """Factory for core.load_controller listeners."""
    return resolve_to
