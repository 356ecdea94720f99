"""
Hook manager for the request dispatch pipeline.
"""
from __future__ import annotations

from typing import Callable, Any, TypeVar, ParamSpec
from dataclasses import dataclass, field
from enum import IntEnum
from collections import defaultdict
import inspect
import logging

logger = logging.getLogger(__name__)

P = ParamSpec("P")
R = TypeVar("R")


class HookPriority(IntEnum):
    """Hook execution priority (lower runs first)."""
    FIRST = 0
    EARLY = 25
    NORMAL = 50
    LATE = 75
    LAST = 100


class CoreHooks:
    """Names of the hook points notified by the request handler."""
    REQUEST = "core.request"
    LOAD_CONTROLLER = "core.load_controller"
    CONTROLLER = "core.controller"
    VIEW = "core.view"
    RESPONSE = "core.response"
    EXCEPTION = "core.exception"

    # Lifecycle hooks notified by the ASGI adapter
    APP_STARTUP = "app.startup"
    APP_SHUTDOWN = "app.shutdown"


@dataclass
class HookEvent:
    """
    Single-use record handed to every listener of one hook invocation.

    Listeners read the payload with ``event["request"]`` and may write
    back into it (the request handler re-reads ``controller`` and
    ``arguments`` after the ``core.controller`` hook). A listener claims a
    ``notify_until`` event by returning True or by setting ``processed``,
    and puts its result in ``return_value``.
    """
    subject: Any
    name: str
    parameters: dict[str, Any] = field(default_factory=dict)
    processed: bool = False
    return_value: Any = None

    def __getitem__(self, key: str) -> Any:
        if key not in self.parameters:
            raise KeyError(f'The event "{self.name}" has no "{key}" parameter')
        return self.parameters[key]

    def __setitem__(self, key: str, value: Any) -> None:
        self.parameters[key] = value

    def __contains__(self, key: object) -> bool:
        return key in self.parameters

    def get(self, key: str, default: Any = None) -> Any:
        return self.parameters.get(key, default)

    def resolve(self, value: Any) -> bool:
        """Store ``value`` as the result and mark the event processed."""
        self.return_value = value
        self.processed = True
        return True


@dataclass
class Hook:
    """Registered hook information."""
    name: str
    handler: Callable[..., Any]
    priority: HookPriority = HookPriority.NORMAL
    once: bool = False  # Run only once then unregister
    source: str = ""  # Plugin/module that registered this


async def maybe_await(value: Any) -> Any:
    if inspect.isawaitable(value):
        return await value
    return value


class HookManager:
    """
    Registry of listeners keyed by hook name.

    Three notification styles are offered:
    - notify: run every listener
    - notify_until: run listeners until one claims the event
    - filter: pass a value through every listener

    Listener errors are not caught here; they propagate to whoever
    notified the hook.

    Example usage:
    ```python
    hooks = HookManager()

    @hooks.on(CoreHooks.LOAD_CONTROLLER)
    async def resolve(event: HookEvent) -> bool:
        return event.resolve((home, [event["request"]]))

    event = await hooks.notify_until(
        HookEvent(None, CoreHooks.LOAD_CONTROLLER, {"request": request})
    )
    ```
    """

    def __init__(self):
        self._hooks: dict[str, list[Hook]] = defaultdict(list)

    def register(
        self,
        name: str,
        handler: Callable[..., Any],
        *,
        priority: HookPriority = HookPriority.NORMAL,
        once: bool = False,
        source: str = "",
    ) -> Hook:
        """Register a hook handler."""
        hook = Hook(
            name=name,
            handler=handler,
            priority=priority,
            once=once,
            source=source,
        )

        self._hooks[name].append(hook)
        # Stable sort keeps registration order within a priority
        self._hooks[name].sort(key=lambda h: h.priority)

        logger.debug(f"Registered hook: {name} (priority={priority})")
        return hook

    def unregister(self, name: str, handler: Callable) -> bool:
        """Unregister a hook handler."""
        hooks = self._hooks.get(name, [])
        for i, hook in enumerate(hooks):
            if hook.handler is handler:
                del hooks[i]
                return True
        return False

    def unregister_source(self, source: str) -> int:
        """Unregister every handler registered with ``source``. Returns the count removed."""
        removed = 0
        for name, hooks in self._hooks.items():
            kept = [hook for hook in hooks if hook.source != source]
            removed += len(hooks) - len(kept)
            self._hooks[name] = kept
        return removed

    def on(
        self,
        name: str,
        *,
        priority: HookPriority = HookPriority.NORMAL,
        once: bool = False,
    ) -> Callable[[Callable[P, R]], Callable[P, R]]:
        """Decorator to register a hook handler."""
        def decorator(func: Callable[P, R]) -> Callable[P, R]:
            self.register(name, func, priority=priority, once=once)
            return func
        return decorator

    async def _run(self, hook: Hook, *args: Any) -> Any:
        if hook.once:
            self._discard(hook)
        return await maybe_await(hook.handler(*args))

    def _discard(self, hook: Hook) -> None:
        hooks = self._hooks.get(hook.name, [])
        if hook in hooks:
            hooks.remove(hook)

    async def notify(self, event: HookEvent) -> HookEvent:
        """Call every listener of ``event.name``."""
        for hook in list(self._hooks.get(event.name, [])):
            await self._run(hook, event)

        return event

    async def notify_until(self, event: HookEvent) -> HookEvent:
        """
        Call listeners until one of them claims the event.

        Check ``event.processed`` afterwards to know whether a listener
        handled it; its result is in ``event.return_value``.
        """
        for hook in list(self._hooks.get(event.name, [])):
            handled = await self._run(hook, event)
            if handled is True or event.processed:
                event.processed = True
                logger.debug(f"Hook {event.name} processed by {hook.source or hook.handler!r}")
                break

        return event

    async def filter(self, event: HookEvent, value: Any) -> HookEvent:
        """
        Run hooks as filters, passing value through each handler.

        Each handler receives the event and the value from the previous
        handler and returns the (possibly modified) value. The final value
        is stored in ``event.return_value``.
        """
        for hook in list(self._hooks.get(event.name, [])):
            value = await self._run(hook, event, value)

        event.return_value = value
        return event

    def has_hooks(self, name: str) -> bool:
        """Check if any hooks are registered for name."""
        return bool(self._hooks.get(name))

    def get_listeners(self, name: str) -> list[Callable[..., Any]]:
        """Return the handlers registered for name, in execution order."""
        return [hook.handler for hook in self._hooks.get(name, [])]

    def list_hooks(self, name: str | None = None) -> list[str]:
        """List registered hook names, optionally filtered by prefix."""
        names = [n for n, registered in self._hooks.items() if registered]
        if name:
            names = [n for n in names if n.startswith(name)]
        return sorted(names)

    def clear(self, name: str | None = None) -> None:
        """Clear hooks. If name given, clear only that hook."""
        if name:
            self._hooks.pop(name, None)
        else:
            self._hooks.clear()


# Global hook manager instance
hooks = HookManager()
