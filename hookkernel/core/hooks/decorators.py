"""
Decorator utilities for hooks.
"""

from typing import Callable, TypeVar, ParamSpec

from .manager import hooks, HookManager, HookPriority

P = ParamSpec("P")
R = TypeVar("R")


def hook(
    name: str,
    *,
    priority: HookPriority = HookPriority.NORMAL,
    once: bool = False,
    manager: HookManager | None = None,
) -> Callable[[Callable[P, R]], Callable[P, R]]:
    """
    Decorator to register a function as a hook listener.

    Registers on the global manager unless ``manager`` is given.

    Example:
    ```python
    @hook(CoreHooks.VIEW)
    async def render_text(event: HookEvent, value):
        if isinstance(value, str):
            return PlainTextResponse(value)
        return value
    ```
    """
    return (manager or hooks).on(name, priority=priority, once=once)
