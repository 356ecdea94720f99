"""
Hook system for the request dispatch pipeline.
Lets independent listeners tap into each step of a dispatch.
"""

from .manager import HookManager, Hook, HookEvent, HookPriority, CoreHooks, hooks
from .decorators import hook

__all__ = [
    "HookManager",
    "Hook",
    "HookEvent",
    "HookPriority",
    "CoreHooks",
    "hooks",
    "hook",
]
