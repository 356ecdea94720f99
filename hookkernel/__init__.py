"""
hookkernel: a hook-driven request dispatch pipeline.
"""

from hookkernel.core import (
    RequestHandler,
    HookManager,
    HookEvent,
    HookPriority,
    CoreHooks,
    hook,
    HookKernelError,
    HttpException,
    NotFoundHttpException,
    InvalidControllerError,
    InvalidResponseError,
)

__version__ = "0.1.0"

__all__ = [
    "RequestHandler",
    "HookManager",
    "HookEvent",
    "HookPriority",
    "CoreHooks",
    "hook",
    "HookKernelError",
    "HttpException",
    "NotFoundHttpException",
    "InvalidControllerError",
    "InvalidResponseError",
]
