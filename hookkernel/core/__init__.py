"""
Core dispatch pipeline: hook manager, request handler and error types.
"""

from .dispatcher import RequestHandler
from .exceptions import (
    HookKernelError,
    HttpException,
    NotFoundHttpException,
    InvalidControllerError,
    InvalidResponseError,
)
from .hooks import HookManager, HookEvent, HookPriority, CoreHooks, hook
from .responses import is_response

__all__ = [
    "RequestHandler",
    "HookKernelError",
    "HttpException",
    "NotFoundHttpException",
    "InvalidControllerError",
    "InvalidResponseError",
    "HookManager",
    "HookEvent",
    "HookPriority",
    "CoreHooks",
    "hook",
    "is_response",
]
