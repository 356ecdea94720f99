"""
Errors raised by the request handler.
"""

from typing import Any


class HookKernelError(Exception):
    """Base class for errors raised by hookkernel itself."""
    pass


class HttpException(HookKernelError):
    """
    Error that maps onto an HTTP status code.

    Exception listeners use ``status_code``, ``detail`` and ``headers``
    to build the error response.
    """

    status_code: int = 500
    default_detail: str = "Internal Server Error"

    def __init__(
        self,
        detail: str | None = None,
        *,
        status_code: int | None = None,
        headers: dict[str, str] | None = None,
    ):
        self.detail = detail or self.default_detail
        if status_code is not None:
            self.status_code = status_code
        self.headers: dict[str, Any] = dict(headers or {})
        super().__init__(self.detail)


class NotFoundHttpException(HttpException):
    """No listener resolved a controller for the request."""

    status_code = 404
    default_detail = "Not Found"


class InvalidControllerError(HookKernelError):
    """A resolved controller cannot be invoked."""
    pass


class InvalidResponseError(HookKernelError, RuntimeError):
    """A value that had to be a response is not one."""
    pass
