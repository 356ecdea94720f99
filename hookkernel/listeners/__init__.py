"""Bundled hook listeners."""

from hookkernel.listeners.exception import ExceptionListener
from hookkernel.listeners.request_id import RequestIdListener

__all__ = [
    "ExceptionListener",
    "RequestIdListener",
]
