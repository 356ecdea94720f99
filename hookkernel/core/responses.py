"""
Response capability checks.
"""

from typing import Any

from starlette.responses import Response

# Values whose repr is short and meaningful in an error message
_SCALAR_TYPES = (type(None), bool, int, float, str, bytes, list, tuple, dict)


def is_response(value: Any) -> bool:
    """Whether ``value`` can be sent back to the client."""
    return isinstance(value, Response)


def describe_value(value: Any) -> str:
    """
    Describe a value for an error message.

    Plain data is shown with its repr on one line, anything else by its
    class name.
    """
    if isinstance(value, _SCALAR_TYPES):
        return repr(value).replace("\n", "")
    return f"an object of class {type(value).__qualname__}"
