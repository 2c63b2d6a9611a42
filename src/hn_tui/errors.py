from __future__ import annotations


class HNError(Exception):
    """Base class for everything that can go wrong talking to the API."""


class TransportError(HNError):
    """The request could not complete or came back with a non-2xx status."""


class DecodeError(HNError):
    """The response body did not have the expected shape."""


def error_message(exc: BaseException) -> str:
    """Return a displayable message, never an empty one."""
    return str(exc) or "Error"
