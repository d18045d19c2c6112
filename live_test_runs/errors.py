"""Error types and message normalization."""

import json
from collections.abc import Mapping
from typing import Any

UNKNOWN_ERROR = "Unknown error"


class RequestError(Exception):
    """Raised by gateways when a request does not yield a usable JSON body."""

    def __init__(self, message: str, *, status: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.status = status


def normalize_error(value: Any) -> str:
    """Turn any error-like value into a human-readable message.

    Precedence: non-empty string, then a non-empty ``message`` attribute or
    mapping key, then ``str()`` of an exception, then JSON serialization of
    the value, and finally ``"Unknown error"``.
    """
    if isinstance(value, str):
        return value or UNKNOWN_ERROR

    message = (
        value.get("message")
        if isinstance(value, Mapping)
        else getattr(value, "message", None)
    )
    if isinstance(message, str) and message:
        return message

    if isinstance(value, BaseException):
        return str(value) or UNKNOWN_ERROR

    if value is None:
        return UNKNOWN_ERROR

    try:
        return json.dumps(value)
    except (TypeError, ValueError):
        return UNKNOWN_ERROR


def extract_http_error_message(text: str, status: int) -> str:
    """Build the message for a non-success HTTP response.

    Uses the ``message`` field of a JSON body, else the raw body text, else a
    generic string naming the status code.
    """
    try:
        body = json.loads(text)
    except ValueError:
        body = None

    if isinstance(body, Mapping):
        message = body.get("message")
        if isinstance(message, str) and message:
            return message

    return text or f"HTTP error! status: {status}"
