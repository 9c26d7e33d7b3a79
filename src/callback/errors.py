"""Exceptions raised by the callback context layer."""

from __future__ import annotations

from typing import Any


class CallbackError(Exception):
    """Base class for errors raised while handling a callback event."""


class UnknownEventError(CallbackError):
    """Raised when a callback carries an event type we do not know."""

    def __init__(self, value: str) -> None:
        self.value = value
        super().__init__(f"unknown callback event type: {value!r}")


class MalformedEventError(CallbackError):
    """Raised when the addressing field for an event kind is missing."""

    def __init__(self, event: str, field: str) -> None:
        self.event = event
        self.field = field
        super().__init__(
            f"malformed event object for event kind {event}: missing field {field}"
        )


class LockAcquisitionError(CallbackError):
    """Raised when the shared API client lock cannot be taken."""


class KeyboardSerializationError(CallbackError):
    """Raised when the pending keyboard cannot be encoded as JSON."""


class ApiError(CallbackError):
    """Error object returned by the VK API in place of a response."""

    def __init__(
        self,
        code: int,
        message: str,
        request_params: list[dict[str, Any]] | None = None,
    ) -> None:
        self.code = code
        self.message = message
        self.request_params = request_params or []
        super().__init__(f"VK API error {code}: {message}")
