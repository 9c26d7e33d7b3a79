"""Inbound callback payloads: the request envelope and its event object."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from src.callback.events import Event


def _as_int(value: Any) -> int | None:
    # bool is an int subclass; a flag is never an identifier
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


class EventObject:
    """Read-only view over the ``object`` of a callback event.

    The payload shape depends on the event kind and the API version: since
    5.103 message events nest the message under ``message``, older versions
    put its fields at the top level. The addressing accessors look at the
    top level first and fall back to the nested record.
    """

    def __init__(self, data: dict[str, Any] | None = None) -> None:
        self._data: dict[str, Any] = dict(data or {})

    @property
    def raw(self) -> dict[str, Any]:
        return self._data

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def message(self) -> dict[str, Any]:
        nested = self._data.get("message")
        return nested if isinstance(nested, dict) else {}

    def user_id(self) -> int | None:
        return _as_int(self._data.get("user_id"))

    def from_id(self) -> int | None:
        value = _as_int(self._data.get("from_id"))
        if value is None:
            value = _as_int(self.message().get("from_id"))
        return value

    def peer_id(self) -> int | None:
        value = _as_int(self._data.get("peer_id"))
        if value is None:
            value = _as_int(self.message().get("peer_id"))
        return value

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, EventObject):
            return NotImplemented
        return self._data == other._data

    def __repr__(self) -> str:
        return f"EventObject({self._data!r})"


class CallbackRequest(BaseModel):
    """Body of a Callback API POST as delivered by the webhook dispatcher."""

    model_config = ConfigDict(frozen=True)

    type: str
    object: dict[str, Any] = Field(default_factory=dict)
    group_id: int
    event_id: str | None = None
    secret: str | None = None
    v: str | None = None

    @property
    def event(self) -> Event:
        return Event.parse(self.type)

    @property
    def event_object(self) -> EventObject:
        return EventObject(self.object)

    @classmethod
    def parse_raw_json(cls, data: str | bytes) -> CallbackRequest:
        return cls.model_validate_json(data)
