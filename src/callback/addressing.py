"""Peer id resolution for callback events."""

from __future__ import annotations

from src.callback.errors import MalformedEventError
from src.callback.events import Event
from src.callback.request import EventObject


def resolve_peer_id(event: Event, obj: EventObject) -> int:
    """Return the id a reply to ``event`` must be addressed to.

    ``message_allow`` carries the user who granted permission,
    ``message_typing_state`` the user who is typing, every other event the
    conversation itself.

    Raises MalformedEventError when the field is absent.
    """
    match event:
        case Event.MESSAGE_ALLOW:
            field, value = "user_id", obj.user_id()
        case Event.MESSAGE_TYPING_STATE:
            field, value = "from_id", obj.from_id()
        case _:
            field, value = "peer_id", obj.peer_id()

    if value is None:
        raise MalformedEventError(event.value, field)
    return value
