"""Per-event handler context: addressing, payload access and replies."""

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from pydantic_core import PydanticSerializationError

from src.api.client import SharedClient, random_id
from src.callback.addressing import resolve_peer_id
from src.callback.errors import KeyboardSerializationError, MalformedEventError
from src.callback.events import Event
from src.callback.request import CallbackRequest, EventObject
from src.callback.response import Response

logger = logging.getLogger(__name__)


class Context:
    """Stores what a handler needs to know about one event and lets it reply.

    Created once per inbound callback and dropped once the handler returns.
    The peer id is resolved at construction; an event whose object lacks the
    addressing field never yields a context.
    """

    def __init__(
        self,
        event: Event,
        obj: EventObject | dict[str, Any],
        api: SharedClient,
        group_id: int | None = None,
        random_id_factory: Callable[[], int] = random_id,
    ) -> None:
        if not isinstance(obj, EventObject):
            obj = EventObject(obj)
        self._event = event
        self._object = obj
        self._api = api
        self._group_id = group_id
        self._peer_id = resolve_peer_id(event, obj)
        self._response = Response()
        self._random_id_factory = random_id_factory

    @classmethod
    def from_request(cls, request: CallbackRequest, api: SharedClient) -> Context:
        """Build a context from a parsed callback body."""
        event = request.event
        try:
            return cls(event, request.event_object, api, group_id=request.group_id)
        except MalformedEventError as exc:
            logger.warning(
                "rejecting %s event for group %s: %s", event.value, request.group_id, exc,
            )
            raise

    @property
    def event(self) -> Event:
        return self._event

    @property
    def object(self) -> EventObject:
        return self._object

    @property
    def api(self) -> SharedClient:
        return self._api

    @property
    def group_id(self) -> int | None:
        return self._group_id

    @property
    def peer_id(self) -> int:
        return self._peer_id

    @property
    def response(self) -> Response:
        """The pending response, mutable."""
        return self._response

    def send(self) -> None:
        """Send the pending response to the event's peer.

        The response is left as is, so calling this again sends the same
        content as a new message with a new ``random_id``. Blocks until the
        shared client is free.

        Raises KeyboardSerializationError, LockAcquisitionError, or whatever
        the sender raised for the remote call.
        """
        params = self._build_params()
        logger.debug("sending message %s", params)
        self._api.send_message(params)

    def _build_params(self) -> dict[str, str]:
        res = self._response
        params: dict[str, str] = {"peer_id": str(self._peer_id)}

        if res.message:
            params["message"] = res.message

        if res.attachments:
            params["attachment"] = ",".join(str(a) for a in res.attachments)

        if res.keyboard is not None:
            try:
                params["keyboard"] = res.keyboard.to_json()
            except (PydanticSerializationError, TypeError, ValueError) as exc:
                raise KeyboardSerializationError(
                    f"failed to serialize keyboard: {exc}"
                ) from exc

        params["random_id"] = str(self._random_id_factory())
        return params
