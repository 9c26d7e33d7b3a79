"""Outgoing message accumulator and the values it carries."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict


class Attachment(BaseModel):
    """Reference to a media object, e.g. ``photo-1_456239017_ab12``."""

    model_config = ConfigDict(frozen=True)

    type: str
    owner_id: int
    media_id: int
    access_key: str | None = None

    def __str__(self) -> str:
        descriptor = f"{self.type}{self.owner_id}_{self.media_id}"
        if self.access_key:
            descriptor = f"{descriptor}_{self.access_key}"
        return descriptor


class Button(BaseModel):
    action: dict[str, Any]
    color: str | None = None


class Keyboard(BaseModel):
    one_time: bool = False
    inline: bool = False
    buttons: list[list[Button]] = []

    def to_json(self) -> str:
        return self.model_dump_json(exclude_none=True)


@dataclass
class Response:
    """Pending reply built up by handler code.

    Sending does not reset it: every ``Context.send`` delivers whatever has
    accumulated so far, so a handler can send several messages in a row.
    """

    message: str = ""
    attachments: list[Attachment | str] = field(default_factory=list)
    keyboard: Keyboard | None = None

    def write(self, text: str) -> Response:
        self.message += text
        return self

    def set_message(self, text: str) -> Response:
        self.message = text
        return self

    def add_attachment(self, attachment: Attachment | str) -> Response:
        self.attachments.append(attachment)
        return self

    def set_keyboard(self, keyboard: Keyboard | None) -> Response:
        self.keyboard = keyboard
        return self

    def clear(self) -> None:
        self.message = ""
        self.attachments.clear()
        self.keyboard = None
