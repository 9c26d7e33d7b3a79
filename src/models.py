"""Shared Pydantic data models for vk-callback-context."""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    MESSAGE_SENT = "message_sent"
    SEND_FAILED = "send_failed"


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class AuditEvent(BaseModel):
    """One ``messages.send`` attempt."""

    timestamp: str = Field(default_factory=_now_iso)
    event_type: AuditEventType
    peer_id: int
    random_id: int
    sent_fields: list[str] = Field(default_factory=list)  # message, attachment, keyboard
    result: str  # "success" | "failure"
    error: str | None = None
