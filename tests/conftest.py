"""Shared test fixtures for vk-callback-context."""

from __future__ import annotations

import threading
import time
from pathlib import Path
from typing import Any
from unittest.mock import MagicMock

import pytest

from src.api.client import SharedClient
from src.audit.logger import AuditLogger
from src.callback.request import CallbackRequest
from src.models import AuditEvent, AuditEventType


class RecordingSender:
    """MessageSender double that records every params dict it receives."""

    def __init__(self, delay: float = 0.0, error: Exception | None = None) -> None:
        self.calls: list[dict[str, str]] = []
        self._delay = delay
        self._error = error
        self._active = 0
        self._guard = threading.Lock()
        self.max_concurrent = 0

    def send_message(self, params: dict[str, str]) -> int:
        with self._guard:
            self._active += 1
            self.max_concurrent = max(self.max_concurrent, self._active)
        try:
            if self._delay:
                time.sleep(self._delay)
            if self._error is not None:
                raise self._error
            self.calls.append(dict(params))
            return len(self.calls)
        finally:
            with self._guard:
                self._active -= 1


@pytest.fixture
def sender() -> RecordingSender:
    return RecordingSender()


@pytest.fixture
def shared_client(sender: RecordingSender) -> SharedClient:
    return SharedClient(sender)


@pytest.fixture
def mock_audit_logger() -> MagicMock:
    return MagicMock(spec=AuditLogger)


@pytest.fixture
def audit_log_path(tmp_path: Path) -> Path:
    return tmp_path / "audit" / "sent.jsonl"


# --- Factory functions for test data ---


def make_message_object(
    peer_id: int = 2000000001,
    from_id: int = 1234,
    text: str = "hello",
    nested: bool = True,
) -> dict[str, Any]:
    """``message_new`` object in the nested (>= 5.103) or flat layout."""
    message = {
        "id": 17,
        "date": 1700000000,
        "peer_id": peer_id,
        "from_id": from_id,
        "text": text,
        "attachments": [],
    }
    if nested:
        return {"message": message, "client_info": {"keyboard": True}}
    return message


def make_callback_body(**kwargs: Any) -> dict[str, Any]:
    """Factory for a raw callback body with sensible defaults."""
    defaults: dict[str, Any] = {
        "type": "message_new",
        "object": make_message_object(),
        "group_id": 42,
        "event_id": "e7f9c1",
        "v": "5.199",
    }
    defaults.update(kwargs)
    return defaults


def make_callback_request(**kwargs: Any) -> CallbackRequest:
    return CallbackRequest.model_validate(make_callback_body(**kwargs))


def make_audit_event(**kwargs: Any) -> AuditEvent:
    """Factory for AuditEvent with sensible defaults."""
    defaults: dict[str, Any] = {
        "event_type": AuditEventType.MESSAGE_SENT,
        "peer_id": 1234,
        "random_id": 99,
        "result": "success",
    }
    defaults.update(kwargs)
    return AuditEvent(**defaults)
