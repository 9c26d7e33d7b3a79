"""Tests for the callback CLI."""

from __future__ import annotations

import json
from pathlib import Path
from unittest.mock import patch

import httpx
import pytest
from click.testing import CliRunner

from src.callback.cli import cli
from src.callback.errors import ApiError
from tests.conftest import RecordingSender, make_callback_body


def _write_event(tmp_path: Path, **kwargs: object) -> str:
    p = tmp_path / "event.json"
    p.write_text(json.dumps(make_callback_body(**kwargs)))
    return str(p)


class _FakeVkSender(RecordingSender):
    def __enter__(self) -> _FakeVkSender:
        return self

    def __exit__(self, *exc_info: object) -> None:
        pass


@pytest.fixture
def fake_vk() -> _FakeVkSender:
    return _FakeVkSender()


def test_peer_prints_peer_id(tmp_path: Path) -> None:
    event = _write_event(tmp_path)
    result = CliRunner().invoke(cli, ["peer", event])
    assert result.exit_code == 0
    assert result.output.strip() == "2000000001"


def test_peer_for_message_allow(tmp_path: Path) -> None:
    event = _write_event(tmp_path, type="message_allow", object={"user_id": 314})
    result = CliRunner().invoke(cli, ["peer", event])
    assert result.exit_code == 0
    assert result.output.strip() == "314"


def test_peer_malformed_event_fails(tmp_path: Path) -> None:
    event = _write_event(tmp_path, object={"text": "no address"})
    result = CliRunner().invoke(cli, ["peer", event])
    assert result.exit_code == 1
    assert "missing field peer_id" in result.output


def test_peer_unknown_event_fails(tmp_path: Path) -> None:
    event = _write_event(tmp_path, type="message_teleport")
    result = CliRunner().invoke(cli, ["peer", event])
    assert result.exit_code == 1
    assert "unknown callback event type" in result.output


def test_peer_invalid_body_fails(tmp_path: Path) -> None:
    p = tmp_path / "event.json"
    p.write_text(json.dumps({"type": "message_new"}))
    result = CliRunner().invoke(cli, ["peer", str(p)])
    assert result.exit_code == 1
    assert "invalid callback body" in result.output


def test_reply_sends_message(tmp_path: Path, fake_vk: _FakeVkSender) -> None:
    event = _write_event(tmp_path)
    keyboard = tmp_path / "kbd.json"
    keyboard.write_text(json.dumps({
        "one_time": True,
        "buttons": [[{"action": {"type": "text", "label": "OK"}}]],
    }))

    with patch("src.callback.cli.VkApiSender.from_env", return_value=fake_vk):
        result = CliRunner().invoke(cli, [
            "reply", event,
            "--message", "pong",
            "--attachment", "photo-1_2",
            "--attachment", "doc3_4",
            "--keyboard", str(keyboard),
        ])

    assert result.exit_code == 0, result.output
    assert "Sent to 2000000001" in result.output
    (params,) = fake_vk.calls
    assert params["peer_id"] == "2000000001"
    assert params["message"] == "pong"
    assert params["attachment"] == "photo-1_2,doc3_4"
    assert json.loads(params["keyboard"])["one_time"] is True
    assert "random_id" in params


def test_reply_writes_audit_log(tmp_path: Path, fake_vk: _FakeVkSender) -> None:
    event = _write_event(tmp_path)
    audit_log = tmp_path / "audit.jsonl"

    with patch("src.callback.cli.VkApiSender.from_env", return_value=fake_vk):
        result = CliRunner().invoke(cli, [
            "reply", event, "-m", "hi", "--audit-log", str(audit_log),
        ])

    assert result.exit_code == 0, result.output
    entry = json.loads(audit_log.read_text())
    assert entry["event_type"] == "message_sent"
    assert entry["peer_id"] == 2000000001


def test_reply_malformed_event_fails(tmp_path: Path, fake_vk: _FakeVkSender) -> None:
    event = _write_event(tmp_path, type="message_typing_state", object={"state": "typing"})

    with patch("src.callback.cli.VkApiSender.from_env", return_value=fake_vk):
        result = CliRunner().invoke(cli, ["reply", event, "-m", "hi"])

    assert result.exit_code == 1
    assert "missing field from_id" in result.output
    assert fake_vk.calls == []


def test_reply_invalid_keyboard_fails(tmp_path: Path, fake_vk: _FakeVkSender) -> None:
    event = _write_event(tmp_path)
    keyboard = tmp_path / "kbd.json"
    keyboard.write_text(json.dumps({"buttons": "nope"}))

    with patch("src.callback.cli.VkApiSender.from_env", return_value=fake_vk):
        result = CliRunner().invoke(cli, ["reply", event, "-m", "x", "--keyboard", str(keyboard)])

    assert result.exit_code == 1
    assert "invalid keyboard" in result.output
    assert fake_vk.calls == []


def test_reply_keyboard_not_json_fails(tmp_path: Path, fake_vk: _FakeVkSender) -> None:
    event = _write_event(tmp_path)
    keyboard = tmp_path / "kbd.json"
    keyboard.write_text("{not json")

    with patch("src.callback.cli.VkApiSender.from_env", return_value=fake_vk):
        result = CliRunner().invoke(cli, ["reply", event, "-m", "x", "--keyboard", str(keyboard)])

    assert result.exit_code == 1
    assert "keyboard file is not valid JSON" in result.output


def test_reply_missing_token_fails(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("VK_ACCESS_TOKEN", raising=False)
    monkeypatch.delenv("AUDIT_LOG_PATH", raising=False)
    event = _write_event(tmp_path)

    result = CliRunner().invoke(cli, ["reply", event, "-m", "x"])

    assert result.exit_code == 1
    assert "missing environment variable VK_ACCESS_TOKEN" in result.output


def test_reply_transport_error_fails(tmp_path: Path) -> None:
    request = httpx.Request("POST", "https://api.vk.com/method/messages.send")
    sender = _FakeVkSender(error=httpx.ConnectError("connection refused", request=request))
    event = _write_event(tmp_path)

    with patch("src.callback.cli.VkApiSender.from_env", return_value=sender):
        result = CliRunner().invoke(cli, ["reply", event, "-m", "x"])

    assert result.exit_code == 1
    assert "VK API request failed: connection refused" in result.output


def test_reply_api_error_fails(tmp_path: Path) -> None:
    sender = _FakeVkSender(error=ApiError(901, "Can't send messages for users without permission"))
    event = _write_event(tmp_path)

    with patch("src.callback.cli.VkApiSender.from_env", return_value=sender):
        result = CliRunner().invoke(cli, ["reply", event, "-m", "x"])

    assert result.exit_code == 1
    assert "VK API error 901" in result.output
