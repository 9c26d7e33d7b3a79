"""Click CLI for inspecting callback events and replying to them."""

from __future__ import annotations

import json
import os
from pathlib import Path

import click
import httpx
from pydantic import ValidationError

from src.api.client import SharedClient
from src.api.vk import VkApiSender
from src.audit.logger import AuditLogger
from src.callback.context import Context
from src.callback.errors import CallbackError
from src.callback.request import CallbackRequest
from src.callback.response import Keyboard


def _load_request(event_file: str) -> CallbackRequest:
    try:
        return CallbackRequest.parse_raw_json(Path(event_file).read_bytes())
    except ValidationError as exc:
        raise click.ClickException(f"invalid callback body: {exc}") from exc


@click.group()
def cli() -> None:
    """VK Callback API event tools."""


@cli.command()
@click.argument("event_file", type=click.Path(exists=True, dir_okay=False))
def peer(event_file: str) -> None:
    """Print the peer id a reply to EVENT_FILE would be addressed to."""
    request = _load_request(event_file)
    try:
        ctx = Context.from_request(request, SharedClient(sender=_NoSender()))
    except CallbackError as exc:
        raise click.ClickException(str(exc)) from exc
    click.echo(str(ctx.peer_id))


def _load_keyboard(keyboard_file: str) -> Keyboard:
    try:
        return Keyboard.model_validate(json.loads(Path(keyboard_file).read_text()))
    except json.JSONDecodeError as exc:
        raise click.ClickException(f"keyboard file is not valid JSON: {exc}") from exc
    except ValidationError as exc:
        raise click.ClickException(f"invalid keyboard: {exc}") from exc


def _open_sender() -> VkApiSender:
    try:
        return VkApiSender.from_env()
    except KeyError as exc:
        raise click.ClickException(f"missing environment variable {exc.args[0]}") from exc


@cli.command()
@click.argument("event_file", type=click.Path(exists=True, dir_okay=False))
@click.option("--message", "-m", default="", help="Message text.")
@click.option("--attachment", "-a", multiple=True, help="Attachment descriptor, repeatable.")
@click.option(
    "--keyboard",
    type=click.Path(exists=True, dir_okay=False),
    default=None,
    help="Path to keyboard JSON.",
)
@click.option("--audit-log", default=None, help="Audit log file path.")
def reply(
    event_file: str,
    message: str,
    attachment: tuple[str, ...],
    keyboard: str | None,
    audit_log: str | None,
) -> None:
    """Send a reply to the conversation EVENT_FILE came from."""
    request = _load_request(event_file)
    kbd = _load_keyboard(keyboard) if keyboard else None
    audit_log = audit_log or os.environ.get("AUDIT_LOG_PATH")
    audit_logger = AuditLogger.from_env(audit_log) if audit_log else None

    with _open_sender() as sender:
        api = SharedClient.from_env(sender, audit_logger=audit_logger)
        try:
            ctx = Context.from_request(request, api)
            ctx.response.set_message(message)
            for item in attachment:
                ctx.response.add_attachment(item)
            ctx.response.set_keyboard(kbd)
            ctx.send()
        except CallbackError as exc:
            raise click.ClickException(str(exc)) from exc
        except httpx.HTTPError as exc:
            raise click.ClickException(f"VK API request failed: {exc}") from exc

    click.echo(f"Sent to {ctx.peer_id}")


class _NoSender:
    def send_message(self, params: dict[str, str]) -> None:
        raise click.ClickException("peer command does not send messages")
