"""Shared, lock-guarded handle to the API sender."""

from __future__ import annotations

import logging
import os
import secrets
import threading
from typing import TYPE_CHECKING, Any, Protocol

from src.callback.errors import LockAcquisitionError
from src.models import AuditEvent, AuditEventType

if TYPE_CHECKING:
    from src.audit.logger import AuditLogger

logger = logging.getLogger(__name__)


class MessageSender(Protocol):
    """Anything able to perform a ``messages.send`` call."""

    def send_message(self, params: dict[str, str]) -> Any: ...


def random_id() -> int:
    """Fresh deduplication id for one ``messages.send`` call (int32, >= 0)."""
    return secrets.randbits(31)


class SharedClient:
    """Sender shared by the dispatcher and every live context.

    Only one call is in flight at a time across all holders. Calls queue on
    the lock with no fairness guarantee; a hung call blocks everyone behind it
    unless ``lock_timeout`` is set.
    """

    def __init__(
        self,
        sender: MessageSender,
        lock_timeout: float | None = None,
        audit_logger: AuditLogger | None = None,
    ) -> None:
        self._sender = sender
        self._lock = threading.Lock()
        self._lock_timeout = lock_timeout
        self._audit = audit_logger

    @classmethod
    def from_env(
        cls, sender: MessageSender, audit_logger: AuditLogger | None = None,
    ) -> SharedClient:
        raw = os.environ.get("VK_LOCK_TIMEOUT")
        lock_timeout = float(raw) if raw else None
        return cls(sender, lock_timeout=lock_timeout, audit_logger=audit_logger)

    @property
    def sender(self) -> MessageSender:
        return self._sender

    def send_message(self, params: dict[str, str]) -> Any:
        """Run ``messages.send`` with exclusive access to the sender.

        Raises LockAcquisitionError if the lock is not obtained, and
        re-raises whatever the sender raised.
        """
        timeout = -1 if self._lock_timeout is None else self._lock_timeout
        try:
            acquired = self._lock.acquire(timeout=timeout)
        except (RuntimeError, ValueError) as exc:
            raise LockAcquisitionError(f"failed to lock API client: {exc}") from exc
        if not acquired:
            raise LockAcquisitionError(
                f"failed to lock API client within {self._lock_timeout}s"
            )

        try:
            result = self._sender.send_message(params)
        except Exception as exc:
            self._record(params, AuditEventType.SEND_FAILED, "failure", str(exc))
            raise
        finally:
            self._lock.release()

        self._record(params, AuditEventType.MESSAGE_SENT, "success")
        return result

    def _record(
        self,
        params: dict[str, str],
        event_type: AuditEventType,
        result: str,
        error: str | None = None,
    ) -> None:
        # The send outcome stands whether or not the audit write succeeds
        if not self._audit:
            return
        try:
            self._audit.log(AuditEvent(
                event_type=event_type,
                peer_id=int(params["peer_id"]),
                random_id=int(params["random_id"]),
                sent_fields=sorted(k for k in params if k not in ("peer_id", "random_id")),
                result=result,
                error=error,
            ))
        except OSError:
            logger.exception(
                "failed to record %s for peer %s", event_type.value, params["peer_id"],
            )
