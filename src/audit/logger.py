"""Delivery audit log — one JSON line per ``messages.send`` attempt.

The active file holds the current UTC day. On the first write of a new day it
is archived as ``<stem>.<YYYY-MM-DD><suffix>`` next to it, and archives older
than the retention window are deleted.
"""

from __future__ import annotations

import fcntl
import os
from collections.abc import Callable
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from src.models import AuditEvent


def _utc_now() -> datetime:
    return datetime.now(UTC)


class AuditLogger:
    """Append-only record of outbound messages, archived per day."""

    def __init__(
        self,
        log_path: str,
        retention_days: int = 30,
        clock: Callable[[], datetime] = _utc_now,
    ) -> None:
        self.log_path = Path(log_path)
        self._retention_days = retention_days
        self._clock = clock

    @classmethod
    def from_env(cls, log_path: str) -> AuditLogger:
        """Create AuditLogger with retention from AUDIT_LOG_RETENTION_DAYS."""
        retention_days = int(os.environ.get("AUDIT_LOG_RETENTION_DAYS", "30"))
        return cls(log_path=log_path, retention_days=retention_days)

    def archive_path(self, day: date) -> Path:
        return self.log_path.with_name(
            f"{self.log_path.stem}.{day.isoformat()}{self.log_path.suffix}"
        )

    def archives(self) -> dict[date, Path]:
        """Existing archives keyed by the day they cover."""
        found: dict[date, Path] = {}
        prefix = f"{self.log_path.stem}."
        for path in self.log_path.parent.glob(f"{prefix}*{self.log_path.suffix}"):
            stamp = path.name[len(prefix):len(path.name) - len(self.log_path.suffix)]
            try:
                found[date.fromisoformat(stamp)] = path
            except ValueError:
                continue
        return found

    def _archive_stale(self, today: date) -> None:
        if not self.log_path.exists():
            return
        written = datetime.fromtimestamp(self.log_path.stat().st_mtime, UTC).date()
        if written >= today:
            return

        archive = self.archive_path(written)
        if archive.exists():
            # Same day archived earlier (clock moved back); keep both parts
            with open(archive, "a") as dst:
                dst.write(self.log_path.read_text())
            self.log_path.unlink()
        else:
            self.log_path.rename(archive)

    def _prune(self, today: date) -> None:
        cutoff = today - timedelta(days=self._retention_days)
        for day, path in self.archives().items():
            if day < cutoff:
                path.unlink()

    def log(self, event: AuditEvent) -> None:
        self.log_path.parent.mkdir(parents=True, exist_ok=True)
        line = event.model_dump_json(exclude_none=True)
        today = self._clock().date()

        # Several processes may share one log; archive, prune and append under one lock
        lock_file = self.log_path.parent / f".{self.log_path.name}.lock"
        with open(lock_file, "w") as lf:
            fcntl.flock(lf, fcntl.LOCK_EX)
            try:
                self._archive_stale(today)
                self._prune(today)
                with open(self.log_path, "a") as f:
                    f.write(line + "\n")
            finally:
                fcntl.flock(lf, fcntl.LOCK_UN)
