from __future__ import annotations

import logging
import sys
import threading
from datetime import datetime, timezone
from typing import IO, Iterable, List, Optional, Protocol, runtime_checkable

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

AUDIT_LOGGER_NAME = "toolgate.audit"
UNKNOWN_USER = "unknown"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class AuditEvent(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    timestamp: datetime = Field(default_factory=_utcnow)
    user_id: str = Field(default=UNKNOWN_USER, alias="userId")
    tool: str = ""
    toolset: str = ""
    namespaces: Optional[List[str]] = None
    resources: Optional[List[str]] = None
    outcome: str = "success"
    error: Optional[str] = None

    def to_json(self) -> str:
        return self.model_dump_json(by_alias=True, exclude_none=True)


@runtime_checkable
class AuditSink(Protocol):
    def log(self, event: AuditEvent) -> None: ...


class AuditLogger:
    """Writes one JSON line per event to a text stream. `out=None` discards events."""

    def __init__(self, out: Optional[IO[str]] = None) -> None:
        self._out = out
        self._lock = threading.Lock()

    def log(self, event: AuditEvent) -> None:
        if self._out is None:
            return
        line = event.to_json() + "\n"
        with self._lock:
            try:
                self._out.write(line)
                self._out.flush()
            except (OSError, ValueError):
                # A broken audit stream never fails the call.
                pass


class LoggingAuditSink:
    """Routes events through Python logging so they share the process's log pipeline."""

    def __init__(self, name: str = AUDIT_LOGGER_NAME, level: int = logging.INFO) -> None:
        self._logger = logging.getLogger(name)
        self._level = level

    def log(self, event: AuditEvent) -> None:
        self._logger.log(self._level, event.to_json())


def log_audit(
    sink: Optional[AuditSink],
    *,
    tool: str,
    toolset: str = "",
    user_id: Optional[str] = None,
    namespaces: Iterable[str] = (),
    resources: Iterable[str] = (),
    err: Optional[BaseException] = None,
) -> None:
    if sink is None:
        return
    event = AuditEvent(
        user_id=user_id or UNKNOWN_USER,
        tool=tool,
        toolset=toolset,
        namespaces=list(namespaces) or None,
        resources=list(resources) or None,
        outcome="error" if err is not None else "success",
        error=str(err) if err is not None else None,
    )
    try:
        sink.log(event)
    except Exception:
        logger.debug("Audit sink failed for tool %s", tool, exc_info=True)


def open_audit_sink(path: Optional[str]) -> AuditSink:
    """`None` -> logging sink, `"-"` -> stderr, anything else -> appended JSON-lines file."""
    if not path:
        return LoggingAuditSink()
    if path == "-":
        return AuditLogger(sys.stderr)
    try:
        return AuditLogger(open(path, "a", encoding="utf-8"))
    except OSError as e:
        logger.warning("Cannot open audit log %s (%s); routing audit events through logging", path, e)
        return LoggingAuditSink()
