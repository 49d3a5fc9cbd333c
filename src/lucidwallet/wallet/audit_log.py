from __future__ import annotations

import threading
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class AuditEntry:
    event: str
    payload: Dict[str, Any]
    timestamp: int = field(default_factory=lambda: int(time.time() * 1000))


class AuditLog:
    """Append-only, in-memory record of signing decisions."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: List[AuditEntry] = []

    def record(self, event: str, payload: Dict[str, Any], timestamp: Optional[int] = None) -> AuditEntry:
        entry = AuditEntry(event=event, payload=dict(payload or {}))
        if timestamp is not None:
            entry = AuditEntry(event=event, payload=entry.payload, timestamp=int(timestamp))
        with self._lock:
            self._entries.append(entry)
        return entry

    def list(self) -> List[AuditEntry]:
        with self._lock:
            return list(self._entries)

    def events(self) -> List[str]:
        return [e.event for e in self.list()]
