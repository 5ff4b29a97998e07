"""Auditable trail of (input, decision, result) records."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Callable, Mapping

logger = logging.getLogger(__name__)


def _serialize_decision(decision: Any) -> Any:
    if decision is None:
        return None
    if hasattr(decision, "to_dict"):
        return decision.to_dict()
    if isinstance(decision, Mapping):
        return dict(decision)
    return str(decision)


@dataclass(frozen=True)
class AuditEntry:
    time: str
    input: Any
    decision: Any
    result: Any

    def to_dict(self) -> dict[str, Any]:
        return {
            "time": self.time,
            "input": self.input,
            "decision": self.decision,
            "result": self.result,
        }

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), default=str)


class AuditLog:
    """Records one timestamped entry per cycle.

    Entries are kept in memory, written as a JSON line to the module logger,
    and passed to `sink` when one is given. With `max_entries` set only the
    newest entries stay in memory; the logger and sink still see every one.
    """

    def __init__(
        self,
        sink: Callable[[AuditEntry], None] | None = None,
        max_entries: int | None = None,
    ):
        if max_entries is not None and max_entries < 1:
            raise ValueError("max_entries must be >= 1")
        self._sink = sink
        self.max_entries = max_entries
        self.entries: list[AuditEntry] = []

    def record(self, input: Any, decision: Any, result: Any) -> AuditEntry:
        entry = AuditEntry(
            time=datetime.now(timezone.utc).isoformat(),
            input=input,
            decision=_serialize_decision(decision),
            result=result,
        )
        self.entries.append(entry)
        if self.max_entries is not None and len(self.entries) > self.max_entries:
            del self.entries[: len(self.entries) - self.max_entries]
        logger.info("%s", entry.to_json())
        if self._sink is not None:
            self._sink(entry)
        return entry
