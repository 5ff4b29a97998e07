"""Shared key-value context for one workflow run."""

from __future__ import annotations

import copy
from enum import Enum
from typing import Any, Mapping

from .progress import ProgressTracker

# Keys the FSM orchestrator reads and writes. Other keys are free for domain use.
GOAL = "goal"
STARTED_AT = "started_at"
PLAN = "plan"
OBSERVATIONS = "observations"
PENDING_TOOL_CALLS = "pending_tool_calls"


class MergeStrategy(Enum):
    """How State.apply folds a result mapping into the live data."""

    SHALLOW = "shallow"  # top-level keys overwrite
    DEEP = "deep"  # nested mappings merge recursively


def deep_merge(target: dict[str, Any], source: Mapping[str, Any]) -> None:
    """Recursively merge `source` into `target` in place. Non-mapping values overwrite."""
    for key, value in source.items():
        current = target.get(key)
        if isinstance(current, dict) and isinstance(value, Mapping):
            deep_merge(current, value)
        else:
            target[key] = copy.deepcopy(value)


class State:
    """Mutable context owned by a single orchestrator run.

    `snapshot()` hands out an independent deep copy so the planner can read
    state without aliasing into live data. `apply()` merges a result mapping
    according to the configured MergeStrategy; non-mapping results are ignored.
    """

    def __init__(
        self,
        data: Mapping[str, Any] | None = None,
        *,
        merge_strategy: MergeStrategy | str = MergeStrategy.DEEP,
    ):
        self._data: dict[str, Any] = copy.deepcopy(dict(data or {}))
        self.merge_strategy = MergeStrategy(merge_strategy)
        self.progress = ProgressTracker()

    def get(self, key: str, default: Any = None) -> Any:
        return self._data.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._data[key] = value

    def delete(self, key: str) -> None:
        self._data.pop(key, None)

    def snapshot(self) -> dict[str, Any]:
        return copy.deepcopy(self._data)

    def apply(self, result: Any) -> None:
        if not isinstance(result, Mapping):
            return
        if self.merge_strategy is MergeStrategy.DEEP:
            deep_merge(self._data, result)
        else:
            for key, value in result.items():
                self._data[key] = copy.deepcopy(value)

    def __contains__(self, key: str) -> bool:
        return key in self._data

    def to_dict(self) -> dict[str, Any]:
        return self.snapshot()

    @classmethod
    def from_dict(cls, d: Mapping[str, Any], **kwargs: Any) -> State:
        return cls(d, **kwargs)
