"""The planner's structured output."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping


@dataclass(frozen=True)
class Decision:
    """An action to take, with optional parameters and a confidence score."""

    action: str
    params: Mapping[str, Any] | None = None
    confidence: float | None = None

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> Decision:
        """Build a Decision from a generated mapping; unknown keys are ignored."""
        data = {str(k): v for k, v in raw.items()}
        confidence = data.get("confidence")
        return cls(
            action=data.get("action") or "",
            params=data.get("params"),
            confidence=float(confidence) if confidence is not None else None,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "action": self.action,
            "params": dict(self.params) if self.params is not None else None,
            "confidence": self.confidence,
        }
