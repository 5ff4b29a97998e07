"""Pre-execution validation of planner decisions."""

from __future__ import annotations

from typing import Any, Iterable

from .decision import Decision
from .errors import PolicyViolation


class Policy:
    """Validates a Decision against configured constraints.

    Args:
        allowed_actions: If given, only these actions may execute.
        min_confidence: If given, a decision carrying a confidence below this
            value is rejected. Decisions without a confidence are not checked.

    Subclasses may override `converged()` to stop an Agent loop once the
    run's progress signals say the goal is met.
    """

    def __init__(
        self,
        allowed_actions: Iterable[str] | None = None,
        min_confidence: float | None = None,
    ):
        self.allowed_actions = frozenset(allowed_actions) if allowed_actions is not None else None
        self.min_confidence = min_confidence

    def validate(self, decision: Decision, state: Any = None) -> None:
        """Raise PolicyViolation if the decision may not be executed."""
        if decision is None or not decision.action:
            raise PolicyViolation("Decision has no action", decision)
        self._validate_confidence(decision)
        self._validate_action(decision)

    def converged(self, state: Any) -> bool:
        return False

    def _validate_confidence(self, decision: Decision) -> None:
        if self.min_confidence is None or decision.confidence is None:
            return
        if decision.confidence < self.min_confidence:
            raise PolicyViolation(
                f"Low confidence: {decision.confidence} < {self.min_confidence}", decision
            )

    def _validate_action(self, decision: Decision) -> None:
        if self.allowed_actions is None or decision.action in self.allowed_actions:
            return
        raise PolicyViolation(f"Invalid action: {decision.action}", decision)
