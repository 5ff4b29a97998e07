"""Generic finite state machine for the agentic workflow."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any

from .errors import InvalidTransition, MaxIterationsExceeded

logger = logging.getLogger(__name__)

DEFAULT_MAX_ITERATIONS = 50


class FSMState(Enum):
    """The eight workflow states."""

    INTAKE = "INTAKE"
    PLAN = "PLAN"
    DECIDE = "DECIDE"
    EXECUTE = "EXECUTE"
    OBSERVE = "OBSERVE"
    LOOP_CHECK = "LOOP_CHECK"
    FINALIZE = "FINALIZE"
    HALT = "HALT"

    @property
    def is_terminal(self) -> bool:
        return not TRANSITIONS[self]


# The only legal moves. FINALIZE and HALT are terminal.
TRANSITIONS: dict[FSMState, frozenset[FSMState]] = {
    FSMState.INTAKE: frozenset({FSMState.PLAN}),
    FSMState.PLAN: frozenset({FSMState.DECIDE, FSMState.HALT}),
    FSMState.DECIDE: frozenset({FSMState.EXECUTE, FSMState.FINALIZE, FSMState.HALT}),
    FSMState.EXECUTE: frozenset({FSMState.OBSERVE, FSMState.FINALIZE, FSMState.HALT}),
    FSMState.OBSERVE: frozenset({FSMState.LOOP_CHECK}),
    FSMState.LOOP_CHECK: frozenset({FSMState.EXECUTE, FSMState.FINALIZE, FSMState.HALT}),
    FSMState.FINALIZE: frozenset(),
    FSMState.HALT: frozenset(),
}

TERMINAL_STATES = frozenset(s for s, targets in TRANSITIONS.items() if not targets)


@dataclass(frozen=True)
class Transition:
    """One entry in the append-only transition history."""

    from_state: FSMState
    to_state: FSMState
    reason: str | None
    iteration: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "from": self.from_state.value,
            "to": self.to_state.value,
            "reason": self.reason,
            "iteration": self.iteration,
        }


class FSM:
    """State holder with a whitelist transition table and an iteration ceiling.

    Usage:
        fsm = FSM(max_iterations=10)
        fsm.transition_to(FSMState.PLAN, reason="Input normalized")
        fsm.increment_iteration()
    """

    def __init__(self, max_iterations: int = DEFAULT_MAX_ITERATIONS):
        if max_iterations < 0:
            raise ValueError("max_iterations must be >= 0")
        self.max_iterations = max_iterations
        self._state = FSMState.INTAKE
        self._iteration_count = 0
        self._history: list[Transition] = []

    @property
    def state(self) -> FSMState:
        return self._state

    @property
    def iteration_count(self) -> int:
        return self._iteration_count

    @property
    def history(self) -> list[Transition]:
        return list(self._history)

    @property
    def is_terminal(self) -> bool:
        return self._state in TERMINAL_STATES

    @property
    def last_reason(self) -> str | None:
        return self._history[-1].reason if self._history else None

    def can_transition_to(self, target: FSMState) -> bool:
        return target in TRANSITIONS[self._state]

    def transition_to(self, target: FSMState, reason: str | None = None) -> Transition:
        target = FSMState(target)
        if not self.can_transition_to(target):
            logger.warning("Rejected transition %s -> %s", self._state.value, target.value)
            raise InvalidTransition(self._state, target)

        entry = Transition(self._state, target, reason, self._iteration_count)
        self._history.append(entry)
        logger.debug("%s -> %s (%s)", self._state.value, target.value, reason)
        self._state = target
        return entry

    def increment_iteration(self) -> int:
        self._iteration_count += 1
        if self._iteration_count > self.max_iterations:
            raise MaxIterationsExceeded(self.max_iterations)
        return self._iteration_count

    def reset(self) -> None:
        self._state = FSMState.INTAKE
        self._iteration_count = 0
        self._history = []
