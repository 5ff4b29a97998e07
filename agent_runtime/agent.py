"""Flat plan -> validate -> execute loop."""

from __future__ import annotations

import logging
from typing import Any, Callable, Mapping

from .audit import AuditLog
from .decision import Decision
from .errors import MaxIterationsExceeded
from .executor import FINISH, Executor
from .fsm import DEFAULT_MAX_ITERATIONS
from .policy import Policy
from .state import State

logger = logging.getLogger(__name__)

InputBuilder = Callable[[Any, int], Any]


def default_input_builder(result: Any, iteration: int) -> str:
    return f"Continue based on: {result!r}"


class Agent:
    """Minimal agent: one plan/validate/execute/merge/audit cycle per iteration.

    `run()` stops when the decision is `finish`, the result carries
    `done: True`, or the policy reports convergence. Going past
    `max_iterations` raises MaxIterationsExceeded; PolicyViolation and
    ExecutionError propagate unchanged.
    """

    def __init__(
        self,
        planner: Any,
        policy: Policy,
        executor: Executor,
        state: State | None = None,
        audit_log: AuditLog | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        self.planner = planner
        self.policy = policy
        self.executor = executor
        self.state = state if state is not None else State()
        self.audit_log = audit_log
        self.max_iterations = max_iterations

    def step(self, input: Any) -> Any:
        """Single cycle. Returns the executor's result."""
        _, result = self._cycle(input)
        return result

    def run(self, initial_input: Any, input_builder: InputBuilder | None = None) -> Any:
        """Loop until termination and return the last result produced.

        Args:
            initial_input: Input for the first cycle.
            input_builder: Called as `input_builder(previous_result, iteration)`
                to produce the next input. Defaults to a repr of the result.
        """
        build_next = input_builder or default_input_builder
        current_input = initial_input
        iteration = 0

        while True:
            iteration += 1
            if iteration > self.max_iterations:
                raise MaxIterationsExceeded(self.max_iterations)

            logger.debug("Agent iteration %d", iteration)
            decision, result = self._cycle(current_input)

            cause = self._termination_cause(decision, result)
            if cause:
                logger.info("Agent finished after %d iterations (%s)", iteration, cause)
                return result

            current_input = build_next(result, iteration)

    def _cycle(self, input: Any) -> tuple[Decision, Any]:
        decision = self.planner.plan(input=input, state=self.state.snapshot())
        self.policy.validate(decision, self.state)
        result = self.executor.execute(decision, state=self.state)
        self.state.apply(result)
        if self.audit_log is not None:
            self.audit_log.record(input=input, decision=decision, result=result)
        return decision, result

    def _termination_cause(self, decision: Decision, result: Any) -> str | None:
        if decision.action == FINISH:
            return "finish"
        if isinstance(result, Mapping) and result.get("done") is True:
            return "done"
        if self.policy.converged(self.state):
            return "converged"
        return None
