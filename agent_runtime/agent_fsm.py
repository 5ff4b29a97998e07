"""Eight-state FSM orchestrator for tool-using agents."""

from __future__ import annotations

import json
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Mapping, Union

from .audit import AuditLog
from .decision import Decision
from .errors import AgentHalted, ExecutionError, PolicyViolation
from .executor import Executor, normalize_params
from .fsm import DEFAULT_MAX_ITERATIONS, FSM, FSMState
from .llm.adapter import Message, ToolCall, ToolResult, extract_content, extract_tool_calls, parse_tool_call
from .policy import Policy
from .state import GOAL, OBSERVATIONS, PENDING_TOOL_CALLS, PLAN, STARTED_AT, State

logger = logging.getLogger(__name__)


@dataclass
class Plan:
    """Goal, capabilities and first steps derived from the planning decision."""

    goal: str
    required_capabilities: list[Any] = field(default_factory=list)
    initial_steps: list[Any] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {
            "goal": self.goal,
            "required_capabilities": list(self.required_capabilities),
            "initial_steps": list(self.initial_steps),
        }


@dataclass(frozen=True)
class Finalized:
    """Run ended in FINALIZE."""

    result: dict[str, Any]


@dataclass(frozen=True)
class Halted:
    """Run ended in HALT; `result` holds the partial state and history."""

    reason: str
    result: dict[str, Any]


Outcome = Union[Finalized, Halted]


class AgentFSM:
    """Drives INTAKE -> PLAN -> DECIDE -> EXECUTE <-> OBSERVE/LOOP_CHECK -> FINALIZE | HALT.

    Each handler ends in exactly one transition request. Failures while
    planning or chatting become a HALT transition; a tool failure is recorded
    on its own call and the batch carries on; undecodable tool arguments abort
    the batch and HALT.

    Usage:
        agent = AgentFSM(planner=planner, executor=Executor(tools), max_iterations=10)
        result = agent.run("Compute 2+2")   # raises AgentHalted on HALT
        outcome = agent.execute("Compute 2+2")  # Finalized | Halted, never raises for HALT
    """

    def __init__(
        self,
        planner: Any,
        executor: Executor,
        *,
        state: State | None = None,
        policy: Policy | None = None,
        audit_log: AuditLog | None = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        self.planner = planner
        self.executor = executor
        self.state = state if state is not None else State()
        self.policy = policy
        self.audit_log = audit_log
        self.fsm = FSM(max_iterations=max_iterations)
        self.messages: list[Message] = []
        self.plan: Plan | None = None
        self.decision: dict[str, Any] | None = None
        self._input: Any = None
        self._handlers: dict[FSMState, Callable[[], None]] = {
            FSMState.INTAKE: self._handle_intake,
            FSMState.PLAN: self._handle_plan,
            FSMState.DECIDE: self._handle_decide,
            FSMState.EXECUTE: self._handle_execute,
            FSMState.OBSERVE: self._handle_observe,
            FSMState.LOOP_CHECK: self._handle_loop_check,
        }

    def run(self, initial_input: Any) -> dict[str, Any]:
        """Run the workflow and return the FINALIZE result.

        Raises:
            AgentHalted: the workflow ended in HALT.
        """
        outcome = self.execute(initial_input)
        if isinstance(outcome, Halted):
            raise AgentHalted(outcome.reason, outcome)
        return outcome.result

    def execute(self, initial_input: Any) -> Outcome:
        """Run the workflow from a fresh INTAKE and return the tagged outcome."""
        self.fsm.reset()
        self.messages = []
        self.plan = None
        self.decision = None
        self._input = initial_input
        logger.info("Agent run started (max_iterations=%d)", self.fsm.max_iterations)

        while not self.fsm.is_terminal:
            self._handlers[self.fsm.state]()

        if self.fsm.state is FSMState.FINALIZE:
            return self._handle_finalize()
        return self._handle_halt()

    # -- state handlers --

    def _handle_intake(self) -> None:
        self.messages = [Message(role="user", content=_as_text(self._input))]
        self.state.apply({GOAL: self._input, STARTED_AT: datetime.now(timezone.utc).isoformat()})
        self.fsm.transition_to(FSMState.PLAN, reason="Input normalized")

    def _handle_plan(self) -> None:
        try:
            if not self._planner_ready():
                raise ExecutionError("Planner requires schema and prompt_builder for PLAN state")
            decision = self.planner.plan(input=self._input, state=self.state.snapshot())
            params = normalize_params(decision.params)
            self.plan = Plan(
                goal=params.get("goal") or self._input,
                required_capabilities=list(params.get("required_capabilities") or []),
                initial_steps=list(params.get("initial_steps") or []),
            )
            self.state.apply({PLAN: self.plan.to_dict()})
        except Exception as e:
            self.fsm.transition_to(FSMState.HALT, reason=f"Plan failed: {e}")
            return
        self.fsm.transition_to(FSMState.DECIDE, reason="Plan created")

    def _handle_decide(self) -> None:
        if self.plan is not None and self.plan.goal:
            self.decision = {"continue": True, "reason": "Plan valid, proceeding to execution"}
            self.fsm.transition_to(FSMState.EXECUTE, reason="Decision: continue")
        else:
            self.decision = {"continue": False, "reason": "Invalid plan"}
            self.fsm.transition_to(FSMState.HALT, reason="Invalid plan")

    def _handle_execute(self) -> None:
        try:
            self.fsm.increment_iteration()
            response = self.planner.chat_raw(self.messages, tools=self._tool_definitions())
            tool_calls = [self._with_id(parse_tool_call(tc)) for tc in extract_tool_calls(response)]
        except Exception as e:
            self.fsm.transition_to(FSMState.HALT, reason=f"Execution failed: {e}")
            return

        if tool_calls:
            pending = [tc.to_dict() for tc in tool_calls]
            self.messages.append(
                Message(role="assistant", content=_assistant_text(response), tool_calls=pending)
            )
            self.state.apply({PENDING_TOOL_CALLS: pending})
            self.fsm.transition_to(FSMState.OBSERVE, reason="Tool calls requested")
        else:
            self.messages.append(Message(role="assistant", content=extract_content(response)))
            self.fsm.transition_to(FSMState.FINALIZE, reason="No tool calls, execution complete")

    def _handle_observe(self) -> None:
        results: list[ToolResult] = []
        for raw in self.state.get(PENDING_TOOL_CALLS) or []:
            call = parse_tool_call(raw)
            try:
                params = _decode_arguments(call.arguments)
            except ValueError as e:
                self.fsm.transition_to(
                    FSMState.HALT,
                    reason=f"Invalid JSON in arguments for tool '{call.name}': {e}",
                )
                return
            results.append(self._dispatch(call, params))

        try:
            tool_messages = [
                Message(
                    role="tool",
                    content=json.dumps(result.to_dict(), default=str),
                    tool_call_id=result.tool_call_id,
                    name=result.name,
                )
                for result in results
            ]
            observations = list(self.state.get(OBSERVATIONS) or []) + [r.to_dict() for r in results]
            self.state.apply({OBSERVATIONS: observations})
        except Exception as e:
            self.fsm.transition_to(FSMState.HALT, reason=f"Observation failed: {e}")
            return

        self.messages.extend(tool_messages)
        self.state.delete(PENDING_TOOL_CALLS)
        self.fsm.transition_to(FSMState.LOOP_CHECK, reason=f"Tools executed, {len(results)} results")

    def _handle_loop_check(self) -> None:
        if self.fsm.iteration_count >= self.fsm.max_iterations:
            self.fsm.transition_to(
                FSMState.HALT, reason=f"Max iterations ({self.fsm.max_iterations}) exceeded"
            )
        elif self.state.get(OBSERVATIONS):
            self.fsm.transition_to(FSMState.EXECUTE, reason="Continuing loop")
        else:
            self.fsm.transition_to(FSMState.FINALIZE, reason="No observations, finalizing")

    def _handle_finalize(self) -> Finalized:
        result: dict[str, Any] = {
            "done": True,
            "iterations": self.fsm.iteration_count,
            "state": self.state.snapshot(),
            "history": [t.to_dict() for t in self.fsm.history],
        }
        if self.messages and self.messages[-1].role == "assistant":
            result["final_message"] = self.messages[-1].content

        self._record(result)
        logger.info("Agent finalized after %d iterations", self.fsm.iteration_count)
        return Finalized(result)

    def _handle_halt(self) -> Halted:
        reason = self.fsm.last_reason or "Unknown error"
        result: dict[str, Any] = {
            "done": False,
            "error": reason,
            "iterations": self.fsm.iteration_count,
            "state": self.state.snapshot(),
            "history": [t.to_dict() for t in self.fsm.history],
        }
        self._record(result)
        logger.warning("Agent halted: %s", reason)
        return Halted(reason, result)

    # -- helpers --

    def _planner_ready(self) -> bool:
        check = getattr(self.planner, "is_configured_for_planning", None)
        return check() if callable(check) else True

    def _tool_definitions(self) -> list[dict[str, Any]] | None:
        return self.executor.tools.definitions() or None

    def _dispatch(self, call: ToolCall, params: dict[str, Any]) -> ToolResult:
        if self.policy is not None:
            try:
                self.policy.validate(Decision(action=call.name, params=params), self.state)
            except PolicyViolation as e:
                logger.info("Tool call '%s' rejected by policy: %s", call.name, e)
                return ToolResult(call.id, call.name, error=str(e))

        logger.debug("Dispatching tool '%s' (%s)", call.name, call.id)
        try:
            value = self.executor.call_tool(call.name, params)
        except ExecutionError as e:
            logger.info("Tool '%s' failed: %s", call.name, e)
            return ToolResult(call.id, call.name, error=str(e))
        self.state.progress.mark("tool_called")
        return ToolResult(call.id, call.name, result=value)

    @staticmethod
    def _with_id(call: ToolCall) -> ToolCall:
        if not call.id:
            call.id = uuid.uuid4().hex[:16]
        return call

    def _record(self, result: dict[str, Any]) -> None:
        if self.audit_log is not None:
            self.audit_log.record(input=self._input, decision=self.decision, result=result)


def _decode_arguments(arguments: Any) -> dict[str, Any]:
    """Tool arguments as a dict. Raises ValueError for bad JSON or a non-object."""
    if arguments is None:
        return {}
    if isinstance(arguments, str):
        if not arguments.strip():
            return {}
        arguments = json.loads(arguments)
    if not isinstance(arguments, Mapping):
        raise ValueError(f"expected a JSON object, got {type(arguments).__name__}")
    return dict(arguments)


def _assistant_text(response: Any) -> str | None:
    message = response.get("message") if isinstance(response, Mapping) else getattr(response, "message", None)
    if message is None:
        return None
    if isinstance(message, Mapping):
        return message.get("content")
    return getattr(message, "content", None)


def _as_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    return json.dumps(value, default=str)
